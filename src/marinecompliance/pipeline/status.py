"""Single-flight system status probe.

Concurrent callers share one in-progress health request. A failed probe
never raises: it yields a degraded status with enhanced features off, so
source selection falls back to the conservative legacy-only assumption.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from marinecompliance.core.errors import StatusCheckError
from marinecompliance.core.types import SystemStatus
from marinecompliance.pipeline.store import SessionStore
from marinecompliance.retrieval import health

logger = logging.getLogger(__name__)

StatusFetcher = Callable[[], Awaitable[dict]]


def parse_status(body: Any) -> SystemStatus:
    """Build a SystemStatus from the health payload. Feature flags must be literally true."""
    if not isinstance(body, dict):
        body = {}
    raw_features = body.get("features")
    features = {}
    if isinstance(raw_features, dict):
        features = {str(name): flag is True for name, flag in raw_features.items()}
    features.setdefault("enhancedCompliance", False)
    return SystemStatus(status=str(body.get("status") or "unknown"), features=features)


class SystemStatusProber:
    def __init__(self, store: SessionStore, fetch: StatusFetcher | None = None) -> None:
        self._store = store
        self._fetch = fetch
        self._in_flight: asyncio.Task | None = None
        self.last_status: SystemStatus | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    async def check(self) -> SystemStatus:
        """Probe the health endpoint, joining a probe already in progress."""
        task = self._in_flight
        if task is None:
            task = asyncio.create_task(self._probe())
            self._in_flight = task
            task.add_done_callback(self._release)
        else:
            logger.debug("Status probe already in flight; joining it")
        return await asyncio.shield(task)

    def _release(self, task: asyncio.Task) -> None:
        if self._in_flight is task:
            self._in_flight = None

    async def _probe(self) -> SystemStatus:
        logger.info("Checking system status")
        try:
            fetch = self._fetch or health.fetch_status
            body = await fetch()
            if not isinstance(body, dict):
                raise StatusCheckError("Failed to check system status: unexpected response")
            status = parse_status(body)
        except StatusCheckError as e:
            logger.warning("System status check failed: %s; assuming legacy only", e.message)
            status = SystemStatus.degraded(e.message)
        except Exception as e:
            logger.exception("System status check raised unexpectedly; assuming legacy only")
            status = SystemStatus.degraded(f"Failed to check system status: {e}")
        else:
            logger.info(
                "System status: %s (enhanced compliance %s)",
                status.status, "available" if status.enhanced_compliance else "unavailable",
            )
        self.last_status = status
        self._store.set_system_status(status)
        return status
