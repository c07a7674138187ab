"""Compliance analysis orchestration: the dashboard's only entry point.

Pipeline for one analysis:
  1. validate params (no network call on failure)
  2. claim the dedup key; a duplicate returns the current analysis
  3. snapshot session state
  4. primary attempt on the selected source
  5. on failure, one fallback attempt on the other source
  6. commit the normalized result, or roll back and raise AnalysisError
  7. always release the loading flag and the dedup key

Each attempt returns an Attempt (ok analysis | err SourceRequestError), so
the fallback composition is plain data flow and can be tested with stub
source callables instead of HTTP mocks.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

from marinecompliance.config import settings
from marinecompliance.core.errors import (
    AnalysisError,
    NoPriorAnalysisError,
    SourceRequestError,
    ValidationError,
)
from marinecompliance.core.types import (
    API_TYPES,
    ENHANCED,
    LEGACY,
    AnalysisParams,
    CanonicalAnalysis,
    ComplianceRule,
    SessionState,
    SystemStatus,
)
from marinecompliance.observability.tracing import annotate, start_span, trace
from marinecompliance.pipeline.dedup import RequestDeduplicator
from marinecompliance.pipeline.normalize import normalize_payload, normalize_rules
from marinecompliance.pipeline.selector import SourceChoice, fallback_for, select_source
from marinecompliance.pipeline.status import StatusFetcher, SystemStatusProber
from marinecompliance.pipeline.store import SessionStore
from marinecompliance.retrieval import enhanced, legacy

logger = logging.getLogger(__name__)

SourceCall = Callable[[AnalysisParams], Awaitable[Any]]
RulesFetcher = Callable[[dict | None], Awaitable[list[dict]]]


@dataclass(frozen=True)
class Attempt:
    """Outcome of one backend call: exactly one of analysis / error is set."""

    api_type: str
    analysis: CanonicalAnalysis | None = None
    error: SourceRequestError | None = None

    @property
    def ok(self) -> bool:
        return self.analysis is not None

    @classmethod
    def success(cls, analysis: CanonicalAnalysis) -> "Attempt":
        return cls(api_type=analysis.api_type, analysis=analysis)

    @classmethod
    def failure(cls, api_type: str, error: SourceRequestError) -> "Attempt":
        return cls(api_type=api_type, error=error)


def _default_sources() -> dict[str, SourceCall]:
    return {ENHANCED: enhanced.check_compliance, LEGACY: legacy.fetch_demo}


def coerce_params(params: AnalysisParams | Mapping[str, Any]) -> AnalysisParams:
    """Validate params given either as AnalysisParams or a dashboard dict.

    Dicts may use the dashboard's camelCase keys or snake_case.
    """
    if isinstance(params, AnalysisParams):
        return AnalysisParams.from_raw(params.lat, params.lon, params.project_type, params.project_id)
    if isinstance(params, Mapping):
        return AnalysisParams.from_raw(
            params.get("lat"),
            params.get("lon"),
            params.get("projectType", params.get("project_type")),
            params.get("projectId", params.get("project_id")),
        )
    raise ValidationError("Location coordinates and project type are required")


class ComplianceOrchestrator:
    """Owns one dashboard session: state store, dedup tracking, status probe."""

    def __init__(
        self,
        *,
        store: SessionStore | None = None,
        sources: Mapping[str, SourceCall] | None = None,
        status_fetch: StatusFetcher | None = None,
        rules_fetch: RulesFetcher | None = None,
        timeout: float | None = None,
    ) -> None:
        self._store = store or SessionStore(settings.default_api_preference)
        self._sources = dict(sources) if sources is not None else None
        self._rules_fetch = rules_fetch
        self._timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._dedup = RequestDeduplicator()
        self._prober = SystemStatusProber(self._store, status_fetch)

    @property
    def state(self) -> SessionState:
        return self._store.state

    # -- status -------------------------------------------------------------

    async def check_system_status(self) -> SystemStatus:
        return await self._prober.check()

    # -- analysis -----------------------------------------------------------

    def _source(self, api_type: str) -> SourceCall:
        sources = self._sources if self._sources is not None else _default_sources()
        return sources[api_type]

    def _select(self, forced_type: str | None) -> SourceChoice:
        state = self._store.state
        return select_source(
            forced_type,
            preference=state.preferred_api_type,
            enhanced_available=state.enhanced_features_available,
            last_successful=state.last_successful_api_type,
        )

    async def _attempt(self, api_type: str, params: AnalysisParams) -> Attempt:
        with start_span(f"{api_type}_attempt") as span:
            annotate(span, inputs={"api_type": api_type, **params.to_request()})
            try:
                payload = await asyncio.wait_for(self._source(api_type)(params), timeout=self._timeout)
            except asyncio.TimeoutError:
                error = SourceRequestError(
                    f"The {api_type} compliance service timed out after {self._timeout:g}s.",
                    api_type=api_type,
                    kind="timeout",
                )
                annotate(span, outputs={"error": error.message})
                return Attempt.failure(api_type, error)
            except SourceRequestError as e:
                annotate(span, outputs={"error": e.message})
                return Attempt.failure(api_type, e)
            except Exception as e:
                logger.exception("Unexpected error from %s source", api_type, extra={"api_type": api_type})
                error = SourceRequestError(
                    f"The {api_type} compliance service request failed: {e}",
                    api_type=api_type,
                    kind="http",
                )
                annotate(span, outputs={"error": error.message})
                return Attempt.failure(api_type, error)

            analysis = normalize_payload(payload, api_type, params)
            annotate(span, outputs={
                "rules": len(analysis.rules),
                "overall_risk": analysis.risk_summary.overall_risk,
            })
            return Attempt.success(analysis)

    @trace(name="check_compliance", span_type="CHAIN")
    async def check_compliance(
        self,
        params: AnalysisParams | Mapping[str, Any],
        *,
        api_type: str | None = None,
    ) -> CanonicalAnalysis | None:
        """Run one analysis with fallback and transactional state.

        Returns the committed analysis, or the currently displayed one when
        an identical request is already in flight.

        Raises:
            ValidationError: bad coordinates or project type.
            AnalysisError: primary and fallback sources both failed.
        """
        try:
            validated = coerce_params(params)
            if api_type is not None and api_type not in API_TYPES:
                raise ValidationError(
                    f"apiType must be one of {', '.join(API_TYPES)}, got {api_type!r}",
                    field="apiType",
                )
        except ValidationError as e:
            logger.warning("Rejected analysis request: %s", e.message)
            self._store.set_error(e.message)
            raise

        key = validated.dedup_key
        if not self._dedup.begin(key):
            return self._store.state.current_analysis

        log_extra = {
            "dedup_key": key,
            "lat": validated.lat,
            "lon": validated.lon,
            "project_type": validated.project_type,
        }
        started = time.monotonic()
        snapshot = self._store.snapshot()
        self._store.start_loading()
        try:
            if self._store.state.system_status is None:
                await self.check_system_status()

            choice = self._select(api_type)
            logger.info(
                "Analyzing %s at (%.4f, %.4f) via %s (%s)",
                validated.project_type, validated.lat, validated.lon, choice.type, choice.reason,
                extra={**log_extra, "api_type": choice.type},
            )

            primary = await self._attempt(choice.type, validated)
            result = primary
            if not primary.ok:
                fallback_type = fallback_for(choice.type)
                logger.warning(
                    "%s source failed (%s); falling back to %s",
                    choice.type, primary.error.kind, fallback_type,
                    extra={**log_extra, "api_type": choice.type},
                )
                result = await self._attempt(fallback_type, validated)

            if not result.ok:
                self._store.restore(snapshot, primary.error.message)
                logger.error(
                    "Compliance analysis failed on both sources: %s / %s; state rolled back",
                    primary.error.message, result.error.message,
                    extra=log_extra,
                )
                raise AnalysisError(primary.error, result.error)

            self._store.commit_analysis(result.analysis, validated)
            logger.info(
                "Committed %s analysis: %d rules, overall risk %s",
                result.api_type, len(result.analysis.rules), result.analysis.risk_summary.overall_risk,
                extra={
                    **log_extra,
                    "api_type": result.api_type,
                    "duration_ms": round((time.monotonic() - started) * 1000),
                },
            )
            return result.analysis
        finally:
            self._store.finish_loading()
            self._dedup.end(key)

    async def retry_last_analysis(self) -> CanonicalAnalysis | None:
        params = self._store.state.last_analysis_params
        if params is None:
            raise NoPriorAnalysisError()
        logger.info("Retrying last analysis", extra={"dedup_key": params.dedup_key})
        return await self.check_compliance(params)

    # -- rules --------------------------------------------------------------

    async def get_rules(self, filters: dict | None = None) -> list[ComplianceRule]:
        """Fetch the enhanced rule catalogue. Never touches the current analysis."""
        fetch = self._rules_fetch or enhanced.fetch_rules
        try:
            raw_rules = await asyncio.wait_for(fetch(filters), timeout=self._timeout)
        except asyncio.TimeoutError:
            message = f"Fetching compliance rules timed out after {self._timeout:g}s."
            self._store.set_error(message)
            raise SourceRequestError(message, api_type=ENHANCED, kind="timeout") from None
        except SourceRequestError as e:
            logger.warning("Failed to fetch compliance rules: %s", e.message)
            self._store.set_error(e.message)
            raise
        return normalize_rules(raw_rules)

    # -- session transitions -----------------------------------------------

    def clear_analysis(self) -> None:
        self._store.clear_analysis()

    def clear_error(self) -> None:
        self._store.clear_error()

    def set_api_preference(self, api_type: str) -> None:
        """Persist the preferred source for future selections. No re-fetch."""
        normalized = api_type.strip().lower() if isinstance(api_type, str) else api_type
        if normalized not in API_TYPES:
            raise ValidationError(
                f"API preference must be one of {', '.join(API_TYPES)}, got {api_type!r}",
                field="apiType",
            )
        self._store.set_preference(normalized)
        logger.info("API preference set to %s", normalized, extra={"api_type": normalized})
