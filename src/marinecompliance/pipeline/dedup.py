"""At-most-one in-flight analysis per parameter key.

No timers and no debouncing: a key is held from ``begin`` until ``end``.
Callers must release the key in a ``finally`` block so a failed run can
never wedge it. Different keys never block each other.
"""

import logging

logger = logging.getLogger(__name__)


class RequestDeduplicator:
    def __init__(self) -> None:
        self._in_flight: set[str] = set()

    def begin(self, key: str) -> bool:
        """Claim ``key``. False means an identical request is already running."""
        if key in self._in_flight:
            logger.info("Duplicate request ignored: %s", key, extra={"dedup_key": key})
            return False
        self._in_flight.add(key)
        return True

    def end(self, key: str) -> None:
        self._in_flight.discard(key)

    def is_active(self, key: str) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)
