"""Session state store: the single writer of SessionState.

State objects are immutable; every transition swaps in a new SessionState
built with dataclasses.replace(). A snapshot is therefore just a reference
to the state at a point in time, and rollback hands back the very same
CanonicalAnalysis object that was displayed before the failed call.
"""

import logging
from dataclasses import dataclass, replace

from marinecompliance.core.types import (
    API_TYPES,
    ENHANCED,
    AnalysisParams,
    CanonicalAnalysis,
    SessionState,
    SystemStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    state: SessionState
    generation: int


class SessionStore:
    def __init__(self, preferred_api_type: str = ENHANCED) -> None:
        self._state = SessionState(preferred_api_type=preferred_api_type)
        self._loading = 0
        # Bumped whenever the displayed analysis changes
        self._generation = 0

    @property
    def state(self) -> SessionState:
        return self._state

    def _apply(self, **changes) -> SessionState:
        self._state = replace(self._state, **changes)
        return self._state

    # -- loading / error ----------------------------------------------------

    def start_loading(self) -> None:
        """Mark one more analysis in flight and clear the previous error."""
        self._loading += 1
        self._apply(is_loading=True, error=None)

    def finish_loading(self) -> None:
        self._loading = max(self._loading - 1, 0)
        self._apply(is_loading=self._loading > 0)

    def set_error(self, message: str) -> None:
        self._apply(error=message)

    def clear_error(self) -> None:
        self._apply(error=None)

    # -- status / preference ------------------------------------------------

    def set_system_status(self, status: SystemStatus) -> None:
        self._apply(system_status=status)

    def set_preference(self, api_type: str) -> None:
        if api_type not in API_TYPES:
            raise ValueError(f"Unknown API type: {api_type!r}")
        self._apply(preferred_api_type=api_type)

    # -- analysis -----------------------------------------------------------

    def commit_analysis(self, analysis: CanonicalAnalysis, params: AnalysisParams) -> None:
        self._generation += 1
        self._apply(
            current_analysis=analysis,
            last_analysis_params=params,
            last_successful_api_type=analysis.api_type,
            error=None,
        )

    def clear_analysis(self) -> None:
        self._generation += 1
        self._apply(current_analysis=None)

    def snapshot(self) -> Snapshot:
        return Snapshot(state=self._state, generation=self._generation)

    def restore(self, snapshot: Snapshot, error: str) -> None:
        """Roll the analysis back to ``snapshot`` and record ``error``.

        System status and preference keep their current values since they
        are written independently of analyses. If another analysis committed
        after the snapshot was taken, that newer result stays displayed.
        """
        if snapshot.generation == self._generation:
            self._apply(
                current_analysis=snapshot.state.current_analysis,
                last_analysis_params=snapshot.state.last_analysis_params,
                last_successful_api_type=snapshot.state.last_successful_api_type,
                error=error,
            )
        else:
            logger.info("Newer analysis committed during failed run; keeping it")
            self._apply(error=error)
