"""Backend source selection.

Priority:
  1. explicit override
  2. preference is enhanced and enhanced is available
  3. last success was enhanced and enhanced is still available
  4. legacy

Enhanced is never chosen against known unavailability, and a source that
last worked is kept rather than oscillating between backends.
"""

from dataclasses import dataclass

from marinecompliance.core.types import API_TYPES, ENHANCED, LEGACY


@dataclass(frozen=True)
class SourceChoice:
    type: str
    reason: str


def select_source(
    forced_type: str | None = None,
    *,
    preference: str = ENHANCED,
    enhanced_available: bool = False,
    last_successful: str | None = None,
) -> SourceChoice:
    if forced_type is not None:
        if forced_type not in API_TYPES:
            raise ValueError(f"Unknown API type: {forced_type!r}")
        return SourceChoice(forced_type, "override")
    if preference == ENHANCED and enhanced_available:
        return SourceChoice(ENHANCED, "preferred")
    if last_successful == ENHANCED and enhanced_available:
        return SourceChoice(ENHANCED, "last_successful")
    return SourceChoice(LEGACY, "default")


def fallback_for(api_type: str) -> str:
    """The other source, tried once the primary has failed."""
    return LEGACY if api_type == ENHANCED else ENHANCED
