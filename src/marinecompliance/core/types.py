"""Domain types for marine compliance analysis.

All shared dataclasses live here to prevent circular imports and establish
a single source of truth for the domain model. Every other module imports
from here.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar

from marinecompliance.core.errors import ValidationError

ENHANCED = "enhanced"
LEGACY = "legacy"
API_TYPES = (ENHANCED, LEGACY)

RISK_LEVELS = ("low", "medium", "high", "unknown")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------

def _coerce_coordinate(value: Any, name: str, limit: float) -> float:
    """Parse a latitude/longitude and enforce [-limit, limit]."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{name} must be a number", field=name)
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError(f"{name} must be a number, got {value!r}", field=name) from None
    if not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number", field=name)
    try:
        number = float(value)
    except OverflowError:
        raise ValidationError(f"{name} must be between {-limit:g} and {limit:g}", field=name) from None
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be a finite number", field=name)
    if not -limit <= number <= limit:
        raise ValidationError(f"{name} must be between {-limit:g} and {limit:g}, got {number:g}", field=name)
    return number


def _coerce_project_id(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("projectId must be an integer", field="projectId")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        try:
            value = int(value.strip())
        except ValueError:
            raise ValidationError("projectId must be an integer", field="projectId") from None
    if isinstance(value, int):
        # ids are 64-bit on the backend
        if value.bit_length() >= 64:
            raise ValidationError("projectId is out of range", field="projectId")
        return value
    raise ValidationError(f"projectId must be an integer, got {value!r}", field="projectId")


@dataclass(frozen=True)
class AnalysisParams:
    """Validated input for one compliance analysis. Built fresh per call."""

    lat: float
    lon: float
    project_type: str
    project_id: int | None = None

    @classmethod
    def from_raw(cls, lat: Any, lon: Any, project_type: Any, project_id: Any = None) -> "AnalysisParams":
        """Validate and coerce dashboard form values.

        Raises:
            ValidationError: coordinates missing, non-numeric or out of range,
                empty project type, or a non-integer project id.
        """
        lat_f = _coerce_coordinate(lat, "lat", 90.0)
        lon_f = _coerce_coordinate(lon, "lon", 180.0)
        if not isinstance(project_type, str) or not project_type.strip():
            raise ValidationError("Project type is required", field="projectType")
        return cls(
            lat=lat_f,
            lon=lon_f,
            project_type=project_type.strip(),
            project_id=_coerce_project_id(project_id),
        )

    @property
    def dedup_key(self) -> str:
        """Composite key identifying one logical in-flight request."""
        return f"{self.lat}_{self.lon}_{self.project_type}"

    def to_request(self) -> dict:
        """Request body for the enhanced compliance endpoint."""
        body: dict[str, Any] = {"lat": self.lat, "lon": self.lon, "projectType": self.project_type}
        if self.project_id is not None:
            body["projectId"] = self.project_id
        return body


# ---------------------------------------------------------------------------
# Raw backend payloads: tagged by source, never sniffed by shape
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EnhancedRaw:
    """The ``data`` object of a successful enhanced-backend response."""

    payload: Any
    api_type: ClassVar[str] = ENHANCED


@dataclass(frozen=True)
class LegacyRaw:
    """The body of the legacy demo endpoint (frameworks / permits / deadlines)."""

    payload: Any
    api_type: ClassVar[str] = LEGACY


RawAnalysis = EnhancedRaw | LegacyRaw


def tag_payload(api_type: str, payload: Any) -> RawAnalysis:
    """Wrap a backend payload in the variant matching its source."""
    if api_type == ENHANCED:
        return EnhancedRaw(payload)
    if api_type == LEGACY:
        return LegacyRaw(payload)
    raise ValueError(f"Unknown API type: {api_type!r}")


# ---------------------------------------------------------------------------
# Canonical analysis: the only shape the dashboard consumes
# ---------------------------------------------------------------------------

@dataclass
class ComplianceRule:
    """One regulatory framework or rule applying at the project location."""

    id: int | str = ""
    name: str = ""
    status: str = "unknown"
    authority: str = ""
    risk_level: str = "unknown"     # low | medium | high | unknown
    requirements: list[str] = field(default_factory=list)
    last_review: str = ""
    next_review: str = ""


@dataclass
class RiskSummary:
    overall_risk: str = "Unknown"   # Low | Medium | High | Unknown
    total_permits: int = 0
    high_risk_items: int = 0
    medium_risk_items: int = 0
    low_risk_items: int = 0
    description: str = ""
    score: float = 0.0
    factors: list[str] = field(default_factory=list)


@dataclass
class Location:
    lat: float = 0.0
    lon: float = 0.0
    region: str = "Unknown"
    name: str | None = None

    def format(self) -> str:
        """Human-readable label, e.g. '32.0853°, 34.7818° (Mediterranean)'."""
        return f"{self.lat}°, {self.lon}° ({self.region})"


def format_location(location: Location | None) -> str:
    if location is None:
        return "Unknown location"
    return location.format()


@dataclass
class Timeline:
    estimated_weeks: int = 0
    phases: list[Any] = field(default_factory=list)


@dataclass
class CanonicalAnalysis:
    """Normalized compliance analysis.

    Every field has a default so consumers never see None where a
    container or number is expected. ``api_type`` records which backend
    produced the data and is for diagnostics only.
    """

    api_type: str
    rules: list[ComplianceRule] = field(default_factory=list)
    risk_summary: RiskSummary = field(default_factory=RiskSummary)
    recommendations: list[str] = field(default_factory=list)
    location: Location = field(default_factory=Location)
    deadlines: list[Any] = field(default_factory=list)
    permits: list[Any] = field(default_factory=list)
    timeline: Timeline = field(default_factory=Timeline)
    timestamp: datetime = field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# System status + session state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SystemStatus:
    """Result of one health probe."""

    status: str
    features: dict[str, bool] = field(default_factory=dict)
    error: str | None = None
    checked_at: datetime = field(default_factory=_utcnow)

    @property
    def enhanced_compliance(self) -> bool:
        return bool(self.features.get("enhancedCompliance", False))

    @classmethod
    def degraded(cls, error: str) -> "SystemStatus":
        """Conservative status used when the probe itself fails: legacy only."""
        return cls(status="degraded", features={"enhancedCompliance": False}, error=error)


@dataclass(frozen=True)
class SessionState:
    """Dashboard session state. Replaced wholesale on every transition."""

    is_loading: bool = False
    error: str | None = None
    system_status: SystemStatus | None = None
    current_analysis: CanonicalAnalysis | None = None
    last_analysis_params: AnalysisParams | None = None
    preferred_api_type: str = ENHANCED
    last_successful_api_type: str | None = None

    @property
    def enhanced_features_available(self) -> bool:
        return self.system_status is not None and self.system_status.enhanced_compliance
