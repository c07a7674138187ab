"""Pydantic request/response models for the compliance API.

These are the dashboard contract, decoupled from the internal domain
dataclasses. We bridge them using dataclasses.asdict() in the route
handlers. Field names are snake_case internally; the JSON keys the
dashboard already reads (riskSummary, overallRisk, apiType, ...) are set
as serialization aliases.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CheckRequest(BaseModel):
    """Request body for POST /api/v1/compliance/check.

    Coordinates are validated by the orchestrator, not here, so that a bad
    value is recorded as the session error like any other rejected call.
    """

    model_config = ConfigDict(populate_by_name=True)

    lat: float | str | None = Field(None, examples=[32.0853])
    lon: float | str | None = Field(None, examples=[34.7818])
    project_type: str | None = Field(None, alias="projectType", examples=["breakwater"])
    project_id: int | str | None = Field(None, alias="projectId")
    api_type: str | None = Field(
        None,
        alias="apiType",
        description="Force a source (enhanced | legacy) instead of automatic selection",
    )

    def to_params(self) -> dict:
        return {
            "lat": self.lat,
            "lon": self.lon,
            "projectType": self.project_type,
            "projectId": self.project_id,
        }


class PreferenceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_type: str = Field(..., alias="apiType", examples=["enhanced"])


class RuleResponse(BaseModel):
    id: int | str = ""
    name: str = ""
    status: str = "unknown"
    authority: str = ""
    risk_level: str = "unknown"
    requirements: list[str] = []
    last_review: str = ""
    next_review: str = ""


class RiskSummaryResponse(BaseModel):
    overall_risk: str = Field("Unknown", serialization_alias="overallRisk")
    total_permits: int = Field(0, serialization_alias="totalPermits")
    high_risk_items: int = Field(0, serialization_alias="highRiskItems")
    medium_risk_items: int = Field(0, serialization_alias="mediumRiskItems")
    low_risk_items: int = Field(0, serialization_alias="lowRiskItems")
    description: str = ""
    score: float = 0.0
    factors: list[str] = []


class LocationResponse(BaseModel):
    lat: float = 0.0
    lon: float = 0.0
    region: str = "Unknown"
    name: str | None = None


class TimelineResponse(BaseModel):
    estimated_weeks: int = 0
    phases: list[Any] = []


class AnalysisResponse(BaseModel):
    """Canonical analysis as rendered by the compliance dashboard."""

    rules: list[RuleResponse] = []
    risk_summary: RiskSummaryResponse = Field(
        default_factory=RiskSummaryResponse, serialization_alias="riskSummary"
    )
    recommendations: list[str] = []
    location: LocationResponse = Field(default_factory=LocationResponse)
    deadlines: list[Any] = []
    permits: list[Any] = []
    timeline: TimelineResponse = Field(default_factory=TimelineResponse)
    timestamp: datetime
    api_type: str = Field(..., serialization_alias="apiType")


class SystemStatusResponse(BaseModel):
    status: str
    features: dict[str, bool] = {}
    error: str | None = None
    checked_at: datetime = Field(..., serialization_alias="checkedAt")


class ParamsResponse(BaseModel):
    lat: float
    lon: float
    project_type: str = Field(..., serialization_alias="projectType")
    project_id: int | None = Field(None, serialization_alias="projectId")


class SessionStateResponse(BaseModel):
    is_loading: bool = Field(False, serialization_alias="isLoading")
    error: str | None = None
    system_status: SystemStatusResponse | None = Field(None, serialization_alias="systemStatus")
    current_analysis: AnalysisResponse | None = Field(None, serialization_alias="currentAnalysis")
    last_analysis_params: ParamsResponse | None = Field(None, serialization_alias="lastAnalysisParams")
    preferred_api_type: str = Field("enhanced", serialization_alias="preferredApiType")
    last_successful_api_type: str | None = Field(None, serialization_alias="lastSuccessfulApiType")
    enhanced_features_available: bool = Field(False, serialization_alias="enhancedFeaturesAvailable")


class ErrorResponse(BaseModel):
    detail: str
