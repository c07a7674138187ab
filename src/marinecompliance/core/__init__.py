"""Core domain types and errors shared across all marinecompliance modules."""

from marinecompliance.core.errors import (
    AnalysisError,
    ComplianceError,
    NoPriorAnalysisError,
    SourceRequestError,
    StatusCheckError,
    ValidationError,
)
from marinecompliance.core.types import (
    ENHANCED,
    LEGACY,
    AnalysisParams,
    CanonicalAnalysis,
    ComplianceRule,
    EnhancedRaw,
    LegacyRaw,
    Location,
    RiskSummary,
    SessionState,
    SystemStatus,
    Timeline,
)

__all__ = [
    "ENHANCED",
    "LEGACY",
    "AnalysisError",
    "AnalysisParams",
    "CanonicalAnalysis",
    "ComplianceError",
    "ComplianceRule",
    "EnhancedRaw",
    "LegacyRaw",
    "Location",
    "NoPriorAnalysisError",
    "RiskSummary",
    "SessionState",
    "SourceRequestError",
    "StatusCheckError",
    "SystemStatus",
    "Timeline",
    "ValidationError",
]
