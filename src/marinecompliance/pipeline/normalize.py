"""Normalize enhanced and legacy payloads into a CanonicalAnalysis.

Both entry points are total: any missing, null or wrong-typed field
degrades to its documented default (empty container, 0, "Unknown")
instead of raising. Dispatch happens on the source tag only.

Legacy mapping:
  frameworks[]  → rules[] with authority "Legacy System"
  permits[]     → permits[], riskSummary.totalPermits
  deadlines[]   → deadlines[]
  overallRisk   = most severe framework risk level present
  recommendations = fixed generic list (legacy payloads carry none)
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any

from marinecompliance.core.types import (
    RISK_LEVELS,
    AnalysisParams,
    CanonicalAnalysis,
    ComplianceRule,
    EnhancedRaw,
    LegacyRaw,
    Location,
    RawAnalysis,
    RiskSummary,
    Timeline,
    tag_payload,
)

logger = logging.getLogger(__name__)

LEGACY_AUTHORITY = "Legacy System"

# Placeholder text until product defines data-driven legacy recommendations
LEGACY_RECOMMENDATIONS = (
    "Review all applicable regulatory frameworks with the responsible authorities",
    "Confirm permit status before scheduling marine works",
    "Schedule periodic compliance reviews for the project duration",
)

_SEVERITY = {"low": 1, "medium": 2, "high": 3}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return str(value)
        except ValueError:
            # int beyond the interpreter's str() digit limit
            return default
    return default


def _as_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        try:
            value = float(value.replace(",", "").strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)):
        return default
    try:
        number = float(value)
    except (OverflowError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _as_count(value: Any) -> int:
    """Non-negative integer count, 0 when absent or unparseable."""
    return max(int(_as_float(value)), 0)


def _risk_level(value: Any) -> str:
    level = _as_str(value).strip().lower()
    return level if level in RISK_LEVELS else "unknown"


def _overall_risk(value: Any) -> str:
    level = _as_str(value).strip().lower()
    return level.title() if level in _SEVERITY else "Unknown"


def _rule_id(value: Any) -> int | str:
    if isinstance(value, int) and not isinstance(value, bool) and value.bit_length() < 64:
        return value
    return _as_str(value)


def _requirements(raw: dict) -> list[str]:
    """Requirement texts; legacy frameworks only carry counts."""
    value = raw.get("requirements")
    if isinstance(value, (list, tuple)):
        texts = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("description") or item.get("name") or item.get("title")
            text = _as_str(item).strip()
            if text:
                texts.append(text)
        return texts
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        total = _as_count(value)
        completed = _as_count(raw.get("completed"))
        return [f"{completed}/{total} requirements completed"]
    return []


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return datetime.now(timezone.utc)
    else:
        return datetime.now(timezone.utc)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _rule(raw: dict, authority: str | None = None) -> ComplianceRule:
    return ComplianceRule(
        id=_rule_id(raw.get("id")),
        name=_as_str(raw.get("name")),
        status=_as_str(raw.get("status"), "unknown") or "unknown",
        authority=authority if authority is not None else _as_str(raw.get("authority")),
        risk_level=_risk_level(raw.get("risk_level")),
        requirements=_requirements(raw),
        last_review=_as_str(raw.get("last_review")),
        next_review=_as_str(raw.get("next_review")),
    )


def _location_from_params(params: AnalysisParams) -> Location:
    return Location(lat=params.lat, lon=params.lon)


# ---------------------------------------------------------------------------
# Enhanced shape: already close to canonical
# ---------------------------------------------------------------------------

def _normalize_enhanced(payload: Any, params: AnalysisParams) -> CanonicalAnalysis:
    data = _as_dict(payload)
    summary = _as_dict(data.get("riskSummary"))
    location = data.get("location")
    timeline = _as_dict(data.get("timeline"))

    if isinstance(location, dict):
        loc = Location(
            lat=_as_float(location.get("lat"), params.lat),
            lon=_as_float(location.get("lon"), params.lon),
            region=_as_str(location.get("region")).strip() or "Unknown",
            name=_as_str(location.get("name")) or None,
        )
    else:
        loc = _location_from_params(params)

    score = summary.get("score", summary.get("compliance_score"))

    return CanonicalAnalysis(
        api_type=EnhancedRaw.api_type,
        rules=[_rule(r) for r in _as_list(data.get("rules")) if isinstance(r, dict)],
        risk_summary=RiskSummary(
            overall_risk=_overall_risk(summary.get("overallRisk")),
            total_permits=_as_count(summary.get("totalPermits")),
            high_risk_items=_as_count(summary.get("highRiskItems")),
            medium_risk_items=_as_count(summary.get("mediumRiskItems")),
            low_risk_items=_as_count(summary.get("lowRiskItems")),
            description=_as_str(summary.get("description")),
            score=_as_float(score),
            factors=[_as_str(f) for f in _as_list(summary.get("factors")) if _as_str(f)],
        ),
        recommendations=[_as_str(r) for r in _as_list(data.get("recommendations")) if _as_str(r)],
        location=loc,
        deadlines=_as_list(data.get("deadlines")),
        permits=_as_list(data.get("permits")),
        timeline=Timeline(
            estimated_weeks=_as_count(timeline.get("estimated_weeks")),
            phases=_as_list(timeline.get("phases")),
        ),
        timestamp=_timestamp(data.get("timestamp")),
    )


# ---------------------------------------------------------------------------
# Legacy shape: frameworks / permits / deadlines
# ---------------------------------------------------------------------------

def _completion_score(frameworks: list[dict]) -> float:
    """Percent of legacy framework requirements completed, 0 when unknown."""
    total = completed = 0
    for fw in frameworks:
        reqs = fw.get("requirements")
        if isinstance(reqs, (int, float)) and not isinstance(reqs, bool):
            total += _as_count(reqs)
            completed += min(_as_count(fw.get("completed")), _as_count(reqs))
    if total == 0:
        return 0.0
    return round(100.0 * completed / total, 1)


def _normalize_legacy(payload: Any, params: AnalysisParams) -> CanonicalAnalysis:
    data = _as_dict(payload)
    frameworks = [f for f in _as_list(data.get("frameworks")) if isinstance(f, dict)]
    permits = _as_list(data.get("permits"))
    rules = [_rule(f, authority=LEGACY_AUTHORITY) for f in frameworks]

    levels = [rule.risk_level for rule in rules]
    worst = max((lvl for lvl in levels if lvl in _SEVERITY), key=_SEVERITY.__getitem__, default=None)

    return CanonicalAnalysis(
        api_type=LegacyRaw.api_type,
        rules=rules,
        risk_summary=RiskSummary(
            overall_risk=worst.title() if worst else "Unknown",
            total_permits=len(permits),
            high_risk_items=levels.count("high"),
            medium_risk_items=levels.count("medium"),
            low_risk_items=levels.count("low"),
            description=(
                f"Legacy compliance data: {len(rules)} frameworks, {len(permits)} permits"
            ),
            score=_completion_score(frameworks),
            factors=[r.name for r in rules if r.risk_level in ("high", "medium") and r.name],
        ),
        recommendations=list(LEGACY_RECOMMENDATIONS),
        location=_location_from_params(params),
        deadlines=_as_list(data.get("deadlines")),
        permits=permits,
        timeline=Timeline(),
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def normalize(raw: RawAnalysis, params: AnalysisParams) -> CanonicalAnalysis:
    """Convert a tagged backend payload into the canonical analysis shape."""
    if isinstance(raw, EnhancedRaw):
        return _normalize_enhanced(raw.payload, params)
    if isinstance(raw, LegacyRaw):
        return _normalize_legacy(raw.payload, params)
    raise TypeError(f"Expected EnhancedRaw or LegacyRaw, got {type(raw).__name__}")


def normalize_rules(raw_rules: Any) -> list[ComplianceRule]:
    """Normalize a bare rule list from the enhanced rules endpoint."""
    return [_rule(r) for r in _as_list(raw_rules) if isinstance(r, dict)]


def normalize_payload(payload: Any, api_type: str, params: AnalysisParams) -> CanonicalAnalysis:
    """Tag ``payload`` with its source and normalize it."""
    analysis = normalize(tag_payload(api_type, payload), params)
    logger.debug(
        "Normalized %s payload: %d rules, overall risk %s",
        api_type, len(analysis.rules), analysis.risk_summary.overall_risk,
        extra={"api_type": api_type},
    )
    return analysis
