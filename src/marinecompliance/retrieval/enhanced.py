"""Enhanced compliance backend: location + project-type aware analysis.

Responses use an envelope: {"success": bool, "data": {...}, "error": str}.
A falsy ``success`` is a failed attempt even when the HTTP status is 200.
"""

import logging
from typing import Any

from marinecompliance.config import settings
from marinecompliance.core.errors import SourceRequestError
from marinecompliance.core.types import ENHANCED, AnalysisParams
from marinecompliance.observability.tracing import trace
from marinecompliance.retrieval.http import request_json

logger = logging.getLogger(__name__)


def _unwrap(body: Any, default_error: str) -> Any:
    if not isinstance(body, dict):
        raise SourceRequestError(
            "The enhanced compliance service returned an unexpected response.",
            api_type=ENHANCED,
            kind="malformed",
        )
    if not body.get("success"):
        raise SourceRequestError(
            str(body.get("error") or default_error),
            api_type=ENHANCED,
            kind="rejected",
        )
    return body.get("data")


@trace(name="enhanced_compliance_check", span_type="TOOL")
async def check_compliance(params: AnalysisParams) -> dict:
    """POST the analysis parameters and return the ``data`` payload.

    A missing or non-object ``data`` comes back as {} so the normalizer
    can fill every field with its default.
    """
    body = await request_json(
        "POST",
        settings.url_for(settings.enhanced_check_path),
        ENHANCED,
        json=params.to_request(),
        timeout=settings.request_timeout_seconds,
    )
    data = _unwrap(body, "Compliance check failed")
    if not isinstance(data, dict):
        logger.info("Enhanced response carried no analysis object; using defaults")
        return {}
    return data


@trace(name="enhanced_compliance_rules", span_type="TOOL")
async def fetch_rules(filters: dict | None = None) -> list[dict]:
    """GET the enhanced rule catalogue, optionally filtered (e.g. by authority)."""
    query = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
    body = await request_json(
        "GET",
        settings.url_for(settings.enhanced_rules_path),
        ENHANCED,
        params=query or None,
        timeout=settings.request_timeout_seconds,
    )
    data = _unwrap(body, "Failed to fetch rules")
    if isinstance(data, dict):
        data = data.get("rules")
    if not isinstance(data, list):
        return []
    return [rule for rule in data if isinstance(rule, dict)]
