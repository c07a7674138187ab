"""Health endpoint: reports which compliance features the backend can serve."""

import logging

from marinecompliance.config import settings
from marinecompliance.core.errors import SourceRequestError, StatusCheckError
from marinecompliance.observability.tracing import trace
from marinecompliance.retrieval.http import request_json

logger = logging.getLogger(__name__)


@trace(name="health_check", span_type="TOOL")
async def fetch_status() -> dict:
    """GET /health and return {"status": ..., "features": {"enhancedCompliance": bool}}.

    Raises:
        StatusCheckError: the endpoint is unreachable, errored, or returned
            something other than a JSON object.
    """
    try:
        body = await request_json(
            "GET",
            settings.url_for(settings.health_path),
            "health",
            timeout=settings.status_timeout_seconds,
        )
    except SourceRequestError as e:
        raise StatusCheckError(f"Failed to check system status: {e.message}") from e

    if not isinstance(body, dict):
        raise StatusCheckError("Failed to check system status: unexpected response")
    return body
