"""Legacy compliance backend: fixed demo data, ignores request parameters."""

from marinecompliance.config import settings
from marinecompliance.core.errors import SourceRequestError
from marinecompliance.core.types import LEGACY, AnalysisParams
from marinecompliance.observability.tracing import trace
from marinecompliance.retrieval.http import request_json


@trace(name="legacy_compliance_demo", span_type="TOOL")
async def fetch_demo(params: AnalysisParams | None = None) -> dict:
    """GET the demo payload: {"frameworks": [...], "permits": [...], "deadlines": [...]}.

    ``params`` is accepted so both backends share one call signature; the
    legacy service has no use for it.
    """
    body = await request_json(
        "GET",
        settings.url_for(settings.legacy_demo_path),
        LEGACY,
        timeout=settings.request_timeout_seconds,
    )
    if not isinstance(body, dict):
        raise SourceRequestError(
            "The legacy compliance service returned an unexpected response.",
            api_type=LEGACY,
            kind="malformed",
        )
    return body
