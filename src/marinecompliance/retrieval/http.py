"""Shared HTTP call for the compliance backends.

One short-lived httpx.AsyncClient per call, bounded by the configured
timeout. Every httpx failure is classified into a SourceRequestError so
callers deal with a single exception type per source.
"""

import logging
from typing import Any

import httpx

from marinecompliance.config import settings
from marinecompliance.core.errors import SourceRequestError, classify_http_error

logger = logging.getLogger(__name__)


async def request_json(
    method: str,
    url: str,
    api_type: str,
    *,
    timeout: float,
    json: dict | None = None,
    params: dict | None = None,
) -> Any:
    """Issue one request and return the decoded JSON body.

    Raises:
        SourceRequestError: HTTP status error, transport failure, timeout,
            or a body that is not valid JSON.
    """
    try:
        async with httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": settings.user_agent},
        ) as client:
            resp = await client.request(method, url, json=json, params=params)
            resp.raise_for_status()
            try:
                return resp.json()
            except ValueError:
                logger.warning("Non-JSON response from %s backend: %s", api_type, url)
                raise SourceRequestError(
                    f"The {api_type} compliance service returned an unreadable response.",
                    api_type=api_type,
                    kind="malformed",
                ) from None
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        error = classify_http_error(e, api_type, timeout)
        logger.warning(
            "%s %s failed: %s (%s)", method, url, error.kind, e,
            extra={"api_type": api_type},
        )
        raise error from e
