"""Error taxonomy for compliance analysis.

ValidationError     bad input, no network call was made
SourceRequestError  one backend call failed (classified, user-readable)
AnalysisError       both backends failed; surfaces the primary failure
StatusCheckError    health probe failed; the prober degrades instead of raising
NoPriorAnalysisError  retry requested before any analysis ran
"""

import httpx


class ComplianceError(Exception):
    """Base class. ``message`` is safe to show in the dashboard error banner."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ComplianceError, ValueError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class SourceRequestError(ComplianceError):
    """A single call to the enhanced or legacy backend failed."""

    def __init__(
        self,
        message: str,
        *,
        api_type: str,
        kind: str,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.api_type = api_type
        self.kind = kind
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"SourceRequestError(api_type={self.api_type!r}, kind={self.kind!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )


class AnalysisError(ComplianceError):
    """Primary and fallback sources were both exhausted."""

    def __init__(self, primary: SourceRequestError, fallback: SourceRequestError):
        super().__init__(primary.message)
        self.primary = primary
        self.fallback = fallback


class StatusCheckError(ComplianceError):
    pass


class NoPriorAnalysisError(ComplianceError):
    def __init__(self, message: str = "No previous analysis to retry"):
        super().__init__(message)


def classify_http_error(exc: Exception, api_type: str, timeout: float | None = None) -> SourceRequestError:
    """Map an httpx failure to a SourceRequestError with a readable message.

    400 → parameter problem, 404 → service missing, 5xx → transient,
    transport errors → connectivity, malformed URL → configuration message.
    """
    if isinstance(exc, httpx.TimeoutException):
        after = f" after {timeout:g}s" if timeout else ""
        return SourceRequestError(
            f"The {api_type} compliance service timed out{after}.",
            api_type=api_type,
            kind="timeout",
        )

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == 400:
            message, kind = "Invalid request parameters. Please check the location and project type.", "bad_request"
        elif status == 404:
            message, kind = f"Compliance service not found ({api_type} endpoint unavailable).", "not_found"
        elif status >= 500:
            message, kind = "Compliance service temporarily unavailable. Please try again later.", "server"
        else:
            message, kind = f"Compliance service returned HTTP {status}.", "http"
        return SourceRequestError(message, api_type=api_type, kind=kind, status_code=status)

    if isinstance(exc, httpx.InvalidURL):
        return SourceRequestError(
            f"The {api_type} compliance service URL is invalid. Check the API_BASE_URL setting.",
            api_type=api_type,
            kind="http",
        )

    if isinstance(exc, httpx.TransportError):
        return SourceRequestError(
            "Unable to reach the compliance service. Check your network connection.",
            api_type=api_type,
            kind="connectivity",
        )

    return SourceRequestError(
        f"Failed to check compliance: {exc}",
        api_type=api_type,
        kind="http",
    )
