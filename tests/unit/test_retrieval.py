"""Tests for the enhanced, legacy and health backend clients."""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

import httpx

from marinecompliance.core.errors import SourceRequestError, StatusCheckError, classify_http_error
from marinecompliance.core.types import AnalysisParams
from marinecompliance.retrieval import enhanced, health, legacy
from tests.unit.helpers import HEALTHY, LEGACY_DEMO, enhanced_payload

PARAMS = AnalysisParams.from_raw(32.0853, 34.7818, "breakwater", 5)
URL = "http://localhost:5000/api/compliance-enhanced/check"


def _client(body=None, raise_exc=None, json_error=False):
    mock_response = MagicMock()
    if json_error:
        mock_response.json.side_effect = ValueError("Expecting value")
    else:
        mock_response.json.return_value = body
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock()
    if raise_exc is not None:
        mock_client.request.side_effect = raise_exc
    else:
        mock_client.request.return_value = mock_response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", URL)
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


def _patched(client):
    return patch("marinecompliance.retrieval.http.httpx.AsyncClient", return_value=client)


class TestEnhancedCheck:
    @pytest.mark.asyncio
    async def test_success_returns_data(self):
        client = _client({"success": True, "data": enhanced_payload()})
        with _patched(client):
            data = await enhanced.check_compliance(PARAMS)

        assert data["riskSummary"]["overallRisk"] == "High"
        method, url = client.request.call_args.args
        assert method == "POST"
        assert url.endswith("/compliance-enhanced/check")
        assert client.request.call_args.kwargs["json"] == {
            "lat": 32.0853, "lon": 34.7818, "projectType": "breakwater", "projectId": 5,
        }

    @pytest.mark.asyncio
    async def test_success_false_is_a_failure(self):
        with _patched(_client({"success": False, "error": "Region not covered"})):
            with pytest.raises(SourceRequestError, match="Region not covered") as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == "rejected"
        assert exc.value.api_type == "enhanced"

    @pytest.mark.asyncio
    async def test_success_false_without_message(self):
        with _patched(_client({"success": False})):
            with pytest.raises(SourceRequestError, match="Compliance check failed"):
                await enhanced.check_compliance(PARAMS)

    @pytest.mark.asyncio
    async def test_missing_data_is_empty(self):
        with _patched(_client({"success": True, "data": None})):
            assert await enhanced.check_compliance(PARAMS) == {}

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        with _patched(_client(["not", "an", "envelope"])):
            with pytest.raises(SourceRequestError) as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == "malformed"

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        with _patched(_client(json_error=True)):
            with pytest.raises(SourceRequestError, match="unreadable") as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == "malformed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code, kind, message",
        [
            (400, "bad_request", "Invalid request parameters"),
            (404, "not_found", "not found"),
            (503, "server", "temporarily unavailable"),
            (418, "http", "HTTP 418"),
        ],
    )
    async def test_http_status_errors(self, code, kind, message):
        client = _client({})
        client.request.return_value.raise_for_status.side_effect = _status_error(code)
        with _patched(client):
            with pytest.raises(SourceRequestError, match=message) as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == kind
        assert exc.value.status_code == code

    @pytest.mark.asyncio
    async def test_connect_error(self):
        with _patched(_client(raise_exc=httpx.ConnectError("Connection refused"))):
            with pytest.raises(SourceRequestError, match="Unable to reach") as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == "connectivity"

    @pytest.mark.asyncio
    async def test_timeout(self):
        with _patched(_client(raise_exc=httpx.ReadTimeout("timed out"))):
            with pytest.raises(SourceRequestError, match="timed out") as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.kind == "timeout"

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        with _patched(_client(raise_exc=httpx.InvalidURL("Invalid non-printable ASCII character in URL"))):
            with pytest.raises(SourceRequestError, match="URL is invalid") as exc:
                await enhanced.check_compliance(PARAMS)
        assert exc.value.api_type == "enhanced"
        assert exc.value.kind == "http"


class TestEnhancedRules:
    @pytest.mark.asyncio
    async def test_rules_list(self):
        client = _client({"success": True, "data": [{"id": 1, "name": "MARPOL"}, "junk"]})
        with _patched(client):
            rules = await enhanced.fetch_rules({"authority": "IMO", "region": ""})

        assert rules == [{"id": 1, "name": "MARPOL"}]
        assert client.request.call_args.kwargs["params"] == {"authority": "IMO"}

    @pytest.mark.asyncio
    async def test_rules_nested_under_key(self):
        with _patched(_client({"success": True, "data": {"rules": [{"id": 2}]}})):
            assert await enhanced.fetch_rules() == [{"id": 2}]

    @pytest.mark.asyncio
    async def test_rules_rejected(self):
        with _patched(_client({"success": False})):
            with pytest.raises(SourceRequestError, match="Failed to fetch rules"):
                await enhanced.fetch_rules()


class TestLegacyDemo:
    @pytest.mark.asyncio
    async def test_returns_body(self):
        client = _client(LEGACY_DEMO)
        with _patched(client):
            body = await legacy.fetch_demo(PARAMS)

        assert body["frameworks"][0]["name"] == "EU Water Framework Directive"
        method, url = client.request.call_args.args
        assert method == "GET"
        assert url.endswith("/compliance/demo")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        with _patched(_client("ok")):
            with pytest.raises(SourceRequestError) as exc:
                await legacy.fetch_demo()
        assert exc.value.api_type == "legacy"
        assert exc.value.kind == "malformed"


class TestHealth:
    @pytest.mark.asyncio
    async def test_returns_body(self):
        with _patched(_client(HEALTHY)):
            assert await health.fetch_status() == HEALTHY

    @pytest.mark.asyncio
    async def test_unreachable(self):
        with _patched(_client(raise_exc=httpx.ConnectError("refused"))):
            with pytest.raises(StatusCheckError, match="Failed to check system status"):
                await health.fetch_status()

    @pytest.mark.asyncio
    async def test_unexpected_body(self):
        with _patched(_client([])):
            with pytest.raises(StatusCheckError):
                await health.fetch_status()

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        with _patched(_client(raise_exc=httpx.InvalidURL("bad"))):
            with pytest.raises(StatusCheckError, match="URL is invalid"):
                await health.fetch_status()


class TestClassifyHttpError:
    def test_timeout_mentions_limit(self):
        error = classify_http_error(httpx.ConnectTimeout("slow"), "legacy", 5.0)
        assert error.message == "The legacy compliance service timed out after 5s."

    def test_unknown_exception(self):
        error = classify_http_error(RuntimeError("odd"), "enhanced")
        assert error.kind == "http"
        assert "odd" in error.message

    def test_invalid_url_points_at_setting(self):
        error = classify_http_error(httpx.InvalidURL("bad"), "legacy")
        assert error.kind == "http"
        assert error.api_type == "legacy"
        assert "API_BASE_URL" in error.message
