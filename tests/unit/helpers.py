"""Payload builders and stub backends shared by the unit tests."""

import asyncio

from marinecompliance.core.errors import SourceRequestError

LEGACY_DEMO = {
    "frameworks": [
        {
            "id": 1,
            "name": "EU Water Framework Directive",
            "status": "compliant",
            "requirements": 8,
            "completed": 8,
            "risk_level": "low",
        },
        {
            "id": 2,
            "name": "Marine Strategy Framework Directive",
            "status": "in-progress",
            "requirements": 12,
            "completed": 9,
            "risk_level": "medium",
        },
    ],
    "permits": [
        {
            "id": 1,
            "name": "Construction Permit",
            "status": "approved",
            "authority": "Ministry of Infrastructure",
        }
    ],
}

HEALTHY = {"status": "healthy", "features": {"enhancedCompliance": True, "standardCompliance": True}}
NO_ENHANCED = {"status": "healthy", "features": {"enhancedCompliance": False, "standardCompliance": True}}


def enhanced_payload(**overrides) -> dict:
    data = {
        "rules": [
            {
                "id": "il-cz-1",
                "name": "Coastal Zone Protection Law",
                "status": "required",
                "authority": "Ministry of Environmental Protection",
                "risk_level": "high",
                "requirements": ["Environmental impact survey", "Public consultation"],
                "last_review": "2024-03-01",
                "next_review": "2025-03-01",
            },
        ],
        "riskSummary": {
            "overallRisk": "High",
            "totalPermits": 3,
            "highRiskItems": 1,
            "mediumRiskItems": 0,
            "description": "Breakwater in protected coastal zone",
            "score": 62.5,
            "factors": ["Protected coastal zone"],
        },
        "recommendations": ["Engage the coastal committee early"],
        "location": {"lat": 32.0853, "lon": 34.7818, "region": "Mediterranean", "name": "Tel Aviv"},
        "deadlines": [{"name": "EIA submission", "due": "2025-06-01"}],
        "permits": [{"name": "Marine works permit"}],
        "timeline": {"estimated_weeks": 26, "phases": [{"name": "Survey", "weeks": 8}]},
        "timestamp": "2025-01-15T10:00:00Z",
    }
    data.update(overrides)
    return data


def server_error(api_type: str) -> SourceRequestError:
    return SourceRequestError(
        "Compliance service temporarily unavailable. Please try again later.",
        api_type=api_type,
        kind="server",
        status_code=503,
    )


class StubSource:
    """Async callable standing in for one backend.

    ``gate`` (when set) holds the call open until the test releases it.
    """

    def __init__(self, result=None, error: Exception | None = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.gate: asyncio.Event | None = None
        self.calls: list = []

    async def __call__(self, *args):
        self.calls.append(args)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result
