"""Marine compliance API: FastAPI application serving the compliance dashboard.

Run:
    uvicorn marinecompliance.api.main:app --reload
    # or
    marinecompliance-api
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from marinecompliance.api.routes import get_orchestrator, router
from marinecompliance.config import settings
from marinecompliance.observability.logging import bind_correlation_id, setup_logging
from marinecompliance.observability.tracing import init_tracking
from marinecompliance.pipeline.compliance import ComplianceOrchestrator

logger = logging.getLogger(__name__)

STARTUP_PROBE_TIMEOUT = 10  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging/tracing and warm the system status on startup."""
    setup_logging(json_format=settings.log_json, level=settings.log_level)
    init_tracking(settings.mlflow_tracking_uri, settings.mlflow_experiment_name)

    app.state.orchestrator = ComplianceOrchestrator()
    logger.info("Compliance backends at %s", settings.api_base_url)
    try:
        status = await asyncio.wait_for(
            app.state.orchestrator.check_system_status(),
            timeout=STARTUP_PROBE_TIMEOUT,
        )
        logger.info("Startup status probe: %s", status.status)
    except asyncio.TimeoutError:
        logger.error(
            "Startup status probe timed out after %ss; enhanced features off until next probe",
            STARTUP_PROBE_TIMEOUT,
        )
    logger.info("Marine compliance API ready")
    yield
    logger.info("Shutting down")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Set correlation ID from X-Request-ID header or generate a new one."""

    async def dispatch(self, request: Request, call_next):
        with bind_correlation_id(request.headers.get("x-request-id")) as cid:
            response = await call_next(request)
        response.headers["x-request-id"] = cid
        return response


app = FastAPI(
    title="Marine Compliance",
    description="Regulatory compliance analysis for marine infrastructure projects. "
    "Combines the enhanced and legacy compliance services behind one canonical model.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health(request: Request):
    """Liveness plus the last known backend status (no new probe)."""
    orchestrator = get_orchestrator(request)
    status = orchestrator.state.system_status
    return {
        "status": "healthy",
        "backend_status": status.status if status else "unknown",
        "enhanced_compliance": orchestrator.state.enhanced_features_available,
    }


def run() -> None:
    """Entry point for marinecompliance-api."""
    uvicorn.run("marinecompliance.api.main:app", host="0.0.0.0", port=8000)
