"""API route handlers for the compliance dashboard.

GET    /api/v1/compliance/status      probe backend features (single-flight)
POST   /api/v1/compliance/check       run an analysis with fallback
POST   /api/v1/compliance/retry       replay the last analysis parameters
GET    /api/v1/compliance/state       read-only session state
DELETE /api/v1/compliance/analysis    clear the displayed analysis
DELETE /api/v1/compliance/error       dismiss the error banner
PUT    /api/v1/compliance/preference  set the preferred source
GET    /api/v1/compliance/rules       enhanced rule catalogue
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from marinecompliance.api.schemas import (
    AnalysisResponse,
    CheckRequest,
    ErrorResponse,
    PreferenceRequest,
    RuleResponse,
    SessionStateResponse,
    SystemStatusResponse,
)
from marinecompliance.core.errors import (
    AnalysisError,
    NoPriorAnalysisError,
    SourceRequestError,
    ValidationError,
)
from marinecompliance.core.types import CanonicalAnalysis, SessionState
from marinecompliance.pipeline.compliance import ComplianceOrchestrator

router = APIRouter(prefix="/api/v1/compliance", tags=["compliance"])

_ANALYSIS_ERRORS = {
    422: {"model": ErrorResponse, "description": "Invalid coordinates or project type"},
    502: {"model": ErrorResponse, "description": "Both compliance sources failed"},
}


def get_orchestrator(request: Request) -> ComplianceOrchestrator:
    """The process-wide orchestrator, created on first use."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        orchestrator = ComplianceOrchestrator()
        request.app.state.orchestrator = orchestrator
    return orchestrator


def _analysis_response(analysis: CanonicalAnalysis | None) -> AnalysisResponse | None:
    if analysis is None:
        return None
    return AnalysisResponse(**asdict(analysis))


def _state_response(state: SessionState) -> SessionStateResponse:
    return SessionStateResponse(
        is_loading=state.is_loading,
        error=state.error,
        system_status=asdict(state.system_status) if state.system_status else None,
        current_analysis=_analysis_response(state.current_analysis),
        last_analysis_params=asdict(state.last_analysis_params) if state.last_analysis_params else None,
        preferred_api_type=state.preferred_api_type,
        last_successful_api_type=state.last_successful_api_type,
        enhanced_features_available=state.enhanced_features_available,
    )


async def _run_analysis(call) -> AnalysisResponse | None:
    try:
        analysis = await call
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except NoPriorAnalysisError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except AnalysisError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return _analysis_response(analysis)


@router.get("/status", response_model=SystemStatusResponse)
async def system_status(orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    """Probe the health endpoint. Never fails: degraded status on error."""
    status = await orchestrator.check_system_status()
    return SystemStatusResponse(**asdict(status))


@router.post("/check", response_model=AnalysisResponse | None, responses=_ANALYSIS_ERRORS)
async def check(request: CheckRequest, orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    """Run a compliance analysis for a location and project type."""
    return await _run_analysis(
        orchestrator.check_compliance(request.to_params(), api_type=request.api_type),
    )


@router.post(
    "/retry",
    response_model=AnalysisResponse | None,
    responses={**_ANALYSIS_ERRORS, 409: {"model": ErrorResponse, "description": "No analysis to retry"}},
)
async def retry(orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    return await _run_analysis(orchestrator.retry_last_analysis())


@router.get("/state", response_model=SessionStateResponse)
async def state(orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    return _state_response(orchestrator.state)


@router.delete("/analysis", status_code=204)
async def clear_analysis(orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    orchestrator.clear_analysis()
    return Response(status_code=204)


@router.delete("/error", status_code=204)
async def clear_error(orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    orchestrator.clear_error()
    return Response(status_code=204)


@router.put("/preference", response_model=SessionStateResponse, responses={422: {"model": ErrorResponse}})
async def set_preference(
    request: PreferenceRequest,
    orchestrator: ComplianceOrchestrator = Depends(get_orchestrator),
):
    try:
        orchestrator.set_api_preference(request.api_type)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    return _state_response(orchestrator.state)


@router.get("/rules", response_model=list[RuleResponse], responses={502: {"model": ErrorResponse}})
async def rules(request: Request, orchestrator: ComplianceOrchestrator = Depends(get_orchestrator)):
    """Enhanced rule catalogue; query parameters are passed through as filters."""
    try:
        result = await orchestrator.get_rules(dict(request.query_params))
    except SourceRequestError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return [RuleResponse(**asdict(rule)) for rule in result]
