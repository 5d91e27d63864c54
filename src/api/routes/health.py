"""Health check endpoints."""

from datetime import datetime, timezone
from importlib.metadata import version as pkg_version, PackageNotFoundError

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..models.schemas import HealthResponse, ReadyzResponse
from ..storage.session_registry import session_registry

router = APIRouter(tags=["Health"])


def safe_version() -> str:
    try:
        return pkg_version("secure-redact")
    except PackageNotFoundError:
        return "1.0.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is running and healthy.",
)
async def health_check() -> HealthResponse:
    """Return service health status."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=safe_version(),
        timestamp=datetime.now(timezone.utc),
        llm_provider=settings.llm_provider,
        active_sessions=len(session_registry),
    )


@router.get(
    "/healthz",
    summary="Liveness probe",
    description="Liveness probe for container orchestrators.",
)
async def liveness() -> dict:
    """Return liveness status without dependency checks."""
    return {"status": "alive"}


@router.get(
    "/readyz",
    response_model=ReadyzResponse,
    summary="Readiness probe",
    description="Readiness probe that checks the detector is configured.",
    responses={503: {"description": "Service not ready"}},
)
async def readiness():
    """Check if the service is ready to accept traffic."""
    settings = get_settings()
    checks: dict[str, str] = {}

    if settings.detector_configured:
        checks["llm_config"] = "ok"
    elif settings.llm_provider == "azure":
        checks["llm_config"] = "error: Azure OpenAI credentials not set"
    else:
        checks["llm_config"] = "error: OPENAI_API_KEY not set"

    all_ok = all(v == "ok" for v in checks.values())
    response = ReadyzResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )

    if not all_ok:
        return JSONResponse(status_code=503, content=response.model_dump())

    return response
