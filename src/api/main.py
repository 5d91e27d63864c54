"""FastAPI application for the PII redaction service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import get_settings, load_settings
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .rate_limit import limiter
from .routes import health_router, sessions_router
from .routes.health import safe_version
from .storage.session_registry import session_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    setup_logging(log_level=settings.log_level, log_format=settings.log_format)
    logger.info("Starting PII redaction API")
    logger.info(
        "LLM provider=%s, render_scale=%.2f, concurrency=%d",
        settings.llm_provider,
        settings.render_scale,
        settings.detection_concurrency,
    )
    yield
    session_registry.clear()
    logger.info("Shutting down")


app = FastAPI(
    title="PII Redaction API",
    description=(
        "Renders PDF pages, locates personal data with a vision model and "
        "exports image-only PDFs with opaque redaction boxes."
    ),
    version=safe_version(),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

settings = get_settings()
allow_all = settings.cors_origins_list == ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=not allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred.",
            "detail": str(exc) if logger.isEnabledFor(logging.DEBUG) else None,
        },
    )


app.include_router(health_router)
app.include_router(sessions_router)


def main():
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
