"""FastAPI application entry point for CNA Analytics."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cna_analytics.api.analytics import router as analytics_router
from cna_analytics.config.settings import get_settings
from cna_analytics.models.common import DataClassification

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()


def _narrative_enabled() -> bool:
    if settings.DATA_CLASSIFICATION == DataClassification.RESTRICTED:
        return False
    return bool(settings.ANTHROPIC_API_KEY or settings.OPENAI_API_KEY)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "startup",
        version=APP_VERSION,
        environment=settings.ENVIRONMENT.value,
        classification=settings.DATA_CLASSIFICATION.value,
        narrative_enabled=_narrative_enabled(),
    )
    yield
    logger.info("shutdown")


# --- FastAPI app ---
app = FastAPI(
    title="CNA Analytics API",
    description="Capability Needs Analysis workforce analytics engine.",
    version=APP_VERSION,
    lifespan=lifespan,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(analytics_router)


# --- Infrastructure Endpoints (global) ---


@app.get("/health")
async def health_check() -> dict:
    """Liveness probe. Narrative generation is optional and never degrades health."""
    return {
        "status": "ok",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": {"api": True, "narrative": _narrative_enabled()},
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application name, version, and environment."""
    return {
        "name": "CNA Analytics",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
    }
