"""
FastAPI Main Application - API entry point.

Run with: uvicorn docuflow.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docuflow import __version__
from docuflow.config import get_settings

from .deps import get_session
from .middleware import ErrorHandlerMiddleware, LatencyMiddleware, RequestIDMiddleware
from .routes import evaluation, health, transcription

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting DocuFlow API...")
    logger.info("  Extraction model: %s", settings.extraction_model)
    logger.info("  Evaluation model: %s", settings.evaluation_model)

    yield

    logger.info("Shutting down DocuFlow API...")
    if get_session.cache_info().currsize:
        get_session().reset()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="DocuFlow API",
        description="Page-by-page document transcription and answer-script grading",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Last added is outermost: request ID, then latency, then error handling.
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_origin_regex=r"http://(localhost|127\.0\.0\.1):\d+" if settings.api_debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(
        transcription.router, prefix="/api/transcription", tags=["Transcription"]
    )
    app.include_router(evaluation.router, prefix="/api/evaluation", tags=["Evaluation"])

    return app


app = create_app()
