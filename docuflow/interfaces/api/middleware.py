"""
API Middleware - Request/response processing.

Provides:
- Request ID tracking
- Response latency measurement (state polling logged at DEBUG)
- Error handling with taxonomy codes and Retry-After hints
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from docuflow.config.errors import DocuFlowError, ErrorCode

logger = logging.getLogger(__name__)

# Clients poll these while a run is in flight
POLLING_PATHS = frozenset({"/api/transcription/state", "/api/evaluation/state"})

RETRY_AFTER_SECONDS = {
    ErrorCode.LLM_RATE_LIMITED: 30,
    ErrorCode.PIPELINE_BUSY: 5,
    ErrorCode.EVALUATION_IN_PROGRESS: 5,
}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request ID for tracing across logs and responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


class LatencyMiddleware(BaseHTTPMiddleware):
    """Track and log request latency."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        request_id = getattr(request.state, "request_id", "unknown")
        quiet = request.method == "GET" and request.url.path in POLLING_PATHS
        logger.log(
            logging.DEBUG if quiet else logging.INFO,
            "%s %s status=%d latency_ms=%.2f request_id=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            request_id,
        )

        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert DocuFlowError exceptions to structured JSON responses."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except DocuFlowError as e:
            request_id = getattr(request.state, "request_id", "unknown")
            status_code = error_code_to_status(e.code)
            logger.log(
                logging.ERROR if status_code >= 500 else logging.WARNING,
                "%s: %s status=%d request_id=%s details=%s",
                e.code.value,
                e.message,
                status_code,
                request_id,
                e.details,
            )
            headers = {}
            if e.code in RETRY_AFTER_SECONDS:
                headers["Retry-After"] = str(RETRY_AFTER_SECONDS[e.code])
            return JSONResponse(
                status_code=status_code,
                content={
                    "error": e.to_dict(),
                    "request_id": request_id,
                },
                headers=headers,
            )
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception("Unhandled error: %s request_id=%s", str(e), request_id)
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "code": ErrorCode.INTERNAL_ERROR.value,
                        "message": "Internal server error",
                        "details": {},
                    },
                    "request_id": request_id,
                },
            )


def error_code_to_status(code: ErrorCode) -> int:
    """Map error codes to HTTP status codes."""
    mapping = {
        # 400 Bad Request
        ErrorCode.DOCUMENT_UNREADABLE: 400,
        # 409 Conflict
        ErrorCode.PIPELINE_BUSY: 409,
        ErrorCode.EVALUATION_IN_PROGRESS: 409,
        ErrorCode.EVALUATION_NOT_READY: 409,
        ErrorCode.INVALID_TRANSITION: 409,
        # 422 Unprocessable
        ErrorCode.RENDER_FAILED: 422,
        # 429 Rate Limited
        ErrorCode.LLM_RATE_LIMITED: 429,
        # 502 Bad Gateway
        ErrorCode.EXTRACTION_FAILED: 502,
        ErrorCode.EVALUATION_FAILED: 502,
        # 503 Service Unavailable
        ErrorCode.LLM_UNAVAILABLE: 503,
    }
    return mapping.get(code, 500)
