"""
Global Exception Handler and request middleware for the Resumatch API
"""
import time
import traceback
import uuid
from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict, Tuple

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from resumatch.utils.config import RATE_LIMIT_PER_MINUTE
from resumatch.utils.exceptions import ResumatchBaseException, RateLimitError, map_to_http_exception
from resumatch.utils.logging_config import get_logger

logger = get_logger(__name__)


def create_error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    error_response = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }

    return JSONResponse(
        status_code=status_code,
        content=error_response,
        headers={"X-Request-ID": request_id}
    )


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTPExceptions (404s from routes, unknown paths, 405s) in the standard error body"""
    request_id = _request_id(request)
    logger.warning(
        f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
        extra={"request_id": request_id, "status_code": exc.status_code}
    )

    detail = exc.detail
    if not isinstance(detail, dict):
        detail = {"error": HTTPStatus(exc.status_code).phrase, "message": str(detail)}
    response = create_error_response(request_id, exc.status_code, detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _request_id(request)
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {exc}",
        extra={"request_id": request_id}
    )

    validation_details = {
        "error": "Validation failed",
        "message": "Request data validation failed",
        "validation_errors": jsonable_encoder(exc.errors()),
    }
    return create_error_response(request_id, 422, validation_details)


def register_exception_handlers(app) -> None:
    """Errors FastAPI handles inside the router never reach ExceptionHandlerMiddleware"""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Global exception handler middleware"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)

            logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra={"request_id": request_id, "status_code": response.status_code}
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except ResumatchBaseException as exc:
            logger.error(
                f"Custom exception in {request.method} {request.url.path}: {exc.message}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "error_code": exc.error_code,
                    "details": exc.details,
                }
            )

            http_exc = map_to_http_exception(exc)
            return create_error_response(request_id, http_exc.status_code, http_exc.detail)

        except ValidationError as exc:
            logger.error(
                f"Pydantic validation error in {request.method} {request.url.path}: {exc}",
                extra={"request_id": request_id}
            )

            validation_details = {
                "error": "Data validation failed",
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False, include_context=False, include_input=False),
            }
            return create_error_response(request_id, 400, validation_details)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                exc_info=True
            )

            # Don't expose internal errors
            error_detail = {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            }
            return create_error_response(request_id, 500, error_detail)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request/response logging"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))

        logger.debug(
            f"Request details: {request.method} {request.url}",
            extra={
                "request_id": request_id,
                "content_length": request.headers.get("content-length"),
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {processing_time:.3f}s",
                extra={"request_id": request_id, "exception": str(exc)}
            )
            raise

        processing_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for performance monitoring"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))

        response = await call_next(request)

        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={
                    "request_id": request_id,
                    "processing_time": processing_time,
                    "threshold": self.slow_request_threshold,
                }
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed one-minute window per client on /api/ paths"""

    def __init__(self, app, limit: int = RATE_LIMIT_PER_MINUTE, window_seconds: float = 60.0,
                 prefix: str = "/api/", clock=time.monotonic):
        super().__init__(app)
        self.limit = limit
        self.window_seconds = window_seconds
        self.prefix = prefix
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        # at most once per window, drop clients whose window has closed
        if now - self._last_sweep < self.window_seconds:
            return
        self._windows = {
            client: entry for client, entry in self._windows.items()
            if now - entry[0] < self.window_seconds
        }
        self._last_sweep = now

    def _hit(self, client: str) -> bool:
        now = self._clock()
        self._sweep(now)
        window_start, count = self._windows.get(client, (now, 0))
        if now - window_start >= self.window_seconds:
            window_start, count = now, 0
        count += 1
        self._windows[client] = (window_start, count)
        return count <= self.limit

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if self._hit(client):
            return await call_next(request)

        request_id = getattr(request.state, 'request_id', str(uuid.uuid4()))
        logger.warning(f"Rate limit exceeded for {client} on {request.url.path}", extra={"request_id": request_id})
        exc = RateLimitError("Too many requests, please try again later", limit=self.limit, window="1m")
        http_exc = map_to_http_exception(exc)
        return create_error_response(request_id, http_exc.status_code, http_exc.detail)
