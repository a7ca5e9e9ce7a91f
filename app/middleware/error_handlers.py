"""
Exception handlers and request middleware for Job Tracker API
"""
import time
import traceback
import uuid
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.exceptions import JobTrackerBaseException, map_to_status_code
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def error_response(request_id: str, status_code: int, error: Dict[str, Any]) -> JSONResponse:
    """Create a {data, error} error response"""
    return JSONResponse(
        status_code=status_code,
        content={"data": None, "error": error},
        headers={"X-Request-ID": request_id}
    )


async def job_tracker_exception_handler(request: Request, exc: JobTrackerBaseException) -> JSONResponse:
    request_id = _request_id(request)
    status_code = map_to_status_code(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"Custom exception in {request.method} {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "exception_type": exc.__class__.__name__,
            "error_code": exc.error_code,
            "details": exc.details,
        }
    )
    envelope = exc.to_envelope()
    return error_response(request_id, status_code, envelope["error"])


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = _request_id(request)
    errors = exc.errors()
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {errors}",
        extra={"request_id": request_id}
    )

    error: Dict[str, Any] = {"code": "VALIDATION_FAILED", "message": "Request body must be valid JSON"}
    if errors:
        first = errors[0]
        if first.get("type") != "json_invalid":
            # Drop the leading "body" location segment
            loc = [str(part) for part in first.get("loc", ()) if part != "body"]
            ctx_error = (first.get("ctx") or {}).get("error")
            error["message"] = str(ctx_error) if ctx_error else first.get("msg", "Invalid request")
            if loc:
                error["field"] = ".".join(loc)
    return error_response(request_id, 400, error)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    request_id = _request_id(request)
    error = {"code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"), "message": str(exc.detail)}
    return error_response(request_id, exc.status_code, error)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(JobTrackerBaseException, job_tracker_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Outermost middleware: request ids and last-resort error handling"""

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
            return error_response(
                request_id, 500,
                {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred. Please try again later."}
            )

        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={"request_id": request_id, "status_code": response.status_code}
        )
        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for detailed request/response logging"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = _request_id(request)

        logger.debug(
            f"Request details: {request.method} {request.url}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "url": str(request.url),
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            processing_time = time.time() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {processing_time:.3f}s",
                extra={"request_id": request_id, "processing_time": processing_time, "exception": str(exc)}
            )
            raise

        processing_time = time.time() - start_time
        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code, "processing_time": processing_time}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for performance monitoring"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = _request_id(request)

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
        else:
            logger.debug(
                f"Request performance: {request.method} {request.url.path} - {processing_time:.3f}s",
                extra={"request_id": request_id, "processing_time": processing_time}
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
