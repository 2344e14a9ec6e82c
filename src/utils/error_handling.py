"""
Centralized Error Handling and Logging
Maps service errors to JSON responses and logs every failure with its full
context server-side. Responses carry the error category, a trace id and,
unless disabled, the underlying storage error text as "detalle".
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from services.errors import UsuariosError

# Context variable for request tracing
request_id_var: ContextVar[str] = ContextVar('request_id', default='')

logger = logging.getLogger(__name__)


class ErrorHandlingConfig:
    """Centralized configuration for error handling behavior"""

    SENSITIVE_FIELD_PATTERNS = [
        'password', 'pass', 'token', 'key', 'secret', 'authorization',
        'auth', 'credential'
    ]

    LOG_REQUEST_BODIES = True
    MAX_BODY_LOG_SIZE = 5000

    INCLUDE_TRACE_ID = True
    INCLUDE_TIMESTAMP = True

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a field contains sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively sanitize sensitive data from logs"""
        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(str(key)) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, list):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_BODY_LOG_SIZE:
            return data[:cls.MAX_BODY_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _trace_id_for(request: Optional[Request]) -> str:
    """Reuse the id assigned by RequestContextMiddleware, or mint one"""
    trace_id = getattr(request.state, "trace_id", None) if request is not None else None
    return trace_id or request_id_var.get('') or uuid.uuid4().hex[:8]


def _captured_body(request: Request) -> Optional[str]:
    body = getattr(request.state, "captured_body", None)
    if not body:
        return None
    try:
        return body.decode('utf-8')
    except UnicodeDecodeError:
        return "DECODE_ERROR"


class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        request: Optional[Request] = None,
        exception: Optional[BaseException] = None,
        extra_context: Optional[Dict] = None,
        level: int = logging.ERROR
    ) -> str:
        """Log one JSON document describing the error; returns its trace id"""
        trace_id = _trace_id_for(request)

        log_entry = {
            "timestamp": _utc_timestamp(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": logging.getLevelName(level)
        }

        if request is not None:
            log_entry["request"] = {
                "method": request.method,
                "path": request.url.path,
                "query_params": dict(request.query_params),
                "client_ip": request.client.host if request.client else None
            }

        if exception is not None:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": str(exception),
                "module": getattr(exception, '__module__', 'unknown')
            }
            cause = getattr(exception, "cause", None)
            if cause is not None:
                log_entry["exception"]["cause"] = {
                    "type": type(cause).__name__,
                    "details": str(cause)
                }

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        logger.log(level, json.dumps(log_entry, default=str))

        return trace_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to capture request context and add request IDs"""

    async def dispatch(self, request: Request, call_next):
        trace_id = uuid.uuid4().hex[:8]
        request_id_var.set(trace_id)
        request.state.trace_id = trace_id

        body = None
        if ErrorHandlingConfig.LOG_REQUEST_BODIES and request.method in ("POST", "PUT", "PATCH"):
            body = await request.body()
        request.state.captured_body = body

        try:
            response = await call_next(request)
        except Exception as e:
            StructuredLogger.log_error(
                "unhandled_exception",
                f"Unhandled exception in request processing: {e}",
                request=request,
                exception=e,
                extra_context={"request_body": _captured_body(request)}
            )
            raise

        response.headers["X-Trace-ID"] = trace_id
        return response


def _error_content(
    category: str,
    message: str,
    trace_id: str,
    detail: Optional[Any] = None,
    detail_key: str = "detalle"
) -> Dict[str, Any]:
    content: Dict[str, Any] = {
        "error": category,
        "message": message,
    }
    if detail is not None:
        content[detail_key] = detail
    if ErrorHandlingConfig.INCLUDE_TRACE_ID:
        content["trace_id"] = trace_id
    if ErrorHandlingConfig.INCLUDE_TIMESTAMP:
        content["timestamp"] = _utc_timestamp()
    return content


def _expose_error_detail(request: Request) -> bool:
    return bool(getattr(request.app.state, "expose_error_detail", True))


# Global Exception Handlers
async def usuarios_error_handler(request: Request, exc: UsuariosError) -> JSONResponse:
    """Handle service errors: log full detail, answer with the error category"""
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    trace_id = StructuredLogger.log_error(
        exc.category,
        exc.message,
        request=request,
        exception=exc,
        extra_context={
            "status_code": exc.status_code,
            "request_body": _captured_body(request)
        },
        level=level
    )

    detail = exc.detail if _expose_error_detail(request) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(exc.category, exc.message, trace_id, detail)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are client input errors: answer 400 like ValidationError"""
    validation_details = [
        {
            "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", "unknown")
        }
        for error in exc.errors()
    ]

    trace_id = StructuredLogger.log_error(
        "validation_error",
        f"Request validation failed: {len(validation_details)} validation errors",
        request=request,
        extra_context={
            "validation_errors": validation_details,
            "request_body": _captured_body(request)
        },
        level=logging.WARNING
    )

    return JSONResponse(
        status_code=400,
        content=_error_content(
            "validation_error",
            "Error: Datos de entrada inválidos.",
            trace_id,
            validation_details,
            detail_key="detail"
        )
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions raised by the router (unknown path, wrong method)"""
    trace_id = StructuredLogger.log_error(
        f"http_{exc.status_code}",
        f"HTTP {exc.status_code}: {exc.detail}",
        request=request,
        level=logging.ERROR if exc.status_code >= 500 else logging.WARNING
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(f"http_{exc.status_code}", str(exc.detail), trace_id),
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other exceptions without exposing internal details"""
    trace_id = StructuredLogger.log_error(
        "internal_server_error",
        f"Unhandled exception: {exc}",
        request=request,
        exception=exc,
        extra_context={"request_body": _captured_body(request)}
    )

    return JSONResponse(
        status_code=500,
        content=_error_content("internal_error", "An unexpected error occurred", trace_id)
    )


def setup_error_handling(app, expose_error_detail: bool = True):
    """Setup error handling middleware and exception handlers for the app"""
    app.state.expose_error_detail = expose_error_detail

    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(UsuariosError, usuarios_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Centralized error handling initialized")
