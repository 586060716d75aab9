"""
Exception handlers turning engine errors into the API error envelope:

    {"success": false, "error": {"code", "message", "timestamp", "details"?, "request_id"?}}
"""

import traceback
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions.base import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

__all__ = ["ServiceError", "ServiceErrorCode", "error_envelope", "GlobalErrorHandler"]


def error_envelope(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }
    if details:
        error["details"] = details
    if request_id:
        error["request_id"] = request_id
    return {"success": False, "error": error}


def _request_context(request: Request) -> Dict[str, str]:
    return {
        "request_id": request.headers.get("X-Request-ID", "unknown"),
        "path": request.url.path,
        "method": request.method
    }


def _validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    # ("body", "steps") -> "body.steps"
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "input": error.get("input")
        }
        for error in exc.errors()
    ]


class GlobalErrorHandler:
    """Handlers registered on the app for engine, validation and unexpected errors"""

    @staticmethod
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Unknown user (404), invalid input (422) and storage failures (503)"""
        context = _request_context(request)

        # Storage outages are ours; the rest are caller mistakes
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"Service error: {exc.code}",
            extra={**context, **exc.to_dict(), "context": exc.context}
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.code, exc.message, exc.details, context["request_id"])
        )

    @staticmethod
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies, paths and query strings share the INVALID_INPUT code"""
        context = _request_context(request)
        validation_errors = _validation_errors(exc)

        logger.warning(
            f"Validation error: {len(validation_errors)} errors",
            extra={**context, "validation_errors": validation_errors}
        )

        response = error_envelope(
            ServiceErrorCode.INVALID_INPUT,
            "Validation failed",
            {"validation_errors": validation_errors},
            context["request_id"]
        )
        return JSONResponse(status_code=422, content=jsonable_encoder(response))

    @staticmethod
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        context = _request_context(request)

        logger.error(
            f"Unexpected error: {type(exc).__name__}",
            extra={**context, "error_type": type(exc).__name__, "error_message": str(exc)},
            exc_info=True
        )

        # Internals only leak in DEBUG
        if settings.DEBUG:
            message = f"Internal error: {str(exc)}"
            details = {"traceback": traceback.format_exc()}
        else:
            message = "An unexpected error occurred. Please try again."
            details = None

        return JSONResponse(
            status_code=500,
            content=error_envelope(ServiceErrorCode.INTERNAL_ERROR, message, details, context["request_id"])
        )
