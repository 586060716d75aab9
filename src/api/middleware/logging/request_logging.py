import time
import json
import traceback
from datetime import datetime
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.core.logger.logger import logger

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request as one JSON line and echoes the X-Request-ID correlation id"""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.time()

        # Get or generate correlation ID
        correlation_id = request.headers.get("X-Request-ID", str(uuid4()))

        log_context = {
            "request_id": correlation_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        }

        try:
            response = await call_next(request)
        except Exception as e:
            log_context.update({
                "error": str(e),
                "error_type": e.__class__.__name__,
                "stack_trace": traceback.format_exc(),
                "duration_ms": round((time.time() - start_time) * 1000, 2)
            })
            logger.error(json.dumps(log_context))
            raise

        log_context.update({
            "status_code": response.status_code,
            "duration_ms": round((time.time() - start_time) * 1000, 2)
        })
        response.headers["X-Request-ID"] = correlation_id

        if response.status_code >= 500:
            logger.error(json.dumps(log_context))
        else:
            logger.info(json.dumps(log_context))

        return response
