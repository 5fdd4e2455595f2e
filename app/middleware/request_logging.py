from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request with status and duration, and reports the duration in a header"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {method} {path}")
            raise

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, f"{method} {path} -> {response.status_code} in {process_time:.4f}s")

        return response
