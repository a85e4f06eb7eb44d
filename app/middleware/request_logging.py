from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        query_string = request.url.query
        client = request.client.host if request.client else "-"

        logger.info(f"Request: {method} {path}{'?' + query_string if query_string else ''} from {client}")

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        logger.info(f"Response: {method} {path} -> {response.status_code} in {process_time:.4f}s")

        return response
