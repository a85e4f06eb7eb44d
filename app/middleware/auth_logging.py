from fastapi import Request
import logging
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")


class AuthLoggingMiddleware(BaseHTTPMiddleware):
    """Warns about requests that end in 401/403, noting whether a bearer token was sent."""

    async def dispatch(self, request: Request, call_next):
        auth_header = request.headers.get("Authorization", "")
        has_bearer = auth_header.lower().startswith("bearer ")

        response = await call_next(request)

        if response.status_code in (401, 403):
            client = request.client.host if request.client else "-"
            logger.warning(
                f"Auth error: {response.status_code} on {request.method} {request.url.path} "
                f"(bearer token: {'yes' if has_bearer else 'no'}, client: {client})"
            )

        return response
