import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from foundation.core.logging import logger


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all incoming requests and responses with timing
    """

    def __init__(self, app: ASGIApp, exclude_paths=None):
        super().__init__(app)
        self.exclude_paths = set(exclude_paths or [])

    async def dispatch(self, request: Request, call_next):
        correlation_id = getattr(request.state, "correlation_id", None) or request.headers.get(
            "X-Correlation-ID"
        ) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                exception=e,
                path=request.url.path,
                method=request.method,
                duration_ms=duration_ms,
                correlation_id=correlation_id,
            )
            # Re-raise for the exception handlers
            raise

        duration_ms = (time.time() - start_time) * 1000
        if request.url.path not in self.exclude_paths:
            logger.request_log(
                request=request,
                status_code=response.status_code,
                duration_ms=duration_ms,
                correlation_id=correlation_id,
            )

        response.headers["X-Correlation-ID"] = correlation_id
        return response


class CorrelationIDMiddleware:
    """
    Pure ASGI middleware that ensures all requests have a correlation ID
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        correlation_id = headers.get(b"x-correlation-id", b"").decode() or str(uuid.uuid4())

        scope.setdefault("state", {})
        scope["state"]["correlation_id"] = correlation_id

        async def send_with_correlation_id(message):
            if message["type"] == "http.response.start":
                headers = [
                    (key, value)
                    for key, value in message.get("headers", [])
                    if key.lower() != b"x-correlation-id"
                ]
                headers.append((b"x-correlation-id", correlation_id.encode()))
                message["headers"] = headers

            await send(message)

        await self.app(scope, receive, send_with_correlation_id)
