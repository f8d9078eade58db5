import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from ..factory import get_data_sanitizer
from .context import RequestContextLogger


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Request tracking middleware that adds logging and context to every API request.

    1. Generates unique request IDs for tracing
    2. Logs request information and response status
    3. Logs failures with the request context before re-raising

    WebSocket traffic does not pass through `BaseHTTPMiddleware`; the delivery
    channel binds its own connection context instead.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        sanitizer = await get_data_sanitizer()

        request_context = {
            "client_ip": self._get_client_ip(request),
            "user_agent": request.headers.get("user-agent", "Unknown")[:100],
            "method": request.method,
            "path": str(request.url.path),
        }
        if request.url.query:
            request_context["query_params"] = sanitizer.sanitize_for_logging(
                str(request.url.query)
            )

        async with RequestContextLogger(request_id=request_id, **request_context):
            logger.info(f"🔄 Incoming {request.method} request to {request.url.path}")

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "💥 Request failed: "
                    + sanitizer.sanitize_exception_for_logging(
                        f"{type(e).__name__}: {e}"
                    )
                )
                raise

            logger.info(
                f"✅ Completed {request.method} {request.url.path} "
                f"with status {response.status_code}"
            )
            response.headers["X-Request-ID"] = request_id
            return response

    def _get_client_ip(self, request: Request) -> str:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"
