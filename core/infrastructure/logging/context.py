import contextvars
import uuid
from typing import Any, Dict

request_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "request_context", default={}
)


class RequestContextLogger:
    """Context manager binding request or connection data to every log record.

    Works both as a plain and an asynchronous context manager, so HTTP
    middleware and WebSocket handlers can share it.
    """

    def __init__(self, request_id: str | None = None, **context):
        self.request_id = request_id or str(uuid.uuid4())[:8]
        self.context = {"request_id": self.request_id, **context}
        self.token = None

    def __enter__(self):
        self.token = request_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            request_context.reset(self.token)
            self.token = None

    async def __aenter__(self):
        """Enter the asynchronous context, set the request context.

        Returns
        -------
        RequestContextLogger
            Instance of `RequestContextLogger`.
        """
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit the asynchronous context, reset the request context."""
        self.__exit__(exc_type, exc_val, exc_tb)
