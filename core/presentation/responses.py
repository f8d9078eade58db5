from typing import Any, Dict

from fastapi import status
from pydantic import BaseModel


class StandardResponse(BaseModel):
    """Envelope shared by every API response.

    Attributes
    ----------
    success: bool, default=True
        False only for error envelopes.
    data: Any, default=None
        Payload of the response, e.g. a `NotificationListResponse`.
    """

    success: bool = True
    data: Any = None


class SuccessResponse(StandardResponse):
    message: str = "Resource action successful"
    status_code: int = status.HTTP_200_OK


class CreatedResponse(StandardResponse):
    """Envelope for a created resource, such as a sent notification."""

    message: str = "Resource creation successful"
    status_code: int = status.HTTP_201_CREATED


class ErrorResponse(BaseModel):
    """Envelope written by the global exception handler.

    Attributes
    ----------
    message: str
        Short, client-safe summary of the failure.
    errors: Dict[str, Any]
        `detail` for domain and HTTP errors, one entry per field for
        validation errors.
    status_code: int
        HTTP status code, repeated for clients that only read the body.
    path: str
        Requested URL.
    method: str
        HTTP method of the request.
    """

    success: bool = False
    message: str
    errors: Dict[str, Any]
    status_code: int
    path: str
    method: str
