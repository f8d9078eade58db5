from fastapi import status

from core.domain.exceptions import ApplicationError


class NotificationError(ApplicationError):
    """Base class for notification subsystem failures."""

    message = "Notification error"


class NotificationValidationError(NotificationError, ValueError):
    """Intent is missing a required field or carries an invalid value."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid notification"


class NotificationPersistenceError(NotificationError):
    """Durable write to the notification store failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Notification could not be stored"


class DeliveryChannelError(NotificationError):
    """Live push or presence lookup failed. Never surfaced to callers."""

    message = "Notification push failed"


class NotificationNotFoundError(NotificationError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Notification not found"


class NotificationAccessDeniedError(NotificationError):
    """Requesting user is not the recipient of the notification."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Not authorized to access this notification"


class RecipientResolutionError(NotificationError):
    """A producer could not find the record its recipient is derived from."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "Notification recipient could not be resolved"
