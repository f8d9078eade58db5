from fastapi import status


class ApplicationError(Exception):
    """Base class for errors raised by application rules.

    Subclasses set `status_code` and `message`, which the global exception
    handler uses to build the error envelope.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An error occurred"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.message
        super().__init__(self.detail)
