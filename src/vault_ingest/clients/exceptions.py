"""Exceptions raised by the service clients.

These describe transport and protocol problems. The conversion task maps
all of them to a FAILED deposit; a deposit is only REJECTED for reasons
expressed as ``vault_ingest.exceptions.InvalidDepositError``.
"""


class ClientError(Exception):
    """Base exception for all service client errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConnectionError(ClientError):
    """A service stayed unreachable for every attempt."""


class APIError(ClientError):
    """A service answered with an error status.

    Attributes:
        status_code: HTTP status of the answer
        body: Response text, kept for the deposit log
    """

    def __init__(self, message: str, status_code: int, body: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class NotFoundError(APIError):
    """A service answered 404."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ResponseValidationError(ClientError):
    """A service answered with a body that does not fit the expected schema."""

    def __init__(self, message: str, errors: list[str] | None = None):
        self.errors = errors or []
        super().__init__(message)
