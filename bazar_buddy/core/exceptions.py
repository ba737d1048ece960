"""Domain errors raised by services and mapped to HTTP responses by the API."""


class BazarBuddyError(Exception):
    """Base class for application errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(BazarBuddyError):
    """Missing, expired or invalid credentials."""

    status_code = 401


class NotFoundError(BazarBuddyError):
    """A list or item does not exist or belongs to another user."""

    status_code = 404


class ListValidationError(BazarBuddyError):
    """Input rejected before it reaches storage."""

    status_code = 422


class ExternalServiceError(BazarBuddyError):
    """An upstream provider (LLM, OCR) is not configured or failed."""

    status_code = 503


class InvalidInputError(BazarBuddyError):
    """Account input (email, password) rejected."""

    status_code = 422
