"""
Domain Error Kinds

Raised by the persistence gateway and the handlers, translated to HTTP
responses by the exception handlers registered in `restaurant_api.main`.
"""

from typing import Optional


class RestaurantAPIError(Exception):
    """Base class for errors that map to a client-facing response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class InvalidInputError(RestaurantAPIError):
    """Non-numeric id or otherwise unparseable request input."""

    status_code = 400
    default_message = "Invalid ID"


class NotFoundError(RestaurantAPIError):
    """No row matches the requested id."""

    status_code = 404
    default_message = "Not found"

    def __init__(self, message: Optional[str] = None, with_body: bool = True):
        super().__init__(message)
        self.with_body = with_body


class ConstraintViolationError(RestaurantAPIError):
    """Foreign-key or uniqueness failure reported by the store."""

    status_code = 400
    default_message = "Request violates a data constraint"


class StoreUnavailableError(RestaurantAPIError):
    """Connection-level failure talking to the store."""

    status_code = 500
    default_message = "Internal Server Error"
