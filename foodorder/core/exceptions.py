"""
Application Exceptions

Every failure an operation can report is an ``AppError`` subclass carrying
the HTTP status it maps to. Handlers registered in ``foodorder.main`` turn
them into ``{"message": ...}`` JSON responses.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(AppError):
    """A referenced record does not exist."""

    status_code = 404
    default_message = "Not found"


class InvalidReference(AppError):
    """A cart line points at a menu item the restaurant does not have."""

    status_code = 400
    default_message = "Menu item not found"

    def __init__(self, menu_item_id: str):
        self.menu_item_id = menu_item_id
        super().__init__(f"Menu item not found: {menu_item_id}")


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class Conflict(AppError):
    status_code = 409
    default_message = "Resource already exists"


class InvalidSignature(AppError):
    """Webhook payload failed signature verification."""

    status_code = 400
    default_message = "Webhook signature verification failed"


class GatewayError(AppError):
    """The payment provider failed or returned no checkout URL."""

    status_code = 500
    default_message = "Error creating stripe session"
