"""Application exceptions mapped to HTTP status codes"""
from typing import Optional


class SheetdashError(Exception):
    """Base error carrying a human-readable message and an HTTP status"""

    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotAuthenticatedError(SheetdashError):
    """Caller has no verified identity"""
    status_code = 401
    default_message = "Not authenticated"


class NotFoundError(SheetdashError):
    """Referenced record does not exist"""
    status_code = 404
    default_message = "Not found"

    @classmethod
    def for_entity(cls, entity: str) -> "NotFoundError":
        return cls(f"{entity} not found")


class NotAuthorizedError(SheetdashError):
    """Caller does not own the record"""
    status_code = 403
    default_message = "Not authorized"


class InvalidInputError(SheetdashError):
    """Malformed CSV/JSON or an unsatisfiable request against the document"""
    status_code = 400
    default_message = "Invalid input"


class ExternalServiceError(SheetdashError):
    """Third-party API call failed"""
    status_code = 502
    default_message = "External service error"
