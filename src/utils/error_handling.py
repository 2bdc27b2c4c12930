"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    """Raised when the knowledge base is empty or missing for an explicit operation."""

    def __init__(self, message: str = "KB empty or missing"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when operator input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class StoreReadError(AppError):
    """Raised by strict corpus loads so a write never replaces an unread corpus."""

    def __init__(self, message: str = "KB could not be read"):
        super().__init__(message, status_code=503)


def json_response(status: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Format a Lambda proxy integration response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def to_response(error: AppError) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    return json_response(error.status_code, {"ok": False, "message": str(error)})
