"""
API error classification.

Every error surfaced to a client is one of these types and is rendered as
``{"error": message}`` with the matching HTTP status (see main.py).

- ValidationError: malformed required input on write endpoints (400)
- NotFoundError: detail lookup that resolves to no row (404)
- DatabaseError: anything that failed while talking to the database (500);
  the message is generic, internal details only go to the log

Soft business conflicts (company already exists, suggestion already
pending) are not errors; handlers return them as 200 with a flag.
"""

from typing import Optional, Dict, Any


class TrackerError(Exception):
    """
    Base exception for errors returned to API clients.

    Attributes:
        message: Human-readable error description, safe to show to clients
        status_code: HTTP status code
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.message} (HTTP {self.status_code})"

    def to_dict(self) -> Dict[str, Any]:
        """Response body for this error."""
        return {"error": self.message}


class ValidationError(TrackerError):
    """Required input missing or malformed."""

    status_code = 400

    def __init__(self, message: str = "Invalid request", field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TrackerError):
    """Requested resource not found."""

    status_code = 404

    def __init__(self, message: str = "Not found", resource_id: Optional[str] = None):
        super().__init__(message)
        self.resource_id = resource_id


class DatabaseError(TrackerError):
    """
    Upstream failure while executing queries.

    Never retried; the request fails outright.
    """

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
