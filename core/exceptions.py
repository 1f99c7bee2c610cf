"""Domain exceptions shared by the API, the services and the client SDK."""

from typing import Any, Dict, List, Optional


class LedgerError(Exception):
    """Base class for every error the ledger raises on purpose."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(LedgerError):
    """Malformed or missing input. Carries one entry per failing field."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    @classmethod
    def from_pydantic(cls, errors) -> "ValidationError":
        """Flatten pydantic/FastAPI error dicts into ``{field, message}`` pairs."""
        flattened = []
        for error in errors:
            location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            message = error.get("msg", "Invalid value")
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            flattened.append({"field": ".".join(location) or "body", "message": message})
        return cls(flattened)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "errors": self.errors}


class Unauthenticated(LedgerError):
    """Missing, malformed or expired credential."""

    status_code = 401
    default_message = "Invalid or missing authentication token"


class InvalidTokenError(LedgerError):
    """Raised by the token codec; the gateway turns it into Unauthenticated."""

    status_code = 401
    default_message = "Invalid token"


class NotFound(LedgerError):
    """Unknown id or a record owned by someone else. Both look the same."""

    status_code = 404
    default_message = "Expense not found"


class ConfigError(LedgerError):
    status_code = 500
    default_message = "Server misconfigured"


class ConflictResolved(LedgerError):
    """Lost an idempotency-key insert race; holds the record that won.

    Only used inside the mutation service, never returned to a caller.
    """

    status_code = 200
    default_message = "Expense already exists (idempotent response)"

    def __init__(self, expense):
        self.expense = expense
        super().__init__()


class ApiError(LedgerError):
    """Client side: the server answered with a non-retryable error status."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[Dict[str, str]]] = None):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)


class TransientFailure(LedgerError):
    """Client side: network failure or 5xx that outlived every retry."""

    default_message = "Network error. Please try again."

    def __init__(self, message: Optional[str] = None, attempts: int = 0, status_code: Optional[int] = None):
        self.attempts = attempts
        self.last_status = status_code
        super().__init__(message)
