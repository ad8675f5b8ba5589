"""
Exceptions raised by the data repository.

Callers catch these instead of SQLAlchemy's own errors; the underlying
exception is always chained and available on ``original``.
"""

from typing import Optional


class RepositoryError(Exception):
    """Base exception for all repository errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InvalidQueryError(RepositoryError):
    """Raised when a predicate, projection, ordering or include cannot be composed."""

    def __init__(self, role: str, token: object, reason: Optional[str] = None):
        message = f"Invalid {role}: {token!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message=message, details={"role": role, "reason": reason})


class StoreOperationError(RepositoryError):
    """Raised when the store fails to open a session, execute or commit."""

    def __init__(self, operation: str, entity: str, original: Optional[BaseException] = None):
        message = f"{operation} on {entity} failed"
        if original is not None:
            message += f": {original}"
        self.original = original
        super().__init__(message=message, details={"operation": operation, "entity": entity})


class WriteConflictError(StoreOperationError):
    """Raised when a write matches no stored row (stale or missing entity)."""
