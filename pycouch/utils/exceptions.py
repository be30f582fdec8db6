from __future__ import annotations


class PycouchError(Exception):
    """Base exception for all Pycouch errors."""


class NotConnected(PycouchError):
    """Raised when attempting to use a database that is not connected."""


class InvalidTokenError(PycouchError):
    """Raised when a continuation token cannot be decoded."""


class EmptyResultError(PycouchError):
    """Raised when a page query returns no rows at the requested position."""


class ExecutorError(PycouchError):
    """Raised when a view query fails at the transport or server level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.reason = reason


class DocumentNotFound(ExecutorError):
    """Raised when the database, design document or view does not exist."""
