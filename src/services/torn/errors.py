"""
FactionWatch Bot - Torn Errors
==============================

Failure types raised inside a reconciliation cycle. All of them are caught
at the cycle boundary by the engine; none should reach the event loop.
"""

from typing import Any, Optional


class TornError(Exception):
    """Base class for Torn tracking failures."""
    pass


class UpstreamUnavailable(TornError):
    """Non-success HTTP status, network failure, timeout or undecodable body."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class UpstreamReportedError(TornError):
    """The API answered but the payload carries an `error` object."""

    def __init__(self, error: Any) -> None:
        self.error = error
        self.code: Optional[int] = None
        self.detail: str = str(error)
        if isinstance(error, dict):
            code = error.get("code")
            self.code = code if isinstance(code, int) else None
            self.detail = str(error.get("error") or error.get("message") or error)
        super().__init__(
            f"Torn API error {self.code}: {self.detail}" if self.code is not None
            else f"Torn API error: {self.detail}"
        )


class PersistenceFailure(TornError):
    """A state file could not be written."""

    def __init__(self, path: Any, cause: BaseException) -> None:
        super().__init__(f"Failed to write {path}: {cause}")
        self.path = path
        self.cause = cause


class NormalizationWarning(UserWarning):
    """Payload had no recognizable members collection."""
    pass


__all__ = [
    "TornError",
    "UpstreamUnavailable",
    "UpstreamReportedError",
    "PersistenceFailure",
    "NormalizationWarning",
]
