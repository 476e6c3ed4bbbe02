"""signbox error types."""

from __future__ import annotations

from typing import Any

__all__ = [
    "ConfigError",
    "SignboxError",
    "SigningError",
    "ValidationError",
]


class SignboxError(Exception):
    """Base error for signbox operations."""


class ConfigError(SignboxError):
    """Configuration validation error."""


class ValidationError(SignboxError):
    """Input rejected locally, before any network call."""


class SigningError(SignboxError):
    """A signing call ended in a failure outcome.

    Raised only by ``outcome.unwrap()``; the client itself returns
    outcomes instead of raising.

    Args:
        message: Human-readable failure reason.
        retryable: Whether the failure is transient and worth retrying.
        status_code: HTTP status of the response, if one was received.
    """

    def __init__(
        self, message: str, *, retryable: bool = False, status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code

    def __reduce__(self) -> tuple[type[SigningError], tuple[str], dict[str, Any]]:
        """Preserve retryable flag and status across pickle/unpickle."""
        return (
            type(self),
            (str(self),),
            {"retryable": self.retryable, "status_code": self.status_code},
        )

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.retryable = state.get("retryable", False)
        self.status_code = state.get("status_code")
