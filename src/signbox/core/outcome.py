"""
Signing outcomes.

Every signing call resolves to exactly one of :class:`Signed`,
:class:`RetryableFailure` or :class:`PermanentFailure`. Callers branch on
the type (or on ``.ok`` / ``.retryable``) to decide whether to retry;
transport internals never leak past the reason string.
"""

from __future__ import annotations

__all__ = [
    "PermanentFailure",
    "RetryableFailure",
    "Signed",
    "SigningOutcome",
]

from dataclasses import dataclass
from typing import Union

from ..errors import SigningError


@dataclass(frozen=True)
class Signed:
    """The service returned the signed document."""

    document: bytes
    transaction_id: str | None = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def retryable(self) -> bool:
        return False

    def unwrap(self) -> bytes:
        return self.document

    def __repr__(self) -> str:
        return f"Signed({len(self.document)} bytes, transaction_id={self.transaction_id!r})"


@dataclass(frozen=True)
class RetryableFailure:
    """Transient failure; the same request may succeed later."""

    reason: str
    status_code: int | None = None
    transaction_id: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return True

    def unwrap(self) -> bytes:
        raise SigningError(self.reason, retryable=True, status_code=self.status_code)


@dataclass(frozen=True)
class PermanentFailure:
    """Failure that will not change on retry (bad input, bad credentials)."""

    reason: str
    status_code: int | None = None
    transaction_id: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def retryable(self) -> bool:
        return False

    def unwrap(self) -> bytes:
        raise SigningError(self.reason, retryable=False, status_code=self.status_code)


SigningOutcome = Union[Signed, RetryableFailure, PermanentFailure]
