"""Signing outcomes and the SignBox client."""

from __future__ import annotations

from .outcome import PermanentFailure, RetryableFailure, Signed, SigningOutcome
from .signing import SignboxClient

__all__ = [
    "PermanentFailure",
    "RetryableFailure",
    "Signed",
    "SignboxClient",
    "SigningOutcome",
]
