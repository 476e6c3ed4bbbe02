"""
signbox -- asyncio client for the SignBox remote signing service.

Uploads PDF, XML or arbitrary documents to the service and classifies
every response as signed, retryable failure, or permanent failure.
Signing itself (PAdES/XAdES/CAdES) happens server-side.
"""

from __future__ import annotations

from .api import sign_document, sign_documents
from .config.settings import Settings, load_settings
from .constants import __version__
from .core.outcome import PermanentFailure, RetryableFailure, Signed, SigningOutcome
from .core.signing import SignboxClient
from .errors import ConfigError, SignboxError, SigningError, ValidationError
from .network.classifier import ServerErrorPayload, parse_error_body
from .network.pool import ConnectionPool
from .network.request import SignatureFormat, SignatureLevel, SigningRequest

__all__ = [
    "ConfigError",
    "ConnectionPool",
    "PermanentFailure",
    "RetryableFailure",
    "ServerErrorPayload",
    "Settings",
    "SignatureFormat",
    "SignatureLevel",
    "SignboxClient",
    "SignboxError",
    "Signed",
    "SigningError",
    "SigningOutcome",
    "SigningRequest",
    "ValidationError",
    "__version__",
    "load_settings",
    "parse_error_body",
    "sign_document",
    "sign_documents",
]
