"""HTTP transport: request builder, response classifier, connection pool."""

from __future__ import annotations

from .classifier import ServerErrorPayload, classify_response, classify_transport_error, parse_error_body
from .pool import ConnectionPool
from .request import SignatureFormat, SignatureLevel, SigningRequest, build_upload, new_correlation_id

__all__ = [
    "ConnectionPool",
    "ServerErrorPayload",
    "SignatureFormat",
    "SignatureLevel",
    "SigningRequest",
    "build_upload",
    "classify_response",
    "classify_transport_error",
    "new_correlation_id",
    "parse_error_body",
]
