"""
Request builder for the SignBox upload.

One signing call is one ``multipart/form-data`` POST:

- part ``file``: the raw document, filename = correlation id,
  content type ``application/octet-stream``;
- parts ``level`` and ``format``: the wire tags of the signature options;
- headers: API key and correlation (transaction) id.
"""

from __future__ import annotations

__all__ = [
    "SignatureFormat",
    "SignatureLevel",
    "SigningRequest",
    "Upload",
    "build_upload",
    "new_correlation_id",
    "validate_document",
]

import uuid
from dataclasses import dataclass
from enum import Enum

from ..constants import API_KEY_HEADER, CONTENT_TYPE_OCTET_STREAM, TRANSACTION_ID_HEADER
from ..errors import ValidationError


class SignatureFormat(Enum):
    """Signature container requested from the service (opaque label)."""

    PADES = "PADES"
    XADES = "XADES"
    CADES = "CADES"


class SignatureLevel(Enum):
    """Signature level; the value is the tag sent on the wire."""

    BASIC = "BES"
    TIMESTAMP = "T"

    @classmethod
    def from_timestamping(cls, timestamping: bool) -> SignatureLevel:
        return cls.TIMESTAMP if timestamping else cls.BASIC


def new_correlation_id() -> str:
    """Return a fresh, globally unique correlation id."""
    return str(uuid.uuid4())


def validate_document(document: bytes | None) -> bytes:
    """Reject missing or empty documents.

    Raises:
        ValidationError: If *document* is None or empty.
    """
    if document is None or len(document) == 0:
        raise ValidationError("Document bytes cannot be null or empty.")
    return bytes(document)


@dataclass(frozen=True)
class SigningRequest:
    """A single document submitted for signing."""

    document: bytes
    format: SignatureFormat
    level: SignatureLevel
    correlation_id: str

    @classmethod
    def create(
        cls,
        document: bytes | None,
        format: SignatureFormat,
        level: SignatureLevel = SignatureLevel.BASIC,
        correlation_id: str | None = None,
    ) -> SigningRequest:
        """Validate *document* and build a request, generating an id if needed.

        Raises:
            ValidationError: If *document* is None or empty.
        """
        return cls(
            document=validate_document(document),
            format=format,
            level=level,
            correlation_id=correlation_id or new_correlation_id(),
        )

    def __repr__(self) -> str:
        return (
            f"SigningRequest({len(self.document)} bytes, format={self.format.value}, "
            f"level={self.level.value}, correlation_id={self.correlation_id!r})"
        )


@dataclass(frozen=True)
class Upload:
    """Arguments for ``httpx.AsyncClient.post`` describing one upload."""

    headers: dict[str, str]
    files: dict[str, tuple[str, bytes, str]]
    data: dict[str, str]


def build_upload(request: SigningRequest, api_key: str) -> Upload:
    """Assemble headers and multipart parts for *request*."""
    return Upload(
        headers={
            API_KEY_HEADER: api_key,
            TRANSACTION_ID_HEADER: request.correlation_id,
        },
        files={
            "file": (request.correlation_id, request.document, CONTENT_TYPE_OCTET_STREAM),
        },
        data={
            "level": request.level.value,
            "format": request.format.value,
        },
    )
