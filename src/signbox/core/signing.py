"""
SignBox signing client.

:class:`SignboxClient` submits one document per call through a shared
:class:`~signbox.network.pool.ConnectionPool` and returns a
:data:`~signbox.core.outcome.SigningOutcome`. It never raises for
signing failures; only ``asyncio.CancelledError`` propagates, after the
in-flight exchange has been aborted and its connection released.

No retries are performed here. Callers decide, using ``outcome.retryable``.
"""

from __future__ import annotations

__all__ = ["SignboxClient"]

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from ..constants import DEFAULT_UNCLASSIFIED_STATUS, STATUS_POLICIES
from ..errors import ValidationError
from ..network.classifier import classify_response, classify_transport_error
from ..network.request import (
    SignatureFormat,
    SignatureLevel,
    SigningRequest,
    build_upload,
)
from .outcome import PermanentFailure, SigningOutcome

if TYPE_CHECKING:
    from ..config.settings import Settings
    from ..network.pool import ConnectionPool

_logger = logging.getLogger(__name__)


class SignboxClient:
    """Client for the SignBox remote signing service.

    Args:
        pool: Shared connection pool; not closed by the client.
        endpoint: Signing endpoint URL.
        api_key: Value of the API key header.
        unclassified_status: ``"retryable"`` (default) or ``"permanent"``;
            the outcome category for statuses other than 200, 401 and 503.
        auth: Optional ``(username, password)`` for HTTP basic auth.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        endpoint: str,
        api_key: str = "",
        *,
        unclassified_status: str = DEFAULT_UNCLASSIFIED_STATUS,
        auth: tuple[str, str] | None = None,
    ) -> None:
        if unclassified_status not in STATUS_POLICIES:
            raise ValueError(f"unclassified_status must be one of {STATUS_POLICIES}")
        self.pool = pool
        self.endpoint = endpoint
        self.unclassified_status = unclassified_status
        self._api_key = api_key
        self._auth = httpx.BasicAuth(*auth) if auth else None

    @classmethod
    def from_settings(cls, pool: ConnectionPool, settings: Settings) -> SignboxClient:
        """Build a client from resolved settings.

        Raises:
            ConfigError: If no endpoint is configured.
        """
        return cls(
            pool,
            settings.require_endpoint(),
            settings.api_key,
            unclassified_status=settings.unclassified_status,
            auth=settings.basic_auth,
        )

    # ── Per-format entry points ─────────────────────────────────────

    async def sign_pdf_document(
        self, document: bytes | None, timestamping: bool = False
    ) -> SigningOutcome:
        """Sign a PDF document (PAdES)."""
        return await self.sign(
            document, SignatureFormat.PADES, SignatureLevel.from_timestamping(timestamping)
        )

    async def sign_xml_document(
        self, document: bytes | None, timestamping: bool = False
    ) -> SigningOutcome:
        """Sign an XML document (XAdES)."""
        return await self.sign(
            document, SignatureFormat.XADES, SignatureLevel.from_timestamping(timestamping)
        )

    async def pkcs7_signature(
        self, document: bytes | None, timestamping: bool = False
    ) -> SigningOutcome:
        """Sign any document into a PKCS#7 envelope (CAdES)."""
        return await self.sign(
            document, SignatureFormat.CADES, SignatureLevel.from_timestamping(timestamping)
        )

    # ── Core ────────────────────────────────────────────────────────

    async def sign(
        self,
        document: bytes | None,
        format: SignatureFormat,
        level: SignatureLevel = SignatureLevel.BASIC,
        correlation_id: str | None = None,
    ) -> SigningOutcome:
        """Sign *document*; empty input fails permanently without a network call."""
        try:
            request = SigningRequest.create(document, format, level, correlation_id)
        except ValidationError as e:
            _logger.warning("Rejected signing request: %s", e)
            return PermanentFailure(reason=str(e), transaction_id=correlation_id)
        return await self.sign_request(request)

    def submit(
        self,
        document: bytes | None,
        format: SignatureFormat,
        level: SignatureLevel = SignatureLevel.BASIC,
        correlation_id: str | None = None,
    ) -> asyncio.Task[SigningOutcome]:
        """Schedule :meth:`sign` on the running loop and return its task.

        Cancelling the task aborts the HTTP exchange.
        """
        return asyncio.create_task(self.sign(document, format, level, correlation_id))

    async def sign_request(self, request: SigningRequest) -> SigningOutcome:
        """Dispatch a prepared request and classify whatever comes back."""
        _logger.info(
            "Signing request %s: format=%s, level=%s, %d bytes",
            request.correlation_id,
            request.format.value,
            request.level.value,
            len(request.document),
        )
        upload = build_upload(request, self._api_key)
        try:
            response = await self.pool.client.post(
                self.endpoint,
                headers=upload.headers,
                files=upload.files,
                data=upload.data,
                auth=self._auth if self._auth is not None else httpx.USE_CLIENT_DEFAULT,
            )
        except Exception as e:  # noqa: BLE001 -- every failure becomes an outcome
            return classify_transport_error(e, correlation_id=request.correlation_id)

        return classify_response(
            response.status_code,
            response.headers,
            response.content,
            reason_phrase=response.reason_phrase,
            unclassified_status=self.unclassified_status,
            correlation_id=request.correlation_id,
        )
