"""
Shared connection pool for the SignBox service.

A :class:`ConnectionPool` owns one ``httpx.AsyncClient`` with a bounded
number of connections. Requests beyond the limit wait, in arrival order,
for a free connection; waiting longer than *acquire_timeout* raises
``httpx.PoolTimeout``, which the classifier turns into a retryable failure.

The pool is created once at startup and passed explicitly to every
:class:`~signbox.core.signing.SignboxClient`::

    async with ConnectionPool(max_connections=40) as pool:
        client = SignboxClient(pool, endpoint, api_key)
        outcome = await client.sign_pdf_document(pdf_bytes)
"""

from __future__ import annotations

__all__ = ["ConnectionPool"]

import logging
from types import TracebackType
from typing import TYPE_CHECKING

import httpx

from ..constants import DEFAULT_ACQUIRE_TIMEOUT, DEFAULT_MAX_CONNECTIONS, DEFAULT_REQUEST_TIMEOUT

if TYPE_CHECKING:
    from ..config.settings import Settings

_logger = logging.getLogger(__name__)


class ConnectionPool:
    """Process-wide pool of HTTP connections to the signing service.

    Args:
        max_connections: Maximum concurrent connections.
        acquire_timeout: Seconds a request may wait for a free connection.
        request_timeout: Connect/read/write timeout for one exchange.
        transport: Optional httpx transport (tests inject
            ``httpx.MockTransport`` here).
    """

    def __init__(
        self,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        acquire_timeout: float = DEFAULT_ACQUIRE_TIMEOUT,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.max_connections = max_connections
        self.acquire_timeout = acquire_timeout
        self.request_timeout = request_timeout
        self._client = httpx.AsyncClient(
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
            ),
            timeout=httpx.Timeout(request_timeout, pool=acquire_timeout),
            transport=transport,
        )
        _logger.debug(
            "Connection pool created: max_connections=%d, acquire_timeout=%ss, timeout=%ss",
            max_connections,
            acquire_timeout,
            request_timeout,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> ConnectionPool:
        return cls(
            max_connections=settings.max_connections,
            acquire_timeout=settings.acquire_timeout,
            request_timeout=settings.request_timeout,
            transport=transport,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """The underlying HTTP client; raises if the pool was closed."""
        if self._client.is_closed:
            raise RuntimeError("Connection pool is closed")
        return self._client

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        """Close all pooled connections. Idempotent."""
        if not self._client.is_closed:
            await self._client.aclose()
            _logger.debug("Connection pool closed")

    async def __aenter__(self) -> ConnectionPool:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
