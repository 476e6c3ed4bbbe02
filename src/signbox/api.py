"""High-level convenience API.

:func:`sign_document` and :func:`sign_documents` resolve settings, open a
pool, sign, and close the pool again. They suit scripts and one-off jobs.

Long-running services should create one
:class:`~signbox.network.pool.ConnectionPool` at startup and reuse a
:class:`~signbox.core.signing.SignboxClient` instead.
"""

from __future__ import annotations

__all__ = ["sign_document", "sign_documents"]

import asyncio
import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .config.settings import load_settings
from .core.signing import SignboxClient
from .network.pool import ConnectionPool
from .network.request import SignatureFormat, SignatureLevel

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from .config.settings import Settings
    from .core.outcome import SigningOutcome

_logger = logging.getLogger(__name__)


def _resolve_settings(settings: Settings | None, url: str | None, api_key: str | None) -> Settings:
    resolved = settings if settings is not None else load_settings()
    if url is not None:
        resolved = replace(resolved, endpoint=url)
    if api_key is not None:
        resolved = replace(resolved, api_key=api_key)
    return resolved


async def sign_documents(
    documents: Sequence[bytes],
    format: SignatureFormat,
    *,
    timestamping: bool = False,
    url: str | None = None,
    api_key: str | None = None,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[SigningOutcome]:
    """Sign several documents concurrently through one pool.

    Outcomes are returned in the order of *documents*.

    Args:
        documents: Raw document contents.
        format: Signature format requested from the service.
        timestamping: Request a timestamped (``T``) signature.
        url: Endpoint URL; overrides the configured one.
        api_key: API key; overrides the configured one.
        settings: Pre-resolved settings; loaded from env/config if ``None``.
        transport: Optional httpx transport for the pool.

    Raises:
        ConfigError: If no endpoint can be resolved.
    """
    resolved = _resolve_settings(settings, url, api_key)
    level = SignatureLevel.from_timestamping(timestamping)
    async with ConnectionPool.from_settings(resolved, transport=transport) as pool:
        client = SignboxClient.from_settings(pool, resolved)
        _logger.debug("Signing %d document(s) as %s/%s", len(documents), format.value, level.value)
        return list(await asyncio.gather(*(client.sign(doc, format, level) for doc in documents)))


async def sign_document(
    document: bytes,
    format: SignatureFormat,
    *,
    timestamping: bool = False,
    url: str | None = None,
    api_key: str | None = None,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SigningOutcome:
    """Sign a single document. See :func:`sign_documents`."""
    (outcome,) = await sign_documents(
        [document],
        format,
        timestamping=timestamping,
        url=url,
        api_key=api_key,
        settings=settings,
        transport=transport,
    )
    return outcome
