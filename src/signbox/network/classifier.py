"""
Response classifier for the SignBox service.

Maps every way a signing exchange can end into a
:data:`~signbox.core.outcome.SigningOutcome`:

1. transport failure (no response): timeouts and I/O errors are
   retryable, anything else is permanent;
2. ``200``: the body is the signed document, byte for byte;
3. ``401``: permanent, retrying with the same credentials cannot succeed;
4. ``503``: retryable, the service is overloaded;
5. any other status: governed by the *unclassified_status* policy.

The status code alone decides the category. The JSON error body only
enriches the reason string; its ``error_code`` never overrides the status.
"""

from __future__ import annotations

__all__ = [
    "ServerErrorPayload",
    "classify_response",
    "classify_transport_error",
    "is_retryable_transport_error",
    "parse_error_body",
]

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from ..constants import DEFAULT_UNCLASSIFIED_STATUS, STATUS_POLICIES, TRANSACTION_ID_HEADER
from ..core.outcome import PermanentFailure, RetryableFailure, Signed, SigningOutcome

_logger = logging.getLogger(__name__)

_ERROR_BODY_FIELDS = frozenset(("error_code", "detail", "transaction_id"))

# One layer of escaping: \" -> " and \\ -> \
_ESCAPED_CHAR_PATTERN = re.compile(r"\\([\"\\])")


@dataclass(frozen=True)
class ServerErrorPayload:
    """Structured error body returned with non-200 statuses."""

    error_code: int | None = None
    detail: str | None = None
    transaction_id: str | None = None


# ── Error body ───────────────────────────────────────────────────────


def _unwrap_double_encoding(text: str) -> str:
    """Strip one layer of backslash escaping and one layer of quotes."""
    text = _ESCAPED_CHAR_PATTERN.sub(r"\1", text)
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        text = text[1:-1]
    return text


def _decode_json(text: str) -> Any:
    """Decode *text*, unwrapping a JSON document serialized as a JSON string."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return json.loads(_unwrap_double_encoding(text))
    if isinstance(value, str):
        return json.loads(value)
    return value


def _to_payload(value: Any) -> ServerErrorPayload:
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    unknown = set(value) - _ERROR_BODY_FIELDS
    if unknown:
        raise ValueError(f"unrecognized fields: {', '.join(sorted(unknown))}")

    error_code = value.get("error_code")
    if error_code is not None and (isinstance(error_code, bool) or not isinstance(error_code, int)):
        raise ValueError("error_code must be an integer")
    detail = value.get("detail")
    if detail is not None and not isinstance(detail, str):
        raise ValueError("detail must be a string")
    transaction_id = value.get("transaction_id")
    if transaction_id is not None and not isinstance(transaction_id, str):
        raise ValueError("transaction_id must be a string")

    return ServerErrorPayload(error_code=error_code, detail=detail, transaction_id=transaction_id)


def parse_error_body(body: bytes | str | None) -> ServerErrorPayload | None:
    """Decode a SignBox error body, best effort.

    Accepts the plain JSON form and the double-encoded form (the same
    JSON wrapped in quotes with escaped inner quotes).

    Never raises -- returns None when the body is empty or does not
    have the expected shape.
    """
    if not body:
        return None
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.strip()
    if not text:
        return None
    try:
        payload = _to_payload(_decode_json(text))
    except (ValueError, TypeError, RecursionError) as e:
        _logger.warning("Cannot decode error body: %s", e)
        return None
    _logger.debug("Decoded error body: %s", payload)
    return payload


# ── Status codes ─────────────────────────────────────────────────────


def _failure_reason(payload: ServerErrorPayload | None, reason_phrase: str, status_code: int) -> str:
    if payload is not None and payload.detail:
        return payload.detail
    return reason_phrase or f"HTTP {status_code}"


def classify_response(
    status_code: int,
    headers: Mapping[str, str] | httpx.Headers,
    body: bytes,
    *,
    reason_phrase: str = "",
    unclassified_status: str = DEFAULT_UNCLASSIFIED_STATUS,
    correlation_id: str | None = None,
) -> SigningOutcome:
    """Classify a received HTTP response.

    Args:
        status_code: HTTP status code.
        headers: Response headers (case-insensitive lookup).
        body: Full response body.
        reason_phrase: HTTP reason phrase, used when the body has no detail.
        unclassified_status: ``"retryable"`` or ``"permanent"``; applies to
            every status other than 200, 401 and 503.
        correlation_id: Id sent with the request; used for the outcome when
            neither the response header nor the body carries one.

    Returns:
        The outcome for this response.
    """
    if unclassified_status not in STATUS_POLICIES:
        raise ValueError(f"unclassified_status must be one of {STATUS_POLICIES}")

    transaction_id = httpx.Headers(headers).get(TRANSACTION_ID_HEADER)
    if not transaction_id:
        _logger.debug("Response carries no %s header", TRANSACTION_ID_HEADER)

    if status_code == 200:
        _logger.info(
            "Received response for request %s with status %d: %d bytes",
            transaction_id or correlation_id,
            status_code,
            len(body),
        )
        return Signed(document=body, transaction_id=transaction_id or correlation_id)

    payload = parse_error_body(body)
    reason = _failure_reason(payload, reason_phrase, status_code)
    if not transaction_id and payload is not None:
        transaction_id = payload.transaction_id
    transaction_id = transaction_id or correlation_id

    if status_code == 401:
        retryable = False
    elif status_code == 503:
        retryable = True
    else:
        retryable = unclassified_status == "retryable"

    if retryable:
        _logger.error(
            "Received temporary error status %d for request %s: %s",
            status_code,
            transaction_id,
            reason,
        )
        return RetryableFailure(reason=reason, status_code=status_code, transaction_id=transaction_id)

    _logger.error(
        "Received permanent error status %d for request %s: %s",
        status_code,
        transaction_id,
        reason,
    )
    return PermanentFailure(reason=reason, status_code=status_code, transaction_id=transaction_id)


# ── Transport failures ───────────────────────────────────────────────


def is_retryable_transport_error(exc: BaseException) -> bool:
    """Check if a failure before any response is transient.

    Timeouts (including waiting for a pooled connection) and I/O errors
    are transient; invalid URLs, unsupported schemes, malformed requests
    and programming errors are not.
    """
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, (httpx.NetworkError, httpx.RemoteProtocolError, httpx.ProxyError)):
        return True
    if isinstance(exc, httpx.HTTPError):
        return False
    return isinstance(exc, OSError)


def _transport_reason(exc: BaseException) -> str:
    if isinstance(exc, httpx.PoolTimeout):
        return "Timed out waiting for a connection to the signing service"
    if isinstance(exc, httpx.TimeoutException):
        return "Signing service did not respond in time"
    if isinstance(exc, httpx.ConnectError):
        return "Cannot connect to the signing service"
    if isinstance(exc, (httpx.NetworkError, httpx.RemoteProtocolError, OSError)):
        return "Connection to the signing service failed"
    return "Request to the signing service failed"


def classify_transport_error(
    exc: BaseException, *, correlation_id: str | None = None
) -> SigningOutcome:
    """Classify an exception raised before a response was received."""
    retryable = is_retryable_transport_error(exc)
    reason = _transport_reason(exc)
    _logger.error(
        "Request %s failed before a response (%s, retryable=%s): %s",
        correlation_id,
        type(exc).__name__,
        retryable,
        exc,
    )
    if retryable:
        return RetryableFailure(reason=reason, transaction_id=correlation_id)
    return PermanentFailure(reason=reason, transaction_id=correlation_id)
