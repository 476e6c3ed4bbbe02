"""Tests for signbox.network.classifier -- response and transport classification."""

from __future__ import annotations

import json

import httpx
import pytest

from signbox.constants import TRANSACTION_ID_HEADER
from signbox.core.outcome import PermanentFailure, RetryableFailure, Signed
from signbox.network.classifier import (
    ServerErrorPayload,
    classify_response,
    classify_transport_error,
    is_retryable_transport_error,
    parse_error_body,
)

OVERLOADED = {"error_code": 503, "detail": "Server overloaded", "transaction_id": "X"}


def _body(payload: dict) -> bytes:
    return json.dumps(payload).encode()


def _double_encoded(payload: dict) -> bytes:
    return json.dumps(json.dumps(payload)).encode()


# ── parse_error_body ─────────────────────────────────────────────────


def test_parse_error_body_plain():
    payload = parse_error_body(_body(OVERLOADED))
    assert payload == ServerErrorPayload(error_code=503, detail="Server overloaded", transaction_id="X")


def test_parse_error_body_double_encoded():
    assert parse_error_body(_double_encoded(OVERLOADED)).detail == "Server overloaded"


def test_parse_error_body_escaped_without_outer_quotes():
    body = b'{\\"error_code\\":503,\\"detail\\":\\"Server overloaded\\",\\"transaction_id\\":\\"X\\"}'
    assert parse_error_body(body).detail == "Server overloaded"


def test_parse_error_body_quoted_with_invalid_inner_escapes():
    # Quoted and escaped, but not a valid JSON string as a whole
    body = b'"{\\"error_code\\":503,\\"detail\\":\\"Server overloaded\\"}\n"'
    assert parse_error_body(body).detail == "Server overloaded"


def test_parse_error_body_partial_fields():
    payload = parse_error_body(b'{"detail": "Invalid file"}')
    assert payload == ServerErrorPayload(detail="Invalid file")


def test_parse_error_body_accepts_str():
    assert parse_error_body(json.dumps(OVERLOADED)).error_code == 503


@pytest.mark.parametrize(
    "body",
    [
        b"",
        None,
        b"   ",
        b"Service Unavailable",
        b"<html>oops</html>",
        b"[1, 2, 3]",
        b"null",
        b'"just a string"',
        b'{"status": 501, "detail": "Unexpected error"}',
        b'{"error_code": "503", "detail": "x"}',
        b'{"error_code": true, "detail": "x"}',
        b'{"error_code": 503, "detail": 42}',
        b'{"transaction_id": 7}',
    ],
)
def test_parse_error_body_rejects_unexpected_shapes(body):
    assert parse_error_body(body) is None


def test_parse_error_body_invalid_utf8_does_not_raise():
    assert parse_error_body(b"\xff\xfe\x00garbage") is None


# ── classify_response: status codes ──────────────────────────────────


def test_200_returns_exact_body():
    body = bytes(range(256)) * 3
    outcome = classify_response(200, {TRANSACTION_ID_HEADER: "t1"}, body)
    assert outcome == Signed(document=body, transaction_id="t1")


def test_200_body_is_not_interpreted():
    body = _body(OVERLOADED)
    outcome = classify_response(200, {}, body)
    assert isinstance(outcome, Signed)
    assert outcome.document == body


@pytest.mark.parametrize("body", [b"", b"garbage", _body(OVERLOADED), _double_encoded(OVERLOADED)])
def test_401_always_permanent(body):
    outcome = classify_response(401, {}, body, reason_phrase="Unauthorized")
    assert isinstance(outcome, PermanentFailure)
    assert outcome.status_code == 401


def test_401_permanent_even_with_retryable_policy_and_503_body():
    outcome = classify_response(
        401, {}, _body(OVERLOADED), reason_phrase="Unauthorized", unclassified_status="retryable"
    )
    assert isinstance(outcome, PermanentFailure)
    assert outcome.reason == "Server overloaded"


@pytest.mark.parametrize("body", [b"", b"garbage", _body(OVERLOADED), _double_encoded(OVERLOADED)])
def test_503_always_retryable(body):
    outcome = classify_response(503, {}, body, reason_phrase="Service Unavailable")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.status_code == 503


def test_503_retryable_even_with_permanent_policy():
    outcome = classify_response(503, {}, b"", unclassified_status="permanent")
    assert isinstance(outcome, RetryableFailure)


@pytest.mark.parametrize("status", [400, 403, 404, 409, 500, 501, 502, 504])
def test_unclassified_status_default_retryable(status):
    outcome = classify_response(status, {}, b"")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.status_code == status


@pytest.mark.parametrize("status", [400, 404, 500, 501])
def test_unclassified_status_permanent_policy(status):
    outcome = classify_response(status, {}, b"", unclassified_status="permanent")
    assert isinstance(outcome, PermanentFailure)


def test_invalid_policy_rejected():
    with pytest.raises(ValueError, match="unclassified_status"):
        classify_response(500, {}, b"", unclassified_status="sometimes")


def test_body_error_code_does_not_override_status():
    body = _body({"error_code": 401, "detail": "Invalid file", "transaction_id": "t"})
    outcome = classify_response(400, {}, body, reason_phrase="Bad Request")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.reason == "Invalid file"


# ── classify_response: reason enrichment ─────────────────────────────


def test_reason_from_plain_body():
    outcome = classify_response(503, {}, _body(OVERLOADED), reason_phrase="Service Unavailable")
    assert outcome.reason == "Server overloaded"


def test_reason_from_double_encoded_body():
    outcome = classify_response(
        503, {}, _double_encoded(OVERLOADED), reason_phrase="Service Unavailable"
    )
    assert outcome.reason == "Server overloaded"


def test_reason_falls_back_to_reason_phrase_on_malformed_body():
    body = b'{\n    "status": 501,\n    "detail": "Unexpected error"\n}\n'
    outcome = classify_response(503, {}, body, reason_phrase="Service Unavailable")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.reason == "Service Unavailable"


def test_reason_falls_back_when_detail_empty():
    body = _body({"error_code": 500, "detail": "", "transaction_id": "t"})
    outcome = classify_response(500, {}, body, reason_phrase="Internal Server Error")
    assert outcome.reason == "Internal Server Error"


def test_reason_falls_back_to_status_when_no_phrase():
    outcome = classify_response(599, {}, b"")
    assert outcome.reason == "HTTP 599"


# ── classify_response: correlation ───────────────────────────────────


def test_transaction_id_header_case_insensitive():
    outcome = classify_response(200, {"x-signbox-transaction-id": "abc"}, b"ok")
    assert outcome.transaction_id == "abc"


def test_transaction_id_from_httpx_headers():
    headers = httpx.Headers({TRANSACTION_ID_HEADER: "abc"})
    outcome = classify_response(503, headers, b"")
    assert outcome.transaction_id == "abc"


def test_missing_transaction_id_header_tolerated():
    outcome = classify_response(200, {}, b"ok")
    assert outcome == Signed(b"ok", transaction_id=None)


def test_missing_header_uses_request_correlation_id():
    outcome = classify_response(200, {}, b"ok", correlation_id="req-1")
    assert outcome.transaction_id == "req-1"


def test_missing_header_uses_body_transaction_id():
    outcome = classify_response(503, {}, _body(OVERLOADED), correlation_id="req-1")
    assert outcome.transaction_id == "X"


def test_header_wins_over_body_transaction_id():
    outcome = classify_response(503, {TRANSACTION_ID_HEADER: "hdr"}, _body(OVERLOADED))
    assert outcome.transaction_id == "hdr"


# ── Transport errors ─────────────────────────────────────────────────


_REQUEST = httpx.Request("POST", "https://signbox.example.com/api/sign")


@pytest.mark.parametrize(
    "exc",
    [
        httpx.ConnectTimeout("timed out", request=_REQUEST),
        httpx.ReadTimeout("timed out", request=_REQUEST),
        httpx.WriteTimeout("timed out", request=_REQUEST),
        httpx.PoolTimeout("no connection", request=_REQUEST),
        httpx.ConnectError("refused", request=_REQUEST),
        httpx.ReadError("reset", request=_REQUEST),
        httpx.WriteError("broken pipe", request=_REQUEST),
        httpx.RemoteProtocolError("peer closed", request=_REQUEST),
        ConnectionResetError("reset"),
        TimeoutError("timed out"),
    ],
)
def test_transport_errors_retryable(exc):
    assert is_retryable_transport_error(exc) is True
    outcome = classify_transport_error(exc, correlation_id="req-1")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.status_code is None
    assert outcome.transaction_id == "req-1"


@pytest.mark.parametrize(
    "exc",
    [
        httpx.UnsupportedProtocol("missing protocol", request=_REQUEST),
        httpx.LocalProtocolError("bad header", request=_REQUEST),
        httpx.InvalidURL("bad url"),
        ValueError("programming error"),
        TypeError("wrong type"),
        RuntimeError("Connection pool is closed"),
    ],
)
def test_other_errors_permanent(exc):
    assert is_retryable_transport_error(exc) is False
    assert isinstance(classify_transport_error(exc), PermanentFailure)


def test_pool_timeout_reason():
    outcome = classify_transport_error(httpx.PoolTimeout("x", request=_REQUEST))
    assert "waiting for a connection" in outcome.reason


def test_transport_reason_hides_socket_details():
    outcome = classify_transport_error(
        httpx.ConnectError("[Errno 111] Connection refused on fd 7", request=_REQUEST)
    )
    assert outcome.reason == "Cannot connect to the signing service"


def test_transport_reason_hides_internal_messages():
    outcome = classify_transport_error(RuntimeError("Connection pool is closed"))
    assert outcome.reason == "Request to the signing service failed"


# ── Hostile bodies ───────────────────────────────────────────────────


DEEPLY_NESTED = b"[" * 200_000


def test_parse_error_body_deep_nesting_returns_none():
    assert parse_error_body(DEEPLY_NESTED) is None


def test_deeply_nested_body_still_classified():
    outcome = classify_response(503, {}, DEEPLY_NESTED, reason_phrase="Service Unavailable")
    assert isinstance(outcome, RetryableFailure)
    assert outcome.reason == "Service Unavailable"
