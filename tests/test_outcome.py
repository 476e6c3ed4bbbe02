"""Tests for signbox.core.outcome -- the signing result types."""

import dataclasses

import pytest

from signbox.core.outcome import PermanentFailure, RetryableFailure, Signed
from signbox.errors import SigningError


def test_signed_unwrap_returns_bytes():
    outcome = Signed(b"signed", transaction_id="t1")
    assert outcome.ok is True
    assert outcome.retryable is False
    assert outcome.unwrap() == b"signed"


def test_signed_repr_hides_content():
    outcome = Signed(b"x" * 2048, transaction_id="t1")
    assert "2048 bytes" in repr(outcome)
    assert "xxxx" not in repr(outcome)


def test_retryable_failure_unwrap_raises_retryable():
    outcome = RetryableFailure("overloaded", status_code=503, transaction_id="t1")
    assert outcome.ok is False
    assert outcome.retryable is True
    with pytest.raises(SigningError, match="overloaded") as exc_info:
        outcome.unwrap()
    assert exc_info.value.retryable is True
    assert exc_info.value.status_code == 503


def test_permanent_failure_unwrap_raises_permanent():
    outcome = PermanentFailure("Unauthorized", status_code=401)
    assert outcome.ok is False
    assert outcome.retryable is False
    with pytest.raises(SigningError) as exc_info:
        outcome.unwrap()
    assert exc_info.value.retryable is False


def test_outcomes_are_immutable():
    outcome = PermanentFailure("nope")
    with pytest.raises(dataclasses.FrozenInstanceError):
        outcome.reason = "changed"  # type: ignore[misc]


def test_outcomes_support_pattern_matching():
    def describe(outcome):
        match outcome:
            case Signed(document=doc):
                return f"signed {len(doc)}"
            case RetryableFailure(reason=reason):
                return f"retry: {reason}"
            case PermanentFailure(reason=reason):
                return f"give up: {reason}"

    assert describe(Signed(b"abc")) == "signed 3"
    assert describe(RetryableFailure("busy")) == "retry: busy"
    assert describe(PermanentFailure("bad")) == "give up: bad"
