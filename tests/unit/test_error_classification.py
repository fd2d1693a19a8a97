# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from orchestrator.enums.error_kind import ErrorKind
from orchestrator.errors import (
    PERMISSION_DENIED_MESSAGE,
    UNSUPPORTED_MESSAGE,
    classify,
    unsupported,
)


@pytest.mark.parametrize("code", ["not-allowed", "service-not-allowed", "permission-denied"])
def test_consent_codes_are_fatal(code: str) -> None:
    event = classify(code)

    assert event.kind is ErrorKind.PERMISSION
    assert event.recoverable is False
    assert event.message == PERMISSION_DENIED_MESSAGE
    assert event.raw_code == code


def test_codes_are_normalized_before_lookup() -> None:
    assert classify("  Not-Allowed ").kind is ErrorKind.PERMISSION
    assert classify("NO-SPEECH").message == "No speech detected. Still listening."


@pytest.mark.parametrize(
    "code, message",
    [
        ("no-speech", "No speech detected. Still listening."),
        ("network", "Network error during recognition. Retrying."),
        ("audio-capture", "No microphone input detected. Check your microphone."),
        ("aborted", "Recognition was interrupted."),
    ],
)
def test_known_transient_codes(code: str, message: str) -> None:
    event = classify(code)

    assert event.kind is ErrorKind.TRANSIENT
    assert event.recoverable is True
    assert event.message == message


def test_unknown_code_is_transient_and_named_in_message() -> None:
    event = classify("bad-grammar")

    assert event.kind is ErrorKind.TRANSIENT
    assert event.recoverable is True
    assert event.message == "Speech recognition error: bad-grammar"


def test_empty_code_is_transient() -> None:
    event = classify("")

    assert event.kind is ErrorKind.TRANSIENT
    assert event.message == "Speech recognition error: unknown"


def test_unsupported_event() -> None:
    event = unsupported("missing:recognition")

    assert event.kind is ErrorKind.UNSUPPORTED
    assert event.recoverable is False
    assert event.raw_code == "missing:recognition"
    assert event.message == UNSUPPORTED_MESSAGE
