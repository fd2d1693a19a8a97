# pylint: disable=missing-module-docstring,missing-function-docstring

import json
from typing import Any

import pytest

from observability import logger


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    monkeypatch.setattr(logger, "_json_lines", True)
    return lines


def test_log_event_emits_valid_jsonl(captured: list[str]) -> None:
    """
    - log_event emits exactly one JSONL line
    - payload is serialized as-is
    - output sink is patchable
    """
    payload: dict[str, Any] = {
        "ts_ms": 1,
        "event_type": "TEST",
        "value": 123,
    }

    logger.log_event(payload)

    assert len(captured) == 1
    assert json.loads(captured[0]) == payload


def test_missing_timestamp_is_filled_without_mutating_caller(captured: list[str]) -> None:
    payload: dict[str, Any] = {"event_type": "TEST"}

    logger.log_event(payload)

    decoded = json.loads(captured[0])
    assert isinstance(decoded["ts_ms"], int)
    assert "ts_ms" not in payload


def test_unserializable_payload_never_raises(captured: list[str]) -> None:
    logger.log_event({"ts_ms": 5, "event_type": "TEST", "bad": object()})

    decoded = json.loads(captured[0])
    assert decoded["event_type"] == "LOGGER_SERIALIZATION_ERROR"
    assert decoded["ts_ms"] == 5


def test_plain_format(captured: list[str]) -> None:
    logger.configure(json_lines=False)
    try:
        logger.log_event({"ts_ms": 9, "event_type": "TEST", "value": "x"})
    finally:
        logger.configure(json_lines=True)

    assert captured == ["TEST ts_ms=9 value='x'"]
