# pylint: disable=missing-module-docstring,missing-function-docstring

from typing import Any

import pytest

from adapters.browser import (
    BrowserPermission,
    BrowserRecognition,
    BrowserSpeechOutput,
    parse_permission,
)
from orchestrator.capabilities import (
    PermissionCapability,
    RecognitionCapability,
    SpeechOutputCapability,
)
from orchestrator.enums.permission import PermissionState


def test_adapters_satisfy_capability_protocols() -> None:
    sink: list[dict[str, Any]] = []

    assert isinstance(BrowserRecognition(emit=sink.append, lang="en-US"), RecognitionCapability)
    assert isinstance(BrowserSpeechOutput(emit=sink.append), SpeechOutputCapability)
    assert isinstance(BrowserPermission(), PermissionCapability)


def test_recognition_emits_control_messages_and_routes_callbacks() -> None:
    sink: list[dict[str, Any]] = []
    results: list[str] = []
    errors: list[str] = []
    ends: list[bool] = []
    recognition = BrowserRecognition(emit=sink.append, lang="de-DE")
    recognition.bind(
        on_result=results.append,
        on_error=errors.append,
        on_end=lambda: ends.append(True),
    )

    recognition.start()
    recognition.stop()
    recognition.deliver_result("hallo")
    recognition.deliver_error("network")
    recognition.deliver_end()

    assert sink == [
        {"type": "RECOGNITION_START", "continuous": True, "interim_results": False, "lang": "de-DE"},
        {"type": "RECOGNITION_STOP"},
    ]
    assert results == ["hallo"]
    assert errors == ["network"]
    assert ends == [True]


def test_unbound_recognition_rejects_delivery() -> None:
    recognition = BrowserRecognition(emit=lambda _m: None, lang="en-US")

    with pytest.raises(RuntimeError):
        recognition.deliver_end()


def test_speech_output_cancel_names_last_utterance() -> None:
    sink: list[dict[str, Any]] = []
    speech = BrowserSpeechOutput(emit=sink.append, voice="Alex")

    speech.speak("hi", utterance_id=3)
    speech.cancel()

    assert sink == [
        {"type": "SPEAK", "text": "hi", "utterance_id": 3, "voice": "Alex"},
        {"type": "SPEECH_CANCEL", "utterance_id": 3},
    ]


def test_permission_reports_changes() -> None:
    seen: list[PermissionState] = []
    permission = BrowserPermission(initial=PermissionState.PROMPT)
    permission.bind(on_change=seen.append)

    assert permission.query() is PermissionState.PROMPT
    permission.deliver_change(PermissionState.DENIED)

    assert permission.query() is PermissionState.DENIED
    assert seen == [PermissionState.DENIED]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("granted", PermissionState.GRANTED),
        (" Denied ", PermissionState.DENIED),
        ("prompt", PermissionState.PROMPT),
        ("bogus", PermissionState.UNKNOWN),
        (None, PermissionState.UNKNOWN),
    ],
)
def test_parse_permission(raw: Any, expected: PermissionState) -> None:
    assert parse_permission(raw) is expected
