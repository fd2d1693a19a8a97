# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
import json
from typing import Any

import pytest

import session.gateway as gateway_mod
from config import AppConfig
from session.gateway import SessionGateway


def make_config(**overrides: Any) -> AppConfig:
    values: dict[str, Any] = {
        "env": "test",
        "log_level": "INFO",
        "enable_json_logs": True,
        "recognition_lang": "en-US",
        "restart_backoff_ms": 5,
        "processing_delay_ms": 10,
        "speech_voice": None,
        "cors_allow_origins": ("*",),
    }
    values.update(overrides)
    return AppConfig(**values)


CAPABILITIES = {
    "type": "CAPABILITIES",
    "recognition": True,
    "speech_synthesis": True,
    "permissions": True,
    "permission_state": "granted",
}


def types(messages: tuple[dict[str, Any], ...]) -> list[str]:
    return [m["type"] for m in messages]


async def send(gw: SessionGateway, msg: dict[str, Any]) -> tuple[dict[str, Any], ...]:
    result = await gw.on_json_message(json.dumps(msg))
    return result.outbound_json


async def connected(gw: SessionGateway) -> None:
    await gw.on_ws_connect()
    await send(gw, CAPABILITIES)


def test_connect_sends_session_init() -> None:
    gw = SessionGateway(config=make_config(speech_voice="Samantha"))

    result = asyncio.run(gw.on_ws_connect())

    (init,) = result.outbound_json
    assert init["type"] == "SESSION_INIT"
    assert init["session_id"].startswith("voice_")
    assert init["config"] == {"lang": "en-US", "voice": "Samantha"}


def test_controls_before_capabilities_are_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(gateway_mod, "log_event", emitted.append)

    async def scenario() -> tuple[dict[str, Any], ...]:
        gw = SessionGateway(config=make_config())
        await gw.on_ws_connect()
        return await send(gw, {"type": "MIC_START"})

    assert asyncio.run(scenario()) == ()
    assert any(e["event_type"] == "ORCHESTRATOR_NOT_READY" for e in emitted)


def test_capabilities_then_mic_start_requests_recognition() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config(recognition_lang="en-GB"))
        await gw.on_ws_connect()

        out = await send(gw, CAPABILITIES)
        assert types(out) == ["STATUS"]
        assert out[0]["microphone_status"] == "idle"
        assert out[0]["permission"] == "granted"

        out = await send(gw, {"type": "MIC_START"})
        assert types(out) == ["RECOGNITION_START", "STATUS"]
        assert out[0] == {
            "type": "RECOGNITION_START",
            "continuous": True,
            "interim_results": False,
            "lang": "en-GB",
        }
        assert out[-1]["microphone_status"] == "listening"

        await gw.on_ws_disconnect(reason="test")

    asyncio.run(scenario())


def test_recognition_result_dispatches_command_and_speaks() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config())
        await connected(gw)
        await send(gw, {"type": "MIC_START"})

        out = await send(gw, {"type": "RECOGNITION_RESULT", "text": "please place cone here"})

        assert types(out)[:2] == ["COMMAND", "SPEAK"]
        assert out[0] == {
            "type": "COMMAND",
            "token": "place-cone",
            "params": {"type": "warning"},
        }
        assert out[1]["text"] == "Placing warning cone at current location"
        assert out[1]["voice"] is None
        assert out[-1]["type"] == "STATUS"
        assert out[-1]["microphone_status"] == "processing"
        assert out[-1]["command_history"] == ["please place cone here"]

        utterance_id = out[1]["utterance_id"]
        out = await send(gw, {"type": "SPEECH_START", "utterance_id": utterance_id})
        assert out[-1]["is_speaking"] is True

        out = await send(gw, {"type": "SPEECH_END", "utterance_id": utterance_id})
        assert out[-1]["is_speaking"] is False

        await gw.on_ws_disconnect(reason="test")

    asyncio.run(scenario())


def test_timer_driven_restart_is_queued_for_the_pump() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config())
        await connected(gw)
        await send(gw, {"type": "MIC_START"})
        await send(gw, {"type": "RECOGNITION_END"})

        assert gw.session is not None
        await asyncio.wait_for(gw.session.wait_for_control(), timeout=1.0)
        out = gw.drain_outbound()

        assert types(out.outbound_json) == ["RECOGNITION_START", "STATUS"]
        await gw.on_ws_disconnect(reason="test")

    asyncio.run(scenario())


def test_permission_change_to_denied_stops_recognition() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config())
        await connected(gw)
        await send(gw, {"type": "MIC_START"})

        out = await send(gw, {"type": "PERMISSION_CHANGE", "state": "denied"})

        assert "RECOGNITION_STOP" in types(out)
        assert out[-1]["microphone_status"] == "permission-denied"
        assert out[-1]["permission"] == "denied"
        await gw.on_ws_disconnect(reason="test")

    asyncio.run(scenario())


def test_missing_capability_reports_unsupported() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config())
        await gw.on_ws_connect()

        out = await send(gw, {**CAPABILITIES, "speech_synthesis": False})
        assert types(out) == ["VOICE_UNSUPPORTED", "STATUS"]
        assert out[0]["reason"] == "missing:speech_synthesis"
        assert out[-1]["microphone_status"] == "unsupported"

        out = await send(gw, {"type": "MIC_START"})
        assert types(out) == ["STATUS"]

    asyncio.run(scenario())


@pytest.mark.parametrize(
    "stray",
    [
        {"type": "SPEECH_START", "utterance_id": 1},
        {"type": "SPEECH_END", "utterance_id": 1},
        {"type": "RECOGNITION_RESULT", "text": "place cone"},
        {"type": "RECOGNITION_ERROR", "code": "network"},
        {"type": "RECOGNITION_END"},
    ],
)
def test_unsupported_session_drops_capability_callbacks(
    monkeypatch: pytest.MonkeyPatch, stray: dict[str, Any]
) -> None:
    emitted: list[dict[str, Any]] = []

    async def scenario() -> tuple[dict[str, Any], ...]:
        gw = SessionGateway(config=make_config())
        await gw.on_ws_connect()
        # Only one of the two capabilities: its adapter exists but is never bound
        await send(gw, {**CAPABILITIES, "recognition": False})
        monkeypatch.setattr(gateway_mod, "log_event", emitted.append)
        return await send(gw, stray)

    assert asyncio.run(scenario()) == ()
    assert [e["event_type"] for e in emitted] == ["CAPABILITY_NOT_BOUND"]
    assert emitted[0]["msg_type"] == stray["type"]


@pytest.mark.parametrize(
    "payload, event_type",
    [
        ("not json", "JSON_DECODE_ERROR"),
        ("[1, 2]", "MALFORMED_MESSAGE"),
        (json.dumps({"type": "WHAT"}), "UNKNOWN_MESSAGE_TYPE"),
        (json.dumps({"type": "RECOGNITION_RESULT"}), "MALFORMED_MESSAGE"),
        (json.dumps({"type": "SPEECH_END", "utterance_id": True}), "MALFORMED_MESSAGE"),
    ],
)
def test_bad_messages_are_logged_and_dropped(
    monkeypatch: pytest.MonkeyPatch, payload: str, event_type: str
) -> None:
    emitted: list[dict[str, Any]] = []

    async def scenario() -> tuple[dict[str, Any], ...]:
        gw = SessionGateway(config=make_config())
        await connected(gw)
        monkeypatch.setattr(gateway_mod, "log_event", emitted.append)
        result = await gw.on_json_message(payload)
        return result.outbound_json

    assert asyncio.run(scenario()) == ()
    assert [e["event_type"] for e in emitted] == [event_type]


def test_disconnect_tears_down_and_stops_recognition() -> None:
    async def scenario() -> None:
        gw = SessionGateway(config=make_config())
        await connected(gw)
        await send(gw, {"type": "MIC_START"})

        result = await gw.on_ws_disconnect(reason="client_disconnect")

        assert "RECOGNITION_STOP" in types(result.outbound_json)
        assert gw.session is not None
        assert gw.session.connection_status.value == "DOWN"

        # Late notifications after teardown are harmless
        out = await send(gw, {"type": "RECOGNITION_END"})
        assert "RECOGNITION_START" not in types(out)

    asyncio.run(scenario())


def test_disconnect_without_session_is_logged(monkeypatch: pytest.MonkeyPatch) -> None:
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(gateway_mod, "log_event", emitted.append)

    result = asyncio.run(SessionGateway(config=make_config()).on_ws_disconnect())

    assert result.outbound_json == ()
    assert emitted[0]["event_type"] == "WS_DISCONNECT_WITHOUT_SESSION"
