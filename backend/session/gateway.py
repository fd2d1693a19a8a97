"""
Session gateway.

Responsibilities:
- Owns VoiceSession lifecycle
- Tracks connection_status independently of the controller state
- Builds the SessionOrchestrator once the browser reports its capabilities
- Routes inbound JSON messages -> controller operations / adapter callbacks
- Drains outbound control messages and appends the status feed

NOT responsible for:
- Any state machine logic (RecognitionSession + reducer)
- Transcript interpretation
- Socket I/O (server.routes)
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, TYPE_CHECKING
from uuid import uuid4

from adapters.browser import (
    BrowserPermission,
    BrowserRecognition,
    BrowserSpeechOutput,
    parse_permission,
)
from observability.logger import log_event
from session.connection_status import ConnectionStatus
from session.orchestrator import SessionOrchestrator, VoiceStatus
from session.voice_session import VoiceSession
from spec import PAYLOAD_PREVIEW_CHARS, SESSION_ID_PREFIX

if TYPE_CHECKING:
    from config import AppConfig


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"{SESSION_ID_PREFIX}{uuid4().hex[:12]}"


def _status_message(status: VoiceStatus) -> dict[str, Any]:
    return {"type": "STATUS", **status.to_dict()}


class MalformedMessage(ValueError):
    """A known message type with a missing or mistyped field."""


# Browser-side capability notifications; only meaningful once the
# orchestrator has bound the adapters.
CAPABILITY_CALLBACK_TYPES = frozenset({
    "RECOGNITION_RESULT",
    "RECOGNITION_ERROR",
    "RECOGNITION_END",
    "SPEECH_START",
    "SPEECH_END",
})


def _require(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    # bool is an int subclass; utterance ids must be real ints
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise MalformedMessage(f"{key} must be {kind.__name__}")
    return value


# ------------------------------------------------------------------
# Gateway result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayResult:
    """
    Return value for gateway boundary methods.

    outbound_json:
        JSON messages to send to client, in order
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """One gateway == one WebSocket == one voice command session."""

    def __init__(self, *, config: AppConfig) -> None:
        self._config = config
        self.session: VoiceSession | None = None

        self._handlers: dict[str, Callable[[SessionOrchestrator, dict[str, Any]], None]] = {
            "MIC_START": lambda orch, _data: orch.start(),
            "MIC_STOP": lambda orch, _data: orch.stop(),
            "SPEECH_CANCEL": lambda orch, _data: orch.cancel_speech(),
            "RECOGNITION_RESULT": self._on_recognition_result,
            "RECOGNITION_ERROR": self._on_recognition_error,
            "RECOGNITION_END": self._on_recognition_end,
            "SPEECH_START": self._on_speech_start,
            "SPEECH_END": self._on_speech_end,
            "PERMISSION_CHANGE": self._on_permission_change,
            "SESSION_END": lambda _orch, _data: self._teardown("session_end"),
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> GatewayResult:
        """Called when a WebSocket connection is established."""
        session_id = _new_session_id()

        self.session = VoiceSession(session_id=session_id)
        self.session.connection_status = ConnectionStatus.UP

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "WS_CONNECTED",
            **self.session.log_context(),
        })

        init_msg: dict[str, Any] = {
            "type": "SESSION_INIT",
            "session_id": session_id,
            "config": {
                "lang": self._config.recognition_lang,
                "voice": self._config.speech_voice,
            },
        }
        return GatewayResult(outbound_json=(init_msg,))

    async def on_ws_disconnect(self, reason: str | None = None) -> GatewayResult:
        """Called when the WebSocket disconnects. Never raises."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return GatewayResult()

        self._teardown(reason or "disconnect")

        orchestrator = self.session.orchestrator
        if orchestrator is not None:
            session_runtime = orchestrator.session
            if session_runtime is not None:
                await session_runtime.shutdown()

        self.session.connection_status = ConnectionStatus.DOWN
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "WS_DISCONNECTED",
            "reason": reason,
            **self.session.log_context(),
        })

        return GatewayResult(outbound_json=self.session.drain_control())

    # ------------------------------------------------------------------
    # Inbound JSON
    # ------------------------------------------------------------------

    async def on_json_message(self, payload: str) -> GatewayResult:
        """Route inbound JSON; unknown or malformed messages are logged and dropped."""
        if self.session is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:PAYLOAD_PREVIEW_CHARS],
            })
            return GatewayResult()

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "JSON_DECODE_ERROR",
                "session_id": self.session.session_id,
                "error": str(e),
                "payload_preview": payload[:PAYLOAD_PREVIEW_CHARS],
            })
            return GatewayResult()

        if not isinstance(data, dict):
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MALFORMED_MESSAGE",
                "session_id": self.session.session_id,
                "error": "payload is not an object",
            })
            return GatewayResult()

        msg_type = data.get("type")

        if msg_type == "CAPABILITIES":
            self._on_capabilities(data)
            return self.drain_outbound(include_status=True)

        handler = self._handlers.get(msg_type) if isinstance(msg_type, str) else None
        if handler is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "UNKNOWN_MESSAGE_TYPE",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        orchestrator = self.session.orchestrator
        if orchestrator is None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "ORCHESTRATOR_NOT_READY",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        if msg_type in CAPABILITY_CALLBACK_TYPES and not orchestrator.supported:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "CAPABILITY_NOT_BOUND",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
            })
            return GatewayResult()

        try:
            handler(orchestrator, data)
        except MalformedMessage as e:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "MALFORMED_MESSAGE",
                "msg_type": msg_type,
                "session_id": self.session.session_id,
                "error": str(e),
            })
            return GatewayResult()

        return self.drain_outbound(include_status=True)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def drain_outbound(self, *, include_status: bool = False) -> GatewayResult:
        """
        Drain queued control messages.

        The status feed is appended when requested or whenever something
        was drained, so the client always sees the latest snapshot last.
        """
        if self.session is None:
            return GatewayResult()

        messages = self.session.drain_control()
        orchestrator = self.session.orchestrator
        if orchestrator is not None and (messages or include_status):
            status = _status_message(orchestrator.status())
            if not messages or messages[-1] != status:
                messages = messages + (status,)
        return GatewayResult(outbound_json=messages)

    # ------------------------------------------------------------------
    # Controller construction
    # ------------------------------------------------------------------

    def _on_capabilities(self, data: dict[str, Any]) -> None:
        session = self.session
        assert session is not None

        if session.orchestrator is not None:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "CAPABILITIES_REPEATED",
                "session_id": session.session_id,
            })
            return

        if data.get("recognition"):
            session.recognition = BrowserRecognition(
                emit=session.enqueue_control,
                lang=self._config.recognition_lang,
            )
        if data.get("speech_synthesis"):
            session.speech_output = BrowserSpeechOutput(
                emit=session.enqueue_control,
                voice=self._config.speech_voice,
            )
        if data.get("permissions"):
            session.permission = BrowserPermission(
                initial=parse_permission(data.get("permission_state")),
            )

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "CAPABILITIES_RECEIVED",
            "session_id": session.session_id,
            "recognition": session.recognition is not None,
            "speech_synthesis": session.speech_output is not None,
            "permissions": session.permission is not None,
        })

        orchestrator = SessionOrchestrator(
            session_id=session.session_id,
            recognizer=session.recognition,
            synthesizer=session.speech_output,
            permission_source=session.permission,
            on_command=self._on_command,
            on_unsupported=self._on_unsupported,
            on_status_change=self._on_status_change,
            restart_backoff_ms=self._config.restart_backoff_ms,
            processing_delay_ms=self._config.processing_delay_ms,
        )
        session.attach_orchestrator(orchestrator)

    # ------------------------------------------------------------------
    # Host-side callbacks (controller -> client)
    # ------------------------------------------------------------------

    def _on_command(self, token: str, params: dict[str, Any] | None) -> None:
        assert self.session is not None
        self.session.enqueue_control({
            "type": "COMMAND",
            "token": token,
            "params": params,
        })

    def _on_unsupported(self, reason: str) -> None:
        assert self.session is not None
        self.session.enqueue_control({
            "type": "VOICE_UNSUPPORTED",
            "reason": reason,
        })

    def _on_status_change(self, status: VoiceStatus) -> None:
        assert self.session is not None
        self.session.enqueue_control(_status_message(status))

    # ------------------------------------------------------------------
    # Inbound routing (client -> adapters)
    # ------------------------------------------------------------------

    def _on_recognition_result(self, _orch: SessionOrchestrator, data: dict[str, Any]) -> None:
        text = _require(data, "text", str)
        recognition = self._recognition()
        if recognition is not None:
            recognition.deliver_result(text)

    def _on_recognition_error(self, _orch: SessionOrchestrator, data: dict[str, Any]) -> None:
        code = _require(data, "code", str)
        recognition = self._recognition()
        if recognition is not None:
            recognition.deliver_error(code)

    def _on_recognition_end(self, _orch: SessionOrchestrator, _data: dict[str, Any]) -> None:
        recognition = self._recognition()
        if recognition is not None:
            recognition.deliver_end()

    def _on_speech_start(self, _orch: SessionOrchestrator, data: dict[str, Any]) -> None:
        utterance_id = _require(data, "utterance_id", int)
        speech_output = self._speech_output()
        if speech_output is not None:
            speech_output.deliver_start(utterance_id)

    def _on_speech_end(self, _orch: SessionOrchestrator, data: dict[str, Any]) -> None:
        utterance_id = _require(data, "utterance_id", int)
        speech_output = self._speech_output()
        if speech_output is not None:
            speech_output.deliver_end(utterance_id)

    def _on_permission_change(self, _orch: SessionOrchestrator, data: dict[str, Any]) -> None:
        state = parse_permission(_require(data, "state", str))
        if self.session is not None and self.session.permission is not None:
            self.session.permission.deliver_change(state)

    def _recognition(self) -> BrowserRecognition | None:
        return self.session.recognition if self.session is not None else None

    def _speech_output(self) -> BrowserSpeechOutput | None:
        return self.session.speech_output if self.session is not None else None

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _teardown(self, reason: str) -> None:
        """Tear the controller down; failures are logged, never raised."""
        if self.session is None or self.session.orchestrator is None:
            return
        try:
            self.session.orchestrator.teardown()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "TEARDOWN_FAILED",
                "session_id": self.session.session_id,
                "reason": reason,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
