"""
Browser bridge adapters.

The recognizer, the synthesizer and the permission query all live in the
browser (Web Speech API + Permissions API). These adapters satisfy the
capability Protocols on the server side by translating:

- control calls (start/stop/speak/cancel) -> outbound JSON control messages
- inbound JSON notifications -> bound callbacks (deliver_* methods)

Non-responsibilities:
- No state machine logic
- No retries or timers
- No interpretation of transcripts
- No direct interaction with the WebSocket (messages go through `emit`)
"""

from __future__ import annotations

from typing import Any, Callable

from orchestrator.capabilities import (
    EndHandler,
    ErrorHandler,
    PermissionHandler,
    ResultHandler,
    UtteranceHandler,
)
from orchestrator.enums.permission import PermissionState
from spec import RECOGNITION_CONTINUOUS, RECOGNITION_INTERIM_RESULTS


ControlSink = Callable[[dict[str, Any]], None]


class BrowserRecognition:
    """RecognitionCapability backed by the browser's SpeechRecognition."""

    def __init__(
        self,
        *,
        emit: ControlSink,
        lang: str,
        interim_results: bool = RECOGNITION_INTERIM_RESULTS,
    ) -> None:
        self.continuous = RECOGNITION_CONTINUOUS
        self._emit = emit
        self._lang = lang
        self._interim_results = interim_results

        self._on_result: ResultHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_end: EndHandler | None = None

    def bind(
        self,
        *,
        on_result: ResultHandler,
        on_error: ErrorHandler,
        on_end: EndHandler,
    ) -> None:
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def start(self) -> None:
        self._emit({
            "type": "RECOGNITION_START",
            "continuous": self.continuous,
            "interim_results": self._interim_results,
            "lang": self._lang,
        })

    def stop(self) -> None:
        self._emit({"type": "RECOGNITION_STOP"})

    # ------------------------------------------------------------------
    # Inbound (called by SessionGateway)
    # ------------------------------------------------------------------

    def deliver_result(self, text: str) -> None:
        if self._on_result is None:
            raise RuntimeError("BrowserRecognition used before bind()")
        self._on_result(text)

    def deliver_error(self, code: str) -> None:
        if self._on_error is None:
            raise RuntimeError("BrowserRecognition used before bind()")
        self._on_error(code)

    def deliver_end(self) -> None:
        if self._on_end is None:
            raise RuntimeError("BrowserRecognition used before bind()")
        self._on_end()


class BrowserSpeechOutput:
    """SpeechOutputCapability backed by the browser's speechSynthesis."""

    def __init__(self, *, emit: ControlSink, voice: str | None = None) -> None:
        self._emit = emit
        self._voice = voice
        self._last_utterance_id: int | None = None

        self._on_start: UtteranceHandler | None = None
        self._on_end: UtteranceHandler | None = None

    def bind(self, *, on_start: UtteranceHandler, on_end: UtteranceHandler) -> None:
        self._on_start = on_start
        self._on_end = on_end

    def speak(self, text: str, *, utterance_id: int) -> None:
        self._last_utterance_id = utterance_id
        # voice=None lets the browser pick its first available voice
        self._emit({
            "type": "SPEAK",
            "text": text,
            "utterance_id": utterance_id,
            "voice": self._voice,
        })

    def cancel(self) -> None:
        self._emit({
            "type": "SPEECH_CANCEL",
            "utterance_id": self._last_utterance_id,
        })

    def deliver_start(self, utterance_id: int) -> None:
        if self._on_start is None:
            raise RuntimeError("BrowserSpeechOutput used before bind()")
        self._on_start(utterance_id)

    def deliver_end(self, utterance_id: int) -> None:
        if self._on_end is None:
            raise RuntimeError("BrowserSpeechOutput used before bind()")
        self._on_end(utterance_id)


class BrowserPermission:
    """
    PermissionCapability fed by the browser's Permissions API.

    The browser reports the initial state in CAPABILITIES and every later
    change in PERMISSION_CHANGE; query() answers from the last report.
    """

    def __init__(self, *, initial: PermissionState = PermissionState.UNKNOWN) -> None:
        self._state = initial
        self._on_change: PermissionHandler | None = None

    def query(self) -> PermissionState:
        return self._state

    def bind(self, *, on_change: PermissionHandler) -> None:
        self._on_change = on_change

    def deliver_change(self, state: PermissionState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)


def parse_permission(raw: Any) -> PermissionState:
    """Map a Permissions API state string; anything else is UNKNOWN."""
    try:
        return PermissionState(str(raw).strip().lower())
    except ValueError:
        return PermissionState.UNKNOWN
