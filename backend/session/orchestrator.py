"""
Voice command session orchestrator.

Wires the controller together:
- PermissionMonitor -> RecognitionSession (permission changes)
- RecognitionSession -> CommandInterpreter -> CommandDispatcher (host)
- CommandInterpreter -> ResponseSpeaker (spoken acknowledgment)

Owns:
- CommandHistory (shared with the dispatcher)
- The read-only status feed
- Teardown with guaranteed release of every held resource

Nothing here raises to the host during normal operation; the host observes
the status feed and receives command events.
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import asdict, dataclass
from typing import Any, Callable

from context.history import CommandHistory
from observability.logger import log_event
from orchestrator.capabilities import (
    PermissionCapability,
    RecognitionCapability,
    SpeechOutputCapability,
)
from orchestrator.enums.state import SessionState
from orchestrator.errors import ErrorEvent, unsupported
from orchestrator.recognition_session import RecognitionSession, TranscriptEvent
from orchestrator.state_dataclass import SessionSnapshot
from spec import PROCESSING_ACK_DELAY_MS, RESTART_BACKOFF_MS
from voice.dispatcher import CommandDispatcher, HostCallback
from voice.interpreter import CommandToken, interpret
from voice.permission import PermissionMonitor
from voice.prompts import acknowledgment_for
from voice.speaker import ResponseSpeaker


MICROPHONE_STATUS = {
    SessionState.IDLE: "idle",
    SessionState.LISTENING: "listening",
    SessionState.PROCESSING: "processing",
    SessionState.ERROR: "error",
    SessionState.PERMISSION_DENIED: "permission-denied",
}
MICROPHONE_UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class VoiceStatus:
    """Read-only status feed for the host."""
    microphone_status: str
    permission: str
    is_speaking: bool
    last_command: str | None
    command_history: tuple[str, ...]
    error_message: str | None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["command_history"] = list(self.command_history)
        return data


class SessionOrchestrator:
    """
    One orchestrator == one voice command session.

    If either the recognition or the speech-output capability is missing
    the feature is disabled at construction: the host is told once through
    on_unsupported, start() is a logged no-op, and the status feed reports
    "unsupported".
    """

    def __init__(
        self,
        *,
        session_id: str,
        recognizer: RecognitionCapability | None,
        synthesizer: SpeechOutputCapability | None,
        permission_source: PermissionCapability | None,
        on_command: HostCallback,
        on_unsupported: Callable[[str], None] | None = None,
        on_status_change: Callable[[VoiceStatus], None] | None = None,
        restart_backoff_ms: int = RESTART_BACKOFF_MS,
        processing_delay_ms: int = PROCESSING_ACK_DELAY_MS,
    ) -> None:
        self._session_id = session_id
        self._closed = False
        self._on_status_change = on_status_change

        self._history = CommandHistory(session_id=session_id)
        self._dispatcher = CommandDispatcher(
            on_command=on_command,
            history=self._history,
            session_id=session_id,
        )
        self._permission = PermissionMonitor(
            source=permission_source,
            session_id=session_id,
        )

        self._unsupported: ErrorEvent | None = None
        self._speaker: ResponseSpeaker | None = None
        self._session: RecognitionSession | None = None
        self._unsubscribe_permission: Callable[[], None] | None = None

        missing = [
            name
            for name, capability in (
                ("recognition", recognizer),
                ("speech_synthesis", synthesizer),
            )
            if capability is None
        ]
        if missing:
            reason = "missing:" + ",".join(missing)
            self._unsupported = unsupported(reason)
            log_event({
                "event_type": "voice_unsupported",
                "session_id": session_id,
                "reason": reason,
            })
            if on_unsupported is not None:
                on_unsupported(reason)
            return

        assert recognizer is not None and synthesizer is not None

        self._speaker = ResponseSpeaker(synthesizer=synthesizer, session_id=session_id)
        self._session = RecognitionSession(
            recognizer=recognizer,
            on_transcript=self._on_transcript,
            session_id=session_id,
            initial_state=SessionSnapshot(
                permission=self._permission.query(),
                restart_backoff_ms=restart_backoff_ms,
                processing_delay_ms=processing_delay_ms,
            ),
            on_state_change=self._on_session_state_change,
        )
        self._unsubscribe_permission = self._permission.subscribe(
            self._session.on_permission_change
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def supported(self) -> bool:
        return self._unsupported is None

    @property
    def session(self) -> RecognitionSession | None:
        return self._session

    @property
    def speaker(self) -> ResponseSpeaker | None:
        return self._speaker

    @property
    def history(self) -> CommandHistory:
        return self._history

    def status(self) -> VoiceStatus:
        if self._session is None or self._speaker is None:
            return VoiceStatus(
                microphone_status=MICROPHONE_UNSUPPORTED,
                permission=self._permission.query().value,
                is_speaking=False,
                last_command=self._history.last,
                command_history=self._history.entries(),
                error_message=self._unsupported.message if self._unsupported else None,
            )

        snapshot = self._session.state
        return VoiceStatus(
            microphone_status=MICROPHONE_STATUS[snapshot.state],
            permission=snapshot.permission.value,
            is_speaking=self._speaker.is_speaking,
            last_command=self._history.last,
            command_history=self._history.entries(),
            error_message=snapshot.error_message,
        )

    # ------------------------------------------------------------------
    # User controls
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._session is None or self._closed:
            log_event({
                "event_type": "start_ignored",
                "session_id": self._session_id,
                "reason": "closed" if self._closed else "unsupported",
            })
            return
        self._session.start()

    def stop(self) -> None:
        if self._session is None:
            return
        self._session.stop()

    def toggle(self) -> None:
        """Activation control: stop while the user wants listening, else start."""
        if self._session is not None and self._session.state.should_restart:
            self.stop()
        else:
            self.start()

    def cancel_speech(self) -> None:
        if self._speaker is None:
            return
        self._speaker.cancel_current()

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def teardown(self) -> None:
        """
        Release everything; idempotent.

        Recognition stop, speech cancel, RestartTimer cancellation and the
        permission unsubscribe all run even if one of them raises. Each
        failure is logged where it happens; after every release has run,
        the last failure propagates.
        """
        if self._closed:
            return
        self._closed = True

        try:
            with ExitStack() as stack:
                if self._unsubscribe_permission is not None:
                    stack.callback(
                        self._release, "permission_unsubscribe", self._unsubscribe_permission
                    )
                if self._session is not None:
                    stack.callback(
                        self._release, "restart_timer", self._session.cancel_restart_timer
                    )
                if self._speaker is not None:
                    stack.callback(self._release, "speech", self._speaker.cancel_current)
                if self._session is not None:
                    stack.callback(self._release, "recognition", self._session.teardown)
        finally:
            log_event({
                "event_type": "voice_session_torn_down",
                "session_id": self._session_id,
            })

    def _release(self, name: str, release: Callable[[], None]) -> None:
        try:
            release()
        except Exception as exc:
            log_event({
                "event_type": "voice_release_failed",
                "session_id": self._session_id,
                "release": name,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            raise

    async def aclose(self) -> None:
        """teardown() + wait for timer tasks to finish."""
        try:
            self.teardown()
        finally:
            if self._session is not None:
                await self._session.shutdown()

    # ------------------------------------------------------------------
    # Transcript pipeline
    # ------------------------------------------------------------------

    def _on_session_state_change(self, _state: SessionState) -> None:
        if self._on_status_change is not None:
            self._on_status_change(self.status())

    def _on_transcript(self, transcript: TranscriptEvent) -> None:
        assert self._speaker is not None

        result = interpret(transcript.text)

        if result.token is CommandToken.HELP:
            # Spoken listing only; the host is not notified.
            self._history.record(result.raw_text)
        else:
            self._dispatcher.dispatch(result)

        log_event({
            "event_type": "transcript_interpreted",
            "session_id": self._session_id,
            "token": result.token.value,
            "received_at_ms": transcript.received_at_ms,
        })

        self._speaker.speak(acknowledgment_for(result.token))
