"""
Runtime execution shell for a continuous recognition session.

Responsibilities:
- Own the session snapshot
- Call the pure reducer
- Execute commands with side effects (recognizer start/stop, timers)
- Hand accepted transcripts to the transcript sink
- Schedule and cancel timers; convert timer expiry into events

Non-responsibilities:
- Interpreting transcripts (SessionOrchestrator + CommandInterpreter)
- Speech output (ResponseSpeaker)
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from orchestrator.capabilities import RecognitionCapability
from orchestrator.commands import (
    CancelTimer,
    Command,
    LogEvent,
    ProcessTranscript,
    StartRecognition,
    StartTimer,
    StopRecognition,
)
from orchestrator.enums.permission import PermissionState
from orchestrator.enums.state import SessionState
from orchestrator.events import (
    Event,
    EventType,
    PermissionChanged,
    ProcessingTimeout,
    RecognitionEnd,
    RecognitionError,
    RecognitionResult,
    RestartTimeout,
    StartRequested,
    StopRequested,
    Teardown,
)
from orchestrator.reducer import TIMER_RESTART, reduce
from orchestrator.state_dataclass import SessionSnapshot

from observability.logger import log_event

from spec import ms_to_seconds


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


# Pseudo error code fed back when the recognizer refuses to start.
START_FAILED_CODE = "start-failed"


@dataclass(frozen=True)
class TranscriptEvent:
    """
    Accepted transcript.

    Ephemeral: consumed immediately by the transcript sink.
    """
    text: str
    received_at_ms: int


TranscriptSink = Callable[[TranscriptEvent], None]
StateChangeHook = Callable[[SessionState], None]


class RecognitionSession:
    """
    Runtime execution boundary for one recognition session.

    Guarantees:
    - Reducer is always called exactly once per incoming event
    - State transitions are serialized: an event raised from inside a
      capability call (e.g. a recognizer that reports `end` synchronously
      from stop()) is queued and reduced after the current event finishes
    - All side effects occur *after* the snapshot has been swapped
    - Timers re-enter through handle_event (single entry point)
    """

    def __init__(
        self,
        *,
        recognizer: RecognitionCapability,
        on_transcript: TranscriptSink,
        session_id: str,
        initial_state: SessionSnapshot | None = None,
        on_state_change: StateChangeHook | None = None,
    ) -> None:
        self._recognizer = recognizer
        self._on_transcript = on_transcript
        self._on_state_change = on_state_change
        self._session_id = session_id
        self._state = initial_state or SessionSnapshot()

        self._timers: dict[str, asyncio.Task[None]] = {}
        self._pending: deque[Event] = deque()
        self._dispatching = False

        recognizer.bind(
            on_result=self.handle_result,
            on_error=self.handle_error,
            on_end=self.handle_end,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionSnapshot:
        """
        Current immutable session snapshot.

        Only the reducer produces new snapshots; callers must treat this
        as read-only.
        """
        return self._state

    @property
    def session_state(self) -> SessionState:
        return self._state.state

    @property
    def restart_timer_pending(self) -> bool:
        task = self._timers.get(TIMER_RESTART)
        return task is not None and not task.done()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin continuous listening (no-op while permission is denied)."""
        self.handle_event(
            StartRequested(event_type=EventType.START_REQUESTED, ts_ms=_now_ms())
        )

    def stop(self) -> None:
        """Idempotent; cancels any pending restart and stops the recognizer."""
        self.handle_event(
            StopRequested(event_type=EventType.STOP_REQUESTED, ts_ms=_now_ms())
        )

    def handle_result(self, text: str) -> None:
        self.handle_event(
            RecognitionResult(
                event_type=EventType.RECOGNITION_RESULT,
                ts_ms=_now_ms(),
                text=text,
            )
        )

    def handle_error(self, code: str) -> None:
        self.handle_event(
            RecognitionError(
                event_type=EventType.RECOGNITION_ERROR,
                ts_ms=_now_ms(),
                code=code,
            )
        )

    def handle_end(self) -> None:
        self.handle_event(
            RecognitionEnd(event_type=EventType.RECOGNITION_END, ts_ms=_now_ms())
        )

    def on_permission_change(self, permission: PermissionState) -> None:
        self.handle_event(
            PermissionChanged(
                event_type=EventType.PERMISSION_CHANGED,
                ts_ms=_now_ms(),
                permission=permission,
            )
        )

    def teardown(self) -> None:
        """Stop for good. Every later event is ignored by the reducer."""
        self.handle_event(
            Teardown(event_type=EventType.TEARDOWN, ts_ms=_now_ms())
        )

    def cancel_restart_timer(self) -> None:
        """Synchronous, unconditional RestartTimer cancellation."""
        self._cancel_timer(TIMER_RESTART)

    async def shutdown(self) -> None:
        """
        Cancel all in-flight timers and wait for the tasks to finish.

        Called after teardown() by the owner.
        """
        tasks = list(self._timers.values())
        for timer_id in list(self._timers.keys()):
            self._cancel_timer(timer_id)

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Event pipeline
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> None:
        """
        Process a single event through the reducer pipeline.

        Processing steps:
        1. Queue the event
        2. If no event is being processed, drain the queue:
           reduce, swap in the new snapshot, execute commands in order

        This method is synchronous on purpose: the restart guard is read
        by the reducer in the same step that receives `end`, with no await
        in between.
        """
        self._pending.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.popleft()
                previous = self._state.state
                new_state, commands = reduce(self._state, current)
                self._state = new_state
                for cmd in commands:
                    self._execute_command(cmd)
                if self._state.state is not previous:
                    self._notify_state_change()
        finally:
            self._dispatching = False

    def _notify_state_change(self) -> None:
        if self._on_state_change is None:
            return
        try:
            self._on_state_change(self._state.state)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "STATE_CHANGE_HOOK_FAILED",
                "session_id": self._session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "session_id": self._session_id,
            })

        elif isinstance(cmd, StartRecognition):
            self._recognizer.continuous = True
            try:
                self._recognizer.start()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "RECOGNITION_START_FAILED",
                    "session_id": self._session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                # The recognizer never started, so no `end` will come.
                self.handle_error(START_FAILED_CODE)
                self.handle_end()
                return

            log_event({
                "ts_ms": _now_ms(),
                "event_type": "RECOGNITION_START_EXECUTED",
                "session_id": self._session_id,
                "restart_count": self._state.restart_count,
            })

        elif isinstance(cmd, StopRecognition):
            try:
                self._recognizer.stop()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "RECOGNITION_STOP_FAILED",
                    "session_id": self._session_id,
                    "reason": cmd.reason,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
                return

            log_event({
                "ts_ms": _now_ms(),
                "event_type": "RECOGNITION_STOP_EXECUTED",
                "session_id": self._session_id,
                "reason": cmd.reason,
            })

        elif isinstance(cmd, ProcessTranscript):
            try:
                self._on_transcript(
                    TranscriptEvent(text=cmd.text, received_at_ms=cmd.received_at_ms)
                )
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "ts_ms": _now_ms(),
                    "event_type": "TRANSCRIPT_SINK_FAILED",
                    "session_id": self._session_id,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })

        elif isinstance(cmd, StartTimer):
            self._start_timer(
                timer_id=cmd.timer_id,
                duration_ms=cmd.duration_ms,
                timeout_event_type=cmd.timeout_event_type,
            )

        elif isinstance(cmd, CancelTimer):
            self._cancel_timer(cmd.timer_id)

        else:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "COMMAND_NOT_HANDLED",
                "session_id": self._session_id,
                "command_type": type(cmd).__name__,
            })

    # ------------------------------------------------------------------
    # Timer management
    # ------------------------------------------------------------------

    def _start_timer(
        self,
        *,
        timer_id: str,
        duration_ms: int,
        timeout_event_type: EventType,
    ) -> None:
        """
        Start or replace a timer that emits a timeout event.

        Timer tasks re-enter handle_event() when they expire,
        maintaining the single event entry point invariant.
        Replacing keeps at most one timer per id.
        """
        self._cancel_timer(timer_id)

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(ms_to_seconds(duration_ms))
            except asyncio.CancelledError:
                # Timer was cancelled - this is normal
                return

            if self._timers.get(timer_id) is asyncio.current_task():
                del self._timers[timer_id]

            self.handle_event(self._construct_timeout_event(timeout_event_type))

        self._timers[timer_id] = asyncio.create_task(_timer_task())

    def _cancel_timer(self, timer_id: str) -> None:
        """
        Cancel an in-flight timer if it exists.

        Idempotent: safe to call even if timer doesn't exist.
        """
        task = self._timers.pop(timer_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _construct_timeout_event(self, timeout_event_type: EventType) -> Event:
        ts = _now_ms()

        if timeout_event_type is EventType.RESTART_TIMEOUT:
            return RestartTimeout(event_type=EventType.RESTART_TIMEOUT, ts_ms=ts)

        if timeout_event_type is EventType.PROCESSING_TIMEOUT:
            return ProcessingTimeout(event_type=EventType.PROCESSING_TIMEOUT, ts_ms=ts)

        # This should never happen if reducer is correct
        raise ValueError(f"Unknown timeout event type: {timeout_event_type}")
