"""
Pure recognition session reducer.

(snapshot, event) -> (new_snapshot, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).
"""

# Reducer owns timer semantics; runtime must not cancel timers implicitly.
# The restart guard (should_restart) is read only inside _on_end, in the
# same synchronous step that handles the `end` notification.

from __future__ import annotations

from dataclasses import replace
from typing import Any

from orchestrator.commands import (
    CancelTimer,
    Command,
    LogEvent,
    ProcessTranscript,
    StartRecognition,
    StartTimer,
    StopRecognition,
)
from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.permission import PermissionState
from orchestrator.enums.state import SessionState
from orchestrator.errors import ABORTED_CODE, PERMISSION_DENIED_MESSAGE, classify
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
from orchestrator.state_dataclass import SessionSnapshot


# =============================================================================
# Timer IDs
# =============================================================================

TIMER_RESTART = "recognition_restart"
TIMER_PROCESSING = "processing_ack"

_RUNNING_STATES = frozenset({
    SessionState.LISTENING,
    SessionState.PROCESSING,
    SessionState.ERROR,
})


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: SessionSnapshot,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": state.state.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "should_restart": state.should_restart,
            "recognition_active": state.recognition_active,
            "restart_pending": state.restart_pending,
            "permission": state.permission.value,
            "details": details or {},
        }
    )


def _state_changed(
    old: SessionSnapshot,
    new: SessionSnapshot,
    event: Event,
    source: str,
) -> tuple[LogEvent, ...]:
    if old.state is new.state:
        return ()
    return (
        _log(
            new,
            event,
            "state_changed",
            {
                "from_state": old.state.value,
                "to_state": new.state.value,
                "source": source,
            },
        ),
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []
    state_change_logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            if command.event.get("decision") == "state_changed":
                state_change_logs.append(command)
            else:
                logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs + state_change_logs)


def _ignore(
    state: SessionSnapshot, event: Event, reason: str
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _resting_state(state: SessionSnapshot) -> SessionState:
    """Where a session lands once nothing is running."""
    if state.state is SessionState.PERMISSION_DENIED:
        return SessionState.PERMISSION_DENIED
    return SessionState.IDLE


def _listening_state(state: SessionSnapshot) -> SessionState:
    """PROCESSING survives a restart; its own timer returns it to LISTENING."""
    if state.state is SessionState.PROCESSING:
        return SessionState.PROCESSING
    return SessionState.LISTENING


def _enter_permission_denied(
    state: SessionSnapshot,
    event: Event,
    source: str,
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    """
    Fatal permission path.

    - stop() is requested exactly once (callers gate re-entry)
    - guard forced false, any pending restart cancelled
    - nothing restarts until the user starts again
    """
    new_state = replace(
        state,
        state=SessionState.PERMISSION_DENIED,
        should_restart=False,
        fatal_error_pending=True,
        restart_pending=False,
        error_message=PERMISSION_DENIED_MESSAGE,
        last_error_kind=ErrorKind.PERMISSION,
    )
    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_RESTART),
        CancelTimer(timer_id=TIMER_PROCESSING),
        StopRecognition(reason="permission_denied"),
        _log(new_state, event, "enter_permission_denied", {"source": source}),
    ) + _state_changed(state, new_state, event, source))


# =============================================================================
# User control
# =============================================================================

def _on_start(
    state: SessionSnapshot, event: StartRequested
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    if state.permission is PermissionState.DENIED:
        new_state = replace(
            state,
            state=SessionState.PERMISSION_DENIED,
            should_restart=False,
            fatal_error_pending=True,
            error_message=PERMISSION_DENIED_MESSAGE,
            last_error_kind=ErrorKind.PERMISSION,
        )
        return new_state, _logs_last((
            _log(new_state, event, "start_blocked", {"reason": "permission_denied"}),
        ) + _state_changed(state, new_state, event, "start_blocked"))

    if state.should_restart and state.state in (
        SessionState.LISTENING,
        SessionState.PROCESSING,
    ):
        return _ignore(state, event, "already_listening")

    cmds: list[Command] = []
    if state.restart_pending:
        cmds.append(CancelTimer(timer_id=TIMER_RESTART))

    new_state = replace(
        state,
        state=_listening_state(state),
        should_restart=True,
        fatal_error_pending=False,
        restart_pending=False,
        error_message=None,
        last_error_kind=None,
    )

    if state.recognition_active:
        # Recognizer still winding down from an earlier stop; its `end`
        # will find the guard set and schedule the restart.
        cmds.append(_log(new_state, event, "rearm_restart_guard"))
    else:
        new_state = replace(new_state, recognition_active=True)
        cmds.append(StartRecognition())
        cmds.append(_log(new_state, event, "start_recognition"))

    return new_state, _logs_last(
        tuple(cmds) + _state_changed(state, new_state, event, "start_requested")
    )


def _on_stop(
    state: SessionSnapshot, event: StopRequested
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    """
    Idempotent; safe in every state.

    Timer cancellation is unconditional. The session reaches IDLE when the
    recognizer reports `end`, or immediately if nothing is running.
    """
    new_state = replace(
        state,
        should_restart=False,
        restart_pending=False,
    )
    if not state.recognition_active:
        new_state = replace(new_state, state=_resting_state(state))

    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_RESTART),
        CancelTimer(timer_id=TIMER_PROCESSING),
        StopRecognition(reason="user_stop"),
        _log(new_state, event, "stop_recognition"),
    ) + _state_changed(state, new_state, event, "stop_requested"))


def _on_teardown(
    state: SessionSnapshot, event: Teardown
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    new_state = replace(
        state,
        state=_resting_state(state),
        should_restart=False,
        restart_pending=False,
        torn_down=True,
    )
    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_RESTART),
        CancelTimer(timer_id=TIMER_PROCESSING),
        StopRecognition(reason="teardown"),
        _log(new_state, event, "teardown"),
    ) + _state_changed(state, new_state, event, "teardown"))


# =============================================================================
# Recognition events
# =============================================================================

def _on_result(
    state: SessionSnapshot, event: RecognitionResult
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    if not event.text.strip():
        return _ignore(state, event, "empty_transcript")

    if state.state not in _RUNNING_STATES:
        return _ignore(state, event, f"not_listening:{state.state.value}")

    if not state.should_restart:
        return _ignore(state, event, "stale_after_stop")

    new_state = replace(
        state,
        state=SessionState.PROCESSING,
        error_message=None,
        last_error_kind=None,
        transcripts_accepted=state.transcripts_accepted + 1,
    )
    return new_state, _logs_last((
        ProcessTranscript(text=event.text, received_at_ms=event.ts_ms),
        StartTimer(
            timer_id=TIMER_PROCESSING,
            duration_ms=state.processing_delay_ms,
            timeout_event_type=EventType.PROCESSING_TIMEOUT,
        ),
        _log(new_state, event, "accept_transcript", {"chars": len(event.text)}),
    ) + _state_changed(state, new_state, event, "transcript"))


def _on_processing_timeout(
    state: SessionSnapshot, event: ProcessingTimeout
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    if state.state is not SessionState.PROCESSING:
        return _ignore(state, event, f"not_processing:{state.state.value}")

    new_state = replace(state, state=SessionState.LISTENING)
    return new_state, _logs_last((
        _log(new_state, event, "acknowledgment_complete"),
    ) + _state_changed(state, new_state, event, "processing_complete"))


def _on_error(
    state: SessionSnapshot, event: RecognitionError
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    classified = classify(event.code)

    if classified.kind is ErrorKind.PERMISSION:
        if state.state is SessionState.PERMISSION_DENIED:
            return _ignore(state, event, "already_permission_denied")
        return _enter_permission_denied(state, event, f"recognition_error:{event.code}")

    if classified.raw_code.strip().lower() == ABORTED_CODE and not state.should_restart:
        return _ignore(state, event, "expected_abort_after_stop")

    if state.state not in _RUNNING_STATES:
        return _ignore(state, event, f"error_while_{state.state.value.lower()}")

    # Recoverable: keep the guard, let the natural `end` restart us.
    new_state = replace(
        state,
        state=SessionState.ERROR,
        error_message=classified.message,
        last_error_kind=classified.kind,
    )
    return new_state, _logs_last((
        CancelTimer(timer_id=TIMER_PROCESSING),
        _log(
            new_state,
            event,
            "recoverable_error",
            {"code": event.code, "kind": classified.kind.value},
        ),
    ) + _state_changed(state, new_state, event, "recognition_error"))


def _on_end(
    state: SessionSnapshot, event: RecognitionEnd
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    base = replace(state, recognition_active=False)

    restart_allowed = (
        base.should_restart
        and not base.fatal_error_pending
        and base.permission is not PermissionState.DENIED
    )

    if restart_allowed:
        if state.restart_pending:
            return _ignore(base, event, "restart_already_pending")

        new_state = replace(
            base,
            state=_listening_state(state),
            restart_pending=True,
        )
        return new_state, _logs_last((
            StartTimer(
                timer_id=TIMER_RESTART,
                duration_ms=state.restart_backoff_ms,
                timeout_event_type=EventType.RESTART_TIMEOUT,
            ),
            _log(
                new_state,
                event,
                "schedule_restart",
                {"backoff_ms": state.restart_backoff_ms},
            ),
        ) + _state_changed(state, new_state, event, "recognition_end"))

    new_state = replace(
        base,
        state=_resting_state(state),
        restart_pending=False,
    )
    cmds: list[Command] = []
    if state.restart_pending:
        cmds.append(CancelTimer(timer_id=TIMER_RESTART))
    if state.state is SessionState.PROCESSING:
        cmds.append(CancelTimer(timer_id=TIMER_PROCESSING))
    cmds.append(
        _log(
            new_state,
            event,
            "session_ended",
            {"fatal_error_pending": state.fatal_error_pending},
        )
    )
    return new_state, _logs_last(
        tuple(cmds) + _state_changed(state, new_state, event, "recognition_end")
    )


def _on_restart_timeout(
    state: SessionSnapshot, event: RestartTimeout
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    if not state.restart_pending:
        return _ignore(state, event, "no_restart_pending")

    base = replace(state, restart_pending=False)

    if (
        not base.should_restart
        or base.fatal_error_pending
        or base.permission is PermissionState.DENIED
    ):
        return base, (_log(base, event, "restart_suppressed"),)

    if base.recognition_active:
        return base, (_log(base, event, "restart_skipped_already_active"),)

    # Recognition is running again, so a transient message is stale.
    new_state = replace(
        base,
        state=_listening_state(state),
        recognition_active=True,
        restart_count=state.restart_count + 1,
        error_message=None,
        last_error_kind=None,
    )
    return new_state, _logs_last((
        StartRecognition(),
        _log(
            new_state,
            event,
            "restart_recognition",
            {"restart_count": new_state.restart_count},
        ),
    ) + _state_changed(state, new_state, event, "restart"))


# =============================================================================
# Permission
# =============================================================================

def _on_permission_changed(
    state: SessionSnapshot, event: PermissionChanged
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    if event.permission is state.permission:
        return _ignore(state, event, "permission_unchanged")

    base = replace(state, permission=event.permission)
    details = {"from": state.permission.value, "to": event.permission.value}

    if event.permission is PermissionState.DENIED:
        if state.state is SessionState.PERMISSION_DENIED:
            return base, (_log(base, event, "permission_updated", details),)
        if (
            state.state in _RUNNING_STATES
            or state.recognition_active
            or state.restart_pending
        ):
            return _enter_permission_denied(base, event, "permission_monitor")
        return base, (_log(base, event, "permission_updated", details),)

    if state.state is SessionState.PERMISSION_DENIED and event.permission in (
        PermissionState.GRANTED,
        PermissionState.PROMPT,
    ):
        new_state = replace(
            base,
            state=SessionState.IDLE,
            fatal_error_pending=False,
            error_message=None,
            last_error_kind=None,
        )
        return new_state, _logs_last((
            _log(new_state, event, "permission_regranted", details),
        ) + _state_changed(state, new_state, event, "permission_regranted"))

    return base, (_log(base, event, "permission_updated", details),)


# =============================================================================
# Entry point
# =============================================================================

def reduce(
    state: SessionSnapshot,
    event: Event,
) -> tuple[SessionSnapshot, tuple[Command, ...]]:
    """
    Apply one event to the session snapshot.

    Returns the new snapshot and the commands the runtime must execute,
    in order. Log commands are always last.
    """
    if state.torn_down:
        return _ignore(state, event, "torn_down")

    if isinstance(event, StartRequested):
        return _on_start(state, event)
    if isinstance(event, StopRequested):
        return _on_stop(state, event)
    if isinstance(event, Teardown):
        return _on_teardown(state, event)
    if isinstance(event, RecognitionResult):
        return _on_result(state, event)
    if isinstance(event, RecognitionError):
        return _on_error(state, event)
    if isinstance(event, RecognitionEnd):
        return _on_end(state, event)
    if isinstance(event, RestartTimeout):
        return _on_restart_timeout(state, event)
    if isinstance(event, ProcessingTimeout):
        return _on_processing_timeout(state, event)
    if isinstance(event, PermissionChanged):
        return _on_permission_changed(state, event)

    return _ignore(state, event, "unhandled_event_type")
