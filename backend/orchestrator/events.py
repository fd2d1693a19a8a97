"""
Unified event definitions for the recognition session reducer.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.

Timer events are injected by the runtime when a StartTimer command expires.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from orchestrator.enums.permission import PermissionState


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (state, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # User control
    # ------------------------------------------------------------------
    START_REQUESTED = "START_REQUESTED"
    STOP_REQUESTED = "STOP_REQUESTED"
    TEARDOWN = "TEARDOWN"

    # ------------------------------------------------------------------
    # Recognition capability
    # ------------------------------------------------------------------
    RECOGNITION_RESULT = "RECOGNITION_RESULT"
    RECOGNITION_ERROR = "RECOGNITION_ERROR"
    RECOGNITION_END = "RECOGNITION_END"

    # ------------------------------------------------------------------
    # Permission
    # ------------------------------------------------------------------
    PERMISSION_CHANGED = "PERMISSION_CHANGED"

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    RESTART_TIMEOUT = "RESTART_TIMEOUT"
    PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# User Control
# =============================================================================

@dataclass(frozen=True)
class StartRequested(Event):
    """User asked for continuous listening."""


@dataclass(frozen=True)
class StopRequested(Event):
    """User asked to stop listening."""


@dataclass(frozen=True)
class Teardown(Event):
    """Owner is releasing the session; nothing may start afterwards."""


# =============================================================================
# Recognition Events
# =============================================================================

@dataclass(frozen=True)
class RecognitionResult(Event):
    """
    Final transcript delivered by the recognizer.

    Interim results are disabled; every result is final.
    """
    text: str


@dataclass(frozen=True)
class RecognitionError(Event):
    """Raw error code reported by the recognizer."""
    code: str


@dataclass(frozen=True)
class RecognitionEnd(Event):
    """
    The recognizer finished one recognition turn.

    Arrives asynchronously after a user stop, after errors, and
    spontaneously when the platform decides a continuous turn is over.
    """


# =============================================================================
# Permission
# =============================================================================

@dataclass(frozen=True)
class PermissionChanged(Event):
    """PermissionMonitor reported a new consent state."""
    permission: PermissionState


# =============================================================================
# Timer Events
# =============================================================================

@dataclass(frozen=True)
class RestartTimeout(Event):
    """Restart backoff elapsed."""


@dataclass(frozen=True)
class ProcessingTimeout(Event):
    """Acknowledgment display delay elapsed."""
