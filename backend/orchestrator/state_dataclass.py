"""
Authoritative recognition session state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no helpers, no derived logic.
"""
from __future__ import annotations

from dataclasses import dataclass

from orchestrator.enums.error_kind import ErrorKind
from orchestrator.enums.permission import PermissionState
from orchestrator.enums.state import SessionState

from spec import PROCESSING_ACK_DELAY_MS, RESTART_BACKOFF_MS


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable snapshot of all recognition-session-owned state."""

    # ------------------------------------------------------------------
    # Control state
    # ------------------------------------------------------------------
    state: SessionState = SessionState.IDLE

    # Mirror of PermissionMonitor, updated only by PermissionChanged.
    permission: PermissionState = PermissionState.UNKNOWN

    # ------------------------------------------------------------------
    # Restart guard
    # ------------------------------------------------------------------

    # True iff the user wants continuous listening.
    # Set by StartRequested; cleared by StopRequested, Teardown and fatal
    # errors. Read inside the RecognitionEnd transition, nowhere else
    # decides whether to restart.
    should_restart: bool = False

    # A permission-class failure happened; no restart until re-granted.
    fatal_error_pending: bool = False

    # At most one RestartTimer may be pending.
    restart_pending: bool = False

    # True between an issued StartRecognition and the matching
    # RecognitionEnd. At most one start() is outstanding.
    recognition_active: bool = False

    # Set once by Teardown; every later event is ignored.
    torn_down: bool = False

    # ------------------------------------------------------------------
    # Surfaced error
    # ------------------------------------------------------------------
    error_message: str | None = None
    last_error_kind: ErrorKind | None = None

    # ------------------------------------------------------------------
    # Timing (seeded from config; constant for the session lifetime)
    # ------------------------------------------------------------------
    restart_backoff_ms: int = RESTART_BACKOFF_MS
    processing_delay_ms: int = PROCESSING_ACK_DELAY_MS

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------
    restart_count: int = 0
    transcripts_accepted: int = 0
