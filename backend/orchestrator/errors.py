"""
Recognition error classification.

Purpose:
- Map raw recognizer error codes to a failure class
- Keep the reducer pure: it consumes ErrorEvent, it never parses codes

This module contains NO timers, NO async, NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from orchestrator.enums.error_kind import ErrorKind


# =============================================================================
# Error Event
# =============================================================================

@dataclass(frozen=True)
class ErrorEvent:
    """
    Classified recognizer failure.

    Transient: drives one state transition and is not retained. Only
    `message` survives, as the surfaced status line.
    """
    kind: ErrorKind
    raw_code: str
    recoverable: bool
    message: str


# =============================================================================
# Code Table
# =============================================================================

PERMISSION_CODES: Final[frozenset[str]] = frozenset({
    "not-allowed",
    "service-not-allowed",
    "permission-denied",
})

# Emitted by the recognizer after our own stop(); silent when expected.
ABORTED_CODE: Final[str] = "aborted"

PERMISSION_DENIED_MESSAGE: Final[str] = (
    "Microphone access denied. Allow microphone access to use voice commands."
)
UNSUPPORTED_MESSAGE: Final[str] = (
    "Voice commands are not supported in this environment."
)

_TRANSIENT_MESSAGES: Final[dict[str, str]] = {
    "no-speech": "No speech detected. Still listening.",
    "network": "Network error during recognition. Retrying.",
    "audio-capture": "No microphone input detected. Check your microphone.",
    ABORTED_CODE: "Recognition was interrupted.",
}


# =============================================================================
# Policy
# =============================================================================

def classify(code: str) -> ErrorEvent:
    """
    Classify a raw recognizer error code.

    Rules:
    - Consent codes are fatal (PERMISSION, not recoverable).
    - Everything else is TRANSIENT and recoverable, including codes this
      table does not know; an unknown failure must never disable listening.
    """
    normalized = (code or "").strip().lower()

    if normalized in PERMISSION_CODES:
        return ErrorEvent(
            kind=ErrorKind.PERMISSION,
            raw_code=code,
            recoverable=False,
            message=PERMISSION_DENIED_MESSAGE,
        )

    message = _TRANSIENT_MESSAGES.get(
        normalized,
        f"Speech recognition error: {normalized or 'unknown'}",
    )
    return ErrorEvent(
        kind=ErrorKind.TRANSIENT,
        raw_code=code,
        recoverable=True,
        message=message,
    )


def unsupported(reason: str) -> ErrorEvent:
    """Build the initialization-time UNSUPPORTED event."""
    return ErrorEvent(
        kind=ErrorKind.UNSUPPORTED,
        raw_code=reason,
        recoverable=False,
        message=UNSUPPORTED_MESSAGE,
    )
