"""
Authoritative recognition session state enumeration.

Rules:
- This enum defines ONLY the session control states.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class SessionState(str, Enum):
    """
    Control states for a single continuous recognition session.

    Exactly one is active at a time; owned by RecognitionSession.
    """

    IDLE = "IDLE"
    LISTENING = "LISTENING"
    PROCESSING = "PROCESSING"
    ERROR = "ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
