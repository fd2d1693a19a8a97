"""
Microphone consent enumeration.

Owned by PermissionMonitor; read-only everywhere else.
"""

from __future__ import annotations

from enum import Enum


class PermissionState(str, Enum):
    """
    Platform microphone consent state.

    UNKNOWN:
        The platform offers no permission-query capability, or it has
        not answered yet. Never blocks a start attempt.
    """

    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"
    UNKNOWN = "unknown"
