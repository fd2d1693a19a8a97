"""
Recognition failure classes.

Rules:
- This enum names failure classes only.
- Which raw codes map to which class lives in orchestrator/errors.py.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """
    PERMISSION:
        Consent was refused. Fatal: stop, no auto-restart until re-granted.

    TRANSIENT:
        Network hiccup, no speech, interrupted capture. Recoverable: the
        session keeps listening and relies on the natural `end` + restart.

    UNSUPPORTED:
        Required capabilities are absent. Fatal, detected at initialization.
    """

    PERMISSION = "permission"
    TRANSIENT = "transient"
    UNSUPPORTED = "unsupported"
