"""
SPEC-AS-CONSTANTS
-----------------
Single source of truth for all behavioral invariants of the voice command
controller.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Recognition Session Timing
# =============================================================================

# Fixed backoff between an `end` notification and the automatic restart.
# The recognizer often emits `end` right after a transient error; restarting
# inside the same callback would recurse.
RESTART_BACKOFF_MS: Final[int] = 100

# Cosmetic PROCESSING -> LISTENING delay after an acknowledgment is issued.
PROCESSING_ACK_DELAY_MS: Final[int] = 1_000

# =============================================================================
# Recognition Capability Configuration
# =============================================================================

RECOGNITION_CONTINUOUS: Final[bool] = True
RECOGNITION_INTERIM_RESULTS: Final[bool] = False
DEFAULT_RECOGNITION_LANG: Final[str] = "en-US"

# =============================================================================
# Command History
# =============================================================================

COMMAND_HISTORY_MAX: Final[int] = 5

# =============================================================================
# Speech Output
# =============================================================================

UTTERANCE_ID_START: Final[int] = 1

# =============================================================================
# Transport
# =============================================================================

SESSION_ID_PREFIX: Final[str] = "voice_"
PAYLOAD_PREVIEW_CHARS: Final[int] = 100


# =============================================================================
# Helper Functions
# =============================================================================

def ms_to_seconds(duration_ms: int) -> float:
    """
    Convert a millisecond duration to seconds for asyncio.sleep().

    Defensive behavior:
    - Non-positive input returns 0.0.
    """
    if duration_ms <= 0:
        return 0.0
    return duration_ms / 1000.0
