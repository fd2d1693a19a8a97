"""
Command history management.

Responsibilities:
- Store raw transcript strings, newest first
- Enforce the size cap (drop oldest once full)
- Provide an immutable view for the status feed

Non-responsibilities:
- No interpretation of the text
- No decisions about *when* to record (orchestrator/dispatcher decide)
"""

from __future__ import annotations

from collections import deque

from observability.logger import log_event
from spec import COMMAND_HISTORY_MAX


class CommandHistory:
    """
    Bounded, newest-first transcript history.

    Invariants:
    - len(self) <= max_entries
    - entries() is ordered newest first
    """

    def __init__(
        self,
        session_id: str | None = None,
        max_entries: int = COMMAND_HISTORY_MAX,
    ) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self._session_id = session_id
        self._entries: deque[str] = deque(maxlen=max_entries)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, raw_text: str) -> None:
        """Prepend raw_text, dropping the oldest entry when full."""
        if len(self._entries) == self._entries.maxlen:
            log_event({
                "event_type": "history_entry_dropped",
                "session_id": self._session_id,
                "char_count": len(self._entries[-1]),
            })
        self._entries.appendleft(raw_text)

    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def last(self) -> str | None:
        """Newest entry, or None when empty."""
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)
