"""
Command dispatch to the host application.

Responsibilities:
- Forward (token, params) to the host callback
- Record every dispatched transcript in CommandHistory

Guarantees:
- dispatch() never raises; host failures are logged
- `unrecognized` is recorded but never forwarded
"""

from __future__ import annotations

from typing import Any, Callable, Final, Optional

from context.history import CommandHistory
from observability.logger import log_event
from voice.interpreter import CommandResult, CommandToken


HostCallback = Callable[[str, Optional[dict[str, Any]]], None]

NOT_FORWARDED: Final[frozenset[CommandToken]] = frozenset({
    CommandToken.UNRECOGNIZED,
})


class CommandDispatcher:
    """Bounded history + forwarding to the host."""

    def __init__(
        self,
        *,
        on_command: HostCallback,
        history: CommandHistory,
        session_id: str | None = None,
    ) -> None:
        self._on_command = on_command
        self._history = history
        self._session_id = session_id

    @property
    def history(self) -> CommandHistory:
        return self._history

    def dispatch(self, result: CommandResult) -> None:
        self._history.record(result.raw_text)

        if result.token in NOT_FORWARDED:
            log_event({
                "event_type": "command_not_forwarded",
                "session_id": self._session_id,
                "token": result.token.value,
            })
            return

        try:
            self._on_command(result.token.value, result.params)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "host_callback_failed",
                "session_id": self._session_id,
                "token": result.token.value,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return

        log_event({
            "event_type": "command_dispatched",
            "session_id": self._session_id,
            "token": result.token.value,
            "params": result.params,
        })
