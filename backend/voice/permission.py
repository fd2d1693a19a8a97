"""
Microphone consent tracking.

If the platform lacks a permission-query capability the state is reported
as UNKNOWN and no change notifications ever fire. Callers must not block
on this component.
"""

from __future__ import annotations

from typing import Callable

from orchestrator.capabilities import PermissionCapability
from orchestrator.enums.permission import PermissionState
from observability.logger import log_event


Unsubscribe = Callable[[], None]


class PermissionMonitor:
    """Reads platform consent and fans out change notifications."""

    def __init__(
        self,
        *,
        source: PermissionCapability | None,
        session_id: str | None = None,
    ) -> None:
        self._source = source
        self._session_id = session_id
        self._state = PermissionState.UNKNOWN
        self._subscribers: list[Callable[[PermissionState], None]] = []

        if source is not None:
            source.bind(on_change=self._on_platform_change)

    @property
    def available(self) -> bool:
        return self._source is not None

    def query(self) -> PermissionState:
        """Current consent state; UNKNOWN when the platform cannot say."""
        if self._source is None:
            return PermissionState.UNKNOWN

        try:
            self._state = self._source.query()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "permission_query_failed",
                "session_id": self._session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            self._state = PermissionState.UNKNOWN
        return self._state

    def subscribe(
        self, on_change: Callable[[PermissionState], None]
    ) -> Unsubscribe:
        """
        Register a change listener.

        Returns an idempotent unsubscribe handle.
        """
        self._subscribers.append(on_change)

        def _unsubscribe() -> None:
            if on_change in self._subscribers:
                self._subscribers.remove(on_change)

        return _unsubscribe

    def _on_platform_change(self, state: PermissionState) -> None:
        previous = self._state
        self._state = state
        log_event({
            "event_type": "permission_changed",
            "session_id": self._session_id,
            "from": previous.value,
            "to": state.value,
        })
        for subscriber in list(self._subscribers):
            subscriber(state)
