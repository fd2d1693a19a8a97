"""
Voice session container.

- Owns the SessionOrchestrator (built once capabilities are known)
- Owns the browser bridge adapters
- Owns connection status (mutable, gateway-controlled)
- Owned and mutated by SessionGateway
- NOT a state machine
- Contains no orchestration logic
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

from adapters.browser import BrowserPermission, BrowserRecognition, BrowserSpeechOutput
from session.connection_status import ConnectionStatus
from session.orchestrator import SessionOrchestrator


@dataclass
class VoiceSession:
    """Mutable runtime container for a single voice session."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)

    # ------------------------------------------------------------------
    # Connection / gateway-controlled state
    # ------------------------------------------------------------------

    connection_status: ConnectionStatus = ConnectionStatus.DOWN

    # ------------------------------------------------------------------
    # Controller + browser bridge
    # ------------------------------------------------------------------

    orchestrator: SessionOrchestrator | None = None

    recognition: BrowserRecognition | None = None
    speech_output: BrowserSpeechOutput | None = None
    permission: BrowserPermission | None = None

    def __post_init__(self) -> None:
        self._control_out: deque[dict[str, Any]] = deque()
        self._control_ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Wiring helpers (called by SessionGateway)
    # ------------------------------------------------------------------

    def attach_orchestrator(self, orchestrator: SessionOrchestrator) -> None:
        """
        Attach the controller.

        Must be called after the browser adapters are attached.
        """
        self.orchestrator = orchestrator

    # ------------------------------------------------------------------
    # Observability helpers (read-only)
    # ------------------------------------------------------------------

    def log_context(self) -> dict[str, Any]:
        """Standard logging context for this session."""
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
        }

    # ------------------------------------------------------------------
    # Outbound control queue
    # ------------------------------------------------------------------

    def enqueue_control(self, msg: dict[str, Any]) -> None:
        """
        Enqueue a control message for gateway delivery to the client.

        Messages are buffered in FIFO order and later retrieved via
        drain_control(). Wakes any wait_for_control() caller.
        """
        self._control_out.append(msg)
        self._control_ready.set()

    def drain_control(self) -> tuple[dict[str, Any], ...]:
        """
        Atomically drain all pending control messages.

        Returns a FIFO-ordered tuple; empty if nothing is pending.
        After this call, the control queue is empty.
        """
        self._control_ready.clear()
        if not self._control_out:
            return ()
        out = tuple(self._control_out)
        self._control_out.clear()
        return out

    async def wait_for_control(self) -> None:
        """Block until at least one control message has been enqueued."""
        await self._control_ready.wait()
