"""
Single-utterance speech output.

Policy (latest-wins):
- speak() cancels any in-flight utterance before starting the new one
- utterances are never queued
- at most one utterance is in flight

Each utterance carries a monotonic utterance_id; start/end callbacks for
any other id are stale and ignored.
"""

from __future__ import annotations

from orchestrator.capabilities import SpeechOutputCapability
from observability.logger import log_event
from spec import UTTERANCE_ID_START


class ResponseSpeaker:
    """Owns the speech-output handle exclusively."""

    def __init__(
        self,
        *,
        synthesizer: SpeechOutputCapability,
        session_id: str | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._session_id = session_id

        self._next_utterance_id = UTTERANCE_ID_START
        self._current_id: int | None = None
        self._speaking = False

        synthesizer.bind(on_start=self._on_start, on_end=self._on_end)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def is_speaking(self) -> bool:
        """Derived from the capability's start/end signals."""
        return self._speaking

    @property
    def current_utterance_id(self) -> int | None:
        return self._current_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def speak(self, text: str) -> int:
        """
        Start a new utterance, superseding the current one.

        Returns the utterance_id handed to the capability.
        """
        self.cancel_current()

        utterance_id = self._next_utterance_id
        self._next_utterance_id += 1
        self._current_id = utterance_id

        self._synthesizer.speak(text, utterance_id=utterance_id)
        log_event({
            "event_type": "speak_requested",
            "session_id": self._session_id,
            "utterance_id": utterance_id,
            "chars": len(text),
        })
        return utterance_id

    def cancel_current(self) -> None:
        """No-op when nothing is in flight."""
        if self._current_id is None:
            return

        cancelled = self._current_id
        self._current_id = None
        self._speaking = False
        self._synthesizer.cancel()
        log_event({
            "event_type": "speech_cancelled",
            "session_id": self._session_id,
            "utterance_id": cancelled,
        })

    # ------------------------------------------------------------------
    # Capability callbacks
    # ------------------------------------------------------------------

    def _on_start(self, utterance_id: int) -> None:
        if utterance_id != self._current_id:
            return
        self._speaking = True

    def _on_end(self, utterance_id: int) -> None:
        if utterance_id != self._current_id:
            return
        self._speaking = False
        self._current_id = None
