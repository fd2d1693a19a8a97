"""
Consumed capability ports.

Provides the narrow interfaces the controller needs from the platform:
speech recognition, speech output and microphone permission.

This module contains:
- Narrow Protocols (capabilities, not implementations)
- Zero orchestration logic
- Zero state mutation

Every control call returns immediately; completion is signalled later
through the bound callbacks, never by blocking the caller.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from orchestrator.enums.permission import PermissionState


ResultHandler = Callable[[str], None]
ErrorHandler = Callable[[str], None]
EndHandler = Callable[[], None]

UtteranceHandler = Callable[[int], None]

PermissionHandler = Callable[[PermissionState], None]


# ---------------------------------------------------------------------
# Recognition
# ---------------------------------------------------------------------

@runtime_checkable
class RecognitionCapability(Protocol):
    """
    Continuous speech-to-text capability.

    Exclusively owned by RecognitionSession; nothing else may call
    start()/stop().
    """

    continuous: bool

    def bind(
        self,
        *,
        on_result: ResultHandler,
        on_error: ErrorHandler,
        on_end: EndHandler,
    ) -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...


# ---------------------------------------------------------------------
# Speech output
# ---------------------------------------------------------------------

@runtime_checkable
class SpeechOutputCapability(Protocol):
    """
    Text-to-speech capability.

    Exclusively owned by ResponseSpeaker. utterance_id is echoed back in
    on_start/on_end so late callbacks for cancelled utterances can be
    told apart from the current one.
    """

    def bind(
        self,
        *,
        on_start: UtteranceHandler,
        on_end: UtteranceHandler,
    ) -> None: ...

    def speak(self, text: str, *, utterance_id: int) -> None: ...

    def cancel(self) -> None: ...


# ---------------------------------------------------------------------
# Permission
# ---------------------------------------------------------------------

@runtime_checkable
class PermissionCapability(Protocol):
    """Platform microphone consent query + change notifications."""

    def query(self) -> PermissionState: ...

    def bind(self, *, on_change: PermissionHandler) -> None: ...
