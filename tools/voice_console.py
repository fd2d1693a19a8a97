"""
Interactive console driver for the voice command controller.

Typed lines stand in for recognized speech. Spoken acknowledgments and
dispatched commands are printed. Lines starting with ':' are controls:

    :start / :stop       user activation control
    :error <code>        simulate a recognizer error (e.g. no-speech, not-allowed)
    :end                 simulate the recognizer ending on its own
    :deny / :grant       simulate a microphone permission change
    :status              print the status feed
    :quit                tear down and exit

Usage (after `pip install -e .`):
    python tools/voice_console.py [--backoff-ms N] [--delay-ms N] [--plain-logs]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from observability import logger
from orchestrator.capabilities import (
    EndHandler,
    ErrorHandler,
    PermissionHandler,
    ResultHandler,
    UtteranceHandler,
)
from orchestrator.enums.permission import PermissionState
from session.orchestrator import SessionOrchestrator
from spec import PROCESSING_ACK_DELAY_MS, RECOGNITION_CONTINUOUS, RESTART_BACKOFF_MS


class ConsoleRecognition:
    """Recognizer fed by typed lines; `end` is delivered on the next loop turn."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.continuous = RECOGNITION_CONTINUOUS
        self.active = False
        self._loop = loop
        self._on_result: ResultHandler | None = None
        self._on_error: ErrorHandler | None = None
        self._on_end: EndHandler | None = None

    def bind(self, *, on_result: ResultHandler, on_error: ErrorHandler, on_end: EndHandler) -> None:
        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end

    def start(self) -> None:
        self.active = True
        print("[mic] listening")

    def stop(self) -> None:
        if self.active:
            self.active = False
            print("[mic] stopped")
            self._loop.call_soon(self.end)

    def hear(self, text: str) -> None:
        if not self.active:
            print("[mic] not listening, line dropped")
            return
        assert self._on_result is not None
        self._on_result(text)

    def error(self, code: str) -> None:
        assert self._on_error is not None
        self._on_error(code)
        # The platform always follows an error with end
        self._loop.call_soon(self.end)

    def end(self) -> None:
        self.active = False
        assert self._on_end is not None
        self._on_end()


class ConsoleSpeech:
    """Prints utterances; start/end are reported on later loop turns."""

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._on_start: UtteranceHandler | None = None
        self._on_end: UtteranceHandler | None = None

    def bind(self, *, on_start: UtteranceHandler, on_end: UtteranceHandler) -> None:
        self._on_start = on_start
        self._on_end = on_end

    def speak(self, text: str, *, utterance_id: int) -> None:
        print(f"[speak #{utterance_id}] {text}")
        assert self._on_start is not None and self._on_end is not None
        self._loop.call_soon(self._on_start, utterance_id)
        self._loop.call_soon(self._on_end, utterance_id)

    def cancel(self) -> None:
        print("[speak] cancelled")


class ConsolePermission:
    def __init__(self) -> None:
        self._state = PermissionState.GRANTED
        self._on_change: PermissionHandler | None = None

    def query(self) -> PermissionState:
        return self._state

    def bind(self, *, on_change: PermissionHandler) -> None:
        self._on_change = on_change

    def set(self, state: PermissionState) -> None:
        self._state = state
        if self._on_change is not None:
            self._on_change(state)


def _print_command(token: str, params: dict[str, Any] | None) -> None:
    print(f"[host] command={token} params={params}")


def _print_unsupported(reason: str) -> None:
    print(f"[host] voice unsupported: {reason}")


async def run(args: argparse.Namespace) -> None:
    loop = asyncio.get_running_loop()
    recognition = ConsoleRecognition(loop)
    speech = ConsoleSpeech(loop)
    permission = ConsolePermission()

    orchestrator = SessionOrchestrator(
        session_id="console",
        recognizer=recognition,
        synthesizer=None if args.no_speech else speech,
        permission_source=permission,
        on_command=_print_command,
        on_unsupported=_print_unsupported,
        restart_backoff_ms=args.backoff_ms,
        processing_delay_ms=args.delay_ms,
    )
    orchestrator.start()

    try:
        while True:
            line = await asyncio.to_thread(sys.stdin.readline)
            if not line:
                break
            line = line.strip()

            if line == ":quit":
                break
            if line == ":start":
                orchestrator.start()
            elif line == ":stop":
                orchestrator.stop()
            elif line.startswith(":error"):
                recognition.error(line.partition(" ")[2] or "no-speech")
            elif line == ":end":
                recognition.end()
            elif line == ":deny":
                permission.set(PermissionState.DENIED)
            elif line == ":grant":
                permission.set(PermissionState.GRANTED)
            elif line == ":status":
                print(f"[status] {orchestrator.status().to_dict()}")
            else:
                recognition.hear(line)
    finally:
        await orchestrator.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Drive the voice command controller from a terminal.")
    parser.add_argument("--backoff-ms", type=int, default=RESTART_BACKOFF_MS)
    parser.add_argument("--delay-ms", type=int, default=PROCESSING_ACK_DELAY_MS)
    parser.add_argument("--plain-logs", action="store_true", help="key=value log lines instead of JSONL")
    parser.add_argument("--no-speech", action="store_true", help="simulate a platform without speech output")
    args = parser.parse_args()

    logger.configure(json_lines=not args.plain_logs)
    asyncio.run(run(args))


if __name__ == "__main__":
    main()
