"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- No side effects beyond logging
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Mapping, Callable


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

_print: Callable[[str], None] = _stdout_print

_json_lines: bool = True


def configure(*, json_lines: bool) -> None:
    """
    Select the line format.

    json_lines=True (default): one compact JSON object per line.
    json_lines=False: `event_type key=value ...` for local debugging.
    """
    global _json_lines  # pylint: disable=global-statement
    _json_lines = json_lines


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _format_plain(event: Mapping[str, Any]) -> str:
    head = str(event.get("event_type", "LOG"))
    rest = " ".join(
        f"{k}={v!r}" for k, v in event.items() if k != "event_type"
    )
    return f"{head} {rest}" if rest else head


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single log event to stdout.

    The caller is responsible for:
    - Supplying the event_type / decision fields
    - Including session_id and state where relevant

    This function:
    - Fills in ts_ms when the caller did not
    - Serializes to JSON (or key=value when configured)
    - Writes exactly one line
    - Flushes immediately (no buffering)
    - Never raises
    """
    payload: dict[str, Any] = dict(event)
    payload.setdefault("ts_ms", _now_ms())

    if not _json_lines:
        _print(_format_plain(payload))
        return

    try:
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback; logging must never crash the controller
        fallback: dict[str, Any] = {
            "ts_ms": payload.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
