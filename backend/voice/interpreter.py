"""
Transcript -> command mapping.

Rules:
- Case-insensitive substring search against an ordered rule table.
- First matching rule wins (declaration order, not specificity).
- Pure and deterministic: same text, same CommandResult.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final


class CommandToken(str, Enum):
    """Canonical identifiers a transcript resolves to."""

    PLACE_CONE = "place-cone"
    START_LINE = "start-line"
    OPTIMIZE_ZONE = "optimize-zone"
    CHECK_WEATHER = "check-weather"
    ANALYZE_TRAFFIC = "analyze-traffic"
    SAVE_ZONE = "save-zone"
    HELP = "help"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class CommandRule:
    """One row of the vocabulary table."""
    triggers: tuple[str, ...]
    token: CommandToken
    params: tuple[tuple[str, Any], ...] = ()


@dataclass(frozen=True)
class CommandResult:
    """
    Interpretation of one transcript.

    params is None for tokens that take none. Each result owns its own
    params dict; rules are never shared by reference.
    """
    token: CommandToken
    raw_text: str
    params: dict[str, Any] | None = field(default=None)


COMMAND_RULES: Final[tuple[CommandRule, ...]] = (
    CommandRule(
        triggers=("place cone", "add cone"),
        token=CommandToken.PLACE_CONE,
        params=(("type", "warning"),),
    ),
    CommandRule(
        triggers=("draw line", "create barrier"),
        token=CommandToken.START_LINE,
        params=(("type", "barrier"),),
    ),
    CommandRule(triggers=("optimize", "improve"), token=CommandToken.OPTIMIZE_ZONE),
    CommandRule(triggers=("weather", "forecast"), token=CommandToken.CHECK_WEATHER),
    CommandRule(triggers=("traffic", "congestion"), token=CommandToken.ANALYZE_TRAFFIC),
    CommandRule(triggers=("save", "export"), token=CommandToken.SAVE_ZONE),
    CommandRule(triggers=("help", "commands"), token=CommandToken.HELP),
)


def interpret(text: str) -> CommandResult:
    """Resolve a transcript to the first rule whose trigger it contains."""
    lowered = text.lower()

    for rule in COMMAND_RULES:
        if any(trigger in lowered for trigger in rule.triggers):
            return CommandResult(
                token=rule.token,
                raw_text=text,
                params=dict(rule.params) if rule.params else None,
            )

    return CommandResult(token=CommandToken.UNRECOGNIZED, raw_text=text)
