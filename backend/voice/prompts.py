"""
Spoken acknowledgment phrases, keyed by command token.

Phrase text lives here and nowhere else.
"""

from __future__ import annotations

from typing import Final

from voice.interpreter import CommandToken


ACKNOWLEDGMENTS: Final[dict[CommandToken, str]] = {
    CommandToken.PLACE_CONE: "Placing warning cone at current location",
    CommandToken.START_LINE: "Starting line drawing mode",
    CommandToken.OPTIMIZE_ZONE: "Running AI optimization on current zone",
    CommandToken.CHECK_WEATHER: "Checking weather conditions for construction zone",
    CommandToken.ANALYZE_TRAFFIC: "Analyzing current traffic patterns",
    CommandToken.SAVE_ZONE: "Saving current zone configuration",
    CommandToken.HELP: (
        "Available commands: place cone, draw line, optimize zone, "
        "check weather, analyze traffic, save zone"
    ),
    CommandToken.UNRECOGNIZED: "Command not recognized. Say help for available commands.",
}


def acknowledgment_for(token: CommandToken) -> str:
    return ACKNOWLEDGMENTS[token]
