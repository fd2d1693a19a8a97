# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

from voice.interpreter import COMMAND_RULES, CommandToken, interpret
from voice.prompts import ACKNOWLEDGMENTS, acknowledgment_for


@pytest.mark.parametrize(
    "text, token, params",
    [
        ("please place cone here", CommandToken.PLACE_CONE, {"type": "warning"}),
        ("Add Cone", CommandToken.PLACE_CONE, {"type": "warning"}),
        ("draw line to the exit", CommandToken.START_LINE, {"type": "barrier"}),
        ("create barrier", CommandToken.START_LINE, {"type": "barrier"}),
        ("optimize this", CommandToken.OPTIMIZE_ZONE, None),
        ("can we improve the layout", CommandToken.OPTIMIZE_ZONE, None),
        ("what's the weather", CommandToken.CHECK_WEATHER, None),
        ("tomorrow's forecast", CommandToken.CHECK_WEATHER, None),
        ("how is traffic", CommandToken.ANALYZE_TRAFFIC, None),
        ("any congestion", CommandToken.ANALYZE_TRAFFIC, None),
        ("save it", CommandToken.SAVE_ZONE, None),
        ("export the zone", CommandToken.SAVE_ZONE, None),
        ("can you help", CommandToken.HELP, None),
        ("list commands", CommandToken.HELP, None),
        ("open the pod bay doors", CommandToken.UNRECOGNIZED, None),
    ],
)
def test_rule_table(text: str, token: CommandToken, params) -> None:
    result = interpret(text)

    assert result.token is token
    assert result.params == params
    assert result.raw_text == text


def test_first_rule_wins_on_multiple_triggers() -> None:
    # "save" (rule 6) and "weather" (rule 4) and "help" (rule 7)
    assert interpret("help me save the weather report").token is CommandToken.CHECK_WEATHER
    # "place cone" (rule 1) beats "draw line" (rule 2)
    assert interpret("draw line then place cone").token is CommandToken.PLACE_CONE


def test_interpret_is_deterministic() -> None:
    assert interpret("please place cone here") == interpret("please place cone here")


def test_params_are_not_shared_between_results() -> None:
    first = interpret("place cone")
    assert first.params is not None
    first.params["type"] = "mutated"

    assert interpret("place cone").params == {"type": "warning"}


def test_rule_table_order() -> None:
    assert [rule.token for rule in COMMAND_RULES] == [
        CommandToken.PLACE_CONE,
        CommandToken.START_LINE,
        CommandToken.OPTIMIZE_ZONE,
        CommandToken.CHECK_WEATHER,
        CommandToken.ANALYZE_TRAFFIC,
        CommandToken.SAVE_ZONE,
        CommandToken.HELP,
    ]


def test_every_token_has_an_acknowledgment() -> None:
    assert set(ACKNOWLEDGMENTS) == set(CommandToken)
    assert acknowledgment_for(CommandToken.PLACE_CONE) == "Placing warning cone at current location"
    assert "weather conditions" in acknowledgment_for(CommandToken.CHECK_WEATHER)
