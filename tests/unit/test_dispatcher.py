# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

import voice.dispatcher as dispatcher_mod
from context.history import CommandHistory
from voice.dispatcher import CommandDispatcher
from voice.interpreter import interpret

from fakes import HostRecorder, capture_logs


def test_forwards_token_and_params_and_records_history() -> None:
    host = HostRecorder()
    dispatcher = CommandDispatcher(on_command=host, history=CommandHistory())

    dispatcher.dispatch(interpret("please place cone here"))

    assert host.calls == [("place-cone", {"type": "warning"})]
    assert dispatcher.history.entries() == ("please place cone here",)


def test_unrecognized_is_recorded_but_not_forwarded() -> None:
    host = HostRecorder()
    dispatcher = CommandDispatcher(on_command=host, history=CommandHistory())

    dispatcher.dispatch(interpret("sing a song"))

    assert host.calls == []
    assert dispatcher.history.entries() == ("sing a song",)


def test_host_failure_is_logged_not_raised(monkeypatch: pytest.MonkeyPatch) -> None:
    emitted = capture_logs(monkeypatch, dispatcher_mod)
    host = HostRecorder(fail=True)
    dispatcher = CommandDispatcher(on_command=host, history=CommandHistory(), session_id="s1")

    dispatcher.dispatch(interpret("save"))

    assert host.calls == [("save-zone", None)]
    assert dispatcher.history.last == "save"
    failures = [e for e in emitted if e["event_type"] == "host_callback_failed"]
    assert len(failures) == 1
    assert failures[0]["exception"] == "ValueError"
    assert failures[0]["session_id"] == "s1"
