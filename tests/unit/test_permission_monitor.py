# pylint: disable=missing-module-docstring,missing-function-docstring

import pytest

import voice.permission as permission_mod
from orchestrator.enums.permission import PermissionState
from voice.permission import PermissionMonitor

from fakes import FakePermission, capture_logs


def test_without_platform_capability_state_is_unknown() -> None:
    monitor = PermissionMonitor(source=None)

    assert monitor.available is False
    assert monitor.query() is PermissionState.UNKNOWN


def test_query_reads_platform() -> None:
    monitor = PermissionMonitor(source=FakePermission(PermissionState.PROMPT))

    assert monitor.available is True
    assert monitor.query() is PermissionState.PROMPT


def test_failed_query_reports_unknown(monkeypatch: pytest.MonkeyPatch) -> None:
    emitted = capture_logs(monkeypatch, permission_mod)
    monitor = PermissionMonitor(source=FakePermission(fail_query=True))

    assert monitor.query() is PermissionState.UNKNOWN
    assert emitted[0]["event_type"] == "permission_query_failed"


def test_subscribers_notified_until_unsubscribed() -> None:
    source = FakePermission()
    monitor = PermissionMonitor(source=source)
    seen: list[PermissionState] = []

    unsubscribe = monitor.subscribe(seen.append)
    source.change(PermissionState.DENIED)

    unsubscribe()
    unsubscribe()
    source.change(PermissionState.GRANTED)

    assert seen == [PermissionState.DENIED]
