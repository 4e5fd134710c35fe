from __future__ import annotations

import io
import json

import pytest

from trackersync.decorators import ReadOnlySourceDecorator
from trackersync.errors import ConfigError, TrackerAPIError
from trackersync.logging import configure_logging
from trackersync.memory_source import MemorySource
from trackersync.models import Issue, IssueState
from trackersync.orchestrator import SyncEngine, SyncPhase, run_sync


def _pair(primary_issues=(), secondary_issues=()):
    primary = MemorySource(issues=list(primary_issues), is_primary=True, name="P")
    secondary = MemorySource(issues=list(secondary_issues), name="S")
    return primary, secondary


def test_xor_check_rejects_two_primaries_before_any_io():
    a = MemorySource(is_primary=True, name="a")
    b = MemorySource(is_primary=True, name="b")
    engine = SyncEngine(a, b)

    with pytest.raises(ConfigError, match="One and only one source must be the primary one"):
        engine.run()

    assert engine.phase is SyncPhase.IDLE
    assert a.calls == [] and b.calls == []


def test_xor_check_rejects_no_primary():
    with pytest.raises(ConfigError):
        SyncEngine(MemorySource(name="a"), MemorySource(name="b")).validate()


def test_roles_follow_settings_not_argument_order():
    primary, secondary = _pair()
    engine = SyncEngine(secondary, primary)
    engine.validate()
    assert engine.primary is primary
    assert engine.secondary is secondary


def test_connect_order_secondary_then_primary():
    order: list[str] = []

    class _Recording(MemorySource):
        def connect(self) -> None:
            order.append(self.name)
            super().connect()

    SyncEngine(_Recording(is_primary=True, name="P"), _Recording(name="S")).run()
    assert order == ["S", "P"]


def test_full_run_converges_both_sides():
    primary, secondary = _pair(
        [Issue("Fix crash"), Issue("Done already", id="2")],
        [Issue("Done already", id="2", state=IssueState.CLOSED), Issue("Board idea")],
    )

    report = run_sync(primary, secondary)

    assert report.counts() == {"add": 2, "update": 1, "close": 1}
    assert report.executed == 4
    by_desc = {i.description: i for i in secondary.issues}
    assert set(by_desc) == {"Fix crash", "Done already", "Board idea"}
    # the board card got the id the primary assigned to it
    board_idea = next(i for i in primary.issues if i.description == "Board idea")
    assert by_desc["Board idea"].id == board_idea.id
    assert next(i for i in primary.issues if i.description == "Done already").state is IssueState.CLOSED


def test_second_run_after_sync_is_a_no_op():
    primary, secondary = _pair([Issue("A"), Issue("B", id="5")], [Issue("C")])
    run_sync(primary, secondary)

    report = run_sync(primary, secondary)

    assert report.actions == []


def test_phases_and_disconnect_on_success():
    primary, secondary = _pair([Issue("A")])
    engine = SyncEngine(primary, secondary)

    engine.run()

    assert engine.phase is SyncPhase.DISCONNECTED
    assert primary.calls[-1] == ("disconnect", "")
    assert secondary.calls[-1] == ("disconnect", "")
    assert not primary.connected and not secondary.connected


def test_action_failure_aborts_without_rollback_or_disconnect():
    class _FlakySecondary(MemorySource):
        def add_issue(self, issue: Issue) -> None:
            if issue.description == "second":
                raise TrackerAPIError("boom", status=500)
            super().add_issue(issue)

    primary = MemorySource(issues=[Issue("first"), Issue("second"), Issue("third")], is_primary=True)
    secondary = _FlakySecondary(name="S")
    engine = SyncEngine(primary, secondary)

    with pytest.raises(TrackerAPIError):
        engine.run()

    assert engine.phase is SyncPhase.DIFFED
    assert [i.description for i in secondary.issues] == ["first"]
    assert ("disconnect", "") not in secondary.calls
    assert engine.report is not None and engine.report.executed == 1


def test_disconnect_errors_are_ignored():
    class _BadTeardown(MemorySource):
        def disconnect(self) -> None:
            raise RuntimeError("socket already gone")

    engine = SyncEngine(_BadTeardown(is_primary=True, name="P"), MemorySource(name="S"))
    engine.run()
    assert engine.phase is SyncPhase.DISCONNECTED


def test_read_only_decorators_plan_but_do_not_write():
    primary, secondary = _pair([Issue("A")], [Issue("B", id="9")])

    report = run_sync(ReadOnlySourceDecorator(primary), ReadOnlySourceDecorator(secondary))

    assert report.counts()["add"] == 2
    assert [i.description for i in primary.issues] == ["A"]
    assert [i.description for i in secondary.issues] == ["B"]


def test_lookup_goes_to_the_other_side():
    primary, secondary = _pair([Issue("A", id="3")], [Issue("renamed", id="3", state=IssueState.CLOSED)])
    secondary.settings.list_includes_closed = False

    report = run_sync(primary, secondary)

    assert ("get", "3") in secondary.calls
    assert [a.kind for a in report.actions] == ["close"]
    assert primary.issues[0].state is IssueState.CLOSED


def test_report_summary_items_and_dict():
    primary, secondary = _pair([Issue("A")])
    report = run_sync(primary, secondary)
    items = dict(report.summary_items())
    assert items["Primary"] == "P"
    assert items["Adds"] == 1
    data = report.to_dict()
    assert data["plan"][0]["action"] == "add"
    assert data["counts"] == {"add": 1, "update": 0, "close": 0}


def _json_records(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_disconnect_failure_is_not_reported_as_error():
    class _BadTeardown(MemorySource):
        def disconnect(self) -> None:
            raise RuntimeError("socket already gone")

    stream = io.StringIO()
    configure_logging(json_logging=True, level="DEBUG", stream=stream)

    SyncEngine(_BadTeardown(is_primary=True, name="P"), MemorySource(name="S")).run()

    assert "socket already gone" not in stream.getvalue()
    assert all(r["level"] != "ERROR" for r in _json_records(stream))


def test_action_records_flag_read_only_runs():
    stream = io.StringIO()
    configure_logging(json_logging=True, level="INFO", stream=stream)
    primary, secondary = _pair([Issue("A")])
    run_sync(primary, ReadOnlySourceDecorator(secondary))

    primary, secondary = _pair([Issue("B")])
    run_sync(primary, secondary)

    actions = [r for r in _json_records(stream) if r.get("operation") == "issue_add"]
    assert [(r["message"], r["dry_run"]) for r in actions] == [
        ("add on S #1 [DRY]", True),
        ("add on S #1", False),
    ]


def test_memory_ids_stay_in_the_primary_id_space():
    primary, secondary = _pair(
        [Issue("Fix crash"), Issue("Known", id="7")],
        [Issue("Board idea")],
    )

    run_sync(primary, secondary)

    primary_ids = {i.description: i.id for i in primary.issues}
    secondary_ids = {i.description: i.id for i in secondary.issues}
    assert primary_ids == secondary_ids
    assert len(set(primary_ids.values())) == 3
    assert primary_ids["Known"] == "7"
