"""Sync orchestration: one reconcile-and-apply pass over two sources.

The engine walks ``IDLE -> VALIDATED -> CONNECTED -> DIFFED -> EXECUTED ->
DISCONNECTED``. Any failure propagates to the caller unchanged and leaves the
engine in the last phase it reached; actions already executed stay applied.
"""

from __future__ import annotations

import enum
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from .decorators import is_read_only
from .errors import ConfigError, TrackerSyncError
from .logging import get_logger
from .models import Issue, Side
from .planner import ActionPlanner, SyncAction, run_actions
from .reconcile import Decision, IssueReconciler
from .source import TrackerSource


class SyncPhase(str, enum.Enum):
    IDLE = "idle"
    VALIDATED = "validated"
    CONNECTED = "connected"
    DIFFED = "diffed"
    EXECUTED = "executed"
    DISCONNECTED = "disconnected"


@dataclass
class SyncReport:
    primary: str
    secondary: str
    decisions: list[Decision] = field(default_factory=list)
    actions: list[SyncAction] = field(default_factory=list)
    executed: int = 0
    duration_ms: float = 0.0

    def counts(self) -> dict[str, int]:
        counter = Counter(action.kind for action in self.actions)
        return {kind: counter.get(kind, 0) for kind in ("add", "update", "close")}

    def summary_items(self) -> list[tuple[str, str | int]]:
        counts = self.counts()
        return [
            ("Primary", self.primary),
            ("Secondary", self.secondary),
            ("Planned", len(self.actions)),
            ("Executed", self.executed),
            ("Adds", counts["add"]),
            ("Updates", counts["update"]),
            ("Closes", counts["close"]),
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary,
            "secondary": self.secondary,
            "planned": len(self.actions),
            "executed": self.executed,
            "counts": self.counts(),
            "plan": [action.to_dict() for action in self.actions],
            "duration_ms": round(self.duration_ms, 2),
        }


class _PlanningHandler:
    """Answers reconciler lookups from the sources and feeds the planner."""

    def __init__(self, engine: SyncEngine, planner: ActionPlanner, decisions: list[Decision]):
        self._engine = engine
        self._planner = planner
        self._decisions = decisions

    def lookup_issue(self, issue_id: str, side: Side) -> Issue | None:
        return self._engine.source_for(side).get_issue(issue_id)

    def report_decision(self, decision: Decision) -> None:
        self._decisions.append(decision)
        self._planner.on_decision(decision)


class SyncEngine:
    """Synchronizes two already-constructed sources.

    Exactly one of them must be configured as primary (the side that assigns
    identifiers). Each engine instance performs a single run.
    """

    def __init__(self, first: TrackerSource, second: TrackerSource) -> None:
        self._sources = (first, second)
        self._roles: dict[Side, TrackerSource] = {}
        self.phase = SyncPhase.IDLE
        self.report: SyncReport | None = None

    @property
    def primary(self) -> TrackerSource:
        return self.source_for(Side.PRIMARY)

    @property
    def secondary(self) -> TrackerSource:
        return self.source_for(Side.SECONDARY)

    def source_for(self, side: Side) -> TrackerSource:
        try:
            return self._roles[side]
        except KeyError as exc:
            raise TrackerSyncError("Sync engine used before validation") from exc

    def validate(self) -> None:
        first, second = self._sources
        if first.settings.is_primary == second.settings.is_primary:
            raise ConfigError("One and only one source must be the primary one")
        primary, secondary = (first, second) if first.settings.is_primary else (second, first)
        self._roles = {Side.PRIMARY: primary, Side.SECONDARY: secondary}
        self.phase = SyncPhase.VALIDATED
        get_logger().log_operation(
            "sync_validated", primary=primary.name, secondary=secondary.name
        )

    def connect(self) -> None:
        self.secondary.connect()
        self.primary.connect()
        self.phase = SyncPhase.CONNECTED
        get_logger().log_operation("sync_connected")

    def diff(self) -> list[SyncAction]:
        planner = ActionPlanner(self.source_for)
        decisions: list[Decision] = []
        reconciler = IssueReconciler(self.primary.list_issues(), self.secondary.list_issues())
        reconciler.resolve(_PlanningHandler(self, planner, decisions))
        self.report = SyncReport(
            primary=self.primary.name,
            secondary=self.secondary.name,
            decisions=decisions,
            actions=planner.actions,
        )
        self.phase = SyncPhase.DIFFED
        get_logger().log_operation(
            "sync_diffed", decisions=len(decisions), actions=len(planner.actions)
        )
        return planner.actions

    def execute(self) -> int:
        report = self._require_report()
        logger = get_logger()

        def _record(action: SyncAction) -> None:
            report.executed += 1
            logger.log_action(
                action.kind,
                action.source.name,
                action.issue.id or None,
                dry_run=is_read_only(action.source),
            )

        run_actions(report.actions, after=_record)
        self.phase = SyncPhase.EXECUTED
        logger.log_operation("sync_executed", executed=report.executed)
        return report.executed

    def disconnect(self) -> None:
        for source in (self.primary, self.secondary):
            try:
                source.disconnect()
            except Exception:  # noqa: BLE001
                get_logger().debug("disconnect ignored", source=source.name)
        self.phase = SyncPhase.DISCONNECTED
        get_logger().log_operation("sync_disconnected")

    def run(self) -> SyncReport:
        """Validate, connect, diff, execute and disconnect, in that order."""
        start = time.perf_counter()
        self.validate()
        self.connect()
        self.diff()
        self.execute()
        self.disconnect()
        report = self._require_report()
        report.duration_ms = (time.perf_counter() - start) * 1000
        return report

    def _require_report(self) -> SyncReport:
        if self.report is None:
            raise TrackerSyncError("Sync engine has not computed a plan yet")
        return self.report


def run_sync(first: TrackerSource, second: TrackerSource) -> SyncReport:
    return SyncEngine(first, second).run()


__all__ = ["SyncEngine", "SyncPhase", "SyncReport", "run_sync"]
