"""Expand reconciler decisions into an ordered list of executable actions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .errors import UnknownDecisionError
from .models import Issue, IssueField, Side, field_names
from .reconcile import Decision, DecisionKind
from .source import TrackerSource

SourceResolver = Callable[[Side], TrackerSource]


@dataclass
class SyncAction:
    """One mutation against one source, run in plan order."""

    source: TrackerSource
    issue: Issue

    kind = "action"

    def run(self) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.kind} {self.source.name}: {self.issue.description!r}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.kind,
            "source": self.source.name,
            "id": self.issue.id,
            "description": self.issue.description,
        }


@dataclass
class AddIssueAction(SyncAction):
    kind = "add"

    def run(self) -> None:
        self.source.add_issue(self.issue)


@dataclass
class UpdateIssueAction(SyncAction):
    # the issue payload may be the same object an earlier add mutated, so its
    # id is only read when the action runs
    fields: IssueField = IssueField.ID

    kind = "update"

    def run(self) -> None:
        self.source.update_issue(self.issue, self.fields)

    def describe(self) -> str:
        return f"{super().describe()} [{field_names(self.fields)}]"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["fields"] = field_names(self.fields)
        return data


@dataclass
class CloseIssueAction(SyncAction):
    kind = "close"

    def run(self) -> None:
        self.source.close_issue(self.issue)


class ActionPlanner:
    """Decision handler that accumulates actions.

    An add on the primary side is followed by an identifier update on the
    other side, so the secondary copy records the id the primary assigns.
    """

    def __init__(self, source_for_side: SourceResolver) -> None:
        self._source_for_side = source_for_side
        self.actions: list[SyncAction] = []

    def on_decision(self, decision: Decision) -> None:
        source = self._source_for_side(decision.side)
        if decision.kind is DecisionKind.CLOSE:
            self.actions.append(CloseIssueAction(source, decision.issue))
        elif decision.kind is DecisionKind.ADD:
            self.actions.append(AddIssueAction(source, decision.issue))
            if decision.side is Side.PRIMARY:
                other = self._source_for_side(decision.side.other())
                self.actions.append(UpdateIssueAction(other, decision.issue, IssueField.ID))
        else:
            raise UnknownDecisionError(f"Unknown decision kind: {decision.kind!r}")


def run_actions(
    actions: list[SyncAction], after: Callable[[SyncAction], None] | None = None
) -> int:
    """Run actions in order; the first failure propagates and stops the run.

    ``after`` is called once per action that completed.
    """
    done = 0
    for action in actions:
        action.run()
        done += 1
        if after is not None:
            after(action)
    return done


__all__ = [
    "ActionPlanner",
    "AddIssueAction",
    "CloseIssueAction",
    "SourceResolver",
    "SyncAction",
    "UpdateIssueAction",
    "run_actions",
]
