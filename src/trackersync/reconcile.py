"""Reconcile two issue collections into add / close decisions.

Issues from the two trackers are joined on ``description``. The algorithm:

* matched pair, states differ      -> close the side that is still open
                                      (there is no re-open direction)
* one-sided issue, already closed  -> nothing (old closed issues are not
                                      resurrected on the other side)
* one-sided open issue with an id  -> ask the other side for that id, since
                                      list calls may only return open issues:
    - absent                       -> add it to the other side
    - found closed                 -> close it on this side
    - found open                   -> nothing
* one-sided open issue, empty id   -> add it to the other side, no lookup

Primary-side one-sided issues are handled before secondary-side ones and
matched-pair closures happen during the primary pass; no other ordering is
promised.

Within one side, issues sharing a description collapse to the last one
listed (last write wins).

The reconciler does no I/O of its own. The only call out is
``handler.lookup_issue``, answered synchronously before it moves on.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from .errors import ConfigError
from .models import Issue, IssueState, Side


class DecisionKind(str, enum.Enum):
    ADD = "add"
    CLOSE = "close"


@dataclass(frozen=True)
class Decision:
    kind: DecisionKind
    side: Side
    issue: Issue

    def __str__(self) -> str:
        return f"{self.kind.value}({self.side.value}, {self.issue.description!r})"


class ReconcileHandler(Protocol):
    def lookup_issue(self, issue_id: str, side: Side) -> Issue | None: ...

    def report_decision(self, decision: Decision) -> None: ...


LookupFn = Callable[[str, Side], "Issue | None"]
ReportFn = Callable[[Decision], None]


class CallbackHandler:
    """Adapts a pair of plain callables to :class:`ReconcileHandler`."""

    def __init__(self, lookup: LookupFn | None, report: ReportFn | None) -> None:
        if lookup is None or report is None:
            raise ConfigError("Reconciler requires both a lookup and a decision callback")
        self._lookup = lookup
        self._report = report

    def lookup_issue(self, issue_id: str, side: Side) -> Issue | None:
        return self._lookup(issue_id, side)

    def report_decision(self, decision: Decision) -> None:
        self._report(decision)


def _verify_handler(handler: ReconcileHandler | None) -> ReconcileHandler:
    if handler is None:
        raise ConfigError("Reconciler MUST have a lookup and a decision handler to function")
    for attr in ("lookup_issue", "report_decision"):
        if not callable(getattr(handler, attr, None)):
            raise ConfigError(f"Reconciler handler is missing '{attr}'")
    return handler


def index_by_description(issues: Iterable[Issue]) -> dict[str, Issue]:
    return {issue.description: issue for issue in issues}


class IssueReconciler:
    """Diff a primary and a secondary issue collection.

    The collections are materialized once, on construction.
    """

    def __init__(self, primary_issues: Iterable[Issue], secondary_issues: Iterable[Issue]) -> None:
        self._primary = list(primary_issues)
        self._secondary = list(secondary_issues)

    def resolve(self, handler: ReconcileHandler | None) -> None:
        handler = _verify_handler(handler)
        primary = index_by_description(self._primary)
        secondary = index_by_description(self._secondary)

        for description, primary_issue in primary.items():
            secondary_issue = secondary.pop(description, None)
            if secondary_issue is None:
                self._handle_one_sided(primary_issue, Side.PRIMARY, handler)
            elif primary_issue.state is not secondary_issue.state:
                self._handle_close(primary_issue, secondary_issue, handler)

        for secondary_issue in secondary.values():
            self._handle_one_sided(secondary_issue, Side.SECONDARY, handler)

    @staticmethod
    def _handle_one_sided(issue: Issue, existing: Side, handler: ReconcileHandler) -> None:
        if issue.state is IssueState.CLOSED:
            return
        missing = existing.other()
        counterpart = handler.lookup_issue(issue.id, missing) if issue.id else None
        if counterpart is None:
            handler.report_decision(Decision(DecisionKind.ADD, missing, issue))
        elif counterpart.state is IssueState.CLOSED:
            handler.report_decision(Decision(DecisionKind.CLOSE, existing, issue))

    @staticmethod
    def _handle_close(primary: Issue, secondary: Issue, handler: ReconcileHandler) -> None:
        if primary.state is IssueState.CLOSED:
            handler.report_decision(Decision(DecisionKind.CLOSE, Side.SECONDARY, secondary))
        else:
            handler.report_decision(Decision(DecisionKind.CLOSE, Side.PRIMARY, primary))


def reconcile(
    primary_issues: Iterable[Issue],
    secondary_issues: Iterable[Issue],
    lookup: LookupFn | None,
) -> list[Decision]:
    """Run a reconciliation pass and return the decisions in emission order."""
    decisions: list[Decision] = []
    IssueReconciler(primary_issues, secondary_issues).resolve(
        CallbackHandler(lookup, decisions.append)
    )
    return decisions


__all__ = [
    "CallbackHandler",
    "Decision",
    "DecisionKind",
    "IssueReconciler",
    "ReconcileHandler",
    "index_by_description",
    "reconcile",
]
