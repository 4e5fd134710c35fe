"""In-memory tracker used for mock mode and tests.

Issues are declared inline in the configuration (``issues:``). Mutations are
applied to the in-memory list and also recorded in ``calls`` so callers can
assert on exactly what a sync pass did.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigError
from .models import Issue, IssueField, IssueState
from .source import BaseSource, SourceSettings

KIND = "memory"


def _parse_state(value: Any) -> IssueState:
    try:
        return IssueState(str(value or "open").lower())
    except ValueError as exc:
        raise ConfigError(f"Unknown issue state '{value}'") from exc


def _next_free_id(issues: Iterable[Issue], first_id: int) -> int:
    numeric = [int(issue.id) for issue in issues if issue.id.isdigit()]
    return max([first_id - 1, *numeric]) + 1


@dataclass
class MemorySourceSettings(SourceSettings):
    issues: list[Issue] = field(default_factory=list)
    first_id: int = 1

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MemorySourceSettings:
        issues = [
            Issue(
                id=str(entry.get("id") or ""),
                description=str(entry.get("description") or ""),
                details=entry.get("details"),
                state=_parse_state(entry.get("state")),
            )
            for entry in raw.get("issues") or []
        ]
        return cls(
            kind=KIND,
            is_primary=bool(raw.get("primary", False)),
            list_includes_closed=bool(raw.get("list_includes_closed", True)),
            name=raw.get("name"),
            issues=issues,
            first_id=int(raw.get("first_id", 1)),
        )


class MemorySource(BaseSource):
    display_name = "Memory"

    def __init__(
        self,
        settings: MemorySourceSettings | None = None,
        *,
        issues: Iterable[Issue] | None = None,
        is_primary: bool = False,
        name: str | None = None,
    ) -> None:
        settings = settings or MemorySourceSettings(kind=KIND, is_primary=is_primary, name=name)
        super().__init__(settings)
        seed = issues if issues is not None else settings.issues
        self.issues: list[Issue] = [i.clone() for i in seed]
        self.calls: list[tuple[str, str]] = []
        self.connected = False
        self._ids = itertools.count(_next_free_id(self.issues, settings.first_id))
        if settings.is_primary:
            # a primary tracker owns the id space, so every seeded issue has one
            for issue in self.issues:
                if not issue.id:
                    issue.id = str(next(self._ids))

    def _find(self, issue_id: str) -> Issue | None:
        for issue in self.issues:
            if issue.id and issue.id == issue_id:
                return issue
        return None

    def connect(self) -> None:
        self.connected = True
        self.calls.append(("connect", ""))

    def disconnect(self) -> None:
        self.connected = False
        self.calls.append(("disconnect", ""))

    def list_issues(self) -> Sequence[Issue]:
        self.calls.append(("list", ""))
        include_closed = self.settings.list_includes_closed
        return [i.clone() for i in self.issues if include_closed or i.is_open]

    def get_issue(self, issue_id: str) -> Issue | None:
        self.calls.append(("get", issue_id))
        found = self._find(issue_id)
        return found.clone() if found is not None else None

    def add_issue(self, issue: Issue) -> None:
        if self.settings.is_primary or not issue.id:
            issue.id = str(next(self._ids))
        self.calls.append(("add", issue.id))
        self.issues.append(issue.clone())

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        self.calls.append(("update", issue.id))
        if IssueField.ID in fields:
            # the id is what changes, so locate the stored copy by its join key
            stored = next((i for i in self.issues if i.description == issue.description), None)
            if stored is not None:
                stored.id = issue.id
        else:
            stored = self._find(issue.id)
        if stored is None:
            return
        if IssueField.DESCRIPTION in fields:
            stored.description = issue.description
        if IssueField.DETAILS in fields:
            stored.details = issue.details
        if IssueField.STATE in fields:
            stored.state = issue.state

    def close_issue(self, issue: Issue) -> None:
        self.calls.append(("close", issue.id))
        stored = self._find(issue.id)
        if stored is not None:
            stored.state = IssueState.CLOSED


__all__ = ["KIND", "MemorySource", "MemorySourceSettings"]
