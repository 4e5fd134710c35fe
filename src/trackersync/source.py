"""Tracker source capability contract.

A *source* is one configured issue tracker. The sync engine only ever talks
to the :class:`TrackerSource` protocol, so concrete REST adapters and the
cross-cutting decorators (read-only, logging, normalizing) are
interchangeable.

Contract notes:

- ``connect`` is idempotent setup (credential checks, resolving names to
  backend ids); ``disconnect`` is best-effort teardown.
- ``list_issues`` returns open issues and, when the source is configured
  with ``list_includes_closed``, closed ones too.
- ``get_issue`` returns ``None`` when the issue does not exist; that is a
  valid answer, not an error.
- ``add_issue`` writes the newly assigned identifier into ``issue.id``.
- ``update_issue`` writes only the fields named in the mask and raises
  :class:`~trackersync.errors.UnsupportedFieldError` for any it can't.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .models import Issue, IssueField


@dataclass
class SourceSettings:
    kind: str
    is_primary: bool = False
    list_includes_closed: bool = True
    name: str | None = None


@runtime_checkable
class TrackerSource(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def settings(self) -> SourceSettings: ...

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def list_issues(self) -> Sequence[Issue]: ...

    def get_issue(self, issue_id: str) -> Issue | None: ...

    def add_issue(self, issue: Issue) -> None: ...

    def update_issue(self, issue: Issue, fields: IssueField) -> None: ...

    def close_issue(self, issue: Issue) -> None: ...


class BaseSource:
    """Convenience base for concrete adapters: settings, name, no-op lifecycle."""

    display_name = "Source"

    def __init__(self, settings: SourceSettings) -> None:
        self._settings = settings

    @property
    def name(self) -> str:
        return self._settings.name or self.display_name

    @property
    def settings(self) -> SourceSettings:
        return self._settings

    def connect(self) -> None:
        return None

    def disconnect(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class SourceDecorator:
    """Wraps another source and forwards every call to it unchanged.

    Subclasses override only the operations whose behaviour they alter.
    ``name`` and ``settings`` always come from the wrapped source.
    """

    def __init__(self, inner: TrackerSource) -> None:
        self._inner = inner

    @property
    def inner(self) -> TrackerSource:
        return self._inner

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def settings(self) -> SourceSettings:
        return self._inner.settings

    def connect(self) -> None:
        self._inner.connect()

    def disconnect(self) -> None:
        self._inner.disconnect()

    def list_issues(self) -> Sequence[Issue]:
        return self._inner.list_issues()

    def get_issue(self, issue_id: str) -> Issue | None:
        return self._inner.get_issue(issue_id)

    def add_issue(self, issue: Issue) -> None:
        self._inner.add_issue(issue)

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        self._inner.update_issue(issue, fields)

    def close_issue(self, issue: Issue) -> None:
        self._inner.close_issue(issue)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} over {self._inner!r}>"


__all__ = ["BaseSource", "SourceDecorator", "SourceSettings", "TrackerSource"]
