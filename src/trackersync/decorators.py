"""Cross-cutting source decorators: dry-run and traffic logging."""

from __future__ import annotations

import enum
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TextIO

from .models import Issue, IssueField, field_names
from .source import SourceDecorator, TrackerSource

RULE = "-" * 62


class LogLevel(enum.IntEnum):
    NONE = 0
    PRINT_ACTIONS = 1
    VERBOSE = 2

    @classmethod
    def parse(cls, value: str | int | LogLevel | None) -> LogLevel:
        if value is None:
            return cls.NONE
        if isinstance(value, int):
            return cls(value)
        key = str(value).strip().lower().replace("-", "_")
        aliases = {"none": cls.NONE, "off": cls.NONE, "actions": cls.PRINT_ACTIONS,
                   "print_actions": cls.PRINT_ACTIONS, "verbose": cls.VERBOSE}
        if key not in aliases:
            raise ValueError(f"Unknown log level '{value}'")
        return aliases[key]


class ReadOnlySourceDecorator(SourceDecorator):
    """Turns every mutating call into a no-op (``sync --status``)."""

    def add_issue(self, issue: Issue) -> None:
        return None

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        return None

    def close_issue(self, issue: Issue) -> None:
        return None


def is_read_only(source: TrackerSource) -> bool:
    """True when a :class:`ReadOnlySourceDecorator` sits anywhere in the wrapping chain."""
    while isinstance(source, SourceDecorator):
        if isinstance(source, ReadOnlySourceDecorator):
            return True
        source = source.inner
    return False


@dataclass(frozen=True)
class LoggingSourceConfig:
    input_logged: bool = False
    output_logged: bool = False

    @classmethod
    def for_level(cls, level: LogLevel) -> LoggingSourceConfig:
        return cls(
            input_logged=level >= LogLevel.VERBOSE,
            output_logged=level >= LogLevel.PRINT_ACTIONS,
        )


class LoggingSourceDecorator(SourceDecorator):
    """Writes every inbound (list/get) and outbound (add/update/close) call to a text sink.

    Output records are written *before* the call is forwarded so a failing
    request still shows what was attempted.
    """

    def __init__(
        self,
        inner: TrackerSource,
        config: LoggingSourceConfig,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(inner)
        self._config = config
        self._stream = stream

    @property
    def config(self) -> LoggingSourceConfig:
        return self._config

    def _write(self, line: str = "") -> None:
        print(line, file=self._stream or sys.stdout)

    def _log_issue(
        self, action: str, issue: Issue | None, extra: Callable[[], None] | None = None
    ) -> None:
        self._write(f"{self.name}--{action}")
        if issue is not None:
            self._write(f"    {issue.id}: {issue.description}")
            self._write(f"    {issue.details or ''}")
        if extra is not None:
            extra()
        self._write(RULE)
        self._write()

    def list_issues(self) -> Sequence[Issue]:
        issues = list(super().list_issues())
        if self._config.input_logged:
            for idx, issue in enumerate(issues):
                self._log_issue(f"GET_LIST[{idx}]", issue)
        return issues

    def get_issue(self, issue_id: str) -> Issue | None:
        issue = super().get_issue(issue_id)
        if self._config.input_logged:
            missing = None if issue is not None else (
                lambda: self._write(f"    Issue[{issue_id}] does not exist")
            )
            self._log_issue("GET", issue, missing)
        return issue

    def add_issue(self, issue: Issue) -> None:
        if self._config.output_logged:
            self._log_issue("ADD", issue)
        super().add_issue(issue)

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        if self._config.output_logged:
            self._log_issue(f"UPDATE( {field_names(fields)} )", issue)
        super().update_issue(issue, fields)

    def close_issue(self, issue: Issue) -> None:
        if self._config.output_logged:
            self._log_issue("CLOSE", issue)
        super().close_issue(issue)


__all__ = [
    "LogLevel",
    "LoggingSourceConfig",
    "LoggingSourceDecorator",
    "ReadOnlySourceDecorator",
    "is_read_only",
]
