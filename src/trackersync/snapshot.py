"""Plain-text issue snapshots (``trackersync export``)."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TextIO

from .models import Issue, IssueState

RULE = "-" * 62


def format_issue(issue: Issue) -> str:
    marker = "O" if issue.state is IssueState.OPEN else "C"
    return f"{issue.id}[{marker}]: {issue.description}\n{issue.details or ''}"


def write_issues(issues: Iterable[Issue], stream: TextIO) -> int:
    """Write issues separated by rule lines and return how many were written."""
    count = 0
    for issue in issues:
        stream.write(format_issue(issue) + "\n")
        stream.write(RULE + "\n")
        count += 1
    return count


def write_snapshot(sections: Mapping[str, Iterable[Issue]], path: str | Path) -> dict[str, int]:
    """Write one titled section per source into ``path``."""
    counts: dict[str, int] = {}
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fh:
        for title, issues in sections.items():
            fh.write(f"# {title}\n")
            fh.write(RULE + "\n")
            counts[title] = write_issues(issues, fh)
            fh.write("\n")
    return counts


__all__ = ["format_issue", "write_issues", "write_snapshot"]
