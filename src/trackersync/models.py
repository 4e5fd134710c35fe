from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass


class IssueState(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class IssueField(enum.Flag):
    """Bitmask naming the issue fields an update is allowed to touch."""

    ID = enum.auto()
    DESCRIPTION = enum.auto()
    DETAILS = enum.auto()
    STATE = enum.auto()


_ALL_FIELDS = (IssueField.ID, IssueField.DESCRIPTION, IssueField.DETAILS, IssueField.STATE)


def iter_fields(mask: IssueField) -> Iterator[IssueField]:
    """Yield the single-field members set in ``mask`` in declaration order."""
    for member in _ALL_FIELDS:
        if member in mask:
            yield member


def field_names(mask: IssueField) -> str:
    return " | ".join(f.name or "" for f in iter_fields(mask)) or "NONE"


class Side(str, enum.Enum):
    """Role a configured tracker holds for a whole run."""

    PRIMARY = "primary"
    SECONDARY = "secondary"

    def other(self) -> Side:
        return Side.SECONDARY if self is Side.PRIMARY else Side.PRIMARY


@dataclass(eq=False)
class Issue:
    """Normalized representation of one tracked item.

    ``description`` is the join key between the two trackers. ``original``
    points back at the source-specific issue this one was converted from
    (set only by normalizing decorators) and is never copied by ``clone``.
    Equality is identity: a clone is a distinct value with equal fields.
    """

    description: str
    id: str = ""
    details: str | None = None
    state: IssueState = IssueState.OPEN
    original: Issue | None = None

    @property
    def is_open(self) -> bool:
        return self.state is IssueState.OPEN

    def clone(self) -> Issue:
        return Issue(
            description=self.description,
            id=self.id,
            details=self.details,
            state=self.state,
        )

    def __repr__(self) -> str:
        return f"Issue(id={self.id!r}, description={self.description!r}, state={self.state.value})"


__all__ = ["Issue", "IssueField", "IssueState", "Side", "field_names", "iter_fields"]
