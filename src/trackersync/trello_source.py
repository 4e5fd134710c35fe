"""Trello board adapter and its normalizing decorator.

Cards are issues; a card's state is given by the list it sits in. Trello's
card ids are opaque hashes, so the board is kept in the primary tracker's id
space instead: :class:`TrelloSourceNormalizer` stores the foreign number in
the card name as ``S<number>: <description>`` and strips it back off when
reading.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ConfigError, TrackerSyncError, UnsupportedFieldError
from .models import Issue, IssueField, IssueState, iter_fields
from .source import BaseSource, SourceDecorator, SourceSettings
from .trello_rest import DEFAULT_API_URL, TrelloRestClient

KIND = "trello"
_SUPPORTED_UPDATE_FIELDS = IssueField.DESCRIPTION | IssueField.DETAILS
_DESC_PREFIX = re.compile(r"\AS(\d+):\s*")


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]


@dataclass
class TrelloSourceSettings(SourceSettings):
    user: str = ""
    api_key: str = ""
    token: str = ""
    board: str = ""
    open_lists: list[str] = field(default_factory=list)
    closed_lists: list[str] = field(default_factory=list)
    new_list: str = ""
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TrelloSourceSettings:
        settings = cls(
            kind=KIND,
            is_primary=bool(raw.get("primary", False)),
            list_includes_closed=bool(raw.get("list_includes_closed", True)),
            name=raw.get("name"),
            user=str(raw.get("user") or ""),
            api_key=str(raw.get("api_key") or ""),
            token=str(raw.get("token") or ""),
            board=str(raw.get("board") or ""),
            open_lists=_as_list(raw.get("open_lists")),
            closed_lists=_as_list(raw.get("closed_lists")),
            new_list=str(raw.get("new_list") or ""),
            api_url=str(raw.get("api_url") or DEFAULT_API_URL),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        checks = (
            (self.user, "Missing user name"),
            (self.api_key, "Missing Trello api key"),
            (self.token, "Missing member token"),
            (self.board, "Missing board name"),
            (self.open_lists, "Missing a definition of open card lists"),
            (self.closed_lists, "Missing a definition of closed card lists"),
            (self.new_list, "Missing list for new cards"),
        )
        for value, message in checks:
            if not value:
                raise ConfigError(message)


@dataclass
class _BoardIds:
    board_id: str = ""
    open_list_ids: list[str] = field(default_factory=list)
    closed_list_ids: list[str] = field(default_factory=list)
    new_list_id: str = ""


class TrelloSource(BaseSource):
    display_name = "Trello"

    def __init__(
        self, settings: TrelloSourceSettings, client: TrelloRestClient | None = None
    ) -> None:
        super().__init__(settings)
        self._client = client or TrelloRestClient(
            base_url=settings.api_url, api_key=settings.api_key, token=settings.token
        )
        self._ids: _BoardIds | None = None

    @property
    def trello_settings(self) -> TrelloSourceSettings:
        assert isinstance(self._settings, TrelloSourceSettings)
        return self._settings

    @property
    def board_ids(self) -> _BoardIds:
        if self._ids is None:
            raise TrackerSyncError(f"{self.name} source used before connect()")
        return self._ids

    # ---- lifecycle ------------------------------------------------------
    def connect(self) -> None:
        if self._ids is not None:
            return
        cfg = self.trello_settings
        ids = _BoardIds(board_id=self._resolve_board_id())
        name_to_id = {
            str(entry.get("name")): str(entry.get("id"))
            for entry in self._client.list_board_lists(ids.board_id)
        }

        def _lookup(list_name: str) -> str:
            if list_name not in name_to_id:
                raise ConfigError(
                    f"Unable to find list '{list_name}' for board '{cfg.user}/{cfg.board}'"
                )
            return name_to_id[list_name]

        new_list = cfg.new_list.lower()
        if any(name.lower() == new_list for name in cfg.closed_lists):
            raise ConfigError(
                f"List '{cfg.new_list}' assigned to new items appears in closed issues list"
            )
        ids.open_list_ids = [_lookup(name) for name in cfg.open_lists]
        ids.closed_list_ids = [_lookup(name) for name in cfg.closed_lists]
        ids.new_list_id = _lookup(cfg.new_list)
        if ids.new_list_id not in ids.open_list_ids:
            ids.open_list_ids.append(ids.new_list_id)
        self._ids = ids

    def disconnect(self) -> None:
        self._client.close()

    def _resolve_board_id(self) -> str:
        cfg = self.trello_settings
        wanted = cfg.board.lower()
        for board in self._client.list_member_boards(cfg.user):
            if str(board.get("name", "")).lower() == wanted:
                return str(board.get("id"))
        raise ConfigError(f"Board '{cfg.board}' for user '{cfg.user}' was not found")

    def _state_for_list(self, list_id: str) -> IssueState | None:
        if list_id in self.board_ids.open_list_ids:
            return IssueState.OPEN
        if list_id in self.board_ids.closed_list_ids:
            return IssueState.CLOSED
        return None

    # ---- reads ----------------------------------------------------------
    def list_issues(self) -> Sequence[Issue]:
        issues: list[Issue] = []
        include_closed = self.settings.list_includes_closed
        for board_list in self._client.list_board_lists(self.board_ids.board_id, with_cards=True):
            state = self._state_for_list(str(board_list.get("id")))
            if state is None or (state is IssueState.CLOSED and not include_closed):
                continue
            for card in board_list.get("cards") or []:
                issues.append(
                    Issue(
                        id=str(card.get("id")),
                        description=str(card.get("name") or ""),
                        details=card.get("desc") or None,
                        state=state,
                    )
                )
        return issues

    def get_issue(self, issue_id: str) -> Issue | None:
        card = self._client.get_card(issue_id)
        if card is None:
            return None
        list_id = str(card.get("idList"))
        state = self._state_for_list(list_id)
        if state is None:
            raise TrackerSyncError(f"Unable to determine state for issue in list '{list_id}'")
        return Issue(
            id=str(card.get("id")),
            description=str(card.get("name") or ""),
            details=card.get("desc") or None,
            state=state,
        )

    # ---- writes ---------------------------------------------------------
    def add_issue(self, issue: Issue) -> None:
        card_id = self._client.create_card(
            name=issue.description, list_id=self.board_ids.new_list_id, desc=issue.details
        )
        if card_id is not None:
            issue.id = card_id

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        params: dict[str, Any] = {}
        for f in iter_fields(fields):
            if f not in _SUPPORTED_UPDATE_FIELDS:
                raise UnsupportedFieldError(self.name, f)
            if f is IssueField.DESCRIPTION:
                params["name"] = issue.description
            elif f is IssueField.DETAILS:
                params["desc"] = issue.details or ""
        if params:
            self._client.update_card(issue.id, **params)

    def close_issue(self, issue: Issue) -> None:
        self._client.update_card(issue.id, idList=self.board_ids.closed_list_ids[0])


class TrelloSourceNormalizer(SourceDecorator):
    """Presents Trello cards in the primary tracker's id space."""

    @staticmethod
    def normalize(raw: Issue) -> Issue:
        match = _DESC_PREFIX.match(raw.description)
        issue = raw.clone()
        issue.id = match.group(1) if match else ""
        issue.description = raw.description[match.end():] if match else raw.description
        issue.original = raw
        return issue

    @staticmethod
    def denormalize(issue: Issue) -> Issue:
        raw = issue.clone()
        raw.original = issue
        raw.description = f"S{issue.id}: {issue.description}"
        if issue.original is not None:
            raw.id = issue.original.id
        return raw

    @staticmethod
    def denormalize_fields(fields: IssueField) -> IssueField:
        if IssueField.ID in fields:
            return (fields & ~IssueField.ID) | IssueField.DESCRIPTION
        return fields

    def list_issues(self) -> Sequence[Issue]:
        return [self.normalize(raw) for raw in super().list_issues()]

    def get_issue(self, issue_id: str) -> Issue | None:
        # list_issues already returned closed cards too, so a card missing from
        # that list does not exist under this id either
        return None

    def add_issue(self, issue: Issue) -> None:
        super().add_issue(self.denormalize(issue))

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        super().update_issue(self.denormalize(issue), self.denormalize_fields(fields))

    def close_issue(self, issue: Issue) -> None:
        super().close_issue(self.denormalize(issue))


__all__ = ["KIND", "TrelloSource", "TrelloSourceNormalizer", "TrelloSourceSettings"]
