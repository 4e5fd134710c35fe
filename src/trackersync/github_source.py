"""GitHub issues adapter.

GitHub is the identifier-assigning (primary) tracker by default: issue
numbers are stable, short and safe to embed elsewhere. Only open issues are
listed because a repository's closed history can grow without bound, so a
configuration asking for closed issues in the list is rejected.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import ConfigError, UnsupportedFieldError
from .github_rest import DEFAULT_API_URL, GitHubRestClient
from .models import Issue, IssueField, IssueState, iter_fields
from .source import BaseSource, SourceSettings

KIND = "github"
_SUPPORTED_UPDATE_FIELDS = IssueField.DESCRIPTION | IssueField.DETAILS | IssueField.STATE


@dataclass
class GitHubSourceSettings(SourceSettings):
    user: str = ""
    token: str = ""
    repo: str = ""
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> GitHubSourceSettings:
        settings = cls(
            kind=KIND,
            is_primary=bool(raw.get("primary", True)),
            list_includes_closed=bool(raw.get("list_includes_closed", False)),
            name=raw.get("name"),
            user=str(raw.get("user") or ""),
            token=str(raw.get("token") or ""),
            repo=str(raw.get("repo") or ""),
            api_url=str(raw.get("api_url") or DEFAULT_API_URL),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.user or not self.token:
            raise ConfigError("Missing credential information")
        if not self.repo:
            raise ConfigError("Missing repo name")
        if self.list_includes_closed:
            raise ConfigError(
                "Listing closed issues is unsupported for GitHub because that list "
                "has potential to grow indefinitely"
            )


def issue_from_payload(payload: Mapping[str, Any]) -> Issue:
    return Issue(
        id=str(payload.get("number", "")),
        description=str(payload.get("title") or ""),
        details=payload.get("body"),
        state=IssueState.CLOSED if payload.get("state") == "closed" else IssueState.OPEN,
    )


class GitHubSource(BaseSource):
    display_name = "GitHub"

    def __init__(
        self, settings: GitHubSourceSettings, client: GitHubRestClient | None = None
    ) -> None:
        super().__init__(settings)
        self._client = client or GitHubRestClient(
            base_url=settings.api_url,
            token=settings.token,
            owner=settings.user,
            repo=settings.repo,
        )

    @property
    def github_settings(self) -> GitHubSourceSettings:
        assert isinstance(self._settings, GitHubSourceSettings)
        return self._settings

    def connect(self) -> None:
        login = self._client.get_authenticated_login()
        if login != self.github_settings.user:
            raise ConfigError(
                f"User name retrieved from source ('{login}') != login name "
                f"('{self.github_settings.user}')"
            )

    def disconnect(self) -> None:
        self._client.close()

    def list_issues(self) -> Sequence[Issue]:
        issues: list[Issue] = []
        for entry in self._client.list_issues(state="open"):
            # the issues endpoint also returns pull requests
            if "pull_request" in entry:
                continue
            issue = issue_from_payload(entry)
            issue.state = IssueState.OPEN
            issues.append(issue)
        return issues

    def get_issue(self, issue_id: str) -> Issue | None:
        payload = self._client.get_issue(issue_id)
        if payload is None:
            return None
        return issue_from_payload(payload)

    def add_issue(self, issue: Issue) -> None:
        number = self._client.create_issue(title=issue.description, body=issue.details)
        if number is not None:
            issue.id = str(number)

    def update_issue(self, issue: Issue, fields: IssueField) -> None:
        for field in iter_fields(fields):
            if field not in _SUPPORTED_UPDATE_FIELDS:
                raise UnsupportedFieldError(self.name, field)
        state = None
        if IssueField.STATE in fields:
            state = issue.state.value
        self._client.update_issue(
            number=issue.id,
            title=issue.description if IssueField.DESCRIPTION in fields else None,
            body=(issue.details or "") if IssueField.DETAILS in fields else None,
            state=state,
        )

    def close_issue(self, issue: Issue) -> None:
        self._client.close_issue(number=issue.id)


__all__ = ["GitHubSource", "GitHubSourceSettings", "issue_from_payload", "KIND"]
