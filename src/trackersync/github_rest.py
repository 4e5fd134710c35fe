from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from .errors import GitHubAPIError
from .rest import RestClient

DEFAULT_API_URL = "https://api.github.com"
PER_PAGE = 100


@dataclass
class GitHubRestClient(RestClient):
    """Lightweight REST client for the GitHub issues API."""

    token: str = ""
    owner: str = ""
    repo: str = ""

    error_class = GitHubAPIError

    def _prepare_session(self, session: requests.Session) -> None:
        session.headers.setdefault("Authorization", f"Bearer {self.token}")
        session.headers.setdefault("Accept", "application/vnd.github+json")

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[Any]:
        params = dict(params or {})
        per_page = params.setdefault("per_page", PER_PAGE)
        params.setdefault("page", 1)
        results: list[Any] = []
        while True:
            data = self._request("GET", path, params=params)
            if not isinstance(data, list):
                break
            results.extend(data)
            if len(data) < per_page:
                break
            params["page"] = params.get("page", 1) + 1
        return results

    # ---- Account ------------------------------------------------------
    def get_authenticated_login(self) -> str | None:
        data = self._request("GET", "/user")
        if isinstance(data, dict):
            login = data.get("login")
            if isinstance(login, str):
                return login
        return None

    # ---- Issue operations --------------------------------------------
    def list_issues(self, *, state: str = "open") -> list[dict[str, Any]]:
        data = self._paginate(f"{self.repo_path}/issues", params={"state": state})
        return [entry for entry in data if isinstance(entry, dict)]

    def get_issue(self, number: str) -> dict[str, Any] | None:
        data = self._request("GET", f"{self.repo_path}/issues/{number}", allow_missing=True)
        return data if isinstance(data, dict) else None

    def create_issue(self, *, title: str, body: str | None = None) -> int | None:
        payload: dict[str, Any] = {"title": title}
        if body:
            payload["body"] = body
        data = self._request("POST", f"{self.repo_path}/issues", json_body=payload)
        if isinstance(data, dict):
            number = data.get("number")
            if isinstance(number, int):
                return number
        return None

    def update_issue(
        self,
        *,
        number: str,
        title: str | None = None,
        body: str | None = None,
        state: str | None = None,
    ) -> None:
        payload: dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if body is not None:
            payload["body"] = body
        if state is not None:
            payload["state"] = state
        if payload:
            self._request("PATCH", f"{self.repo_path}/issues/{number}", json_body=payload)

    def close_issue(self, *, number: str) -> None:
        self.update_issue(number=number, state="closed")


__all__ = ["DEFAULT_API_URL", "GitHubRestClient"]
