from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .errors import TrelloAPIError
from .rest import RestClient

DEFAULT_API_URL = "https://api.trello.com"
API_VERSION = "1"


@dataclass
class TrelloRestClient(RestClient):
    """REST client for the Trello boards/lists/cards API.

    Trello authenticates with ``key`` and ``token`` query parameters rather
    than a header, so both ride along on every request.
    """

    api_key: str = ""
    token: str = ""

    error_class = TrelloAPIError

    def _default_params(self) -> dict[str, Any]:
        return {"key": self.api_key, "token": self.token}

    def _url(self, path: str) -> str:
        return super()._url(f"/{API_VERSION}/{path.lstrip('/')}")

    def list_member_boards(self, member: str) -> list[dict[str, Any]]:
        data = self._request(
            "GET", f"/members/{member}/boards", params={"filter": "open", "fields": "name"}
        )
        return [b for b in data or [] if isinstance(b, dict)]

    def list_board_lists(self, board_id: str, *, with_cards: bool = False) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"filter": "open", "fields": "name"}
        if with_cards:
            params.update({"cards": "open", "card_fields": "name,desc,idList"})
        else:
            params["cards"] = "none"
        data = self._request("GET", f"/boards/{board_id}/lists", params=params)
        return [entry for entry in data or [] if isinstance(entry, dict)]

    def get_card(self, card_id: str) -> dict[str, Any] | None:
        data = self._request(
            "GET",
            f"/cards/{card_id}",
            params={"fields": "name,desc,idList"},
            allow_missing=True,
        )
        return data if isinstance(data, dict) else None

    def create_card(self, *, name: str, list_id: str, desc: str | None = None) -> str | None:
        params: dict[str, Any] = {"name": name, "idList": list_id}
        if desc:
            params["desc"] = desc
        data = self._request("POST", "/cards", params=params)
        if isinstance(data, dict):
            card_id = data.get("id")
            if isinstance(card_id, str):
                return card_id
        return None

    def update_card(self, card_id: str, **fields: Any) -> None:
        params = {k: v for k, v in fields.items() if v is not None}
        if params:
            self._request("PUT", f"/cards/{card_id}", params=params)


__all__ = ["DEFAULT_API_URL", "TrelloRestClient"]
