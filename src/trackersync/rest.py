"""Shared ``requests`` transport for the tracker REST adapters.

Each vendor client subclasses :class:`RestClient`, sets its error class and
fills in authentication via ``_prepare_session`` / ``_default_params``.
Transient failures are retried here (see :mod:`trackersync.retry`); anything
else is raised as a :class:`~trackersync.errors.TrackerAPIError` subclass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

import requests

from .errors import HTTP_TOO_MANY_REQUESTS, TrackerAPIError
from .retry import RetryConfig, run_with_retries

USER_AGENT = "trackersync-rest/0.3.0"
HTTP_ERROR_STATUS = 400
HTTP_NOT_FOUND = 404
DEFAULT_TIMEOUT = 30.0
IDEMPOTENT_METHODS = frozenset({"GET", "HEAD", "PUT", "PATCH", "DELETE"})


def _may_replay(method: str, status: int, retry_after: str | None) -> bool:
    """Whether a failed request may be sent again; POST is resent only when rate limited."""
    if method.upper() in IDEMPOTENT_METHODS:
        return True
    return status == HTTP_TOO_MANY_REQUESTS or bool(retry_after)


@dataclass
class RestClient:
    base_url: str
    session: requests.Session | None = None
    timeout: float = DEFAULT_TIMEOUT
    retry: RetryConfig | None = None
    _session: requests.Session = field(init=False, repr=False)

    error_class: ClassVar[type[TrackerAPIError]] = TrackerAPIError

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._prepare_session(self._session)

    def _prepare_session(self, session: requests.Session) -> None:
        """Hook for subclasses to install auth headers."""

    def _default_params(self) -> dict[str, Any]:
        return {}

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
        allow_missing: bool = False,
    ) -> Any:
        """Send one request; return decoded JSON (or text, or ``None``).

        With ``allow_missing`` a 404 yields ``None`` instead of raising, which
        lets adapters tell "not found" apart from a transport failure.
        """
        url = self._url(path)
        merged = {**self._default_params(), **(params or {})}

        def _run() -> requests.Response | None:
            try:
                response = self._session.request(
                    method,
                    url,
                    params=merged or None,
                    json=json_body,
                    headers=self._session.headers,
                    timeout=self.timeout,
                )
            except requests.exceptions.RequestException as exc:
                raise self.error_class(f"{method} {url} failed: {exc}") from exc
            if allow_missing and response.status_code == HTTP_NOT_FOUND:
                return None
            if response.status_code >= HTTP_ERROR_STATUS:
                message = f"{method} {url} failed with {response.status_code}"
                retry_after = response.headers.get("Retry-After")
                if retry_after:
                    message += f" (Retry-After: {retry_after})"
                raise self.error_class(
                    message,
                    status=response.status_code,
                    response_text=response.text,
                    retryable=_may_replay(method, response.status_code, retry_after),
                )
            return response

        response = run_with_retries(_run, cfg=self.retry)
        if response is None or not response.text:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def get(self, path: str, **kw: Any) -> Any:
        return self._request("GET", path, **kw)

    def close(self) -> None:
        self._session.close()


__all__ = ["HTTP_ERROR_STATUS", "HTTP_NOT_FOUND", "IDEMPOTENT_METHODS", "RestClient", "USER_AGENT"]
