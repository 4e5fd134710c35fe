"""Error taxonomy & redaction helpers.

Every fatal condition raised by trackersync derives from
``TrackerSyncError`` so the CLI can report it uniformly:

- ``ConfigError``            -- bad configuration, detected before I/O
- ``UnsupportedFieldError``  -- update mask names a field a source can't write
- ``UnknownDecisionError``   -- planner received a decision kind it can't expand
- ``TrackerAPIError``        -- transport failure surfaced by a REST adapter

``classify_error`` and ``redact`` prepare exceptions for safe reporting.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?<=[?&]key=)[A-Za-z0-9]+"),  # Trello api key in query strings
    re.compile(r"(?<=[?&]token=)[A-Za-z0-9]+"),  # Trello member token in query strings
]

_REDACTION_PLACEHOLDER = "<redacted>"

HTTP_TOO_MANY_REQUESTS = 429
_TRANSIENT_STATUSES = frozenset({HTTP_TOO_MANY_REQUESTS, 502, 503, 504})


class TrackerSyncError(RuntimeError):
    """Base class for all trackersync failures."""


class ConfigError(TrackerSyncError):
    """Raised for invalid configuration or wiring; never retried."""


class UnsupportedFieldError(ConfigError):
    """Raised when an update mask names a field the source cannot update."""

    def __init__(self, source: str, field: Any):
        super().__init__(f"Update of {getattr(field, 'name', field)} field is not supported by {source}")
        self.source = source
        self.field = field


class UnknownDecisionError(TrackerSyncError):
    """Raised when the planner receives a decision kind it cannot expand."""


class TrackerAPIError(TrackerSyncError):
    """Raised when a tracker REST API returns an error or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text
        # False when replaying the request could repeat a side effect
        self.retryable = retryable

    @property
    def transient(self) -> bool:
        return self.status in _TRANSIENT_STATUSES


class GitHubAPIError(TrackerAPIError):
    """Raised when the GitHub REST API returns an error."""


class TrelloAPIError(TrackerAPIError):
    """Raised when the Trello REST API returns an error."""


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact sensitive tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - ConfigError (and subclasses) -> 'config'
    - UnknownDecisionError -> 'internal'
    - TrackerAPIError with 429/5xx gateway status -> 'api.transient', transient True
    - other TrackerAPIError -> 'api'
    - Network-y keywords -> 'network', transient True
    - Fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    name = exc.__class__.__name__

    if isinstance(exc, ConfigError):
        return ErrorInfo("config", redact(msg), name)
    if isinstance(exc, UnknownDecisionError):
        return ErrorInfo("internal", redact(msg), name)
    if isinstance(exc, TrackerAPIError):
        details = {"status": exc.status} if exc.status is not None else None
        if exc.transient or "rate limit" in low:
            return ErrorInfo("api.transient", redact(msg), name, transient=True, details=details)
        return ErrorInfo("api", redact(msg), name, details=details)
    if any(k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True)
    return ErrorInfo("generic", redact(msg), name)


__all__ = [
    "ConfigError",
    "ErrorInfo",
    "GitHubAPIError",
    "TrackerAPIError",
    "TrackerSyncError",
    "TrelloAPIError",
    "UnknownDecisionError",
    "UnsupportedFieldError",
    "classify_error",
    "redact",
]
