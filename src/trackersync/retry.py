"""Centralized retry / backoff helpers for the REST transport.

Provides a single small function ``run_with_retries`` that encapsulates
exponential backoff with jitter and simple classification of transient
tracker API failures (HTTP 429 / 502 / 503 / 504 or rate-limit wording).

Environment overrides:
  TRACKERSYNC_RETRY_ATTEMPTS (default 3)
  TRACKERSYNC_RETRY_BASE (seconds base, default 0.5)
  TRACKERSYNC_RETRY_MAX_SLEEP (optional cap in seconds)

The caller supplies a thunk returning the desired result or raising
``TrackerAPIError``. Only transient failures trigger a retry, and never
when the error is marked ``retryable=False``; everything else propagates
immediately. The sync engine itself never retries.
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .errors import TrackerAPIError
from .logging import get_logger

T = TypeVar("T")

TRANSIENT_TOKENS = (
    "rate limit",
    "abuse detection",
    "secondary rate",
    "too many requests",
)

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_RE_SECONDS_HINT = re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE)
_JITTER = random.SystemRandom()


def _extract_explicit_backoff(text: str) -> float | None:
    """Extract an explicit backoff (seconds) from error output.

    Supports patterns like:
      Retry-After: 12
      retry after 12
      wait 30 seconds
    Returns None if no valid positive value found.
    """
    if not text:
        return None
    for pattern in (_RE_RETRY_AFTER, _RE_SECONDS_HINT):
        m = pattern.search(text)
        if m:
            val = float(m.group(1))
            return val if val > 0 else None
    return None


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("TRACKERSYNC_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("TRACKERSYNC_RETRY_BASE", 0.5))


def is_transient(output: str) -> bool:
    out_lower = output.lower()
    return any(tok in out_lower for tok in TRANSIENT_TOKENS)


def _error_text(exc: TrackerAPIError) -> str:
    return f"{exc} {exc.response_text or ''}"


def _compute_sleep(attempt: int, cfg: RetryConfig, out: str) -> float:
    explicit = _extract_explicit_backoff(out)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("TRACKERSYNC_RETRY_MAX_SLEEP")
    if max_cap_env:
        cap = float(max_cap_env)
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def _should_retry(exc: TrackerAPIError, attempt: int, attempts: int, cfg: RetryConfig) -> bool:
    out = _error_text(exc)
    if attempt >= attempts or not exc.retryable or not (exc.transient or is_transient(out)):
        return False
    sleep_for = _compute_sleep(attempt, cfg, out)
    get_logger().warning(
        f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
        status=exc.status,
    )
    time.sleep(sleep_for)
    return True


def run_with_retries(fn: Callable[[], T], *, cfg: RetryConfig | None = None) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):  # noqa: PLR2004
        try:
            return fn()
        except TrackerAPIError as exc:
            if not _should_retry(exc, attempt, attempts, cfg):
                raise
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "run_with_retries", "is_transient"]
