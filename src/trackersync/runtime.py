"""Runtime helpers for trackersync CLI orchestration."""

from __future__ import annotations

import sys
import time
from collections.abc import Callable
from typing import Any, Protocol

from trackersync.config import SyncConfig, load_config
from trackersync.logging import configure_logging, get_logger


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[str], SyncConfig] = load_config
) -> SyncConfig | None:
    """Load SyncConfig for the given argparse namespace and configure logging."""
    if getattr(args, "cmd", None) == "init":
        return None
    if not hasattr(args, "config"):
        raise AttributeError("Command namespace is missing 'config' attribute")
    cfg = loader(args.config)
    level = "WARNING" if getattr(args, "quiet", False) else cfg.logging_level
    # stdout belongs to the traffic log and the summary
    configure_logging(json_logging=cfg.logging_json_enabled, level=level, stream=sys.stderr)
    return cfg


def _instrument_command(
    cfg: SyncConfig | None, command: str, exit_code: int, start_time: float
) -> None:
    duration_ms = max(0.0, time.monotonic() - start_time) * 1000
    config = str(cfg.source_file) if cfg is not None else None
    get_logger().log_performance(f"cli_{command}", duration_ms, exit_code=exit_code, config=config)


def execute_command(
    handler: _HandlerCallable, cfg: SyncConfig | None, command: str
) -> int:
    """Execute a command handler and record its duration and exit code."""
    start = time.monotonic()
    try:
        result = handler()
        exit_code = int(result) if result is not None else 0
    except SystemExit as exc:  # pragma: no cover - allow propagation
        exit_code = int(exc.code or 0)
        _instrument_command(cfg, command, exit_code, start)
        raise
    except Exception:
        _instrument_command(cfg, command, 1, start)
        raise
    _instrument_command(cfg, command, exit_code, start)
    return exit_code


__all__ = ["prepare_config", "execute_command"]
