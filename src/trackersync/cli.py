"""trackersync CLI.

Subcommands:
  sync      -> reconcile the two configured trackers and apply the plan
  init      -> write a commented configuration template
  validate  -> load the configuration and check the primary/secondary roles
  export    -> write a plain-text snapshot of both trackers' issues
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any

from trackersync.config import SyncConfig, write_config_template
from trackersync.decorators import LogLevel
from trackersync.errors import TrackerSyncError, classify_error
from trackersync.orchestrator import SyncEngine
from trackersync.registry import build_source
from trackersync.runtime import execute_command, prepare_config
from trackersync.snapshot import write_issues, write_snapshot
from trackersync.source import TrackerSource
from trackersync.ux import print_command_status, print_error, print_summary_box

CONFIG_DEFAULT = "trackersync.yaml"
CONFIG_HELP = f"Configuration file (default: {CONFIG_DEFAULT})"

_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    p = _FormatterArgumentParser(
        prog="trackersync", description="Keep two issue trackers in sync"
    )
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output (env: TRACKERSYNC_QUIET=1)",
    )
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    ps = sub.add_parser("sync", help="Reconcile both trackers and apply the changes")
    ps.add_argument("--config", default=CONFIG_DEFAULT, help=CONFIG_HELP)
    ps.add_argument(
        "--status",
        action="store_true",
        help="Read-only: print the actions a sync would perform without applying them",
    )
    ps.add_argument(
        "--verbose", action="store_true", help="Also log every issue read from both trackers"
    )
    ps.add_argument("--summary-json", help="Write the executed plan as JSON to this path")
    ps.add_argument("--quiet", action="store_true", default=argparse.SUPPRESS)

    pi = sub.add_parser("init", help="Write a configuration template")
    pi.add_argument("--config", default=CONFIG_DEFAULT, help=CONFIG_HELP)

    pv = sub.add_parser("validate", help="Check configuration without contacting the trackers")
    pv.add_argument("--config", default=CONFIG_DEFAULT, help=CONFIG_HELP)

    pe = sub.add_parser("export", help="Write a snapshot of both trackers' issues")
    pe.add_argument("--config", default=CONFIG_DEFAULT, help=CONFIG_HELP)
    pe.add_argument("--output", help="Snapshot file (default: stdout)")
    return p


def _sync_log_level(cfg: SyncConfig, args: argparse.Namespace) -> LogLevel:
    level = cfg.log_level
    if getattr(args, "status", False):
        level = max(level, LogLevel.PRINT_ACTIONS)
    if getattr(args, "verbose", False):
        level = LogLevel.VERBOSE
    return LogLevel(level)


def _build_sources(
    cfg: SyncConfig, *, log_level: LogLevel, no_updates: bool
) -> tuple[TrackerSource, TrackerSource]:
    first, second = (
        build_source(settings, log_level=log_level, no_updates=no_updates)
        for settings in cfg.trackers
    )
    return first, second


def _cmd_sync(cfg: SyncConfig, args: argparse.Namespace) -> int:
    status_only = bool(getattr(args, "status", False))
    first, second = _build_sources(
        cfg,
        log_level=_sync_log_level(cfg, args),
        no_updates=cfg.no_updates or status_only,
    )
    report = SyncEngine(first, second).run()
    if args.summary_json:
        path = Path(args.summary_json)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2) + "\n")
    if not args.quiet:
        title = "Sync Status (read-only)" if status_only or cfg.no_updates else "Sync Summary"
        print_summary_box(title, report.summary_items())
        print_command_status("sync", True, f"{report.duration_ms:.0f}ms")
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    path = write_config_template(args.config)
    if not args.quiet:
        print(f"[init] created {path}")
    return 0


def _cmd_validate(cfg: SyncConfig, args: argparse.Namespace) -> int:
    first, second = _build_sources(cfg, log_level=LogLevel.NONE, no_updates=True)
    engine = SyncEngine(first, second)
    engine.validate()
    if not args.quiet:
        print(f"[validate] primary={engine.primary.name} secondary={engine.secondary.name}")
        print("[validate] ok")
    return 0


def _cmd_export(cfg: SyncConfig, args: argparse.Namespace) -> int:
    first, second = _build_sources(cfg, log_level=LogLevel.NONE, no_updates=True)
    engine = SyncEngine(first, second)
    engine.validate()
    engine.connect()
    sections = {
        f"{engine.primary.name} (primary)": engine.primary.list_issues(),
        f"{engine.secondary.name} (secondary)": engine.secondary.list_issues(),
    }
    engine.disconnect()
    if args.output:
        counts = write_snapshot(sections, args.output)
        if not args.quiet:
            print(f"[export] {sum(counts.values())} issues -> {args.output}")
        return 0
    for title, issues in sections.items():
        print(f"# {title}")
        write_issues(issues, sys.stdout)
    return 0


def _require_cfg(cfg: SyncConfig | None) -> SyncConfig:
    if cfg is None:  # pragma: no cover - defensive guard
        raise RuntimeError("Configuration not loaded")
    return cfg


def _build_handlers(args: argparse.Namespace, cfg: SyncConfig | None) -> dict[str, Any]:
    return {
        "sync": lambda: _cmd_sync(_require_cfg(cfg), args),
        "init": lambda: _cmd_init(args),
        "validate": lambda: _cmd_validate(_require_cfg(cfg), args),
        "export": lambda: _cmd_export(_require_cfg(cfg), args),
    }


def _report_failure(exc: TrackerSyncError, args: argparse.Namespace) -> int:
    info = classify_error(exc)
    print_error(f"{info.category} error: {info.message}")
    if not args.quiet:
        print_command_status(args.cmd, False, info.category, stream=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "quiet", False) and os.environ.get("TRACKERSYNC_QUIET") == "1":
        args.quiet = True
    try:
        cfg = prepare_config(args)
    except TrackerSyncError as exc:
        return _report_failure(exc, args)
    handlers = _build_handlers(args, cfg)
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return 1
    try:
        return execute_command(handler, cfg, args.cmd)
    except TrackerSyncError as exc:
        return _report_failure(exc, args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
