from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .decorators import LogLevel
from .env_auth import EnvAuthConfig, EnvironmentAuthManager, create_env_auth_manager
from .errors import ConfigError
from .registry import parse_settings
from .source import SourceSettings

REQUIRED_TRACKERS = 2

CONFIG_TEMPLATE = """\
# trackersync configuration
version: 1

sync:
  # none | actions | verbose
  log_level: none
  # true = plan and log only, never write to a tracker
  no_updates: false

logging:
  json_enabled: false
  level: INFO

environment:
  load_dotenv: true
  dotenv_path: null

# Exactly two trackers; exactly one of them is primary (assigns ids).
trackers:
  - type: github
    primary: true
    user: your-github-login
    token: $GITHUB_TOKEN
    repo: your-repo

  - type: trello
    primary: false
    user: your-trello-user
    api_key: $TRELLO_API_KEY
    token: $TRELLO_TOKEN
    board: Your Board
    open_lists: [To Do, Doing]
    closed_lists: [Done]
    new_list: To Do
"""


@dataclass
class SyncConfig:
    version: int
    source_file: Path
    log_level: LogLevel
    no_updates: bool
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Environment authentication configuration
    env_auth_load_dotenv: bool
    env_auth_dotenv_path: str | None
    trackers: list[SourceSettings] = field(default_factory=list)


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name, value)  # Fallback to original if not found
    return value


def _resolve_tree(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _resolve_tree(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_tree(v) for v in value]
    return _resolve_env_var(value)


def _is_unset(value: Any) -> bool:
    # an unresolved $VAR reference counts as missing
    return not value or (isinstance(value, str) and value.startswith('$'))


def _apply_credential_fallbacks(
    entry: dict[str, Any], auth: EnvironmentAuthManager
) -> dict[str, Any]:
    kind = str(entry.get('type') or '').lower()
    if kind == 'github' and _is_unset(entry.get('token')):
        token = auth.get_github_token()
        if token:
            entry['token'] = token
    elif kind == 'trello':
        api_key, token = auth.get_trello_credentials()
        if api_key and _is_unset(entry.get('api_key')):
            entry['api_key'] = api_key
        if token and _is_unset(entry.get('token')):
            entry['token'] = token
    return entry


def load_config(path: str | Path) -> SyncConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw_any = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    if not isinstance(raw_any, dict):
        raise ConfigError(f'Configuration root must be a mapping: {p}')
    raw = cast(dict[str, Any], raw_any)
    sync = cast(dict[str, Any], raw.get('sync', {}) or {})
    logging_config = cast(dict[str, Any], raw.get('logging', {}) or {})
    env_auth = cast(dict[str, Any], raw.get('environment', {}) or {})
    trackers_raw = raw.get('trackers') or []
    if not isinstance(trackers_raw, list):
        raise ConfigError("'trackers' must be a list")
    if len(trackers_raw) > REQUIRED_TRACKERS:
        raise ConfigError('Too many sources in configuration file')
    if len(trackers_raw) < REQUIRED_TRACKERS:
        raise ConfigError(
            f'Configuration file must define {REQUIRED_TRACKERS} trackers, found {len(trackers_raw)}'
        )

    # .env has to be loaded before any $VAR below is resolved
    auth = create_env_auth_manager(
        EnvAuthConfig(
            load_dotenv=bool(env_auth.get('load_dotenv', True)),
            dotenv_path=env_auth.get('dotenv_path'),
        )
    )
    trackers: list[SourceSettings] = []
    for entry in trackers_raw:
        if not isinstance(entry, dict):
            raise ConfigError('Each tracker entry must be a mapping')
        resolved = _apply_credential_fallbacks(_resolve_tree(entry), auth)
        trackers.append(parse_settings(resolved))

    try:
        log_level = LogLevel.parse(sync.get('log_level'))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    return SyncConfig(
        version=int(raw.get('version', 1)),
        source_file=p,
        log_level=log_level,
        no_updates=bool(sync.get('no_updates', False)),
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'INFO')),
        env_auth_load_dotenv=bool(env_auth.get('load_dotenv', True)),
        env_auth_dotenv_path=env_auth.get('dotenv_path'),
        trackers=trackers,
    )


def write_config_template(path: str | Path) -> Path:
    """Write a commented configuration template; never overwrites."""
    p = Path(path)
    if p.exists():
        raise ConfigError(f'Configuration file already exists: {p}')
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(CONFIG_TEMPLATE)
    return p


__all__ = [
    'CONFIG_TEMPLATE',
    'ConfigError',
    'SyncConfig',
    'load_config',
    'write_config_template',
]
