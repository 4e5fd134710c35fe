"""Explicit source-kind registry and decorator composition."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TextIO

from . import github_source, memory_source, trello_source
from .decorators import (
    LoggingSourceConfig,
    LoggingSourceDecorator,
    LogLevel,
    ReadOnlySourceDecorator,
)
from .errors import ConfigError
from .source import SourceSettings, TrackerSource


@dataclass(frozen=True)
class SourceKind:
    name: str
    settings_factory: Callable[[Mapping[str, Any]], SourceSettings]
    source_factory: Callable[[Any], TrackerSource]


def _trello_factory(settings: trello_source.TrelloSourceSettings) -> TrackerSource:
    # cards live in the primary tracker's id space only through the normalizer
    return trello_source.TrelloSourceNormalizer(trello_source.TrelloSource(settings))


SOURCE_KINDS: dict[str, SourceKind] = {
    kind.name: kind
    for kind in (
        SourceKind(
            github_source.KIND,
            github_source.GitHubSourceSettings.from_mapping,
            github_source.GitHubSource,
        ),
        SourceKind(
            trello_source.KIND,
            trello_source.TrelloSourceSettings.from_mapping,
            _trello_factory,
        ),
        SourceKind(
            memory_source.KIND,
            memory_source.MemorySourceSettings.from_mapping,
            memory_source.MemorySource,
        ),
    )
}


def _lookup(kind: str) -> SourceKind:
    entry = SOURCE_KINDS.get(str(kind).lower())
    if entry is None:
        raise ConfigError(f"Unknown source type '{kind}'")
    return entry


def parse_settings(raw: Mapping[str, Any]) -> SourceSettings:
    """Parse one ``trackers:`` entry into its kind's settings object."""
    kind = raw.get("type")
    if not kind:
        raise ConfigError("Tracker entry is missing 'type'")
    return _lookup(str(kind)).settings_factory(raw)


def create_source(settings: SourceSettings) -> TrackerSource:
    return _lookup(settings.kind).source_factory(settings)


def build_source(
    settings: SourceSettings,
    *,
    log_level: LogLevel = LogLevel.NONE,
    no_updates: bool = False,
    log_stream: TextIO | None = None,
) -> TrackerSource:
    """Create a source and wrap it: read-only first, traffic logging outermost."""
    source = create_source(settings)
    if no_updates:
        source = ReadOnlySourceDecorator(source)
    if log_level > LogLevel.NONE:
        source = LoggingSourceDecorator(source, LoggingSourceConfig.for_level(log_level), log_stream)
    return source


__all__ = ["SOURCE_KINDS", "SourceKind", "build_source", "create_source", "parse_settings"]
