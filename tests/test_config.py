from __future__ import annotations

import textwrap

import pytest

from trackersync.config import CONFIG_TEMPLATE, load_config, write_config_template
from trackersync.decorators import LogLevel
from trackersync.errors import ConfigError
from trackersync.github_source import GitHubSourceSettings
from trackersync.trello_source import TrelloSourceSettings

TWO_TRACKERS = textwrap.dedent(
    """\
    version: 1
    sync:
      log_level: actions
      no_updates: true
    logging:
      json_enabled: true
      level: DEBUG
    environment:
      load_dotenv: false
    trackers:
      - type: github
        user: octo
        token: $TS_TEST_GH_TOKEN
        repo: widgets
      - type: trello
        user: alice
        api_key: $TS_TEST_TRELLO_KEY
        token: literal-token
        board: Roadmap
        open_lists: [Backlog]
        closed_lists: [Done]
        new_list: Backlog
    """
)


@pytest.fixture
def _clean_env(monkeypatch):
    for var in (
        "GITHUB_TOKEN",
        "GH_TOKEN",
        "GITHUB_ACCESS_TOKEN",
        "GITHUB_PAT",
        "TRELLO_API_KEY",
        "TRELLO_TOKEN",
        "TS_TEST_GH_TOKEN",
        "TS_TEST_TRELLO_KEY",
    ):
        # set-then-delete so monkeypatch also removes values a .env load adds
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def _write(tmp_path, text):
    path = tmp_path / "trackersync.yaml"
    path.write_text(text)
    return path


def test_load_config_parses_sections(tmp_path, monkeypatch, _clean_env):
    monkeypatch.setenv("TS_TEST_GH_TOKEN", "gh-secret")
    monkeypatch.setenv("TS_TEST_TRELLO_KEY", "trello-key")

    cfg = load_config(_write(tmp_path, TWO_TRACKERS))

    assert cfg.version == 1
    assert cfg.log_level is LogLevel.PRINT_ACTIONS
    assert cfg.no_updates is True
    assert cfg.logging_json_enabled is True
    assert cfg.logging_level == "DEBUG"
    gh, trello = cfg.trackers
    assert isinstance(gh, GitHubSourceSettings) and gh.token == "gh-secret"
    assert isinstance(trello, TrelloSourceSettings)
    assert trello.api_key == "trello-key"
    assert trello.token == "literal-token"


def test_unresolved_reference_falls_back_to_well_known_env(tmp_path, monkeypatch, _clean_env):
    monkeypatch.setenv("GH_TOKEN", "from-gh-token")
    monkeypatch.setenv("TRELLO_API_KEY", "from-trello-env")

    cfg = load_config(_write(tmp_path, TWO_TRACKERS))

    gh, trello = cfg.trackers
    assert gh.token == "from-gh-token"  # type: ignore[attr-defined]
    assert trello.api_key == "from-trello-env"  # type: ignore[attr-defined]


def test_dotenv_file_is_loaded_before_resolution(tmp_path, monkeypatch, _clean_env):
    env_file = tmp_path / "creds.env"
    env_file.write_text("TS_TEST_GH_TOKEN=dotenv-token\nTS_TEST_TRELLO_KEY=dotenv-key\n")
    text = TWO_TRACKERS.replace(
        "load_dotenv: false", f"load_dotenv: true\n  dotenv_path: {env_file}"
    )

    cfg = load_config(_write(tmp_path, text))

    assert cfg.trackers[0].token == "dotenv-token"  # type: ignore[attr-defined]
    assert cfg.env_auth_dotenv_path == str(env_file)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_too_many_trackers(tmp_path, _clean_env):
    text = TWO_TRACKERS + "  - type: memory\n"
    with pytest.raises(ConfigError, match="Too many sources in configuration file"):
        load_config(_write(tmp_path, text))


def test_too_few_trackers(tmp_path):
    text = "trackers:\n  - type: memory\n"
    with pytest.raises(ConfigError, match="must define 2 trackers"):
        load_config(_write(tmp_path, text))


def test_bad_log_level(tmp_path):
    text = "sync:\n  log_level: chatty\ntrackers:\n  - type: memory\n  - type: memory\n"
    with pytest.raises(ConfigError, match="Unknown log level"):
        load_config(_write(tmp_path, text))


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(_write(tmp_path, "trackers: [unclosed\n"))


def test_tracker_validation_errors_surface(tmp_path, _clean_env):
    text = "trackers:\n  - type: github\n    user: u\n    token: t\n  - type: memory\n"
    with pytest.raises(ConfigError, match="Missing repo name"):
        load_config(_write(tmp_path, text))


def test_write_config_template_refuses_overwrite(tmp_path):
    target = tmp_path / "conf" / "trackersync.yaml"

    assert write_config_template(target) == target
    assert target.read_text() == CONFIG_TEMPLATE
    with pytest.raises(ConfigError, match="already exists"):
        write_config_template(target)


def test_template_loads_with_credentials(tmp_path, monkeypatch, _clean_env):
    monkeypatch.setenv("GITHUB_TOKEN", "g")
    monkeypatch.setenv("TRELLO_API_KEY", "k")
    monkeypatch.setenv("TRELLO_TOKEN", "t")
    path = write_config_template(tmp_path / "trackersync.yaml")

    cfg = load_config(path)

    assert [t.kind for t in cfg.trackers] == ["github", "trello"]
    assert cfg.log_level is LogLevel.NONE
