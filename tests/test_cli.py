from __future__ import annotations

import json
import textwrap

import pytest

from trackersync import cli
from trackersync.config import CONFIG_TEMPLATE

MEMORY_CONFIG = textwrap.dedent(
    """\
    version: 1
    environment:
      load_dotenv: false
    trackers:
      - type: memory
        name: Issues
        primary: true
        issues:
          - {id: 1, description: Fix crash, details: stack trace}
          - {id: 2, description: Shipped, state: open}
      - type: memory
        name: Board
        issues:
          - {id: 2, description: Shipped, state: closed}
          - {description: Idea from the board}
    """
)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "trackersync.yaml"
    path.write_text(MEMORY_CONFIG)
    return path


def test_sync_prints_summary(config_path, capsys):
    rc = cli.main(["sync", "--config", str(config_path)])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Sync Summary" in out
    assert "Planned" in out
    assert "sync: success" in out
    # no traffic log unless asked for
    assert "--ADD" not in out


def test_sync_status_logs_actions_without_applying(config_path, capsys, tmp_path):
    summary = tmp_path / "plan.json"

    rc = cli.main(["sync", "--config", str(config_path), "--status", "--summary-json", str(summary)])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Board--ADD\n    1: Fix crash\n    stack trace\n" in out
    assert "Issues--CLOSE" in out
    assert "Issues--ADD" in out
    assert "Board--UPDATE( ID )" in out
    assert "Sync Status (read-only)" in out
    data = json.loads(summary.read_text())
    assert data["counts"] == {"add": 2, "update": 1, "close": 1}
    assert [step["action"] for step in data["plan"]] == ["add", "close", "add", "update"]


def test_sync_verbose_logs_reads(config_path, capsys):
    cli.main(["sync", "--config", str(config_path), "--verbose", "--quiet"])
    out = capsys.readouterr().out
    assert "Issues--GET_LIST[0]" in out
    assert "Board--GET_LIST[1]" in out
    assert "Sync Summary" not in out


def test_quiet_env(config_path, capsys, monkeypatch):
    monkeypatch.setenv("TRACKERSYNC_QUIET", "1")
    assert cli.main(["sync", "--config", str(config_path)]) == 0
    assert "Sync Summary" not in capsys.readouterr().out


def test_sync_with_two_primaries_fails(tmp_path, capsys):
    path = tmp_path / "bad.yaml"
    path.write_text(MEMORY_CONFIG.replace("name: Board", "name: Board\n    primary: true"))

    rc = cli.main(["sync", "--config", str(path)])

    assert rc == 1
    assert "One and only one source must be the primary one" in capsys.readouterr().err


def test_missing_config_reports_error(tmp_path, capsys):
    rc = cli.main(["validate", "--config", str(tmp_path / "nope.yaml")])
    assert rc == 1
    err = capsys.readouterr().err
    assert "config error" in err
    assert "not found" in err


def test_validate_ok(config_path, capsys):
    assert cli.main(["validate", "--config", str(config_path)]) == 0
    out = capsys.readouterr().out
    assert "primary=Issues secondary=Board" in out
    assert "[validate] ok" in out


def test_init_writes_template_once(tmp_path, capsys):
    target = tmp_path / "new.yaml"

    assert cli.main(["init", "--config", str(target)]) == 0
    assert target.read_text() == CONFIG_TEMPLATE
    assert "[init] created" in capsys.readouterr().out

    assert cli.main(["init", "--config", str(target)]) == 1
    assert "already exists" in capsys.readouterr().err


def test_export_to_stdout(config_path, capsys):
    assert cli.main(["export", "--config", str(config_path)]) == 0
    out = capsys.readouterr().out
    assert "# Issues (primary)" in out
    assert "1[O]: Fix crash\nstack trace\n" in out
    assert "2[C]: Shipped" in out


def test_export_to_file(config_path, tmp_path, capsys):
    target = tmp_path / "snap.txt"
    assert cli.main(["export", "--config", str(config_path), "--output", str(target)]) == 0
    assert "# Board (secondary)" in target.read_text()
    assert "[export] 4 issues" in capsys.readouterr().out


def test_sync_requires_subcommand():
    with pytest.raises(SystemExit):
        cli.main([])


def test_failure_prints_failed_status_on_stderr(tmp_path, capsys):
    rc = cli.main(["validate", "--config", str(tmp_path / "nope.yaml")])

    captured = capsys.readouterr()
    assert rc == 1
    assert "validate: failed (config)" in captured.err
    assert captured.out == ""


def test_quiet_failure_prints_only_the_error(tmp_path, capsys):
    assert cli.main(["--quiet", "validate", "--config", str(tmp_path / "nope.yaml")]) == 1
    assert "failed" not in capsys.readouterr().err
