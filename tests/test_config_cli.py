"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

from click.testing import CliRunner

from dirwarden.cli import cli
from dirwarden.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = {key: value for key, value in os.environ.items() if not key.startswith("DIRWARDEN__")}
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".dirwarden" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["config", "view"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "watch:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["config", "set", "watch.interval_seconds", "--value", "2.5"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0
    assert "2.5" in result.output
    assert "Updated watch.interval_seconds" in result.output

    config = ConfigManager(config_path=_config_path(tmp_path)).load(include_env=False)
    assert config.watch.interval_seconds == 2.5


def test_config_set_same_value_reports_no_change(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    runner.invoke(cli, ["config", "set", "organization.by_date", "--value", "true"], env=env)
    result = runner.invoke(cli, ["config", "set", "organization.by_date", "--value", "true"], env=env)

    assert result.exit_code == 0
    assert "No changes applied" in result.output


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["config", "set", "organization.date_format", "--value", "weekly"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "Invalid configuration values" in result.output
