"""CLI integration tests for `dirwarden watch`."""

from __future__ import annotations

import os
import textwrap
from pathlib import Path

from click.testing import CliRunner

from dirwarden.cli import cli

VALID_RULES = textwrap.dedent(
    """\
    rules:
      - name: PDF logger
        trigger: file_created
        match:
          pattern: "*.pdf"
        actions:
          - log:
              message: pdf arrived
    """
)


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory."""
    env = {key: value for key, value in os.environ.items() if not key.startswith("DIRWARDEN__")}
    env["HOME"] = str(tmp_path / "home")
    return env


def _write_rules(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_cli_watch_once_organizes_without_rules(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    (root / "memo.txt").write_text("watch me", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["watch", str(root), "--once"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert (root / "documents" / "memo.txt").exists()
    assert "Processed 1 files, 0 errors" in result.output
    watch_log = tmp_path / "home" / ".local" / "share" / "dirwarden" / "watch.log"
    assert watch_log.exists()
    assert (tmp_path / "home" / ".dirwarden" / "config.yaml").exists()


def test_cli_watch_once_applies_rules_and_writes_custom_log(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    (root / "report.pdf").write_bytes(b"%PDF")
    (root / "notes.txt").write_text("plain", encoding="utf-8")
    rules = _write_rules(tmp_path, VALID_RULES)
    log_path = tmp_path / "logs" / "custom.log"

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", str(root), "--rules", str(rules), "--log", str(log_path), "--once", "-V"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert "matched=1" in result.output
    assert "[Rule Action]" in result.output
    assert "pdf arrived" in log_path.read_text(encoding="utf-8")
    assert (root / "notes.txt").exists()


def test_cli_validate_rules_succeeds_for_valid_document(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    rules = _write_rules(tmp_path, VALID_RULES)

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", str(root), "--rules", str(rules), "--validate-rules"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert "1 rule(s) valid" in result.output


def test_cli_validate_rules_fails_on_issues(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    rules = _write_rules(
        tmp_path,
        textwrap.dedent(
            """\
            rules:
              - name: ""
                trigger: file_created
                actions:
                  - delete: true
              - name: idle
                trigger: periodic
            """
        ),
    )

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", str(root), "--rules", str(rules), "--validate-rules"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "name cannot be empty" in result.output
    assert "must have at least one action" in result.output


def test_cli_validate_rules_fails_on_skipped_entries(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    rules = _write_rules(tmp_path, VALID_RULES.replace("trigger: file_created", "trigger: file_creatd"))

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", str(root), "--rules", str(rules), "--validate-rules"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "unknown trigger" in result.output
    assert "1 rule validation issue(s) found" in result.output
    assert "rule(s) valid" not in result.output


def test_cli_validate_rules_requires_rules(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()

    runner = CliRunner()
    result = runner.invoke(cli, ["watch", str(root), "--validate-rules"], env=_env_with_home(tmp_path))

    assert result.exit_code != 0
    assert "--validate-rules requires --rules" in result.output


def test_cli_watch_reports_unreadable_rules(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()

    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["watch", str(root), "--rules", str(tmp_path / "missing.yaml"), "--once"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "Unable to read rules file" in result.output


def test_cli_watch_missing_directory_exits_non_zero(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["watch", str(tmp_path / "absent"), "--once"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    assert "Directory not found" in result.output


def test_cli_watch_rejects_non_positive_interval(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()

    runner = CliRunner()
    result = runner.invoke(
        cli, ["watch", str(root), "--interval", "0"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    assert "--interval must be greater than zero" in result.output


def test_cli_watch_quiet_suppresses_summary(tmp_path: Path) -> None:
    root = tmp_path / "data"
    root.mkdir()
    (root / "song.mp3").write_bytes(b"id3")

    runner = CliRunner()
    result = runner.invoke(
        cli, ["watch", str(root), "--once", "--quiet"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    assert result.output == ""
    assert (root / "audio" / "song.mp3").exists()
