"""Command line interface for dirwarden."""

from __future__ import annotations

import difflib
import functools
import logging
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

from dirwarden.config import ConfigError, ConfigManager, DirwardenConfig, resolve_with_precedence
from dirwarden.organization import DATE_FORMATS
from dirwarden.rules import RuleEngine, RuleLoadError, load_rules
from dirwarden.watch import (
    CycleReport,
    ShutdownToken,
    WatchService,
    WatchStartupError,
    install_signal_handlers,
)

console = Console()
LOGGER = logging.getLogger(__name__)


def _handle_cli_error(message: str, *, original: Exception | None = None) -> NoReturn:
    """Surface an error as a click exception, preserving the original cause.

    Args:
        message: Human-readable error message.
        original: Original exception for chaining.

    Raises:
        click.ClickException: Always.
    """
    if isinstance(original, click.ClickException):
        raise original
    raise click.ClickException(message) from original


def _configure_logging(level: str) -> None:
    """Route library logging through rich at ``level``."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(
        level=numeric,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _load_engine(rules_path: Path) -> tuple[RuleEngine, list[str]]:
    """Load rules and build an engine, returning it with the skipped-entry messages."""
    try:
        result = load_rules(rules_path)
    except RuleLoadError as exc:
        _handle_cli_error(str(exc), original=exc)

    for message in result.skipped:
        console.print(f"[yellow]Skipped {message}[/yellow]")
    engine = result.build_engine()
    for issue in engine.validate():
        LOGGER.warning("Rule validation: %s", issue)
    return engine, result.skipped


def _emit_message(message: Any, *, quiet: bool) -> None:
    if not quiet:
        console.print(message)


def _emit_cycle(report: CycleReport, *, quiet: bool = False) -> None:
    """Render a one-line summary for cycles that saw changes or failures.

    Errors are always printed; the summary line is suppressed in quiet mode.
    """
    if not (report.has_changes or report.errors):
        return
    matched = sum(report.matched.values())
    _emit_message(
        f"[cyan]Cycle {report.cycle}: new={len(report.new)}, modified={len(report.modified)}, "
        f"deleted={len(report.deleted)}, matched={matched}, "
        f"operations={len(report.events)}.[/cyan]",
        quiet=quiet,
    )
    for error in report.errors:
        console.print(f"[red]  - {error}[/red]")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="dirwarden")
def cli() -> None:
    """Dirwarden watches a directory and applies declarative rules to its files."""


@cli.command()
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--rules",
    "rules_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Rules document (YAML or JSON).",
)
@click.option("--validate-rules", is_flag=True, help="Validate the rules document and exit.")
@click.option("--interval", type=float, help="Seconds between scans (default 5).")
@click.option("--log", "log_file", type=click.Path(dir_okay=False, path_type=Path), help="Watch log path.")
@click.option("--pid", "pid_file", type=click.Path(dir_okay=False, path_type=Path), help="Pid file path.")
@click.option("-V", "--verbose", is_flag=True, help="Echo watch log lines to the console.")
@click.option("--by-date", is_flag=True, help="Add date folders when organizing.")
@click.option("--by-size", is_flag=True, help="Send large files to a separate folder.")
@click.option("--size-threshold", type=int, help="Size in MB above which files count as large.")
@click.option("--date-format", type=click.Choice(DATE_FORMATS), help="Granularity of date folders.")
@click.option("--dry-run", is_flag=True, help="Log planned operations without touching files.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.option("--once", is_flag=True, help="Process current contents once and exit.")
def watch(
    directory: Path,
    rules_file: Path | None,
    validate_rules: bool,
    interval: float | None,
    log_file: Path | None,
    pid_file: Path | None,
    verbose: bool,
    by_date: bool,
    by_size: bool,
    size_threshold: int | None,
    date_format: str | None,
    dry_run: bool,
    quiet: bool,
    once: bool,
) -> None:
    """Monitor DIRECTORY and apply rules to new, modified and deleted files.

    Without --rules, new files are organized into category folders.

    Raises:
        click.ClickException: If configuration, rules or startup fail.
    """
    if interval is not None and interval <= 0:
        raise click.ClickException("--interval must be greater than zero.")

    overrides: dict[str, Any] = {
        "watch.interval_seconds": interval,
        "watch.log_path": str(log_file) if log_file else None,
        "watch.pid_path": str(pid_file) if pid_file else None,
        "watch.rules_path": str(rules_file) if rules_file else None,
        "watch.verbose": True if verbose else None,
        "organization.by_date": True if by_date else None,
        "organization.by_size": True if by_size else None,
        "organization.size_threshold_mb": size_threshold,
        "organization.date_format": date_format,
    }
    try:
        config = ConfigManager().load(cli_overrides=overrides)
    except ConfigError as exc:
        _handle_cli_error(str(exc), original=exc)

    settings = config.watch
    quiet_enabled = quiet or config.cli.quiet_default
    _configure_logging("DEBUG" if settings.verbose else config.logging.level)

    engine: RuleEngine | None = None
    skipped: list[str] = []
    if settings.rules_path:
        engine, skipped = _load_engine(Path(settings.rules_path).expanduser())

    if validate_rules:
        if engine is None:
            raise click.ClickException("--validate-rules requires --rules.")
        issues = [f"Skipped {message}" for message in skipped] + engine.validate()
        if issues:
            for issue in issues:
                console.print(f"[red]  - {issue}[/red]")
            raise click.ClickException(f"{len(issues)} rule validation issue(s) found.")
        console.print(f"[green]{len(engine)} rule(s) valid.[/green]")
        return

    service = WatchService(
        Path(directory),
        engine=engine,
        organization=config.organization,
        log_path=Path(settings.log_path),
        pid_path=Path(settings.pid_path),
        interval_seconds=settings.interval_seconds,
        verbose=settings.verbose,
        dry_run=dry_run,
        echo=lambda line: console.print(line, markup=False, highlight=False),
    )

    if once:
        try:
            report = service.process_once()
        except WatchStartupError as exc:
            _handle_cli_error(str(exc), original=exc)
        _emit_cycle(report, quiet=quiet_enabled)
        _emit_message(
            f"[green]Processed {service.files_processed} files, {service.error_count} errors.[/green]",
            quiet=quiet_enabled,
        )
        return

    token = ShutdownToken()
    restore = install_signal_handlers(token)
    rules_note = f" with {len(engine)} rules" if engine is not None else ""
    _emit_message(
        f"[cyan]Watching {service.directory}{rules_note}. Press Ctrl+C to stop.[/cyan]",
        quiet=quiet_enabled,
    )
    try:
        service.serve(token, functools.partial(_emit_cycle, quiet=quiet_enabled))
    except WatchStartupError as exc:
        _handle_cli_error(str(exc), original=exc)
    finally:
        restore()

    _emit_message(
        f"[yellow]Watch stopped. Processed {service.files_processed} files, "
        f"{service.error_count} errors.[/yellow]",
        quiet=quiet_enabled,
    )


@cli.group()
def config() -> None:
    """Manage dirwarden configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        file_data = manager.load_file_overrides()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException(
            "KEY must specify a dotted path such as 'watch.interval_seconds'."
        )

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=DirwardenConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The header timestamp always changes; compare the body only.
    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    body_changed = [line for line in before if not line.startswith("#")] != [
        line for line in after if not line.startswith("#")
    ]
    if not body_changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
