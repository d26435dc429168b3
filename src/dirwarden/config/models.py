"""Configuration models describing dirwarden settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DATA_DIR = "~/.local/share/dirwarden"


class DirwardenBaseModel(BaseModel):
    """Shared configuration for dirwarden Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class WatchSettings(DirwardenBaseModel):
    """Settings governing the watch daemon.

    Attributes:
        interval_seconds: Delay between directory scans.
        log_path: Append-only watch log location.
        pid_path: Process-id file location.
        rules_path: Optional default rules document.
        verbose: Whether watch log lines are echoed to the console.
    """

    interval_seconds: float = Field(default=5.0, gt=0)
    log_path: str = f"{DEFAULT_DATA_DIR}/watch.log"
    pid_path: str = f"{DEFAULT_DATA_DIR}/watch.pid"
    rules_path: Optional[str] = None
    verbose: bool = False


class OrganizationOptions(DirwardenBaseModel):
    """Settings for the default organization pass.

    Attributes:
        by_date: Whether to add a date folder derived from modification time.
        by_size: Whether files above ``size_threshold_mb`` go to a separate folder.
        size_threshold_mb: Size above which files count as large.
        date_format: Granularity of date folders.
    """

    by_date: bool = False
    by_size: bool = False
    size_threshold_mb: int = Field(default=100, ge=0)
    date_format: Literal["year", "year-month", "year-month-day"] = "year-month"


class LoggingSettings(DirwardenBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(DirwardenBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class DirwardenConfig(DirwardenBaseModel):
    """Top-level configuration struct for dirwarden.

    Attributes:
        watch: Watch daemon settings.
        organization: Default organization settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    watch: WatchSettings = Field(default_factory=WatchSettings)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "CLIOptions",
    "DEFAULT_DATA_DIR",
    "DirwardenBaseModel",
    "DirwardenConfig",
    "LoggingSettings",
    "OrganizationOptions",
    "WatchSettings",
]
