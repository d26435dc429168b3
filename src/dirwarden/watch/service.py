"""Polling watch service that feeds directory changes through the rule engine."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from dirwarden.config.models import OrganizationOptions
from dirwarden.organization import (
    OperationEvent,
    OperationExecutor,
    OperationPlan,
    OrganizerPlanner,
)
from dirwarden.rules import ActionContext, OrganizeRequest, RuleEngine, Trigger

from .errors import WatchStartupError
from .lifecycle import ShutdownToken, WatchLog, remove_pid_file, write_pid_file
from .monitor import DirectoryMonitor, ObservedFile

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class CycleReport:
    """Outcome of one scan/evaluate/act cycle.

    Attributes:
        cycle: Sequence number of the cycle, starting at 1.
        new: Paths first seen during the cycle.
        modified: Paths whose size or mtime changed.
        deleted: Paths that disappeared since the previous cycle.
        matched: Number of rule matches per trigger.
        logged: ``(path, message)`` pairs emitted by rule log actions.
        events: Operations applied while draining queued actions.
        notes: Planner notes such as skipped duplicate requests.
        errors: Scan, organize and per-operation failures.
    """

    cycle: int
    new: list[Path] = field(default_factory=list)
    modified: list[Path] = field(default_factory=list)
    deleted: list[Path] = field(default_factory=list)
    matched: Counter[Trigger] = field(default_factory=Counter)
    logged: list[tuple[str, str]] = field(default_factory=list)
    events: list[OperationEvent] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new or self.modified or self.deleted)


class WatchService:
    """Long-running scan/evaluate/act loop over a single directory.

    Lifecycle: :meth:`start` (log, pid file, baseline scan), :meth:`run` until
    the shutdown token is set, then :meth:`shutdown`. :meth:`serve` wraps all
    three. The token is only checked at the top of each iteration, after the
    previous sleep and cycle complete, so stopping can take up to one interval
    plus one cycle.
    """

    def __init__(
        self,
        directory: Path,
        *,
        engine: Optional[RuleEngine],
        organization: Optional[OrganizationOptions] = None,
        log_path: Path,
        pid_path: Path,
        interval_seconds: float = 5.0,
        verbose: bool = False,
        dry_run: bool = False,
        echo: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the watch service.

        Args:
            directory: Directory to monitor (direct children only).
            engine: Rule engine; ``None`` selects the default organization pass.
            organization: Options for organize actions and the default pass.
            log_path: Watch log location.
            pid_path: Pid file location.
            interval_seconds: Delay between cycles.
            verbose: Whether watch log lines are echoed.
            dry_run: Whether to plan operations without touching files.
            echo: Callable receiving echoed log lines in verbose mode.
            sleep: Sleep function used between cycles.
            clock: Wall-clock source for rule conditions and rate limits.
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero.")

        self._directory = directory.expanduser().resolve()
        self._engine = engine
        self._organization = organization or OrganizationOptions()
        self._log_path = log_path.expanduser().resolve()
        self._pid_path = pid_path.expanduser().resolve()
        self._interval = interval_seconds
        self._dry_run = dry_run
        self._sleep = sleep
        self._clock = clock
        self._log = WatchLog(self._log_path, echo=echo if verbose else None)
        self._monitor = DirectoryMonitor(self._directory, ignore=[self._log_path, self._pid_path])
        self._planner = OrganizerPlanner(
            date_format=self._organization.date_format,
            size_threshold_mb=self._organization.size_threshold_mb,
        )
        self._executor = OperationExecutor(dry_run=dry_run)
        self._running = False
        self._pid_written = False
        self._cycles = 0
        self._files_processed = 0
        self._errors = 0

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def monitor(self) -> DirectoryMonitor:
        return self._monitor

    @property
    def files_processed(self) -> int:
        return self._files_processed

    @property
    def error_count(self) -> int:
        return self._errors

    def start(self, *, baseline: bool = True, write_pid: bool = True) -> None:
        """Open the watch log, write the pid file and take the baseline snapshot.

        Files present during the baseline scan are tracked but never reported
        as new.

        Raises:
            WatchStartupError: If the directory, log or pid file is unusable.
            RuntimeError: If the service is already running.
        """
        if self._running:
            raise RuntimeError("WatchService is already running.")
        if not self._directory.is_dir():
            raise WatchStartupError(f"Directory not found: {self._directory}")

        self._log.open()
        try:
            if write_pid:
                write_pid_file(self._pid_path)
                self._pid_written = True
            if baseline:
                self._monitor.scan()
        except OSError as exc:
            self._release()
            raise WatchStartupError(f"Unable to scan {self._directory}: {exc}") from exc
        except WatchStartupError:
            self._release()
            raise

        self._running = True
        self._log.write(f"Watch started on: {self._directory}")

    def run(
        self,
        token: ShutdownToken,
        on_cycle: Optional[Callable[[CycleReport], None]] = None,
    ) -> None:
        """Loop until ``token`` is set: sleep, then run one cycle.

        Args:
            token: Shutdown token checked before every iteration.
            on_cycle: Optional callback receiving each cycle report.
        """
        while not token.requested:
            self._sleep(self._interval)
            report = self.run_cycle()
            if on_cycle is not None:
                on_cycle(report)

    def serve(
        self,
        token: ShutdownToken,
        on_cycle: Optional[Callable[[CycleReport], None]] = None,
    ) -> None:
        """Start, run until shutdown is requested, then shut down."""
        self.start()
        try:
            self.run(token, on_cycle)
        finally:
            self.shutdown()

    def process_once(self) -> CycleReport:
        """Run a single cycle treating every current file as new, then stop."""
        self.start(baseline=False, write_pid=False)
        try:
            return self.run_cycle()
        finally:
            self.shutdown()

    def run_cycle(self) -> CycleReport:
        """Scan once, evaluate changes and drain the resulting actions.

        Scan and action failures are logged and counted, never raised.
        """
        self._cycles += 1
        report = CycleReport(cycle=self._cycles)

        try:
            scan = self._monitor.scan()
        except OSError as exc:
            self._record_error(report, f"Scan of {self._directory} failed: {exc}")
            return report
        try:
            deleted = self._monitor.detect_deletions()
        except OSError as exc:
            self._record_error(report, f"Deletion check in {self._directory} failed: {exc}")
            deleted = []

        report.new = scan.new
        report.modified = scan.modified
        report.deleted = [record.path for record in deleted]
        for path in report.new:
            self._log.write(f"New file: {path.name}")
        for path in report.modified:
            self._log.write(f"Modified: {path.name}")
        for path in report.deleted:
            self._log.write(f"Deleted: {path}")

        if self._engine is None:
            self._organize_default(report)
        else:
            self._process_rules(self._engine, deleted, report)
        return report

    def shutdown(self) -> None:
        """Log final counters, close the log and remove the pid file."""
        if self._running:
            self._log.write(
                f"Watch stopped. Processed {self._files_processed} files, {self._errors} errors"
            )
        self._running = False
        self._release()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _process_rules(
        self,
        engine: RuleEngine,
        deleted: Iterable[ObservedFile],
        report: CycleReport,
    ) -> None:
        context = ActionContext(log_sink=self._log.write)
        now = self._clock()

        batches: list[tuple[Trigger, list[ObservedFile]]] = [
            (Trigger.FILE_CREATED, self._records(report.new)),
            (Trigger.FILE_MODIFIED, self._records(report.modified)),
            (Trigger.FILE_DELETED, list(deleted)),
        ]
        if engine.has_trigger(Trigger.PERIODIC):
            batches.append((Trigger.PERIODIC, list(self._monitor.snapshot.values())))

        if report.new:
            self._log.write(f"Processing {len(report.new)} new files")
        for trigger, records in batches:
            for record in records:
                matched = engine.process_file(
                    record.path, record.size, record.mtime_ns, trigger, context, now=now
                )
                report.matched[trigger] += matched
                if matched:
                    self._log.write(f"File {record.path} matched {matched} rules ({trigger.value})")

        self._files_processed += len(report.new) + len(report.modified)
        report.logged = list(context.logged)
        if context.pending:
            self._drain(context, report)

    def _organize_default(self, report: CycleReport) -> None:
        if not report.new:
            return
        self._log.write(f"Processing {len(report.new)} new files")
        requests = [
            OrganizeRequest(
                path=str(path),
                by_category=True,
                by_date=self._organization.by_date,
                by_size=self._organization.by_size,
            )
            for path in report.new
        ]
        try:
            plan = self._planner.build_plan(requests, self._directory)
            self._apply(plan, report)
        except Exception as exc:  # pragma: no cover - unexpected planner failure
            self._record_error(report, f"Error organizing files: {exc.__class__.__name__}: {exc}")
            return
        self._files_processed += len(report.new)
        self._log.write(f"Organized {len(report.new)} files successfully")

    def _drain(self, context: ActionContext, report: CycleReport) -> None:
        if context.organize:
            self._log.write(f"Organizing {len(context.organize)} files from rules")
        try:
            plan = self._planner.plan_context(context, self._directory)
            self._apply(plan, report)
        except Exception as exc:  # pragma: no cover - unexpected planner failure
            self._record_error(report, f"Error executing rule actions: {exc.__class__.__name__}: {exc}")
        finally:
            context.clear()

    def _apply(self, plan: OperationPlan, report: CycleReport) -> None:
        for note in plan.notes:
            report.notes.append(note)
            self._log.write(f"Note: {note}")
        if plan.is_empty:
            return

        result = self._executor.apply(plan)
        prefix = "[dry-run] " if self._dry_run else ""
        for event in result.events:
            report.events.append(event)
            if event.operation != "archive" and not self._dry_run:
                # Files moved or deleted by the daemon are not reported as deletions.
                self._monitor.forget(Path(event.source))
            if event.destination is not None and not self._dry_run:
                # Copies and moves landing in the watched directory are not new files.
                self._monitor.track(Path(event.destination))
            if event.destination is None:
                self._log.write(f"{prefix}{event.operation}: {event.source}")
            else:
                self._log.write(f"{prefix}{event.operation}: {event.source} -> {event.destination}")
        for error in result.errors:
            self._record_error(report, error)

    def _records(self, paths: Iterable[Path]) -> list[ObservedFile]:
        records: list[ObservedFile] = []
        for path in paths:
            record = self._monitor.get(path)
            if record is not None:
                records.append(record)
        return records

    def _record_error(self, report: CycleReport, message: str) -> None:
        self._errors += 1
        report.errors.append(message)
        LOGGER.warning(message)
        self._log.write(message)

    def _release(self) -> None:
        self._log.close()
        if self._pid_written:
            try:
                remove_pid_file(self._pid_path)
            except OSError as exc:
                LOGGER.warning("Unable to remove pid file %s: %s", self._pid_path, exc)
            self._pid_written = False


__all__ = ["CycleReport", "WatchService"]
