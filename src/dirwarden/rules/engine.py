"""Rule evaluation and the action context that collects requested actions."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional

from .models import (
    Action,
    ArchiveAction,
    DeleteAction,
    LogAction,
    MoveAction,
    OrganizeAction,
    Rule,
    Trigger,
)

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OrganizeRequest:
    """File queued for the organization pass together with its layout flags."""

    path: str
    by_category: bool = True
    by_date: bool = False
    by_size: bool = False


@dataclass(frozen=True, slots=True)
class MoveRequest:
    source: str
    destination: str


@dataclass(frozen=True, slots=True)
class ArchiveRequest:
    source: str
    destination: str
    compress: bool = False


@dataclass(slots=True)
class ActionContext:
    """Per-cycle queues of actions requested by matching rules.

    Queued actions are executed later, in batch, by the watch service. Log
    actions are the exception: they are emitted immediately through
    ``log_sink`` (or the module logger) and recorded in ``logged``.

    Attributes:
        organize: Files queued for organization, in request order.
        moves: Pending move requests.
        archives: Pending archive requests.
        deletes: Paths queued for deletion.
        logged: ``(path, message)`` pairs emitted by log actions.
        log_sink: Optional callable receiving formatted log action lines.
    """

    organize: list[OrganizeRequest] = field(default_factory=list)
    moves: list[MoveRequest] = field(default_factory=list)
    archives: list[ArchiveRequest] = field(default_factory=list)
    deletes: list[str] = field(default_factory=list)
    logged: list[tuple[str, str]] = field(default_factory=list)
    log_sink: Optional[Callable[[str], None]] = None

    @property
    def pending(self) -> int:
        """Return the number of queued (not yet executed) actions."""
        return len(self.organize) + len(self.moves) + len(self.archives) + len(self.deletes)

    def queue_organize(self, path: str, action: OrganizeAction) -> None:
        self.organize.append(
            OrganizeRequest(
                path=path,
                by_category=action.by_category,
                by_date=action.by_date,
                by_size=action.by_size,
            )
        )

    def queue_move(self, source: str, destination: str) -> None:
        self.moves.append(MoveRequest(source=source, destination=destination))

    def queue_archive(self, source: str, destination: str, compress: bool) -> None:
        self.archives.append(ArchiveRequest(source=source, destination=destination, compress=compress))

    def queue_delete(self, path: str) -> None:
        self.deletes.append(path)

    def emit_log(self, path: str, message: str) -> None:
        """Emit a rule log line immediately."""
        self.logged.append((path, message))
        line = f"[Rule Action] {path}: {message}"
        if self.log_sink is not None:
            self.log_sink(line)
        else:
            LOGGER.info(line)

    def clear(self) -> None:
        """Drop every queued action and log record."""
        self.organize.clear()
        self.moves.clear()
        self.archives.clear()
        self.deletes.clear()
        self.logged.clear()


def execute_action(action: Action, path: str, context: ActionContext) -> None:
    """Apply ``action`` for ``path`` against ``context``.

    Every variant except ``log`` is only queued.
    """
    if isinstance(action, OrganizeAction):
        context.queue_organize(path, action)
    elif isinstance(action, MoveAction):
        context.queue_move(path, action.destination)
    elif isinstance(action, ArchiveAction):
        context.queue_archive(path, action.destination, action.compress)
    elif isinstance(action, DeleteAction):
        context.queue_delete(path)
    elif isinstance(action, LogAction):
        context.emit_log(path, action.message)
    else:
        raise TypeError(f"Unsupported action: {action!r}")


class RuleEngine:
    """Priority-ordered rule set evaluated against file events."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = []
        for rule in rules:
            self.add_rule(rule)

    @property
    def rules(self) -> tuple[Rule, ...]:
        """Return the rules in evaluation order (highest priority first)."""
        return tuple(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def add_rule(self, rule: Rule) -> None:
        """Insert ``rule`` and restore descending priority order.

        The sort is stable, so rules sharing a priority keep insertion order.
        """
        self._rules.append(rule)
        self._rules.sort(key=lambda item: item.priority, reverse=True)

    def has_trigger(self, trigger: Trigger) -> bool:
        """Return whether any enabled rule reacts to ``trigger``."""
        return any(rule.enabled and rule.trigger == trigger for rule in self._rules)

    def process_file(
        self,
        path: str | Path,
        size: int,
        mtime_ns: int,
        trigger: Trigger,
        context: ActionContext,
        *,
        now: float | None = None,
    ) -> int:
        """Evaluate every rule for ``trigger`` against one file.

        Rules are not exclusive: each matching rule runs all of its actions,
        in priority order.

        Args:
            path: Path of the file that triggered the event.
            size: Observed size in bytes.
            mtime_ns: Observed modification time in nanoseconds.
            trigger: Event class being processed.
            context: Action context receiving queued actions.
            now: Optional current time used for conditions and rate limits.

        Returns:
            int: Number of rules that matched and executed.
        """
        file_path = os.fspath(path)
        matched = 0
        for rule in self._rules:
            if rule.trigger != trigger:
                continue
            if rule.rate_limit is not None and not rule.rate_limit.can_execute(now):
                LOGGER.debug("Rule %r skipped for %s: rate limit reached.", rule.name, file_path)
                continue
            if not rule.matches(file_path, size, mtime_ns, now=now):
                continue

            for action in rule.actions:
                execute_action(action, file_path, context)
            matched += 1
            if rule.rate_limit is not None:
                rule.rate_limit.record_execution()
        return matched

    def validate(self) -> list[str]:
        """Return one diagnostic line per rule definition problem."""
        issues: list[str] = []
        for index, rule in enumerate(self._rules):
            if not rule.name:
                issues.append(f"Rule {index}: name cannot be empty")
            if not 0 <= rule.priority <= 100:
                issues.append(f"Rule '{rule.name}': priority must be 0-100 (got {rule.priority})")
            if not rule.actions:
                issues.append(f"Rule '{rule.name}': must have at least one action")
        return issues


__all__ = [
    "ActionContext",
    "ArchiveRequest",
    "MoveRequest",
    "OrganizeRequest",
    "RuleEngine",
    "execute_action",
]
