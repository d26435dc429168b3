"""Rule data models: triggers, matchers, conditions, actions and rate limits."""

from __future__ import annotations

import time
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dirwarden.fileinfo import file_extension

from .glob import match_glob

NANOSECONDS_PER_SECOND = 1_000_000_000


class RuleBaseModel(BaseModel):
    """Shared configuration for immutable rule models."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class Trigger(str, Enum):
    """Event classes a rule can react to."""

    FILE_CREATED = "file_created"
    FILE_MODIFIED = "file_modified"
    FILE_DELETED = "file_deleted"
    PERIODIC = "periodic"

    @classmethod
    def from_string(cls, value: str) -> Optional["Trigger"]:
        """Return the trigger named ``value`` or ``None`` when unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class Matcher(RuleBaseModel):
    """Conjunction of optional path predicates.

    Attributes:
        pattern: Glob pattern applied to the full path.
        path_contains: Substring the path must contain.
        extension: Extension the path must carry, compared case-insensitively.
    """

    pattern: Optional[str] = None
    path_contains: Optional[str] = None
    extension: Optional[str] = None

    @field_validator("extension")
    @classmethod
    def _normalize_extension(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith("."):
            return f".{value}"
        return value

    def matches(self, path: str) -> bool:
        """Return whether every configured predicate accepts ``path``."""
        if self.pattern is not None and not match_glob(self.pattern, path):
            return False
        if self.path_contains is not None and self.path_contains not in path:
            return False
        if self.extension is not None and file_extension(path).lower() != self.extension.lower():
            return False
        return True


# Conditions ------------------------------------------------------------


class SizeGreaterThan(RuleBaseModel):
    kind: Literal["size_gt"] = "size_gt"
    threshold: int


class SizeLessThan(RuleBaseModel):
    kind: Literal["size_lt"] = "size_lt"
    threshold: int


class TimeOfDay(RuleBaseModel):
    """Inclusive local-time window; a window crossing midnight never matches."""

    kind: Literal["time_of_day"] = "time_of_day"
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int


class AgeGreaterThan(RuleBaseModel):
    kind: Literal["age_gt"] = "age_gt"
    seconds: int


class AgeLessThan(RuleBaseModel):
    kind: Literal["age_lt"] = "age_lt"
    seconds: int


Condition = Annotated[
    Union[SizeGreaterThan, SizeLessThan, TimeOfDay, AgeGreaterThan, AgeLessThan],
    Field(discriminator="kind"),
]


def evaluate_condition(
    condition: Condition,
    path: str,
    size: int,
    mtime_ns: int,
    *,
    now: float | None = None,
) -> bool:
    """Evaluate ``condition`` against one file observation.

    Time-based conditions read the wall clock on every call unless ``now`` is
    supplied, so repeated evaluation is not guaranteed to agree.

    Args:
        condition: Condition variant to evaluate.
        path: Path of the observed file.
        size: Observed size in bytes.
        mtime_ns: Observed modification time in nanoseconds since the epoch.
        now: Optional current time in seconds since the epoch.

    Returns:
        bool: Whether the condition holds.
    """
    if isinstance(condition, SizeGreaterThan):
        return size > condition.threshold
    if isinstance(condition, SizeLessThan):
        return size < condition.threshold

    current = time.time() if now is None else now
    if isinstance(condition, TimeOfDay):
        moment = datetime.fromtimestamp(current)
        minutes = moment.hour * 60 + moment.minute
        start = condition.start_hour * 60 + condition.start_minute
        end = condition.end_hour * 60 + condition.end_minute
        return start <= minutes <= end

    age = current - mtime_ns / NANOSECONDS_PER_SECOND
    if isinstance(condition, AgeGreaterThan):
        return age > condition.seconds
    if isinstance(condition, AgeLessThan):
        return age < condition.seconds
    raise TypeError(f"Unsupported condition for {path}: {condition!r}")


# Actions ---------------------------------------------------------------


class OrganizeAction(RuleBaseModel):
    """Queue the file for the default organization pass.

    Attributes:
        by_category: File into a category folder derived from the extension.
        by_date: Add a date component derived from the modification time.
        by_size: Send files above the size threshold to a separate folder.
    """

    kind: Literal["organize"] = "organize"
    by_category: bool = True
    by_date: bool = False
    by_size: bool = False


class MoveAction(RuleBaseModel):
    kind: Literal["move"] = "move"
    destination: str


class ArchiveAction(RuleBaseModel):
    kind: Literal["archive"] = "archive"
    destination: str
    compress: bool = False


class DeleteAction(RuleBaseModel):
    kind: Literal["delete"] = "delete"


class LogAction(RuleBaseModel):
    kind: Literal["log"] = "log"
    message: str


Action = Annotated[
    Union[OrganizeAction, MoveAction, ArchiveAction, DeleteAction, LogAction],
    Field(discriminator="kind"),
]


# Rules -----------------------------------------------------------------


class RateLimit(BaseModel):
    """Per-rule execution cap within a lazily reset time window.

    The window is only reset when eligibility is checked and at least
    ``time_window_seconds`` have passed since ``window_start``; the new window
    then starts at the time of that check.

    Attributes:
        max_executions: Executions allowed per window.
        time_window_seconds: Window length in seconds.
        current_count: Executions recorded in the current window.
        window_start: Epoch seconds at which the current window started.
    """

    model_config = ConfigDict(extra="forbid")

    max_executions: int
    time_window_seconds: float
    current_count: int = 0
    window_start: float = 0.0

    def can_execute(self, now: float | None = None) -> bool:
        """Return whether another execution fits in the current window."""
        current = time.time() if now is None else now
        if current - self.window_start >= self.time_window_seconds:
            self.window_start = current
            self.current_count = 0
        return self.current_count < self.max_executions

    def record_execution(self) -> None:
        """Count one execution against the current window."""
        self.current_count += 1


class Rule(RuleBaseModel):
    """One automation rule.

    Only the optional rate limit carries mutable state. Name, priority range
    and the presence of actions are not enforced here; ``RuleEngine.validate``
    reports them.

    Attributes:
        name: Human-readable rule name.
        trigger: Event class the rule reacts to.
        matcher: Path predicates.
        conditions: Conditions that must all hold.
        actions: Actions executed, in order, when the rule matches.
        priority: Higher priorities are evaluated first.
        enabled: Disabled rules never match.
        rate_limit: Optional execution cap.
    """

    name: str
    trigger: Trigger
    matcher: Matcher = Field(default_factory=Matcher)
    conditions: tuple[Condition, ...] = ()
    actions: tuple[Action, ...] = ()
    priority: int = 50
    enabled: bool = True
    rate_limit: Optional[RateLimit] = None

    def matches(self, path: str, size: int, mtime_ns: int, *, now: float | None = None) -> bool:
        """Return whether the rule applies to the observation.

        The trigger is compared by the engine before this is called.
        """
        if not self.enabled:
            return False
        if not self.matcher.matches(path):
            return False
        return all(
            evaluate_condition(condition, path, size, mtime_ns, now=now)
            for condition in self.conditions
        )


__all__ = [
    "Action",
    "AgeGreaterThan",
    "AgeLessThan",
    "ArchiveAction",
    "Condition",
    "DeleteAction",
    "LogAction",
    "Matcher",
    "MoveAction",
    "NANOSECONDS_PER_SECOND",
    "OrganizeAction",
    "RateLimit",
    "Rule",
    "RuleBaseModel",
    "SizeGreaterThan",
    "SizeLessThan",
    "TimeOfDay",
    "Trigger",
    "evaluate_condition",
]
