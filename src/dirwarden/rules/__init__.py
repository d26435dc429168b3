"""Declarative watch rules: models, loading and evaluation."""

from .engine import (
    ActionContext,
    ArchiveRequest,
    MoveRequest,
    OrganizeRequest,
    RuleEngine,
    execute_action,
)
from .errors import RuleError, RuleLoadError
from .glob import match_glob
from .loader import RuleLoadResult, load_rules, parse_rules
from .models import (
    Action,
    AgeGreaterThan,
    AgeLessThan,
    ArchiveAction,
    Condition,
    DeleteAction,
    LogAction,
    Matcher,
    MoveAction,
    OrganizeAction,
    RateLimit,
    Rule,
    SizeGreaterThan,
    SizeLessThan,
    TimeOfDay,
    Trigger,
    evaluate_condition,
)
from .parsing import TimeRange, parse_duration, parse_size, parse_time_range

__all__ = [
    "Action",
    "ActionContext",
    "AgeGreaterThan",
    "AgeLessThan",
    "ArchiveAction",
    "ArchiveRequest",
    "Condition",
    "DeleteAction",
    "LogAction",
    "Matcher",
    "MoveAction",
    "MoveRequest",
    "OrganizeAction",
    "OrganizeRequest",
    "RateLimit",
    "Rule",
    "RuleEngine",
    "RuleError",
    "RuleLoadError",
    "RuleLoadResult",
    "SizeGreaterThan",
    "SizeLessThan",
    "TimeOfDay",
    "TimeRange",
    "Trigger",
    "evaluate_condition",
    "execute_action",
    "load_rules",
    "match_glob",
    "parse_duration",
    "parse_rules",
    "parse_size",
    "parse_time_range",
]
