"""Load rule documents (YAML or JSON) into rule models.

The loader is lenient: a rule entry that cannot be interpreted is skipped and
reported in :attr:`RuleLoadResult.skipped` instead of aborting the load. Only
problems with the document as a whole raise :class:`RuleLoadError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .engine import RuleEngine
from .errors import RuleError, RuleLoadError
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
)
from .parsing import parse_duration, parse_size, parse_time_range

LOGGER = logging.getLogger(__name__)

DEFAULT_PRIORITY = 50


@dataclass(slots=True)
class RuleLoadResult:
    """Rules parsed from a document plus diagnostics for skipped entries.

    Attributes:
        rules: Successfully parsed rules in document order.
        skipped: One message per entry that was skipped.
        source: Path the document was read from, when loaded from disk.
    """

    rules: list[Rule] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    source: Path | None = None

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def build_engine(self) -> RuleEngine:
        """Return a rule engine populated with the parsed rules."""
        return RuleEngine(self.rules)


def load_rules(path: Path) -> RuleLoadResult:
    """Read and parse the rule document at ``path``.

    Args:
        path: YAML or JSON file with a top-level ``rules`` list.

    Returns:
        RuleLoadResult: Parsed rules and skipped-entry diagnostics.

    Raises:
        RuleLoadError: If the file cannot be read or is not a rule document.
    """
    path = path.expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuleLoadError(f"Unable to read rules file {path}: {exc}") from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise RuleLoadError(f"Failed to parse rules file {path}: {exc}") from exc

    result = parse_rules(document)
    result.source = path
    return result


def parse_rules(document: Any) -> RuleLoadResult:
    """Parse an already-decoded rule document.

    Raises:
        RuleLoadError: If the document is not a mapping with a ``rules`` list.
    """
    if not isinstance(document, Mapping):
        raise RuleLoadError("Rules document must contain a mapping at the top level.")
    if "rules" not in document:
        raise RuleLoadError("Rules document is missing the 'rules' list.")
    entries = document["rules"]
    if not isinstance(entries, list):
        raise RuleLoadError("The 'rules' entry must be a list.")

    result = RuleLoadResult()
    for index, entry in enumerate(entries):
        try:
            result.rules.append(_parse_rule(entry))
        except RuleError as exc:
            message = f"Rule {index}: {exc}"
            LOGGER.debug("Skipping rule entry: %s", message)
            result.skipped.append(message)
    return result


def _parse_rule(entry: Any) -> Rule:
    if not isinstance(entry, Mapping):
        raise RuleError("entry is not a mapping")

    name = entry.get("name")
    if not isinstance(name, str):
        raise RuleError("'name' must be a string")

    trigger_value = entry.get("trigger")
    trigger = Trigger.from_string(trigger_value) if isinstance(trigger_value, str) else None
    if trigger is None:
        raise RuleError(f"unknown trigger {trigger_value!r}")

    priority = entry.get("priority", DEFAULT_PRIORITY)
    if isinstance(priority, bool) or not isinstance(priority, int):
        priority = DEFAULT_PRIORITY
    priority = min(100, max(0, priority))

    enabled = entry.get("enabled", True)
    if not isinstance(enabled, bool):
        raise RuleError("'enabled' must be a boolean")

    return Rule(
        name=name,
        trigger=trigger,
        matcher=_parse_matcher(entry.get("match")),
        conditions=tuple(_parse_condition(item) for item in _as_list(entry, "conditions")),
        actions=tuple(_parse_action(item) for item in _as_list(entry, "actions")),
        priority=priority,
        enabled=enabled,
        rate_limit=_parse_rate_limit(entry.get("rate_limit")),
    )


def _as_list(entry: Mapping[str, Any], key: str) -> list[Any]:
    value = entry.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise RuleError(f"'{key}' must be a list")
    return value


def _parse_matcher(value: Any) -> Matcher:
    if value is None:
        return Matcher()
    if not isinstance(value, Mapping):
        raise RuleError("'match' must be a mapping")

    fields: dict[str, str] = {}
    for key in ("pattern", "path_contains", "extension"):
        item = value.get(key)
        if item is None:
            continue
        if not isinstance(item, str):
            raise RuleError(f"match.{key} must be a string")
        fields[key] = item
    return Matcher(**fields)


def _parse_condition(value: Any) -> Condition:
    if not isinstance(value, Mapping) or len(value) != 1:
        raise RuleError("each condition must be a mapping with exactly one key")

    (kind, raw), = value.items()
    try:
        if kind == "size_gt":
            return SizeGreaterThan(threshold=parse_size(_require_str(kind, raw)))
        if kind == "size_lt":
            return SizeLessThan(threshold=parse_size(_require_str(kind, raw)))
        if kind == "time_of_day":
            window = parse_time_range(_require_str(kind, raw))
            return TimeOfDay(
                start_hour=window.start_hour,
                start_minute=window.start_minute,
                end_hour=window.end_hour,
                end_minute=window.end_minute,
            )
        if kind == "age_gt":
            return AgeGreaterThan(seconds=parse_duration(raw))
        if kind == "age_lt":
            return AgeLessThan(seconds=parse_duration(raw))
    except (TypeError, ValueError) as exc:
        raise RuleError(f"invalid {kind} condition: {exc}") from exc
    raise RuleError(f"unknown condition {kind!r}")


def _parse_action(value: Any) -> Action:
    if not isinstance(value, Mapping) or len(value) != 1:
        raise RuleError("each action must be a mapping with exactly one key")

    (kind, options), = value.items()
    if kind == "organize":
        if options is None or options is True:
            return OrganizeAction()
        if not isinstance(options, Mapping):
            raise RuleError("organize options must be a mapping")
        return OrganizeAction(
            by_category=_flag(options, "by_category", True),
            by_date=_flag(options, "by_date", False),
            by_size=_flag(options, "by_size", False),
        )
    if kind == "move":
        return MoveAction(destination=_destination(kind, options))
    if kind == "archive":
        compress = _flag(options, "compress", False) if isinstance(options, Mapping) else False
        return ArchiveAction(destination=_destination(kind, options), compress=compress)
    if kind == "delete":
        if options not in (None, True, {}):
            raise RuleError("delete takes no options")
        return DeleteAction()
    if kind == "log":
        message = options.get("message") if isinstance(options, Mapping) else None
        if not isinstance(message, str):
            raise RuleError("log.message must be a string")
        return LogAction(message=message)
    raise RuleError(f"unknown action {kind!r}")


def _parse_rate_limit(value: Any) -> RateLimit | None:
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise RuleError("'rate_limit' must be a mapping")

    max_executions = value.get("max_executions")
    if isinstance(max_executions, bool) or not isinstance(max_executions, int) or max_executions < 0:
        raise RuleError("rate_limit.max_executions must be a non-negative integer")
    try:
        window = parse_duration(value.get("time_window_seconds"))
    except ValueError as exc:
        raise RuleError(f"invalid rate_limit.time_window_seconds: {exc}") from exc
    return RateLimit(max_executions=max_executions, time_window_seconds=window)


def _require_str(kind: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{kind} expects a string, got {type(value).__name__}")
    return value


def _destination(kind: str, options: Any) -> str:
    destination = options.get("destination") if isinstance(options, Mapping) else None
    if not isinstance(destination, str) or not destination:
        raise RuleError(f"{kind}.destination must be a non-empty string")
    return destination


def _flag(options: Mapping[str, Any], key: str, default: bool) -> bool:
    value = options.get(key, default)
    if not isinstance(value, bool):
        raise RuleError(f"{key} must be a boolean")
    return value


__all__ = ["DEFAULT_PRIORITY", "RuleLoadResult", "load_rules", "parse_rules"]
