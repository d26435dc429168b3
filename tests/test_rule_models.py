"""Tests for rule matchers, conditions and rate limits."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from dirwarden.rules import (
    AgeGreaterThan,
    AgeLessThan,
    LogAction,
    Matcher,
    RateLimit,
    Rule,
    SizeGreaterThan,
    SizeLessThan,
    TimeOfDay,
    Trigger,
    evaluate_condition,
)

NS = 1_000_000_000


def _local_timestamp(hour: int, minute: int) -> float:
    return datetime(2024, 3, 15, hour, minute).timestamp()


def test_empty_matcher_accepts_any_path() -> None:
    assert Matcher().matches("/tmp/anything.bin")


def test_matcher_predicates_are_combined() -> None:
    matcher = Matcher(pattern="*.pdf", path_contains="invoices")

    assert matcher.matches("/home/user/invoices/march.pdf")
    assert not matcher.matches("/home/user/reports/march.pdf")
    assert not matcher.matches("/home/user/invoices/march.txt")


def test_matcher_extension_is_normalized_and_case_insensitive() -> None:
    matcher = Matcher(extension="PDF")

    assert matcher.extension == ".PDF"
    assert matcher.matches("/tmp/report.pdf")
    assert not matcher.matches("/tmp/report.txt")
    assert not matcher.matches("/tmp/pdf")


def test_size_conditions_are_strict() -> None:
    assert evaluate_condition(SizeGreaterThan(threshold=100), "f", 101, 0)
    assert not evaluate_condition(SizeGreaterThan(threshold=100), "f", 100, 0)
    assert evaluate_condition(SizeLessThan(threshold=100), "f", 99, 0)
    assert not evaluate_condition(SizeLessThan(threshold=100), "f", 100, 0)


def test_time_of_day_bounds_are_inclusive() -> None:
    window = TimeOfDay(start_hour=9, start_minute=0, end_hour=17, end_minute=0)

    assert evaluate_condition(window, "f", 0, 0, now=_local_timestamp(9, 0))
    assert evaluate_condition(window, "f", 0, 0, now=_local_timestamp(17, 0))
    assert not evaluate_condition(window, "f", 0, 0, now=_local_timestamp(17, 1))
    assert not evaluate_condition(window, "f", 0, 0, now=_local_timestamp(8, 59))


def test_time_of_day_window_crossing_midnight_never_matches() -> None:
    window = TimeOfDay(start_hour=22, start_minute=0, end_hour=2, end_minute=0)

    for hour in (0, 1, 22, 23):
        assert not evaluate_condition(window, "f", 0, 0, now=_local_timestamp(hour, 30))


def test_age_conditions_compare_against_mtime() -> None:
    now = 10_000.0
    mtime_ns = int(now - 3600) * NS

    assert evaluate_condition(AgeGreaterThan(seconds=600), "f", 0, mtime_ns, now=now)
    assert not evaluate_condition(AgeGreaterThan(seconds=7200), "f", 0, mtime_ns, now=now)
    assert evaluate_condition(AgeLessThan(seconds=7200), "f", 0, mtime_ns, now=now)


def test_rate_limit_allows_max_then_refuses_until_window_passes() -> None:
    limit = RateLimit(max_executions=3, time_window_seconds=60)
    start = 1_000.0

    for _ in range(3):
        assert limit.can_execute(start)
        limit.record_execution()
    assert not limit.can_execute(start + 1)
    assert not limit.can_execute(start + 59)
    assert limit.can_execute(start + 60)
    assert limit.current_count == 0
    assert limit.window_start == start + 60


def test_rate_limit_window_restarts_at_check_time() -> None:
    limit = RateLimit(max_executions=1, time_window_seconds=10)

    assert limit.can_execute(100.0)
    limit.record_execution()
    # A long gap moves the window start to the next check rather than a fixed grid.
    assert limit.can_execute(135.0)
    assert limit.window_start == 135.0


def test_disabled_rule_never_matches() -> None:
    rule = Rule(
        name="off",
        trigger=Trigger.FILE_CREATED,
        actions=(LogAction(message="hi"),),
        enabled=False,
    )

    assert not rule.matches("/tmp/a.txt", 1, 0)


def test_rule_is_immutable() -> None:
    rule = Rule(name="frozen", trigger=Trigger.PERIODIC)

    with pytest.raises(ValidationError):
        rule.name = "changed"  # type: ignore[misc]


def test_trigger_from_string() -> None:
    assert Trigger.from_string("file_deleted") is Trigger.FILE_DELETED
    assert Trigger.from_string("file_renamed") is None
