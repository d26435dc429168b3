"""Tests for rule evaluation and validation."""

from dirwarden.rules import (
    ActionContext,
    ArchiveAction,
    DeleteAction,
    LogAction,
    Matcher,
    MoveAction,
    OrganizeAction,
    RateLimit,
    Rule,
    RuleEngine,
    SizeGreaterThan,
    Trigger,
    execute_action,
)


def _log_rule(name: str, priority: int = 50, **kwargs: object) -> Rule:
    return Rule(
        name=name,
        trigger=kwargs.pop("trigger", Trigger.FILE_CREATED),  # type: ignore[arg-type]
        actions=(LogAction(message=name),),
        priority=priority,
        **kwargs,  # type: ignore[arg-type]
    )


def test_rules_are_ordered_by_priority_descending() -> None:
    engine = RuleEngine()
    engine.add_rule(_log_rule("low", 10))
    engine.add_rule(_log_rule("high", 90))
    engine.add_rule(_log_rule("mid", 50))

    assert [rule.name for rule in engine.rules] == ["high", "mid", "low"]


def test_equal_priorities_keep_insertion_order() -> None:
    engine = RuleEngine([_log_rule("first"), _log_rule("second"), _log_rule("third", 80)])

    assert [rule.name for rule in engine.rules] == ["third", "first", "second"]


def test_all_matching_rules_run_in_priority_order() -> None:
    engine = RuleEngine([_log_rule("low", 10), _log_rule("high", 90)])
    context = ActionContext()

    matched = engine.process_file("/tmp/a.txt", 10, 0, Trigger.FILE_CREATED, context)

    assert matched == 2
    assert context.logged == [("/tmp/a.txt", "high"), ("/tmp/a.txt", "low")]


def test_trigger_mismatch_is_ignored() -> None:
    engine = RuleEngine([_log_rule("created")])
    context = ActionContext()

    assert engine.process_file("/tmp/a.txt", 10, 0, Trigger.FILE_MODIFIED, context) == 0
    assert context.logged == []


def test_conditions_must_all_hold() -> None:
    rule = Rule(
        name="big pdf",
        trigger=Trigger.FILE_CREATED,
        matcher=Matcher(pattern="*.pdf"),
        conditions=(SizeGreaterThan(threshold=1024),),
        actions=(LogAction(message="big"),),
    )
    engine = RuleEngine([rule])
    context = ActionContext()

    assert engine.process_file("/tmp/small.pdf", 100, 0, Trigger.FILE_CREATED, context) == 0
    assert engine.process_file("/tmp/big.pdf", 4096, 0, Trigger.FILE_CREATED, context) == 1


def test_rate_limited_rule_stops_after_max_executions() -> None:
    rule = _log_rule("limited", rate_limit=RateLimit(max_executions=3, time_window_seconds=60))
    engine = RuleEngine([rule])
    context = ActionContext()

    results = [
        engine.process_file(f"/tmp/{index}.txt", 1, 0, Trigger.FILE_CREATED, context, now=500.0)
        for index in range(5)
    ]

    assert results == [1, 1, 1, 0, 0]
    assert engine.process_file("/tmp/late.txt", 1, 0, Trigger.FILE_CREATED, context, now=560.0) == 1


def test_execute_action_queues_everything_but_log() -> None:
    lines: list[str] = []
    context = ActionContext(log_sink=lines.append)

    execute_action(OrganizeAction(by_date=True), "/tmp/a.txt", context)
    execute_action(MoveAction(destination="sorted"), "/tmp/a.txt", context)
    execute_action(ArchiveAction(destination="backup", compress=True), "/tmp/a.txt", context)
    execute_action(DeleteAction(), "/tmp/a.txt", context)
    execute_action(LogAction(message="seen"), "/tmp/a.txt", context)

    assert context.pending == 4
    assert context.organize[0].by_date is True
    assert context.moves[0].destination == "sorted"
    assert context.archives[0].compress is True
    assert context.deletes == ["/tmp/a.txt"]
    assert lines == ["[Rule Action] /tmp/a.txt: seen"]

    context.clear()
    assert context.pending == 0
    assert context.logged == []


def test_has_trigger_ignores_disabled_rules() -> None:
    engine = RuleEngine([_log_rule("tick", trigger=Trigger.PERIODIC, enabled=False)])

    assert not engine.has_trigger(Trigger.PERIODIC)
    engine.add_rule(_log_rule("tock", trigger=Trigger.PERIODIC))
    assert engine.has_trigger(Trigger.PERIODIC)


def test_validate_reports_every_problem() -> None:
    engine = RuleEngine(
        [
            Rule(name="", trigger=Trigger.FILE_CREATED, actions=(LogAction(message="x"),)),
            Rule(name="loud", trigger=Trigger.FILE_CREATED, priority=150),
            Rule(name="ok", trigger=Trigger.FILE_CREATED, actions=(DeleteAction(),), priority=20),
        ]
    )

    issues = engine.validate()

    assert issues == [
        "Rule 'loud': priority must be 0-100 (got 150)",
        "Rule 'loud': must have at least one action",
        "Rule 1: name cannot be empty",
    ]


def test_validate_returns_nothing_for_valid_rules() -> None:
    assert RuleEngine([_log_rule("fine")]).validate() == []
