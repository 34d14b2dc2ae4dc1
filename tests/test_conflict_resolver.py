# tests/test_conflict_resolver.py
import random

import pytest

from availability_engine.core.errors import DegenerateRecurrenceError
from availability_engine.schemas.conflict import ConflictOutcome
from availability_engine.schemas.instance import (
    InstanceOrigin,
    InstanceStatus,
    ScheduleInstance,
)
from availability_engine.schemas.session_template import SessionTemplate
from availability_engine.services import conflict_resolver
from availability_engine.services.conflict_resolver import ConflictResolver, resolve
from availability_engine.services.occurrence_generator import generate_occurrences


def _template(
    policy="FAIL",
    recurrence=None,
    start="2025-10-06T09:00:00+03:00",
    end="2025-10-06T10:00:00+03:00",
    timezone="Africa/Nairobi",
):
    return SessionTemplate(
        template_id="yoga-series",
        owner_id="instructor-7",
        window_start=start,
        window_end=end,
        timezone=timezone,
        recurrence=recurrence or {"type": "DAILY", "interval": 1, "occurrence_count": 5},
        conflict_resolution=policy,
    )


def _existing(
    day,
    start,
    end,
    status=InstanceStatus.BLOCKED,
    owner_id="instructor-7",
    rule_id="block-1",
):
    return ScheduleInstance(
        source_rule_id=rule_id,
        owner_id=owner_id,
        date=day,
        start=f"{day}T{start}:00+03:00",
        end=f"{day}T{end}:00+03:00",
        status=status,
        origin=InstanceOrigin.ONE_OFF,
    )


BLOCK_OCT_8 = _existing("2025-10-08", "09:30", "10:30")


def test_fail_policy_rejects_whole_series():
    report = resolve(_template("FAIL"), [BLOCK_OCT_8])

    assert report.outcome == ConflictOutcome.REJECTED
    assert report.accepted_occurrences == []
    assert len(report.rejected_occurrences) == 5
    collided = [r.colliding_instance for r in report.rejected_occurrences]
    assert collided == [None, None, BLOCK_OCT_8, None, None]


def test_skip_policy_drops_only_colliding_candidates():
    report = resolve(_template("SKIP"), [BLOCK_OCT_8])

    assert report.outcome == ConflictOutcome.PARTIAL
    assert len(report.accepted_occurrences) == 4
    (rejected,) = report.rejected_occurrences
    assert rejected.candidate.date.isoformat() == "2025-10-08"
    assert rejected.colliding_instance == BLOCK_OCT_8


def test_override_policy_accepts_all_and_reports_superseded():
    report = resolve(_template("OVERRIDE"), [BLOCK_OCT_8])

    assert report.outcome == ConflictOutcome.COMMITTED
    assert len(report.accepted_occurrences) == 5
    assert report.rejected_occurrences == []
    assert report.superseded_instances == [BLOCK_OCT_8]


def test_weekly_series_against_blocked_tuesday_is_rejected():
    template = _template(
        "FAIL",
        recurrence={"type": "WEEKLY", "days_of_week": [2], "occurrence_count": 3},
        start="2025-09-30T09:00:00+03:00",
        end="2025-09-30T10:00:00+03:00",
    )
    blocked = _existing("2025-10-07", "09:00", "10:00")

    report = resolve(template, [blocked])

    assert report.outcome == ConflictOutcome.REJECTED
    assert [r.candidate.date.isoformat() for r in report.rejected_occurrences] == [
        "2025-09-30",
        "2025-10-07",
        "2025-10-14",
    ]


def test_available_reserved_foreign_and_adjacent_time_never_collide():
    timeline = [
        _existing("2025-10-06", "09:00", "10:00", status=InstanceStatus.AVAILABLE),
        _existing("2025-10-07", "09:00", "10:00", status=InstanceStatus.RESERVED),
        _existing("2025-10-08", "09:00", "10:00", owner_id="instructor-8"),
        _existing("2025-10-09", "08:00", "09:00"),
        _existing("2025-10-10", "10:00", "11:00", status=InstanceStatus.BOOKED),
    ]

    report = resolve(_template("FAIL"), timeline)

    assert report.outcome == ConflictOutcome.COMMITTED
    assert len(report.accepted_occurrences) == 5
    assert report.failure_reason is None


def test_report_ignores_timeline_order():
    timeline = [
        BLOCK_OCT_8,
        _existing("2025-10-08", "09:00", "09:45", status=InstanceStatus.BOOKED, rule_id="b-2"),
        _existing("2025-10-09", "09:15", "09:30", rule_id="block-3"),
    ]
    shuffled = list(timeline)
    random.Random(7).shuffle(shuffled)

    for policy in ("FAIL", "SKIP", "OVERRIDE"):
        expected = ConflictResolver.resolve(_template(policy), timeline)
        actual = ConflictResolver.resolve(_template(policy), list(reversed(shuffled)))
        assert actual.model_dump_json() == expected.model_dump_json()


def test_yearly_leap_day_series_always_reaches_full_count():
    template = _template(
        "FAIL",
        recurrence={"type": "YEARLY", "occurrence_count": 3},
        start="2024-02-29T09:00:00+03:00",
        end="2024-02-29T10:00:00+03:00",
    )

    report = resolve(template, [], lookahead_factor=1)

    assert report.outcome == ConflictOutcome.COMMITTED
    assert report.failure_reason is None
    assert [c.date.isoformat() for c in report.accepted_occurrences] == [
        "2024-02-29",
        "2028-02-29",
        "2032-02-29",
    ]


@pytest.mark.parametrize(
    "recurrence, last_date",
    [
        ({"type": "DAILY", "interval": 14, "occurrence_count": 12}, "2026-03-09"),
        ({"type": "WEEKLY", "interval": 12, "occurrence_count": 12}, "2028-04-17"),
        ({"type": "MONTHLY", "interval": 12, "occurrence_count": 12}, "2036-10-06"),
    ],
)
def test_large_interval_series_are_not_cut_short(recurrence, last_date):
    report = resolve(_template("FAIL", recurrence=recurrence), [])

    assert report.outcome == ConflictOutcome.COMMITTED
    assert len(report.accepted_occurrences) == 12
    assert report.accepted_occurrences[-1].date.isoformat() == last_date


def test_degenerate_recurrence_becomes_rejected_report(monkeypatch):
    template = _template("SKIP")
    partial = generate_occurrences(template)[:1]

    def _run_out(*args, **kwargs):
        raise DegenerateRecurrenceError("produced 1 of 5 occurrences", produced=partial)

    monkeypatch.setattr(conflict_resolver, "generate_occurrences", _run_out)

    report = resolve(template, [])

    assert report.outcome == ConflictOutcome.REJECTED
    assert report.accepted_occurrences == []
    assert report.failure_reason == "produced 1 of 5 occurrences"
    assert [r.candidate for r in report.rejected_occurrences] == partial


def test_lookahead_factor_must_be_positive():
    with pytest.raises(ValueError):
        generate_occurrences(_template(), lookahead_factor=0)


def test_weekly_occurrences_keep_wall_clock_across_dst():
    template = _template(
        recurrence={"type": "WEEKLY", "occurrence_count": 2},
        start="2025-10-26T09:00:00-04:00",
        end="2025-10-26T10:00:00-04:00",
        timezone="America/New_York",
    )

    candidates = generate_occurrences(template)

    assert [c.start.isoformat() for c in candidates] == [
        "2025-10-26T09:00:00-04:00",
        "2025-11-02T09:00:00-05:00",
    ]
    assert candidates[1].end.isoformat() == "2025-11-02T10:00:00-05:00"


def test_monthly_occurrences_skip_months_without_the_day():
    template = _template(
        recurrence={"type": "MONTHLY", "occurrence_count": 3},
        start="2025-01-31T09:00:00+03:00",
        end="2025-01-31T10:00:00+03:00",
    )

    dates = [c.date.isoformat() for c in generate_occurrences(template)]

    assert dates == ["2025-01-31", "2025-03-31", "2025-05-31"]


def test_weekly_days_with_interval_skip_alternate_weeks():
    template = _template(
        recurrence={"type": "WEEKLY", "interval": 2, "days_of_week": [3, 1], "occurrence_count": 4},
    )

    candidates = generate_occurrences(template)

    assert [c.date.isoformat() for c in candidates] == [
        "2025-10-06",
        "2025-10-08",
        "2025-10-20",
        "2025-10-22",
    ]
    assert all(c.status == InstanceStatus.BOOKED for c in candidates)
    assert all(c.origin == InstanceOrigin.SESSION for c in candidates)
    assert all(c.source_rule_id == "yoga-series" for c in candidates)


def test_weekday_list_without_start_weekday_begins_on_next_listed_day():
    # window_start is a Monday; the series only runs on Thursdays.
    template = _template(
        recurrence={"type": "WEEKLY", "days_of_week": [4], "occurrence_count": 2},
        start="2025-10-06T09:00:00+03:00",
        end="2025-10-06T10:30:00+03:00",
    )

    first, second = generate_occurrences(template)

    assert first.start.isoformat() == "2025-10-09T09:00:00+03:00"
    assert first.end.isoformat() == "2025-10-09T10:30:00+03:00"
    assert second.date.isoformat() == "2025-10-16"
