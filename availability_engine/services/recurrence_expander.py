# availability_engine/services/recurrence_expander.py
from __future__ import annotations

from datetime import date as date_type, datetime, time, timedelta
from typing import Iterable, Iterator

from dateutil.relativedelta import relativedelta
from dateutil.rrule import MONTHLY, SU, WEEKLY, rrule

from availability_engine.core.errors import MalformedRuleError, UnparsableTimestampError
from availability_engine.core.logging import get_logger
from availability_engine.core.timeutil import (
    combine_local,
    get_timezone,
    parse_time_of_day,
    start_of_next_day,
    sunday_based_weekday,
    to_rrule_weekday,
)
from availability_engine.schemas.availability import (
    AvailabilityRule,
    DateWindow,
    MonthlyAnchor,
    RuleKind,
)
from availability_engine.schemas.expansion import ExpansionResult, RuleDiagnostic
from availability_engine.schemas.instance import (
    InstanceOrigin,
    InstanceStatus,
    ScheduleInstance,
    timeline_order,
)

logger = get_logger(__name__)

_ORIGIN_BY_KIND = {
    RuleKind.WEEKLY: InstanceOrigin.WEEKLY,
    RuleKind.MONTHLY: InstanceOrigin.MONTHLY,
    RuleKind.CUSTOM: InstanceOrigin.CUSTOM,
}

_EPOCH_SUNDAY = date_type(1970, 1, 4)


def expand(
    rules: Iterable[AvailabilityRule],
    window: DateWindow,
    timezone: str,
) -> ExpansionResult:
    """
    Expand declared rules into concrete instances over `window`.

    Steps
    -----
    1) Resolve the owner's timezone (fails fast with InvalidTimezoneError).
    2) Validate each rule; malformed rules are skipped and reported in
       `diagnostics` instead of aborting the whole expansion.
    3) Enumerate the rule's dates inside both the window and the rule's
       effective range:
        - WEEKLY: every `recurrence_interval` weeks on `day_of_week`, weeks
          counted Sunday-first from the anchor week.
        - MONTHLY: every `recurrence_interval` months on the anchored day.
        - CUSTOM: `specific_date` only.
       The anchor is `effective_range.start`. Rules without one are phased
       from the week of Sunday 1970-01-04 (or the month 1970-01), so the
       query window never shifts which weeks or months are emitted.
    4) Combine each date with the rule's times in the owner's timezone.

    Returns
    -------
    ExpansionResult
        Instances sorted by start (ties by source_rule_id) and diagnostics.
        The output depends only on the arguments; the clock is never read.
    """
    tz = get_timezone(timezone)

    instances: list[ScheduleInstance] = []
    diagnostics: list[RuleDiagnostic] = []

    for rule in rules:
        try:
            instances.extend(_expand_rule(rule, window, tz))
        except MalformedRuleError as exc:
            logger.warning(
                "malformed_rule_skipped",
                rule_id=rule.id,
                owner_id=rule.owner_id,
                reason=exc.message,
            )
            diagnostics.append(
                RuleDiagnostic(
                    rule_id=rule.id,
                    owner_id=rule.owner_id,
                    error=type(exc).__name__,
                    message=exc.message,
                )
            )

    instances.sort(key=timeline_order)

    logger.debug(
        "rules_expanded",
        window_start=window.start.isoformat(),
        window_end=window.end.isoformat(),
        instance_count=len(instances),
        diagnostic_count=len(diagnostics),
    )
    return ExpansionResult(instances=instances, diagnostics=diagnostics)


def validate_rule(rule: AvailabilityRule) -> tuple[time | None, time | None]:
    """
    Check a rule is expandable and return its parsed (start, end) times.

    All-day rules return (None, None).

    Raises
    ------
    MalformedRuleError
        Missing kind-specific field, unparsable time, or a non-positive
        duration on a non all-day rule.
    """
    if rule.kind == RuleKind.WEEKLY and rule.day_of_week is None:
        raise MalformedRuleError(rule.id, "WEEKLY rule has no day_of_week")
    if rule.kind == RuleKind.CUSTOM and rule.specific_date is None:
        raise MalformedRuleError(rule.id, "CUSTOM rule has no specific_date")
    if rule.kind == RuleKind.MONTHLY:
        effective_start = rule.effective_range.start if rule.effective_range else None
        if rule.monthly_anchor == MonthlyAnchor.NTH_WEEKDAY and effective_start is None:
            raise MalformedRuleError(
                rule.id, "NTH_WEEKDAY rule needs effective_range.start to pick its weekday"
            )
        if rule.day_of_month is None and effective_start is None:
            raise MalformedRuleError(
                rule.id, "MONTHLY rule needs day_of_month or effective_range.start"
            )

    if rule.all_day:
        return None, None

    if not rule.start_time or not rule.end_time:
        raise MalformedRuleError(rule.id, "start_time and end_time are required unless all_day")

    try:
        start = parse_time_of_day(rule.start_time)
        end = parse_time_of_day(rule.end_time)
    except UnparsableTimestampError as exc:
        raise MalformedRuleError(rule.id, str(exc)) from exc

    if start >= end:
        raise MalformedRuleError(
            rule.id,
            f"start_time {rule.start_time} is not before end_time {rule.end_time}",
        )
    return start, end


def _expand_rule(rule: AvailabilityRule, window: DateWindow, tz) -> list[ScheduleInstance]:
    start_time, end_time = validate_rule(rule)

    status = InstanceStatus.AVAILABLE if rule.is_available else InstanceStatus.BLOCKED
    block_reason = None if rule.is_available else rule.block_reason
    origin = _ORIGIN_BY_KIND[rule.kind]

    instances: list[ScheduleInstance] = []
    for day in _rule_dates(rule, window):
        if rule.all_day:
            start = combine_local(day, time.min, tz)
            end = start_of_next_day(day, tz)
        else:
            start = combine_local(day, start_time, tz)
            end = combine_local(day, end_time, tz)

        if end <= start:
            # Both ends collapsed onto the same instant across a DST shift
            continue

        instances.append(
            ScheduleInstance(
                source_rule_id=rule.id,
                owner_id=rule.owner_id,
                date=day,
                start=start,
                end=end,
                status=status,
                origin=origin,
                block_reason=block_reason,
            )
        )
    return instances


def _rule_dates(rule: AvailabilityRule, window: DateWindow) -> Iterator[date_type]:
    """
    Yield the rule's dates that fall inside both the window and its effective range.
    """
    effective = rule.effective_range
    lower = window.start
    upper = window.end
    if effective is not None:
        if effective.start is not None and effective.start > lower:
            lower = effective.start
        if effective.end is not None and effective.end < upper:
            upper = effective.end
    if lower > upper:
        return

    if rule.kind == RuleKind.CUSTOM:
        if lower <= rule.specific_date <= upper:
            yield rule.specific_date
        return

    anchor = effective.start if effective is not None else None

    if rule.kind == RuleKind.WEEKLY:
        recurrence = rrule(
            WEEKLY,
            dtstart=datetime.combine(anchor or _epoch_phase_week(lower, rule), time.min),
            interval=rule.recurrence_interval,
            byweekday=to_rrule_weekday(rule.day_of_week),
            wkst=SU,
        )
    else:
        recurrence = _monthly_recurrence(rule, anchor, lower)

    for occurrence in recurrence.between(
        datetime.combine(lower, time.min),
        datetime.combine(upper, time.min),
        inc=True,
    ):
        yield occurrence.date()


def _epoch_phase_week(day: date_type, rule: AvailabilityRule) -> date_type:
    """
    First day of the latest in-phase week starting on or before `day`.

    Rules without an effective start count their weeks from the Sunday
    1970-01-04, so every window sees the same alternate weeks.
    """
    week_start = day - timedelta(days=sunday_based_weekday(day))
    weeks = (week_start - _EPOCH_SUNDAY).days // 7
    return week_start - timedelta(weeks=weeks % rule.recurrence_interval)


def _epoch_phase_month(day: date_type, rule: AvailabilityRule) -> date_type:
    """First day of the latest in-phase month, counting months from 1970-01."""
    months = (day.year - _EPOCH_SUNDAY.year) * 12 + day.month - 1
    return day.replace(day=1) - relativedelta(months=months % rule.recurrence_interval)


def _monthly_recurrence(
    rule: AvailabilityRule,
    anchor: date_type | None,
    lower: date_type,
) -> rrule:
    """
    Month-based recurrence counted from the anchor's month, or from the
    epoch month when the rule has no effective start.

    DAY_OF_MONTH skips months that lack the day (e.g. the 31st).
    NTH_WEEKDAY repeats the anchor's weekday ordinal; a fifth ordinal means "last".
    """
    if anchor is not None:
        month_start = anchor.replace(day=1)
    else:
        month_start = _epoch_phase_month(lower, rule)
    dtstart = datetime.combine(month_start, time.min)

    if rule.monthly_anchor == MonthlyAnchor.NTH_WEEKDAY:
        ordinal = (anchor.day - 1) // 7 + 1
        if ordinal == 5:
            ordinal = -1
        weekday = to_rrule_weekday(sunday_based_weekday(anchor))
        return rrule(
            MONTHLY,
            dtstart=dtstart,
            interval=rule.recurrence_interval,
            byweekday=weekday(ordinal),
        )

    return rrule(
        MONTHLY,
        dtstart=dtstart,
        interval=rule.recurrence_interval,
        bymonthday=rule.day_of_month or anchor.day,
    )
