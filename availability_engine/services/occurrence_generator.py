# availability_engine/services/occurrence_generator.py
from __future__ import annotations

from datetime import datetime, timedelta
from itertools import islice

from dateutil.rrule import DAILY, MONTHLY, SU, WEEKLY, YEARLY, rrule

from availability_engine.core.errors import DegenerateRecurrenceError
from availability_engine.core.timeutil import get_timezone, localize, to_rrule_weekday
from availability_engine.schemas.instance import InstanceOrigin, InstanceStatus, ScheduleInstance
from availability_engine.schemas.session_template import RecurrenceType, SessionTemplate

DEFAULT_LOOKAHEAD_FACTOR = 10

_FREQUENCIES = {
    RecurrenceType.DAILY: DAILY,
    RecurrenceType.WEEKLY: WEEKLY,
    RecurrenceType.MONTHLY: MONTHLY,
    RecurrenceType.YEARLY: YEARLY,
}


def generate_occurrences(
    template: SessionTemplate,
    lookahead_factor: int = DEFAULT_LOOKAHEAD_FACTOR,
) -> list[ScheduleInstance]:
    """
    Materialize exactly `occurrence_count` candidate occurrences.

    Occurrences are laid out on the owner's local wall clock from
    `window_start` (so a 09:00 class stays at 09:00 across DST changes) and
    keep the duration of `window_start`..`window_end`. WEEKLY series with
    `days_of_week` use the first listed weekday on or after `window_start`.
    MONTHLY/YEARLY repeat the start's day-of-month; months or years without
    that day are skipped, and the series simply continues past them.

    Only WEEKLY searches are bounded: they stop after
    `occurrence_count * interval * lookahead_factor` weeks. The other types
    always find another date within a few periods of the calendar.

    Raises
    ------
    DegenerateRecurrenceError
        When fewer than `occurrence_count` dates exist inside the bound.
        The partial candidates are attached to the error.
    """
    if lookahead_factor < 1:
        raise ValueError("lookahead_factor must be at least 1")

    tz = get_timezone(template.timezone)
    recurrence = template.recurrence
    count = recurrence.occurrence_count

    wall_start = template.window_start.astimezone(tz).replace(tzinfo=None)
    duration = template.window_end - template.window_start

    options = {
        "dtstart": wall_start,
        "interval": recurrence.interval,
        "wkst": SU,
    }
    lookahead_weeks = None
    if recurrence.type == RecurrenceType.WEEKLY:
        lookahead_weeks = count * recurrence.interval * lookahead_factor
        options["until"] = wall_start + timedelta(weeks=lookahead_weeks)
        if recurrence.days_of_week:
            options["byweekday"] = [to_rrule_weekday(day) for day in recurrence.days_of_week]

    wall_clock = list(islice(rrule(_FREQUENCIES[recurrence.type], **options), count))

    candidates = [
        _candidate(template, localize(moment, tz), duration, tz) for moment in wall_clock
    ]

    if len(candidates) < count:
        bound = f" within {lookahead_weeks} weeks" if lookahead_weeks else ""
        raise DegenerateRecurrenceError(
            f"{recurrence.type.value} recurrence every {recurrence.interval} produced "
            f"{len(candidates)} of {count} occurrences{bound}",
            produced=candidates,
        )
    return candidates


def _candidate(template: SessionTemplate, start: datetime, duration: timedelta, tz) -> ScheduleInstance:
    return ScheduleInstance(
        source_rule_id=template.template_id,
        owner_id=template.owner_id,
        date=start.date(),
        start=start,
        end=tz.normalize(start + duration),
        status=InstanceStatus.BOOKED,
        origin=InstanceOrigin.SESSION,
    )
