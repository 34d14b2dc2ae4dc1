# availability_engine/services/calendar_projection.py
from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date as date_type, datetime, timedelta
from typing import Dict, Iterable, List, Tuple

from availability_engine.core.timeutil import (
    combine_local,
    get_timezone,
    parse_time_of_day,
    start_of_next_day,
)
from availability_engine.schemas.availability import DateWindow
from availability_engine.schemas.calendar import CalendarBucket, CalendarView, Granularity, SlotCell
from availability_engine.schemas.instance import InstanceStatus, ScheduleInstance, timeline_order

# Dominance when several instances cover the same grid cell.
_SLOT_PRECEDENCE = {
    InstanceStatus.BOOKED: 4,
    InstanceStatus.RESERVED: 3,
    InstanceStatus.BLOCKED: 2,
    InstanceStatus.AVAILABLE: 1,
}

_COUNT_FIELDS = {
    InstanceStatus.AVAILABLE: "available_count",
    InstanceStatus.BLOCKED: "blocked_count",
    InstanceStatus.BOOKED: "booked_count",
    InstanceStatus.RESERVED: "reserved_count",
}


def bucket_bounds(day: date_type, granularity: Granularity) -> Tuple[str, date_type, date_type]:
    """
    Return (key, first_day, last_day) of the bucket containing `day`.

    Weeks start on Monday and are keyed by ISO week number.
    """
    if granularity == Granularity.DAY:
        return day.isoformat(), day, day

    if granularity == Granularity.WEEK:
        monday = day - timedelta(days=day.weekday())
        iso_year, iso_week, _ = monday.isocalendar()
        return f"{iso_year}-W{iso_week:02d}", monday, monday + timedelta(days=6)

    first = day.replace(day=1)
    last = day.replace(day=calendar.monthrange(day.year, day.month)[1])
    return f"{day.year}-{day.month:02d}", first, last


def project(
    instances: Iterable[ScheduleInstance],
    granularity: Granularity,
    window: DateWindow | None = None,
) -> CalendarView:
    """
    Group a resolved timeline into day/week/month buckets for the calendar UI.

    Behavior
    --------
    - Instances are bucketed by their local `date`.
    - Without `window`, only buckets holding at least one instance appear.
    - With `window`, every bucket touching the window appears (empty ones
      included) and instances dated outside the window are left out.
    - Buckets are ascending; instances inside a bucket keep timeline order.
    """
    grouped: Dict[str, List[ScheduleInstance]] = defaultdict(list)
    bounds: Dict[str, Tuple[date_type, date_type]] = {}

    if window is not None:
        cursor = window.start
        while cursor <= window.end:
            key, first, last = bucket_bounds(cursor, granularity)
            bounds[key] = (first, last)
            cursor = last + timedelta(days=1)

    for instance in sorted(instances, key=timeline_order):
        if window is not None and not window.contains(instance.date):
            continue
        key, first, last = bucket_bounds(instance.date, granularity)
        bounds.setdefault(key, (first, last))
        grouped[key].append(instance)

    buckets: list[CalendarBucket] = []
    for key, (first, last) in sorted(bounds.items(), key=lambda item: item[1][0]):
        members = grouped.get(key, [])
        counts = {field: 0 for field in _COUNT_FIELDS.values()}
        for instance in members:
            counts[_COUNT_FIELDS[instance.status]] += 1

        buckets.append(
            CalendarBucket(
                key=key,
                start=first,
                end=last,
                instances=members,
                **counts,
            )
        )

    return CalendarView(granularity=granularity, buckets=buckets)


def slot_grid(
    instances: Iterable[ScheduleInstance],
    day: date_type,
    timezone: str,
    slot_minutes: int = 30,
    day_start: str = "05:00",
    day_end: str = "24:00",
) -> list[SlotCell]:
    """
    Fixed-size cells for one day, each tagged with the dominant status
    (BOOKED > RESERVED > BLOCKED > AVAILABLE) of the instances covering it.

    `day_end` may be "24:00" for the following midnight.
    """
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive")

    tz = get_timezone(timezone)
    grid_start = combine_local(day, parse_time_of_day(day_start), tz)
    if day_end.strip() in ("24:00", "24:00:00"):
        grid_end = start_of_next_day(day, tz)
    else:
        grid_end = combine_local(day, parse_time_of_day(day_end), tz)
    if grid_end <= grid_start:
        raise ValueError("day_end must be after day_start")

    relevant = sorted(
        (i for i in instances if i.start < grid_end and i.end > grid_start),
        key=timeline_order,
    )

    step = timedelta(minutes=slot_minutes)
    cells: list[SlotCell] = []
    cursor: datetime = grid_start
    while cursor < grid_end:
        cell_end = min(tz.normalize(cursor + step), grid_end)
        best: InstanceStatus | None = None
        for instance in relevant:
            if instance.start >= cell_end:
                break
            if instance.end > cursor and (
                best is None or _SLOT_PRECEDENCE[instance.status] > _SLOT_PRECEDENCE[best]
            ):
                best = instance.status
        cells.append(SlotCell(start=cursor, end=cell_end, status=best))
        cursor = cell_end

    return cells
