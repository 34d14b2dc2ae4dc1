# availability_engine/services/timeline.py
from __future__ import annotations

from typing import Iterable

from availability_engine.schemas.availability import AvailabilityRule, DateWindow
from availability_engine.schemas.expansion import TimelineResult
from availability_engine.schemas.instance import ScheduleInstance
from availability_engine.services.exception_merger import merge
from availability_engine.services.recurrence_expander import expand


def build_timeline(
    rules: Iterable[AvailabilityRule],
    one_offs: Iterable[ScheduleInstance],
    window: DateWindow,
    timezone: str,
) -> TimelineResult:
    """
    Expand an owner's rules over `window` and overlay the one-off exceptions.

    One-offs dated outside the window are ignored so the timeline covers the
    same range as the expansion. Diagnostics from the expansion are passed
    through unchanged.
    """
    expansion = expand(rules, window, timezone)
    in_window = [instance for instance in one_offs if window.contains(instance.date)]

    return TimelineResult(
        instances=merge(expansion.instances, in_window),
        diagnostics=expansion.diagnostics,
    )
