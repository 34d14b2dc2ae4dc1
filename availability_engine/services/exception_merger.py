# availability_engine/services/exception_merger.py
from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Tuple

from availability_engine.core.logging import get_logger
from availability_engine.schemas.instance import (
    OCCUPYING_STATUSES,
    InstanceOrigin,
    ScheduleInstance,
    timeline_order,
)

logger = get_logger(__name__)

# Higher wins when two recurring instances cover the exact same interval.
_SPECIFICITY = {
    InstanceOrigin.CUSTOM: 3,
    InstanceOrigin.MONTHLY: 2,
    InstanceOrigin.WEEKLY: 1,
}


def merge(
    expanded: Iterable[ScheduleInstance],
    one_offs: Iterable[ScheduleInstance],
) -> list[ScheduleInstance]:
    """
    Overlay one-off exceptions onto expanded recurring instances.

    Rules
    -----
    1) Recurring instances of the same owner with an identical (start, end)
       are collapsed: CUSTOM beats MONTHLY beats WEEKLY; on a tie the first
       one in timeline order is kept.
    2) Every non-AVAILABLE instance (one-off bookings/blocks/reservations and
       recurring blocks) takes precedence over AVAILABLE time of the same
       owner: overlapped availability is cut away, leaving zero, one or two
       pieces per available instance.
    3) One-offs are always kept as given.

    The result is in timeline order (start, then source_rule_id).
    """
    recurring = _collapse_duplicates(sorted(expanded, key=timeline_order))
    exceptions = sorted(one_offs, key=timeline_order)

    occupying: Dict[str, List[ScheduleInstance]] = defaultdict(list)
    for instance in (*recurring, *exceptions):
        if instance.status in OCCUPYING_STATUSES:
            occupying[instance.owner_id].append(instance)
    for owner_instances in occupying.values():
        owner_instances.sort(key=timeline_order)

    merged: list[ScheduleInstance] = []
    trimmed = 0

    for instance in (*recurring, *exceptions):
        if instance.status in OCCUPYING_STATUSES:
            merged.append(instance)
            continue

        pieces = _subtract_occupied(instance, occupying.get(instance.owner_id, []))
        if len(pieces) != 1 or pieces[0] is not instance:
            trimmed += 1
        merged.extend(pieces)

    merged.sort(key=timeline_order)

    logger.debug(
        "timeline_merged",
        recurring_count=len(recurring),
        one_off_count=len(exceptions),
        trimmed_available=trimmed,
        result_count=len(merged),
    )
    return merged


def _collapse_duplicates(instances: List[ScheduleInstance]) -> List[ScheduleInstance]:
    kept: List[ScheduleInstance] = []
    position: Dict[Tuple[str, datetime, datetime], int] = {}

    for instance in instances:
        slot = (instance.owner_id, instance.start, instance.end)
        index = position.get(slot)
        if index is None:
            position[slot] = len(kept)
            kept.append(instance)
            continue

        current = kept[index]
        if _SPECIFICITY.get(instance.origin, 0) > _SPECIFICITY.get(current.origin, 0):
            kept[index] = instance

    return kept


def _subtract_occupied(
    instance: ScheduleInstance,
    occupied: List[ScheduleInstance],
) -> List[ScheduleInstance]:
    """
    Remove every occupied interval from an available instance.

    `occupied` must be sorted by start.
    """
    pieces: List[Tuple[datetime, datetime]] = [(instance.start, instance.end)]
    touched = False

    for block in occupied:
        if block.start >= instance.end:
            break
        if block.end <= instance.start:
            continue

        touched = True
        remaining: List[Tuple[datetime, datetime]] = []
        for start, end in pieces:
            remaining.extend(_interval_subtract(start, end, block.start, block.end))
        pieces = remaining
        if not pieces:
            break

    if not touched:
        return [instance]

    return [
        instance.model_copy(update={"start": start, "end": end, "segment": index})
        for index, (start, end) in enumerate(pieces)
    ]


def _interval_subtract(
    start: datetime,
    end: datetime,
    block_start: datetime,
    block_end: datetime,
) -> List[Tuple[datetime, datetime]]:
    """
    Subtract [block_start, block_end) from [start, end).

    Returns 0, 1 or 2 intervals; empty intervals are never returned.
    """
    if block_end <= start or block_start >= end:
        return [(start, end)]

    result: List[Tuple[datetime, datetime]] = []
    if block_start > start:
        result.append((start, block_start))
    if block_end < end:
        result.append((block_end, end))
    return result
