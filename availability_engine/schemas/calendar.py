# availability_engine/schemas/calendar.py
from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field

from availability_engine.schemas.instance import InstanceStatus, ScheduleInstance


class Granularity(str, Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"


class CalendarBucket(BaseModel):
    """
    One day, week (Monday-first) or month of the calendar view.
    """

    key: str = Field(
        ...,
        description="YYYY-MM-DD for days, YYYY-Www (ISO week) for weeks, YYYY-MM for months.",
        examples=["2025-W41"],
    )
    start: date = Field(..., description="First date of the bucket.")
    end: date = Field(..., description="Last date of the bucket (inclusive).")
    instances: list[ScheduleInstance] = Field(default_factory=list)

    available_count: int = Field(0, examples=[3])
    blocked_count: int = Field(0, examples=[1])
    booked_count: int = Field(0, examples=[2])
    reserved_count: int = Field(0, examples=[0])


class CalendarView(BaseModel):
    """
    Bucketed timeline consumed by the calendar UI.
    """

    granularity: Granularity
    buckets: list[CalendarBucket] = Field(default_factory=list)


class SlotCell(BaseModel):
    """
    A fixed-size cell of a day grid with the dominant status covering it.
    """

    start: datetime
    end: datetime
    status: InstanceStatus | None = Field(
        None,
        description="BOOKED > RESERVED > BLOCKED > AVAILABLE; None when nothing covers the slot.",
    )
