# availability_engine/schemas/requests.py
from datetime import date

from pydantic import BaseModel, Field

from availability_engine.schemas.availability import AvailabilityRule, DateWindow
from availability_engine.schemas.calendar import Granularity
from availability_engine.schemas.instance import ScheduleInstance
from availability_engine.schemas.session_template import SessionTemplate


# --------------------------------------------------------------------------
# POST /schedule/expand
# --------------------------------------------------------------------------

class ExpandRequest(BaseModel):
    """
    Rules of one or more owners to expand over a window.
    """

    rules: list[AvailabilityRule] = Field(default_factory=list)
    window: DateWindow
    timezone: str = Field(
        ...,
        description="Owner's IANA timezone; no default is ever assumed.",
        examples=["Africa/Nairobi"],
    )


# --------------------------------------------------------------------------
# POST /schedule/timeline
# --------------------------------------------------------------------------

class TimelineRequest(ExpandRequest):
    """
    Expansion input plus already-materialized one-off instances
    (confirmed bookings, date-bound blocks, extra availability).
    """

    one_offs: list[ScheduleInstance] = Field(default_factory=list)


# --------------------------------------------------------------------------
# POST /schedule/resolve
# --------------------------------------------------------------------------

class ResolveRequest(BaseModel):
    """
    A proposed session series and the owner's current merged timeline.
    """

    template: SessionTemplate
    timeline: list[ScheduleInstance] = Field(
        default_factory=list,
        description="Owner timeline, typically the output of /schedule/timeline.",
    )


# --------------------------------------------------------------------------
# POST /schedule/calendar and /schedule/slots
# --------------------------------------------------------------------------

class CalendarRequest(BaseModel):
    instances: list[ScheduleInstance] = Field(default_factory=list)
    granularity: Granularity = Field(Granularity.WEEK, examples=["MONTH"])
    window: DateWindow | None = Field(
        None,
        description="When given, empty buckets inside the window are included.",
    )


class SlotGridRequest(BaseModel):
    instances: list[ScheduleInstance] = Field(default_factory=list)
    day: date = Field(..., examples=["2025-10-07"])
    timezone: str = Field(..., examples=["Africa/Nairobi"])
    slot_minutes: int = Field(30, ge=5, le=240)
    day_start: str = Field("05:00", description="First slot start, HH:MM.")
    day_end: str = Field("24:00", description="Grid end, HH:MM; 24:00 means midnight.")
