# availability_engine/schemas/instance.py
from __future__ import annotations

from datetime import date as date_type, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from availability_engine.core.timeutil import parse_date, parse_datetime


class InstanceStatus(str, Enum):
    """
    State of a concrete slot on an owner's timeline.
    """

    AVAILABLE = "AVAILABLE"
    BLOCKED = "BLOCKED"
    BOOKED = "BOOKED"
    RESERVED = "RESERVED"


class InstanceOrigin(str, Enum):
    """
    What produced an instance: a rule kind, a one-off record, or a session
    template candidate.
    """

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"
    ONE_OFF = "ONE_OFF"
    SESSION = "SESSION"


# Statuses that take time away from generic availability when merging.
OCCUPYING_STATUSES = frozenset(
    {InstanceStatus.BOOKED, InstanceStatus.BLOCKED, InstanceStatus.RESERVED}
)

# Statuses a proposed session may not overlap.
BLOCKING_STATUSES = frozenset({InstanceStatus.BOOKED, InstanceStatus.BLOCKED})


class ScheduleInstance(BaseModel):
    """
    A concrete, dated occurrence derived from a rule or a one-off record.

    Never persisted by the engine; regenerated on demand for a query window.
    """

    model_config = ConfigDict(frozen=True)

    source_rule_id: str = Field(
        ...,
        description="Rule (or booking/template) the instance comes from.",
        examples=["rule-42"],
    )
    owner_id: str = Field(..., description="Owning instructor.", examples=["instructor-7"])
    date: date_type = Field(
        ...,
        description="Local calendar date of the instance in the owner's timezone.",
        examples=["2025-10-07"],
    )
    start: datetime = Field(
        ...,
        description="Start instant, ISO-8601 with offset.",
        examples=["2025-10-07T09:00:00+03:00"],
    )
    end: datetime = Field(
        ...,
        description="End instant, ISO-8601 with offset.",
        examples=["2025-10-07T10:00:00+03:00"],
    )
    status: InstanceStatus = Field(..., description="AVAILABLE, BLOCKED, BOOKED or RESERVED.")
    origin: InstanceOrigin = Field(
        InstanceOrigin.ONE_OFF,
        description="Source of the instance; drives merge precedence.",
    )
    block_reason: str | None = Field(None, description="Reason copied from a blocking rule.")
    segment: int = Field(
        0,
        ge=0,
        description="Piece index when availability was split around an occupied slot.",
    )

    @field_validator("date", mode="before")
    @classmethod
    def _parse_date(cls, value):
        return parse_date(value)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_instants(cls, value):
        return parse_datetime(value)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ScheduleInstance":
        if self.end <= self.start:
            raise ValueError("instance end must be after start")
        return self

    @computed_field  # type: ignore[misc]
    @property
    def key(self) -> str:
        """Stable identity across regenerations: rule id + local date."""
        base = f"{self.source_rule_id}:{self.date.isoformat()}"
        return f"{base}#{self.segment}" if self.segment else base

    def overlaps(self, other: "ScheduleInstance") -> bool:
        return self.start < other.end and self.end > other.start


def timeline_order(instance: ScheduleInstance) -> tuple:
    """Canonical sort: by start, ties broken by source rule id (then end, segment)."""
    return (instance.start, instance.source_rule_id, instance.end, instance.segment)
