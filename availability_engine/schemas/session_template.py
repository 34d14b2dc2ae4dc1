# availability_engine/schemas/session_template.py
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from availability_engine.core.timeutil import parse_datetime


class RecurrenceType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class ConflictResolution(str, Enum):
    """
    Policy applied when a generated occurrence collides with an existing
    BOOKED/BLOCKED instance of the same owner.
    """

    FAIL = "FAIL"
    SKIP = "SKIP"
    OVERRIDE = "OVERRIDE"


class Recurrence(BaseModel):
    """
    Cadence of a new class/series.
    """

    model_config = ConfigDict(frozen=True)

    type: RecurrenceType = Field(..., description="DAILY, WEEKLY, MONTHLY or YEARLY.")
    interval: int = Field(1, ge=1, description="Repeat every N units.", examples=[1])
    days_of_week: list[int] | None = Field(
        None,
        description=(
            "WEEKLY only: weekdays to repeat on, 0 = Sunday ... 6 = Saturday. "
            "When omitted, the weekday of window_start is used. When the list "
            "leaves out that weekday, the first occurrence falls on the next "
            "listed day after window_start, at the same local time and with "
            "the same duration as window_start..window_end."
        ),
        examples=[[2, 4]],
    )
    occurrence_count: int = Field(
        ...,
        ge=1,
        description="Exact number of occurrences to generate.",
        examples=[8],
    )

    @field_validator("days_of_week")
    @classmethod
    def _normalize_days(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        if not value:
            raise ValueError("days_of_week, when given, must not be empty")
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError(f"days_of_week entries must be 0..6, got {day}")
        return sorted(set(value))

    @model_validator(mode="after")
    def _check_days_usage(self) -> "Recurrence":
        if self.days_of_week is not None and self.type != RecurrenceType.WEEKLY:
            raise ValueError("days_of_week is only allowed with type=WEEKLY")
        return self


class SessionTemplate(BaseModel):
    """
    Recurrence request for a new class/series, resolved against the owner's
    timeline before anything is persisted.
    """

    model_config = ConfigDict(frozen=True)

    template_id: str = Field(
        "session-template",
        description="Identifier used as source_rule_id of generated occurrences.",
    )
    owner_id: str = Field(..., description="Instructor the series belongs to.")
    window_start: datetime = Field(
        ...,
        description="Start of the first occurrence, ISO-8601 with offset.",
        examples=["2025-09-30T09:00:00+03:00"],
    )
    window_end: datetime = Field(
        ...,
        description="End of the first occurrence, ISO-8601 with offset.",
        examples=["2025-09-30T10:00:00+03:00"],
    )
    timezone: str = Field(
        ...,
        description="Owner's IANA timezone; occurrences follow its wall clock.",
        examples=["Africa/Nairobi"],
    )
    recurrence: Recurrence
    conflict_resolution: ConflictResolution = Field(
        ConflictResolution.FAIL,
        description="FAIL (atomic), SKIP (drop colliding) or OVERRIDE (supersede).",
    )

    @field_validator("window_start", "window_end", mode="before")
    @classmethod
    def _parse_instants(cls, value):
        return parse_datetime(value)

    @model_validator(mode="after")
    def _check_bounds(self) -> "SessionTemplate":
        if self.window_end <= self.window_start:
            raise ValueError("window_end must be after window_start")
        return self
