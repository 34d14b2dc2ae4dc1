# availability_engine/schemas/availability.py
from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from availability_engine.core.timeutil import parse_date


class RuleKind(str, Enum):
    """
    Shape of a declared availability pattern.

    CUSTOM rules carry an explicit date and never recur.
    """

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    CUSTOM = "CUSTOM"


class MonthlyAnchor(str, Enum):
    """
    How a MONTHLY rule picks its day inside each month.
    """

    DAY_OF_MONTH = "DAY_OF_MONTH"
    NTH_WEEKDAY = "NTH_WEEKDAY"


class DateWindow(BaseModel):
    """
    Inclusive calendar date range over which expansion or projection runs.
    """

    model_config = ConfigDict(frozen=True)

    start: date = Field(
        ...,
        description="First date (inclusive) of the window, YYYY-MM-DD.",
        examples=["2025-09-29"],
    )
    end: date = Field(
        ...,
        description="Last date (inclusive) of the window, YYYY-MM-DD.",
        examples=["2025-10-26"],
    )

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return parse_date(value)

    @model_validator(mode="after")
    def _check_order(self) -> "DateWindow":
        if self.end < self.start:
            raise ValueError("window end must be greater than or equal to start")
        return self

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


class EffectiveRange(BaseModel):
    """
    Optional bounds on when a rule applies. An open end means indefinite.
    """

    model_config = ConfigDict(frozen=True)

    start: date | None = Field(None, description="First date the rule applies.")
    end: date | None = Field(None, description="Last date the rule applies (inclusive).")

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        return None if value is None else parse_date(value)

    @model_validator(mode="after")
    def _check_order(self) -> "EffectiveRange":
        if self.start and self.end and self.end < self.start:
            raise ValueError("effective_range end must be greater than or equal to start")
        return self


class AvailabilityRule(BaseModel):
    """
    One declared availability or block pattern belonging to a single owner.

    Time-of-day values are kept as raw strings: a malformed time must not
    reject the whole request, it is reported as a diagnostic by the expander.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque rule identifier.", examples=["rule-42"])
    owner_id: str = Field(
        ...,
        description="Instructor that owns the rule.",
        examples=["instructor-7"],
    )
    kind: RuleKind = Field(..., description="WEEKLY, MONTHLY or CUSTOM.")

    day_of_week: int | None = Field(
        None,
        ge=0,
        le=6,
        description="Weekday for WEEKLY rules, 0 = Sunday ... 6 = Saturday.",
        examples=[2],
    )
    specific_date: date | None = Field(
        None,
        description="Calendar date for CUSTOM rules.",
        examples=["2025-10-07"],
    )
    day_of_month: int | None = Field(
        None,
        ge=1,
        le=31,
        description=(
            "Day of month for MONTHLY rules. Defaults to the day of "
            "effective_range.start; one of the two is required."
        ),
    )
    monthly_anchor: MonthlyAnchor = Field(
        MonthlyAnchor.DAY_OF_MONTH,
        description="MONTHLY only: repeat the same day-of-month or the same nth weekday.",
    )

    start_time: str | None = Field(
        None,
        description="Local start time, HH:MM[:SS]. Ignored for all-day rules.",
        examples=["09:00"],
    )
    end_time: str | None = Field(
        None,
        description="Local end time, HH:MM[:SS]. Ignored for all-day rules.",
        examples=["10:00"],
    )
    all_day: bool = Field(False, description="Rule covers whole days.")

    is_available: bool = Field(
        True,
        description="True offers availability; False declares a block.",
    )
    block_reason: str | None = Field(
        None,
        description="Free-form tag for blocks, e.g. 'manual block'.",
    )
    custom_pattern: str | None = Field(
        None,
        description="Pattern tag carried by CUSTOM rules, e.g. BLOCKED_TIME_SLOT.",
    )

    recurrence_interval: int = Field(
        1,
        ge=1,
        description="Repeat every N weeks (WEEKLY) or months (MONTHLY).",
    )
    effective_range: EffectiveRange | None = Field(
        None,
        description="Dates bounding when the rule applies.",
    )

    @field_validator("specific_date", mode="before")
    @classmethod
    def _parse_specific_date(cls, value):
        return None if value is None else parse_date(value)
