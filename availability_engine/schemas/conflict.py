# availability_engine/schemas/conflict.py
from enum import Enum

from pydantic import BaseModel, Field

from availability_engine.schemas.instance import ScheduleInstance


class ConflictOutcome(str, Enum):
    """
    Overall result of resolving a session template.
    """

    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"
    PARTIAL = "PARTIAL"


class RejectedOccurrence(BaseModel):
    """
    A candidate that will not be created, with the instance it ran into.

    `colliding_instance` is None when the candidate itself was clear but the
    series was rejected as a whole.
    """

    candidate: ScheduleInstance
    colliding_instance: ScheduleInstance | None = Field(
        None,
        description="Earliest existing BOOKED/BLOCKED instance overlapping the candidate.",
    )


class ConflictReport(BaseModel):
    """
    Result of resolving a SessionTemplate against an owner's timeline.

    Conflicts are data: a REJECTED report is a normal outcome, not an error.
    """

    outcome: ConflictOutcome = Field(..., examples=["PARTIAL"])
    accepted_occurrences: list[ScheduleInstance] = Field(
        default_factory=list,
        description="Occurrences the caller may persist, in chronological order.",
    )
    rejected_occurrences: list[RejectedOccurrence] = Field(
        default_factory=list,
        description="Occurrences not accepted, in chronological order.",
    )
    superseded_instances: list[ScheduleInstance] = Field(
        default_factory=list,
        description=(
            "OVERRIDE only: existing instances overlapped by accepted occurrences. "
            "Retiring them is the caller's responsibility."
        ),
    )
    failure_reason: str | None = Field(
        None,
        description="Set when the recurrence could not produce the requested occurrences.",
    )
