# availability_engine/schemas/expansion.py
from pydantic import BaseModel, Field

from availability_engine.schemas.instance import ScheduleInstance


class RuleDiagnostic(BaseModel):
    """
    Non-fatal report about a rule that was left out of an expansion.

    The UI shows these as "some availability could not be displayed".
    """

    rule_id: str = Field(..., examples=["rule-42"])
    owner_id: str = Field(..., examples=["instructor-7"])
    error: str = Field(
        ...,
        description="Error class name, e.g. MalformedRuleError.",
        examples=["MalformedRuleError"],
    )
    message: str = Field(
        ...,
        description="Human-readable explanation.",
        examples=["start_time 10:00 is not before end_time 10:00"],
    )


class ExpansionResult(BaseModel):
    """
    Instances produced by expanding a rule set, plus diagnostics for any
    rule that could not be expanded.
    """

    instances: list[ScheduleInstance] = Field(default_factory=list)
    diagnostics: list[RuleDiagnostic] = Field(default_factory=list)


class TimelineResult(BaseModel):
    """
    Merged owner timeline (recurring rules + one-off exceptions).
    """

    instances: list[ScheduleInstance] = Field(default_factory=list)
    diagnostics: list[RuleDiagnostic] = Field(default_factory=list)
