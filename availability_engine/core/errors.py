# availability_engine/core/errors.py
"""
Error hierarchy for the scheduling core.

Boundary errors fail fast before any expansion begins. Rule and recurrence
errors are recovered by the services and turned into structured data
(diagnostics, REJECTED reports), so callers normally only see them there.
"""


class SchedulingError(Exception):
    """Base exception for all scheduling errors."""

    pass


class BoundaryError(SchedulingError, ValueError):
    """
    Input could not be normalized at the boundary.

    Inherits from ValueError so that pydantic validators surface it as a
    regular validation error.
    """

    pass


class InvalidTimezoneError(BoundaryError):
    """The owner's declared timezone is not a known IANA zone."""

    pass


class UnparsableTimestampError(BoundaryError):
    """A date, time, or date-time string is not valid ISO-8601 (or is naive)."""

    pass


class MalformedRuleError(SchedulingError):
    """
    An availability rule cannot be expanded.

    Examples: unparsable time, start_time >= end_time on a non all-day rule,
    WEEKLY rule without day_of_week.
    """

    def __init__(self, rule_id: str, message: str) -> None:
        super().__init__(f"Rule {rule_id}: {message}")
        self.rule_id = rule_id
        self.message = message


class DegenerateRecurrenceError(SchedulingError):
    """
    A session recurrence cannot produce the requested number of occurrences
    within the bounded look-ahead.
    """

    def __init__(self, message: str, produced: list | None = None) -> None:
        super().__init__(message)
        self.produced = produced or []
