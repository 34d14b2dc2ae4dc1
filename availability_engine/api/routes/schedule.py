# availability_engine/api/routes/schedule.py
from http import HTTPStatus

import structlog
from fastapi import APIRouter, Depends, HTTPException

from availability_engine.core.config import Settings, get_settings
from availability_engine.core.errors import SchedulingError
from availability_engine.schemas.availability import DateWindow
from availability_engine.schemas.calendar import CalendarView, SlotCell
from availability_engine.schemas.conflict import ConflictReport
from availability_engine.schemas.expansion import ExpansionResult, TimelineResult
from availability_engine.schemas.requests import (
    CalendarRequest,
    ExpandRequest,
    ResolveRequest,
    SlotGridRequest,
    TimelineRequest,
)
from availability_engine.services.calendar_projection import project, slot_grid
from availability_engine.services.conflict_resolver import ConflictResolver
from availability_engine.services.recurrence_expander import expand
from availability_engine.services.timeline import build_timeline

router = APIRouter(
    prefix="/schedule",
    tags=["Schedule"],
)


def _check_window(window: DateWindow | None, settings: Settings) -> None:
    if window is not None and window.days > settings.MAX_WINDOW_DAYS:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=(
                f"Window spans {window.days} days; at most "
                f"{settings.MAX_WINDOW_DAYS} days are allowed."
            ),
        )


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc))


@router.post(
    "/expand",
    response_model=ExpansionResult,
    status_code=HTTPStatus.OK,
    summary="Expand availability rules into concrete instances",
    description=(
        "Expand WEEKLY, MONTHLY and CUSTOM availability/block rules into dated "
        "instances over an **inclusive** window, in the owner's timezone.\n\n"
        "Malformed rules (unparsable times, zero-length windows, missing "
        "`day_of_week`) do not fail the request: they are excluded and listed "
        "in `diagnostics`.\n\n"
        "The window is required; the server clock is never used to pick one."
    ),
    responses={
        200: {
            "description": "Instances and diagnostics.",
            "content": {
                "application/json": {
                    "example": {
                        "instances": [
                            {
                                "source_rule_id": "rule-42",
                                "owner_id": "instructor-7",
                                "date": "2025-10-07",
                                "start": "2025-10-07T09:00:00+03:00",
                                "end": "2025-10-07T10:00:00+03:00",
                                "status": "AVAILABLE",
                                "origin": "WEEKLY",
                                "block_reason": None,
                                "segment": 0,
                                "key": "rule-42:2025-10-07",
                            }
                        ],
                        "diagnostics": [],
                    }
                }
            },
        },
        400: {"description": "Unknown timezone or window too large."},
        422: {"description": "Validation error (e.g. unparsable dates)."},
    },
)
async def expand_rules(
    payload: ExpandRequest,
    settings: Settings = Depends(get_settings),
) -> ExpansionResult:
    """
    Stateless wrapper around the recurrence expander.
    """
    _check_window(payload.window, settings)
    try:
        return expand(payload.rules, payload.window, payload.timezone)
    except SchedulingError as exc:
        raise _bad_request(exc)


@router.post(
    "/timeline",
    response_model=TimelineResult,
    status_code=HTTPStatus.OK,
    summary="Build an owner's merged timeline",
    description=(
        "Expand the owner's rules over the window and overlay one-off "
        "instances (bookings, date-bound blocks, extra availability).\n\n"
        "Booked, blocked and reserved time always takes precedence over "
        "generic availability; available instances are trimmed around it."
    ),
    responses={
        400: {"description": "Unknown timezone or window too large."},
        422: {"description": "Validation error."},
    },
)
async def build_owner_timeline(
    payload: TimelineRequest,
    settings: Settings = Depends(get_settings),
) -> TimelineResult:
    _check_window(payload.window, settings)
    try:
        return build_timeline(
            payload.rules,
            payload.one_offs,
            payload.window,
            payload.timezone,
        )
    except SchedulingError as exc:
        raise _bad_request(exc)


@router.post(
    "/resolve",
    response_model=ConflictReport,
    status_code=HTTPStatus.OK,
    summary="Resolve a recurring session template against a timeline",
    description=(
        "Generate the template's occurrences and test them against the owner's "
        "BOOKED/BLOCKED instances.\n\n"
        "- `FAIL`: any collision rejects the whole series.\n"
        "- `SKIP`: colliding occurrences are dropped (`PARTIAL`).\n"
        "- `OVERRIDE`: all occurrences are accepted; collided instances are "
        "returned in `superseded_instances` for the caller to retire.\n\n"
        "Conflicts are returned as data with status 200. Nothing is persisted: "
        "callers must serialize resolve-then-commit per owner."
    ),
    responses={
        400: {"description": "Unknown timezone or occurrence_count above the limit."},
        422: {"description": "Validation error (e.g. naive timestamps)."},
    },
)
async def resolve_session_template(
    payload: ResolveRequest,
    settings: Settings = Depends(get_settings),
) -> ConflictReport:
    template = payload.template
    if template.recurrence.occurrence_count > settings.MAX_OCCURRENCE_COUNT:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail=(
                f"occurrence_count {template.recurrence.occurrence_count} exceeds "
                f"the limit of {settings.MAX_OCCURRENCE_COUNT}."
            ),
        )

    with structlog.contextvars.bound_contextvars(owner_id=template.owner_id):
        try:
            return ConflictResolver.resolve(
                template,
                payload.timeline,
                lookahead_factor=settings.RECURRENCE_LOOKAHEAD_FACTOR,
            )
        except SchedulingError as exc:
            raise _bad_request(exc)


@router.post(
    "/calendar",
    response_model=CalendarView,
    status_code=HTTPStatus.OK,
    summary="Project instances into day/week/month buckets",
    description=(
        "Group instances by local date into DAY (`YYYY-MM-DD`), WEEK "
        "(Monday-first, `YYYY-Www`) or MONTH (`YYYY-MM`) buckets with "
        "per-status counts. Supplying a window also returns empty buckets."
    ),
)
async def project_calendar(
    payload: CalendarRequest,
    settings: Settings = Depends(get_settings),
) -> CalendarView:
    _check_window(payload.window, settings)
    return project(payload.instances, payload.granularity, window=payload.window)


@router.post(
    "/slots",
    response_model=list[SlotCell],
    status_code=HTTPStatus.OK,
    summary="Day grid of fixed-size slots",
    description=(
        "Split one day into fixed-size cells (30 minutes by default, 05:00 to "
        "midnight) and tag each with the dominant status covering it: "
        "BOOKED > RESERVED > BLOCKED > AVAILABLE."
    ),
)
async def day_slot_grid(payload: SlotGridRequest) -> list[SlotCell]:
    try:
        return slot_grid(
            payload.instances,
            payload.day,
            payload.timezone,
            slot_minutes=payload.slot_minutes,
            day_start=payload.day_start,
            day_end=payload.day_end,
        )
    except ValueError as exc:
        # InvalidTimezoneError / UnparsableTimestampError are ValueErrors too
        raise _bad_request(exc)
