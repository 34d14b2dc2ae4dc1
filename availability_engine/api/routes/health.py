# availability_engine/api/routes/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from availability_engine import __version__
from availability_engine.core.config import Settings, get_settings


router = APIRouter(tags=["Health"])


class EngineLimits(BaseModel):
    """
    Request bounds enforced by the schedule endpoints.
    """

    max_window_days: int = Field(..., examples=[366])
    max_occurrence_count: int = Field(..., examples=[500])
    recurrence_lookahead_factor: int = Field(..., examples=[10])


class HealthResponse(BaseModel):
    """
    Response schema for the health check endpoint.
    """

    status: str = Field(..., description="Always 'ok' when the process responds.", examples=["ok"])
    app_name: str = Field(..., examples=["Availability Engine"])
    version: str = Field(..., examples=["0.1.0"])
    environment: str = Field(
        ...,
        description="Current deployment environment (local/dev/stage/prod).",
        examples=["local"],
    )
    limits: EngineLimits
    timestamp_utc: datetime = Field(
        ...,
        description="Server-side UTC timestamp. Only used for probes, never for scheduling.",
        examples=["2025-01-01T10:30:00Z"],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check for the Availability Engine",
    description=(
        "Liveness probe. The engine is stateless and has no downstream "
        "dependencies, so a response means it can serve schedule requests.\n\n"
        "The configured request limits are echoed back so that callers can "
        "size windows and occurrence counts before sending them."
    ),
    responses={
        200: {
            "description": "Service is healthy.",
            "content": {
                "application/json": {
                    "example": {
                        "status": "ok",
                        "app_name": "Availability Engine",
                        "version": "0.1.0",
                        "environment": "local",
                        "limits": {
                            "max_window_days": 366,
                            "max_occurrence_count": 500,
                            "recurrence_lookahead_factor": 10,
                        },
                        "timestamp_utc": "2025-01-01T10:30:00Z",
                    }
                }
            },
        }
    },
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        app_name=settings.APP_NAME,
        version=__version__,
        environment=settings.APP_ENV,
        limits=EngineLimits(
            max_window_days=settings.MAX_WINDOW_DAYS,
            max_occurrence_count=settings.MAX_OCCURRENCE_COUNT,
            recurrence_lookahead_factor=settings.RECURRENCE_LOOKAHEAD_FACTOR,
        ),
        timestamp_utc=datetime.now(tz=timezone.utc),
    )
