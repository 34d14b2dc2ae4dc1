# availability_engine/main.py
from fastapi import FastAPI

from availability_engine import __version__
from availability_engine.api.routes import health, schedule
from availability_engine.core.config import get_settings
from availability_engine.core.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Application factory for the Availability Engine service.
    """
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Stateless scheduling core for instructor availability:\n"
            "expands recurring availability/block rules into dated instances,\n"
            "merges them with one-off bookings and blocks, resolves recurring\n"
            "session templates against the resulting timeline, and projects\n"
            "timelines into calendar buckets. Nothing is persisted."
        ),
        version=__version__,
    )

    # Routers
    app.include_router(health.router)
    app.include_router(schedule.router)

    logger.info("app_created", environment=settings.APP_ENV)
    return app


app = create_app()
