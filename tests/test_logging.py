# tests/test_logging.py
import json

import pytest

from availability_engine.core.config import Settings, get_settings
from availability_engine.core.logging import get_logger, setup_logging


@pytest.fixture
def json_logging():
    setup_logging(
        Settings(APP_NAME="Availability Engine", APP_ENV="test", LOG_LEVEL="INFO", LOG_JSON=True)
    )
    yield
    setup_logging(get_settings())


def test_events_carry_service_context_and_module_name(json_logging, capsys):
    get_logger("tests.logging").info("rules_expanded", instance_count=4)

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)

    assert event["event"] == "rules_expanded"
    assert event["instance_count"] == 4
    assert event["app"] == "Availability Engine"
    assert event["env"] == "test"
    assert event["logger"] == "tests.logging"
    assert event["level"] == "info"
    assert "timestamp" in event


def test_level_filter_comes_from_settings(json_logging, capsys):
    get_logger("tests.logging").debug("timeline_merged")

    assert "timeline_merged" not in capsys.readouterr().out
