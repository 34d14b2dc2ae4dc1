# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from availability_engine.main import create_app


@pytest.fixture(scope="session")
def client() -> TestClient:
    """
    Shared TestClient fixture for the API tests.

    The engine is stateless, so a single app instance can serve every test.
    """
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
