"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient

from stockstream.config import Settings
from stockstream.main import create_app


@pytest.fixture
def settings(tmp_path):
    """Settings with a temp snapshot file and a tick slow enough to stay out of the way."""
    return Settings(data_file=str(tmp_path / "user_data.json"), tick_interval=60.0)


@pytest.fixture
def client(settings):
    """TestClient with the app lifespan running."""
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Log in an email and return the response body."""

    def _login(email: str = "trader@example.com") -> dict:
        response = client.post("/api/login", json={"email": email})
        assert response.status_code == 200
        return response.json()

    return _login
