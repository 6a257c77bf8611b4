"""
Integration tests for Health Check Endpoints

Tests cover:
    - Liveness probe
    - Readiness probe against a working and a broken database session
"""

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from metafix.database import get_db
from metafix.main import app

pytestmark = pytest.mark.integration


@pytest.fixture
def client(db_session):
    app.dependency_overrides[get_db] = lambda: db_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_liveness(client):
    response = client.get("/health/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_liveness_needs_no_cookie(client):
    client.cookies.clear()

    assert client.get("/health/live").status_code == 200


def test_readiness(client):
    response = client.get("/health/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_readiness_database_down(client):
    broken = Mock()
    broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
    app.dependency_overrides[get_db] = lambda: broken

    response = client.get("/health/ready")

    assert response.status_code == 503
    assert response.json() == {"status": "not_ready", "reason": "database"}
