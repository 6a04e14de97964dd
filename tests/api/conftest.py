"""
API test fixtures

Routes are exercised through TestClient with the service dependencies
overridden by AsyncMocks, so no database is needed. The client is not
entered as a context manager, so the lifespan database check never runs.
"""
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient

from app.api.deps import get_dashboard_service, get_homepage_service, get_report_service
from main import app


@pytest.fixture
def dashboard_service():
    return AsyncMock()


@pytest.fixture
def report_service():
    return AsyncMock()


@pytest.fixture
def homepage_service():
    return AsyncMock()


@pytest.fixture
def client(dashboard_service, report_service, homepage_service):
    app.dependency_overrides[get_dashboard_service] = lambda: dashboard_service
    app.dependency_overrides[get_report_service] = lambda: report_service
    app.dependency_overrides[get_homepage_service] = lambda: homepage_service

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
