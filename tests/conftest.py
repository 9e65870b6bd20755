"""Shared fixtures and utilities for tests."""

import pytest
import pytest_asyncio
import httpx

from api.client import SimulatorClient
from api.main import create_app
from core.config import Settings
from core.middleware.simulation import ScriptedFailurePolicy
from database.store import Store


@pytest.fixture
def test_settings():
    """Settings for an in-memory store with no latency and no random faults."""
    return Settings(
        APP_ENV="test",
        STORE_URL="sqlite+aiosqlite://",
        SIMULATED_LATENCY_MS=0,
        FAILURE_RATE=0.0,
        CACHE_STALE_TIME_SECONDS=60,
        JSON_LOGS=False,
    )


@pytest_asyncio.fixture
async def store(test_settings):
    """Fresh in-memory store, closed after the test."""
    async with Store(test_settings.store_url) as store:
        yield store


@pytest.fixture
def failure_policy():
    """Scripted policy: succeeds unless a test pushes failures."""
    return ScriptedFailurePolicy([])


@pytest.fixture
def app(store, test_settings, failure_policy):
    return create_app(store, test_settings, failure_policy=failure_policy, latency=0)


@pytest_asyncio.fixture
async def http(app):
    """Raw HTTP client against the simulated API."""
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://talentflow.local") as client:
        yield client


@pytest_asyncio.fixture
async def api(app):
    """SimulatorClient raising domain errors."""
    async with SimulatorClient(app) as client:
        yield client


@pytest_asyncio.fixture
async def job(http):
    """One active job."""
    response = await http.post(
        "/jobs",
        json={
            "title": "Senior Backend Engineer",
            "company": {"name": "Acme"},
            "salary": {"min": 60000, "max": 110000},
            "tags": ["python", "remote"],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def candidate(http, job):
    """One candidate in the applied stage who applied to `job`."""
    response = await http.post(
        "/candidates",
        json={
            "name": "Maya Okafor",
            "email": "maya.okafor@example.com",
            "appliedJobIds": [job["id"]],
        },
    )
    assert response.status_code == 201
    return response.json()
