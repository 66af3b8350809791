"""
TeamClock - Application Tests
=============================

Health endpoints and the in-memory storage mode.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from teamclock.api.main import create_app
from teamclock.core.config import settings
from teamclock.core.repositories import InMemoryStore

API = settings.API_V1_PREFIX


async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["storage"] == settings.STORAGE_BACKEND


async def test_root(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert response.json()["api"] == API


@pytest.fixture
async def memory_client(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield app, client


async def test_memory_mode_end_to_end(memory_client, new_identity_headers):
    app, client = memory_client
    assert isinstance(app.state.store, InMemoryStore)

    profile = await client.put(
        f"{API}/users/me", json={"name": "Alice"}, headers=new_identity_headers
    )
    assert profile.status_code == 200

    company = await client.post(
        f"{API}/companies", json={"name": "MIGHTY"}, headers=new_identity_headers
    )
    assert company.status_code == 201

    session = await client.post(
        f"{API}/sessions", json={"project_name": "Website"}, headers=new_identity_headers
    )
    stopped = await client.post(
        f"{API}/sessions/{session.json()['id']}/stop",
        json={"tokens_input": 100, "tokens_output": 50},
        headers=new_identity_headers,
    )
    assert stopped.status_code == 200

    assert len(app.state.store.sessions) == 1
    assert len(app.state.store.companies) == 1

    summary = await client.get(f"{API}/stats/summary", headers=new_identity_headers)
    assert summary.json()["totals"]["total_tokens"] == 150


async def test_memory_stores_are_per_app(monkeypatch):
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")

    assert create_app().state.store is not create_app().state.store
