"""Tests for FastAPI health and version endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient

from cna_analytics.api.main import app


@pytest.fixture
async def client() -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


class TestHealthEndpoint:
    """GET /health returns status ok."""

    @pytest.mark.anyio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.anyio
    async def test_health_response_body(self, client: AsyncClient) -> None:
        data = (await client.get("/health")).json()
        assert data["status"] == "ok"
        assert "environment" in data
        assert data["checks"]["api"] is True
        assert isinstance(data["checks"]["narrative"], bool)


class TestVersionEndpoint:
    """GET /api/version returns application version info."""

    @pytest.mark.anyio
    async def test_version_response_body(self, client: AsyncClient) -> None:
        data = (await client.get("/api/version")).json()
        assert data["name"] == "CNA Analytics"
        assert data["version"] == "0.1.0"
        assert "environment" in data
