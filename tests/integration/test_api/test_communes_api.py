"""Integration tests for the commune participation endpoints."""

import pytest
from httpx import AsyncClient

from tests.factories import auth_headers, participation_payload


class TestCommuneParticipation:
    """Tests for GET/POST /communes/{code}/participation."""

    @pytest.mark.asyncio
    async def test_submit_then_read(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/communes/1001/participation",
            json=participation_payload(participation_rate=75.4, abstention_rate=24.6),
            headers=auth_headers("region_scrutineer"),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["message"] == "Commune participation saved successfully"
        assert data["participation"]["participation_rate"] == 75.4

        resp = await client.get("/api/v1/communes/1001/participation")
        assert resp.status_code == 200
        status = resp.json()
        assert status["is_locked"] is True
        assert status["participation"]["commune_code"] == 1001

    @pytest.mark.asyncio
    async def test_unsubmitted_commune(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/communes/1002/participation")
        assert resp.status_code == 200
        assert resp.json() == {"commune_code": 1002, "is_locked": False, "participation": None}

    @pytest.mark.asyncio
    async def test_second_submission_conflicts(self, client: AsyncClient) -> None:
        headers = auth_headers("admin")
        await client.post("/api/v1/communes/1002/participation", json=participation_payload(), headers=headers)

        resp = await client.post("/api/v1/communes/1002/participation", json=participation_payload(), headers=headers)
        assert resp.status_code == 409
        assert resp.json()["is_locked"] is True

    @pytest.mark.asyncio
    async def test_inconsistent_figures(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/communes/1001/participation",
            json=participation_payload(voter_count=1200),
            headers=auth_headers("admin"),
        )
        assert resp.status_code == 422
        assert "Voters (1200) cannot exceed registered voters (1000)" in resp.json()["validation_errors"]

    @pytest.mark.asyncio
    async def test_outside_scope(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/communes/2001/participation",
            json=participation_payload(),
            headers=auth_headers("region_scrutineer"),
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_commune(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/communes/9999/participation")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_requires_credentials(self, client: AsyncClient) -> None:
        resp = await client.post("/api/v1/communes/1001/participation", json=participation_payload())
        assert resp.status_code == 401
