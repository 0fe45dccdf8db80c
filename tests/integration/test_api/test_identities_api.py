"""Integration tests for the identity endpoints."""

import pytest
from httpx import AsyncClient

from tests.factories import auth_headers


class TestMyScope:
    """Tests for GET /identities/me/scope."""

    @pytest.mark.asyncio
    async def test_administrator(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/identities/me/scope", headers=auth_headers("admin"))
        assert resp.status_code == 200
        assert resp.json() == {
            "username": "admin",
            "role": "administrator",
            "unrestricted": True,
            "department_codes": [],
        }

    @pytest.mark.asyncio
    async def test_scrutineer(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/identities/me/scope", headers=auth_headers("mixed_scrutineer"))
        data = resp.json()
        assert data["unrestricted"] is False
        assert data["department_codes"] == [10, 11, 99]

    @pytest.mark.asyncio
    async def test_observer_forbidden(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/identities/me/scope", headers=auth_headers("observer"))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_anonymous_unauthorized(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/identities/me/scope")
        assert resp.status_code == 401
