"""
Tests for authentication API endpoints (bearer flow).

These tests cover the /api/v1/auth endpoints including:
- Customer sign-up and sign-in
- Token refresh with rotation and reuse detection
- Sign-out
- Current principal claims
- Health check and request id propagation
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from freightdesk.core.security import hash_refresh_token
from freightdesk.models.refresh_token import RefreshTokens, TokenStatus

REFRESH_FAILED = "Refresh failed. Please sign in again."


async def signup(client: AsyncClient, data: dict) -> dict:
    response = await client.post("/api/v1/auth/signup", json=data)
    assert response.status_code == 201, response.text
    return response.json()


async def stored_token(
    session_factory: async_sessionmaker[AsyncSession], refresh_token: str
) -> RefreshTokens:
    async with session_factory() as session:
        token_hash = hash_refresh_token(refresh_token)
        result = await session.execute(
            select(RefreshTokens).where(RefreshTokens.token_hash == token_hash)  # type: ignore[arg-type]
        )
        return result.scalar_one()


@pytest.mark.api
class TestSignUp:
    """Tests for POST /api/v1/auth/signup endpoint."""

    async def test_signup_success(self, client: AsyncClient, sample_signup_data: dict):
        data = await signup(client, sample_signup_data)

        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["email"] == "customer@example.com"
        assert data["user"]["role"] == "customer"
        assert data["user"]["nickname"] == "parcelfan"
        assert data["user"]["customer_id"]

    async def test_signup_duplicate_email(self, client: AsyncClient, sample_signup_data: dict):
        await signup(client, sample_signup_data)

        response = await client.post("/api/v1/auth/signup", json=sample_signup_data)

        assert response.status_code == 400
        assert response.json()["detail"] == "Email already exists"

    async def test_signup_weak_password(self, client: AsyncClient, sample_signup_data: dict):
        sample_signup_data["password"] = "alllowercase1!"

        response = await client.post("/api/v1/auth/signup", json=sample_signup_data)

        assert response.status_code == 422

    async def test_signup_invalid_email(self, client: AsyncClient, sample_signup_data: dict):
        sample_signup_data["email"] = "not-an-email"

        response = await client.post("/api/v1/auth/signup", json=sample_signup_data)

        assert response.status_code == 422


@pytest.mark.api
class TestSignIn:
    """Tests for POST /api/v1/auth/signin endpoint."""

    async def test_signin_success(self, client: AsyncClient, sample_signup_data: dict):
        await signup(client, sample_signup_data)

        response = await client.post(
            "/api/v1/auth/signin",
            json={"email": "customer@example.com", "password": sample_signup_data["password"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["user"]["role"] == "customer"

    async def test_signin_wrong_password(self, client: AsyncClient, sample_signup_data: dict):
        await signup(client, sample_signup_data)

        response = await client.post(
            "/api/v1/auth/signin",
            json={"email": "customer@example.com", "password": "Wrong-Pass-999!"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_signin_unknown_email_same_response(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/signin",
            json={"email": "ghost@example.com", "password": "Cargo-Pass-123!"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.api
class TestRefresh:
    """Tests for POST /api/v1/auth/refresh endpoint."""

    async def test_refresh_rotates_token(
        self, client: AsyncClient, sample_signup_data: dict, session_factory
    ):
        first = await signup(client, sample_signup_data)

        response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}
        )

        assert response.status_code == 200
        second = response.json()
        assert second["refresh_token"] != first["refresh_token"]
        assert second["user"]["user_id"] == first["user"]["user_id"]

        old = await stored_token(session_factory, first["refresh_token"])
        new = await stored_token(session_factory, second["refresh_token"])
        assert old.status == TokenStatus.CONSUMED
        assert new.status == TokenStatus.ACTIVE
        assert new.family_id == old.family_id
        assert new.expires_at == old.expires_at

    async def test_reused_token_revokes_family(
        self, client: AsyncClient, sample_signup_data: dict, session_factory
    ):
        first = await signup(client, sample_signup_data)
        rotated_response = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}
        )
        rotated = rotated_response.json()

        replay = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}
        )

        assert replay.status_code == 401
        assert replay.json()["detail"] == REFRESH_FAILED
        live = await stored_token(session_factory, rotated["refresh_token"])
        assert live.status == TokenStatus.REVOKED

        legit = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": rotated["refresh_token"]}
        )
        assert legit.status_code == 401

    async def test_unknown_token_uniform_response(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "bogus"})

        assert response.status_code == 401
        assert response.json()["detail"] == REFRESH_FAILED

    async def test_fingerprint_change_rejected_with_uniform_response(
        self, client: AsyncClient, sample_signup_data: dict, session_factory
    ):
        first = await signup(client, sample_signup_data)

        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": first["refresh_token"]},
            headers={"User-Agent": "stolen-cookie-replayer/1.0"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == REFRESH_FAILED
        row = await stored_token(session_factory, first["refresh_token"])
        assert row.status == TokenStatus.CONSUMED

    async def test_same_subnet_other_host_still_accepted(
        self, client: AsyncClient, sample_signup_data: dict
    ):
        signup_response = await client.post(
            "/api/v1/auth/signup",
            json=sample_signup_data,
            headers={"X-Forwarded-For": "198.51.100.10"},
        )
        first = signup_response.json()

        response = await client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": first["refresh_token"]},
            headers={"X-Forwarded-For": "198.51.100.77"},
        )

        assert response.status_code == 200


@pytest.mark.api
class TestSignOut:
    """Tests for POST /api/v1/auth/signout endpoint."""

    async def test_signout_turns_in_token(
        self, client: AsyncClient, sample_signup_data: dict, session_factory
    ):
        first = await signup(client, sample_signup_data)

        response = await client.post(
            "/api/v1/auth/signout", json={"refresh_token": first["refresh_token"]}
        )

        assert response.status_code == 204
        row = await stored_token(session_factory, first["refresh_token"])
        assert row.status == TokenStatus.TURNED_IN

        refresh = await client.post(
            "/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}
        )
        assert refresh.status_code == 401

    async def test_signout_unknown_token_still_204(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/signout", json={"refresh_token": "bogus"})
        assert response.status_code == 204

    async def test_signout_twice_still_204(self, client: AsyncClient, sample_signup_data: dict):
        first = await signup(client, sample_signup_data)
        body = {"refresh_token": first["refresh_token"]}

        assert (await client.post("/api/v1/auth/signout", json=body)).status_code == 204
        assert (await client.post("/api/v1/auth/signout", json=body)).status_code == 204


@pytest.mark.api
class TestMe:
    """Tests for GET /api/v1/auth/me endpoint."""

    async def test_me_with_bearer(self, client: AsyncClient, sample_signup_data: dict):
        first = await signup(client, sample_signup_data)

        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {first['access_token']}"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == first["user"]["user_id"]
        assert data["role"] == "customer"
        assert data["customer_id"] == first["user"]["customer_id"]

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_me_rejects_garbage(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


@pytest.mark.api
class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_request_id_generated(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]
