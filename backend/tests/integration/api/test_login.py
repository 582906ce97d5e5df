"""
Integration tests for login and bearer-token authentication.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.auth import create_access_token
from bugtracker.dao.user import UserDAO
from bugtracker.models.user import User, UserRole

from tests.factories import UserFactory


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, db_session: AsyncSession):
        user = await UserFactory.create(
            db_session, name="Ada", email="ada@example.com", password="secret1", role=UserRole.ADMIN
        )

        response = await client.post("/api/auth/login", json={"email": "Ada@Example.com", "password": "secret1"})

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["name"] == "Ada"
        assert data["email"] == "ada@example.com"
        assert data["role"] == "admin"
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 30 * 24 * 60 * 60
        assert "hashed_password" not in data

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="ada@example.com", password="secret1")

        response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unverified_account(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="ada@example.com", password="secret1", is_verified=False)

        response = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret1"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials or account not verified"

    @pytest.mark.asyncio
    async def test_token_opens_protected_routes(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="ada@example.com", password="secret1")
        login = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "secret1"})

        response = await client.get(
            "/api/projects",
            headers={"Authorization": f"Bearer {login.json()['access_token']}"},
        )

        assert response.status_code == 200
        assert response.json() == []


class TestBearerAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/api/projects")

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    @pytest.mark.asyncio
    async def test_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/projects", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token invalid or expired"

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, member_user):
        token = create_access_token({"user_id": str(member_user.id)}, expires_delta=timedelta(seconds=-5))

        response = await client.get("/api/projects", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_deleted_user(self, client: AsyncClient, db_session: AsyncSession, member_user, auth_headers):
        headers = auth_headers(member_user)
        await UserDAO(User, db_session).delete(member_user.id)

        response = await client.get("/api/projects", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == "User no longer exists"


class TestAppEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"] == "HTTPException"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "trace-1"})

        assert response.headers["X-Request-ID"] == "trace-1"
