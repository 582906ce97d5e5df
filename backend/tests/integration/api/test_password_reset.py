"""
Integration tests for forgot-password and reset-password.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.services.auth_service import FORGOT_PASSWORD_MESSAGE
from bugtracker.services.email import MockEmailProvider

from tests.factories import UserFactory


class TestForgotPassword:
    @pytest.mark.asyncio
    async def test_existing_and_unknown_emails_look_the_same(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        await UserFactory.create(db_session, email="ada@example.com")

        known = await client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})
        unknown = await client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json() == {"message": FORGOT_PASSWORD_MESSAGE}
        assert [m.to_email for m in MockEmailProvider.sent_emails] == ["ada@example.com"]


class TestResetPassword:
    @pytest.mark.asyncio
    async def test_reset_then_login_with_new_password(
        self, client: AsyncClient, db_session: AsyncSession, last_otp
    ):
        await UserFactory.create(db_session, email="ada@example.com", password="oldpass1")
        await client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})

        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "ada@example.com", "otp": last_otp("ada@example.com"), "newPassword": "newpass1"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password reset successful"

        old = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "oldpass1"})
        new = await client.post("/api/auth/login", json={"email": "ada@example.com", "password": "newpass1"})
        assert old.status_code == 401
        assert new.status_code == 200

    @pytest.mark.asyncio
    async def test_snake_case_field_accepted(self, client: AsyncClient, db_session: AsyncSession, last_otp):
        await UserFactory.create(db_session, email="ada@example.com")
        await client.post("/api/auth/forgot-password", json={"email": "ada@example.com"})

        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "ada@example.com", "otp": last_otp("ada@example.com"), "new_password": "newpass1"},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_code_from_another_account_rejected(
        self, client: AsyncClient, db_session: AsyncSession, last_otp
    ):
        await UserFactory.create(db_session, email="ada@example.com")
        await UserFactory.create(db_session, email="bob@example.com")
        await client.post("/api/auth/forgot-password", json={"email": "bob@example.com"})

        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "ada@example.com", "otp": last_otp("bob@example.com"), "newPassword": "newpass1"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired OTP"

    @pytest.mark.asyncio
    async def test_short_new_password(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "ada@example.com", "otp": "123456", "newPassword": "x"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/reset-password",
            json={"email": "ghost@example.com", "otp": "123456", "newPassword": "newpass1"},
        )

        assert response.status_code == 404
