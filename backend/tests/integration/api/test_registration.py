"""
Integration tests for the two-step registration flow.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.services.email import MockEmailProvider

from tests.factories import UserFactory

REGISTER = {"name": "New User", "email": "newuser@example.com", "password": "secret123"}


class TestRegisterSendOTP:
    @pytest.mark.asyncio
    async def test_sends_code(self, client: AsyncClient):
        response = await client.post("/api/auth/register/send-otp", json=REGISTER)

        assert response.status_code == 200
        assert response.json() == {"message": "OTP sent to email"}
        assert len(MockEmailProvider.sent_emails) == 1
        assert MockEmailProvider.sent_emails[0].subject == "Verify Your Email"

    @pytest.mark.asyncio
    async def test_email_normalized(self, client: AsyncClient, last_otp):
        await client.post(
            "/api/auth/register/send-otp",
            json={**REGISTER, "email": "  NewUser@Example.com "},
        )

        assert last_otp("newuser@example.com")

    @pytest.mark.asyncio
    async def test_verified_email_rejected(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="newuser@example.com")

        response = await client.post("/api/auth/register/send-otp", json=REGISTER)

        assert response.status_code == 400
        assert response.json()["message"] == "User already exists and is verified"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"email": "not-an-email"},
            {"password": "short"},
            {"name": ""},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, overrides):
        response = await client.post("/api/auth/register/send-otp", json={**REGISTER, **overrides})

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_missing_field(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register/send-otp",
            json={"email": "newuser@example.com", "password": "secret123"},
        )

        assert response.status_code == 400


class TestVerifyOTP:
    @pytest.mark.asyncio
    async def test_full_registration_then_login(self, client: AsyncClient, last_otp):
        await client.post("/api/auth/register/send-otp", json=REGISTER)

        response = await client.post(
            "/api/auth/register/verify-otp",
            json={"email": REGISTER["email"], "otp": last_otp(REGISTER["email"])},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Account verified successfully"

        login = await client.post(
            "/api/auth/login",
            json={"email": REGISTER["email"], "password": REGISTER["password"]},
        )
        assert login.status_code == 200
        assert login.json()["role"] == "member"

    @pytest.mark.asyncio
    async def test_wrong_code(self, client: AsyncClient, last_otp):
        await client.post("/api/auth/register/send-otp", json=REGISTER)
        code = last_otp(REGISTER["email"])
        wrong = "000000" if code != "000000" else "111111"

        response = await client.post(
            "/api/auth/register/verify-otp",
            json={"email": REGISTER["email"], "otp": wrong},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid or expired OTP"

    @pytest.mark.asyncio
    async def test_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/register/verify-otp",
            json={"email": "ghost@example.com", "otp": "123456"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_already_verified(self, client: AsyncClient, db_session: AsyncSession):
        await UserFactory.create(db_session, email="done@example.com")

        response = await client.post(
            "/api/auth/register/verify-otp",
            json={"email": "done@example.com", "otp": "123456"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Account already verified"


class TestResendOTP:
    @pytest.mark.asyncio
    async def test_resend_invalidates_previous_code(self, client: AsyncClient, last_otp):
        await client.post("/api/auth/register/send-otp", json=REGISTER)
        first = last_otp(REGISTER["email"])

        response = await client.post(
            "/api/auth/resend-otp",
            json={"email": REGISTER["email"], "type": "register"},
        )
        second = last_otp(REGISTER["email"])

        assert response.status_code == 200
        assert response.json()["message"] == "OTP resent successfully"
        if first != second:
            stale = await client.post(
                "/api/auth/register/verify-otp",
                json={"email": REGISTER["email"], "otp": first},
            )
            assert stale.status_code == 400

        fresh = await client.post(
            "/api/auth/register/verify-otp",
            json={"email": REGISTER["email"], "otp": second},
        )
        assert fresh.status_code == 200

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/resend-otp",
            json={"email": REGISTER["email"], "type": "sms"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/auth/resend-otp",
            json={"email": "ghost@example.com", "type": "reset"},
        )

        assert response.status_code == 404
        assert response.json()["message"] == "No account found"
