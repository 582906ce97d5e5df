"""
Pydantic schemas for authentication endpoints.

WHAT: Request/Response models for registration, login and password reset.

WHY: Registration and password reset are two-step flows: the first call emails a
one-time code, the second call presents it.
"""

import uuid
from enum import Enum

from pydantic import AliasChoices, BaseModel, EmailStr, Field

from bugtracker.schemas.common import EmailRequest

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128


class OTPPurpose(str, Enum):
    """What a one-time code is for; selects the email subject."""

    REGISTER = "register"
    RESET = "reset"


class RegisterSendOTPRequest(EmailRequest):
    """Start registration: store an unverified account and email a code."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="User's display name",
        examples=["Ada Lovelace"],
    )
    email: EmailStr = Field(..., description="User's email address", examples=["ada@example.com"])
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="User's password",
    )


class VerifyOTPRequest(EmailRequest):
    """Finish registration with the emailed code."""

    email: EmailStr = Field(..., description="Email the code was sent to")
    otp: str = Field(..., min_length=1, max_length=12, description="One-time code")


class LoginRequest(EmailRequest):
    """Email and password login."""

    email: EmailStr = Field(..., description="User's email address", examples=["ada@example.com"])
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)


class ForgotPasswordRequest(EmailRequest):
    """Start a password reset; the response is the same whether or not the account exists."""

    email: EmailStr = Field(..., description="Account email")


class ResetPasswordRequest(EmailRequest):
    """Finish a password reset with the emailed code."""

    email: EmailStr = Field(..., description="Account email")
    otp: str = Field(..., min_length=1, max_length=12, description="One-time code")
    new_password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        validation_alias=AliasChoices("new_password", "newPassword"),
        description="Replacement password",
    )


class ResendOTPRequest(EmailRequest):
    """Issue a fresh code for a flow already in progress."""

    email: EmailStr = Field(..., description="Account email")
    type: OTPPurpose = Field(..., description="Flow the code is for: register or reset")


class LoginResponse(BaseModel):
    """
    Successful login.

    Carries the session token plus the fields a client needs to render the
    signed-in user.
    """

    id: uuid.UUID = Field(..., description="User ID")
    name: str = Field(..., description="User's name")
    email: str = Field(..., description="User's email address")
    role: str = Field(..., description="User role (admin or member)")
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Token lifetime in seconds")
