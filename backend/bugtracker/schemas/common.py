"""
Schemas shared by several routers.

WHAT: The public user reference, plain messages and the email-carrying
request base.

WHY: Email normalization lives in one validator, so every auth and
membership request trims and lowercases addresses the same way.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserReference(BaseModel):
    """
    Minimal user info embedded wherever a user is referenced.

    Never includes the password hash or OTP fields.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(..., description="User ID")
    name: str = Field(..., description="User name")
    email: str = Field(..., description="User email")


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str = Field(..., description="Human-readable result")


class EmailRequest(BaseModel):
    """Base for request bodies carrying an ``email``; trims and lowercases it."""

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v
