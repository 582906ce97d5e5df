"""
Pydantic schemas for project endpoints.

WHAT: Request/Response models for projects and their membership.

WHY: Responses embed owner and team as user references, so the password
hash and OTP state never leave the API.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from bugtracker.schemas.common import EmailRequest, UserReference


class ProjectCreate(BaseModel):
    """New project; the caller becomes owner and first member."""

    title: str = Field(..., min_length=1, max_length=255, description="Project title")
    description: str = Field(default="", max_length=5000, description="Project description")


class ProjectUpdate(BaseModel):
    """
    Partial project update.

    Only fields present in the body change; ``model_fields_set`` tells the
    service which ones those are.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)


class AddMemberRequest(EmailRequest):
    """Add a registered user to the team by email."""

    email: EmailStr = Field(..., description="Email of the user to add")


class RemoveMemberRequest(BaseModel):
    """Remove a user from the team by id."""

    # Kept as a string so a malformed id gets the same 400 as a malformed path id
    user_id: str = Field(
        ...,
        validation_alias=AliasChoices("user_id", "userId"),
        description="ID of the user to remove",
    )


class ProjectResponse(BaseModel):
    """
    Project as returned by the API.

    HOW: Built from the ORM object (from_attributes); owner and
    team_members are already loaded by the model relationships.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    owner: UserReference
    team_members: List[UserReference]
    created_at: datetime
    updated_at: datetime
