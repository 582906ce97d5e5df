"""
Pydantic schemas for comment endpoints.

WHAT: Request/Response models for the comment API.

WHY: Pydantic validates comment text before it reaches the service and
keeps author fields limited to the public user reference.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from bugtracker.schemas.common import UserReference


class CommentCreate(BaseModel):
    """New comment body."""

    text: str = Field(..., min_length=1, max_length=5000, description="Comment body")


class CommentResponse(BaseModel):
    """
    Comment as returned by the API.

    WHY: Embeds the author so clients can render the thread without a
    second lookup.
    """

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    text: str
    ticket_id: uuid.UUID
    author: UserReference
    created_at: datetime
