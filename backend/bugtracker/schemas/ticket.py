"""
Pydantic schemas for ticket endpoints.

WHAT: Request/Response models for tickets and assignment.

WHY: Identifiers in request bodies are plain strings. The service decides what
a malformed one means: a 400 for the project, silently ignored for an
assignee on create and update.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bugtracker.models.ticket import TicketPriority, TicketStatus
from bugtracker.schemas.common import UserReference


class TicketCreate(BaseModel):
    """
    New ticket.

    HOW: Accepts ``project_id`` or ``projectId``; priority defaults to
    medium and status always starts at To Do.
    """

    project_id: str = Field(
        ...,
        validation_alias=AliasChoices("project_id", "projectId"),
        description="Project the ticket belongs to",
    )
    title: str = Field(..., min_length=1, max_length=255, description="Ticket title")
    description: str = Field(default="", max_length=10000)
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    assignee: Optional[str] = Field(None, description="User ID of the assignee")


class TicketUpdate(BaseModel):
    """
    Partial ticket update.

    ``assignee`` distinguishes absent (unchanged) from null or "" (cleared).
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    assignee: Optional[str] = None


class TicketAssignRequest(BaseModel):
    """Assign a ticket to another project member."""

    assignee: str = Field(..., description="User ID of the new assignee")


class TicketResponse(BaseModel):
    """Ticket as returned by the API, with creator and assignee embedded."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    priority: TicketPriority
    status: TicketStatus
    project_id: uuid.UUID
    assignee: Optional[UserReference] = None
    created_by: UserReference
    created_at: datetime
    updated_at: datetime
