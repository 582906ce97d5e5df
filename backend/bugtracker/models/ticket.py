"""
Ticket model.

WHAT: Bug tickets with priority, status, creator and optional assignee.

WHY: Tickets belong to a project and move through To Do → In Progress → Done
(any order is accepted). ``project_id`` is a plain column, not a foreign
key: deleting a project leaves its tickets behind, and such orphans fail
every membership check.
"""

import uuid
from enum import Enum
from typing import Optional, TYPE_CHECKING

from sqlalchemy import (
    String,
    Text,
    ForeignKey,
    Uuid,
    Enum as SQLEnum,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from bugtracker.models.base import Base, TimestampMixin, PrimaryKeyMixin

if TYPE_CHECKING:
    from bugtracker.models.user import User


# ============================================================================
# Enums
# ============================================================================


class TicketStatus(str, Enum):
    """Ticket workflow status."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TicketPriority(str, Enum):
    """Ticket priority; tickets default to medium."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ============================================================================
# Ticket Model
# ============================================================================


class Ticket(Base, PrimaryKeyMixin, TimestampMixin):
    """
    A unit of work inside a project.

    HOW: Enums are stored by value ("To Do", "high"), matching the JSON the
    API returns.
    """

    __tablename__ = "tickets"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    priority: Mapped[TicketPriority] = mapped_column(
        SQLEnum(TicketPriority, name="ticketpriority", values_callable=_enum_values),
        default=TicketPriority.MEDIUM,
        nullable=False,
    )
    status: Mapped[TicketStatus] = mapped_column(
        SQLEnum(TicketStatus, name="ticketstatus", values_callable=_enum_values),
        default=TicketStatus.TODO,
        nullable=False,
    )

    project_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    assignee: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[assignee_id], lazy="selectin"
    )
    created_by: Mapped["User"] = relationship(
        "User", foreign_keys=[created_by_id], lazy="selectin"
    )

    __table_args__ = (
        Index("ix_tickets_project_status", "project_id", "status"),
        Index("ix_tickets_assignee", "assignee_id"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, title={self.title}, status={self.status})>"
