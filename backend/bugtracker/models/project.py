"""
Project model and the project membership association.

WHAT: Projects with an owner and a team (``project_members``).

WHY: A project has one immutable owner and a team. The owner is put in the team
when the project is created and can never be removed from it, so the team
always contains the owner.

Deleting a project removes its membership rows but leaves its tickets in
place; tickets reference projects by id only.
"""

import uuid
from typing import List, TYPE_CHECKING
from sqlalchemy import (
    Column,
    String,
    Table,
    Text,
    ForeignKey,
    Uuid,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from bugtracker.models.base import Base, TimestampMixin, PrimaryKeyMixin

if TYPE_CHECKING:
    from bugtracker.models.user import User


project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", Uuid, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base, PrimaryKeyMixin, TimestampMixin):
    """
    A project groups tickets and the users allowed to work on them.

    HOW: ``owner`` and ``team_members`` load with selectin, so permission
    checks never trigger lazy loads inside async code.
    """

    __tablename__ = "projects"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True
    )

    owner: Mapped["User"] = relationship("User", lazy="selectin")
    team_members: Mapped[List["User"]] = relationship(
        "User",
        secondary=project_members,
        lazy="selectin",
        order_by="User.created_at",
    )

    @property
    def member_ids(self) -> List[uuid.UUID]:
        return [member.id for member in self.team_members]

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, title={self.title}, owner_id={self.owner_id})>"
