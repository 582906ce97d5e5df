"""
Comment model.

WHAT: Notes left on tickets by project members.

WHY: Comments reference their ticket by id only, like tickets reference their
project, so deleting a ticket leaves its comments in place.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship, Mapped, mapped_column

from bugtracker.models.base import Base, TimestampMixin, PrimaryKeyMixin

if TYPE_CHECKING:
    from bugtracker.models.user import User


class Comment(Base, PrimaryKeyMixin, TimestampMixin):
    """A note left on a ticket by a project member."""

    __tablename__ = "comments"

    text: Mapped[str] = mapped_column(Text, nullable=False)

    ticket_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    author: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, ticket_id={self.ticket_id}, author_id={self.author_id})>"
