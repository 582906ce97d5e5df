"""
Database models package.

WHAT: Users, projects, tickets and comments.

HOW: Importing this package registers every table on ``Base.metadata`` for
Alembic and for test schema creation.
"""

from bugtracker.models.base import Base, TimestampMixin, PrimaryKeyMixin
from bugtracker.models.user import User, UserRole
from bugtracker.models.project import Project, project_members
from bugtracker.models.ticket import Ticket, TicketStatus, TicketPriority
from bugtracker.models.comment import Comment

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "User",
    "UserRole",
    "Project",
    "project_members",
    "Ticket",
    "TicketStatus",
    "TicketPriority",
    "Comment",
]
