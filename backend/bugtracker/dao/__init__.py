"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and
business logic, making the codebase more testable and maintainable.
"""

from bugtracker.dao.base import BaseDAO
from bugtracker.dao.user import UserDAO, normalize_email
from bugtracker.dao.project import ProjectDAO
from bugtracker.dao.ticket import TicketDAO
from bugtracker.dao.comment import CommentDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "normalize_email",
    "ProjectDAO",
    "TicketDAO",
    "CommentDAO",
]
