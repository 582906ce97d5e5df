"""
Service layer.

WHY: Business rules live in services so the routers stay thin and the
rules are testable without HTTP.

HOW: Services take the request's AsyncSession, load what they need through the
DAOs, apply the authorization predicates and raise AppException subclasses.
"""

from bugtracker.services.auth_service import AuthService
from bugtracker.services.comment_service import CommentService
from bugtracker.services.email import EmailService, get_email_service
from bugtracker.services.project_service import ProjectService
from bugtracker.services.ticket_service import TicketService

__all__ = [
    "AuthService",
    "CommentService",
    "EmailService",
    "get_email_service",
    "ProjectService",
    "TicketService",
]
