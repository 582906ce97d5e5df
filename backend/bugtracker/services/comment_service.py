"""
Comment service.

WHAT: Business logic for ticket comments: create, list and delete.

WHY: Comments inherit access from their ticket's project: only its team members
may read, write or delete them.
"""

import logging
from typing import Any, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core import permissions
from bugtracker.core.exceptions import (
    AuthorizationError,
    CommentNotFoundError,
    InsufficientPermissionsError,
    NotProjectMemberError,
    TicketNotFoundError,
)
from bugtracker.core.ids import parse_id
from bugtracker.dao.comment import CommentDAO
from bugtracker.dao.project import ProjectDAO
from bugtracker.dao.ticket import TicketDAO
from bugtracker.models.comment import Comment
from bugtracker.models.project import Project
from bugtracker.models.ticket import Ticket
from bugtracker.models.user import User, UserRole

logger = logging.getLogger(__name__)


class CommentService:
    """
    Service for comment create/list/delete.

    HOW: Resolves comment -> ticket -> project, then applies the
    membership and authorship predicates.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.comments = CommentDAO(session)
        self.tickets = TicketDAO(session)
        self.projects = ProjectDAO(session)

    async def _ticket_and_project(self, ticket_id: Any) -> Tuple[Ticket, Optional[Project]]:
        """Ticket plus its project (None when the project was deleted)."""
        tid = parse_id(ticket_id, "ticket")
        ticket = await self.tickets.get_by_id(tid)
        if ticket is None:
            raise TicketNotFoundError(ticket_id=str(tid))
        return ticket, await self.projects.get_by_id(ticket.project_id)

    async def create(self, user: User, ticket_id: Any, text: str) -> Comment:
        """
        Comment on a ticket as the requester.

        Raises:
            InsufficientPermissionsError: Role is neither admin nor member
            TicketNotFoundError: No such ticket
            NotProjectMemberError: Requester is not in the ticket's project
        """
        if not permissions.has_role(user, UserRole.ADMIN, UserRole.MEMBER):
            raise InsufficientPermissionsError(message="Only admins and members can comment")

        ticket, project = await self._ticket_and_project(ticket_id)
        if not permissions.can_create_comment(project, user):
            raise NotProjectMemberError(message="Not authorized")

        return await self.comments.create(text=text, ticket_id=ticket.id, author_id=user.id)

    async def list_comments(self, user: User, ticket_id: Any) -> List[Comment]:
        """Comments on a ticket, newest first."""
        ticket, project = await self._ticket_and_project(ticket_id)
        if not permissions.can_read_comment(project, user):
            raise NotProjectMemberError(message="Not authorized")
        return await self.comments.list_for_ticket(ticket.id)

    async def delete(self, user: User, comment_id: Any) -> str:
        """
        Delete a comment. Requires membership, then admin or author.

        WHY: A comment whose ticket or project is gone can no longer be
        deleted by anyone; there is no team left to check membership against.

        Raises:
            CommentNotFoundError: No such comment
            NotProjectMemberError: Requester is not in the project
            AuthorizationError: Neither admin nor author
        """
        cid = parse_id(comment_id, "comment")
        comment = await self.comments.get_by_id(cid)
        if comment is None:
            raise CommentNotFoundError(comment_id=str(cid))

        ticket = await self.tickets.get_by_id(comment.ticket_id)
        project = await self.projects.get_by_id(ticket.project_id) if ticket else None

        if not permissions.is_member(project, user.id):
            raise NotProjectMemberError(message="Not authorized")

        if not permissions.can_delete_comment(project, comment, user):
            raise AuthorizationError(message="Only admin or comment author can delete")

        await self.comments.delete(comment.id)
        logger.info(f"Comment {comment.id} deleted by user {user.id}")
        return "Comment deleted"
