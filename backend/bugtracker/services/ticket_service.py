"""
Ticket service.

WHAT: Business logic for ticket create, list, read, update, assign and
delete.

WHY: Tickets are the unit of work inside a project. Who may touch one
depends on the team of the project it belongs to, on the requester's role
and on whether they created or are assigned the ticket.

HOW: Checks run in a fixed order, cheapest first:
1. Role gate (before any query)
2. Identifier well-formedness (400)
3. Existence (404)
4. Membership, then ownership (403)

Every operation resolves the owning project first and requires the
requester to be in its team. A ticket whose project was deleted therefore
answers 403 to everyone.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core import permissions
from bugtracker.core.config import settings
from bugtracker.core.exceptions import (
    AuthorizationError,
    InputError,
    InsufficientPermissionsError,
    NotProjectMemberError,
    ProjectNotFoundError,
    TicketNotFoundError,
    ValidationError,
)
from bugtracker.core.ids import parse_id, to_uuid
from bugtracker.dao.project import ProjectDAO
from bugtracker.dao.ticket import TicketDAO
from bugtracker.dao.user import UserDAO
from bugtracker.models.project import Project
from bugtracker.models.ticket import Ticket, TicketPriority, TicketStatus
from bugtracker.models.user import User, UserRole

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "priority", "status")


class TicketService:
    """
    Service for ticket CRUD and assignment.

    WHY: Keeps the authorization order and the assignee rules out of the
    routers, which only translate HTTP to method calls.

    HOW: Loads through the DAOs and asks core.permissions for every
    decision; raises AppException subclasses, never HTTP errors.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.tickets = TicketDAO(session)
        self.projects = ProjectDAO(session)
        self.users = UserDAO(User, session)

    async def _load(self, ticket_id: Any) -> Tuple[Ticket, Optional[Project]]:
        """Ticket plus its project, which is None for orphaned tickets."""
        tid = parse_id(ticket_id, "ticket")
        ticket = await self.tickets.get_by_id(tid)
        if ticket is None:
            raise TicketNotFoundError(ticket_id=str(tid))
        project = await self.projects.get_by_id(ticket.project_id)
        return ticket, project

    async def _existing_user_id(self, value: Any) -> Optional[uuid.UUID]:
        """The id in ``value`` if it is well formed and names a user, else None."""
        uid = to_uuid(value)
        if uid is None:
            return None
        if not await self.users.exists(id=uid):
            return None
        return uid

    async def create(
        self,
        user: User,
        project_id: Any,
        title: str,
        description: str = "",
        priority: TicketPriority = TicketPriority.MEDIUM,
        assignee: Any = None,
    ) -> Ticket:
        """
        Create a ticket in a project the requester belongs to.

        WHAT: New tickets always start as "To Do", created by the requester.

        WHY: The assignee is dropped unless it names an existing user, so a
        stale or mistyped id never blocks filing a bug. Membership of the
        assignee is only enforced when VALIDATE_ASSIGNEE_ON_CREATE is set.

        Raises:
            InsufficientPermissionsError: Role is neither admin nor member
            InputError: Malformed project id
            ProjectNotFoundError: No such project
            NotProjectMemberError: Requester is not in the team
            ValidationError: Assignee outside the team (with validation on)
        """
        if not permissions.has_role(user, UserRole.ADMIN, UserRole.MEMBER):
            raise InsufficientPermissionsError(message="Only admins and members can create tickets")

        pid = parse_id(project_id, "project")
        project = await self.projects.get_by_id(pid)
        if project is None:
            raise ProjectNotFoundError(project_id=str(pid))

        if not permissions.can_create_ticket(project, user):
            raise NotProjectMemberError(message="You must be a project member to create tickets")

        assignee_id = await self._existing_user_id(assignee)
        if (
            settings.VALIDATE_ASSIGNEE_ON_CREATE
            and assignee_id is not None
            and not permissions.is_member(project, assignee_id)
        ):
            raise ValidationError(message="Assignee must be a project member")

        ticket = await self.tickets.create(
            title=title,
            description=description,
            priority=priority,
            status=TicketStatus.TODO,
            project_id=project.id,
            assignee_id=assignee_id,
            created_by_id=user.id,
        )
        logger.info(f"Ticket {ticket.id} created in project {project.id} by user {user.id}")
        return ticket

    async def list_tickets(
        self,
        user: User,
        project_id: Any,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        assignee: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Ticket]:
        """
        A project's tickets, newest first.

        WHY: A missing project and a foreign project answer the same 403, so
        the list endpoint does not reveal which project ids exist. A
        malformed ``assignee`` filter is ignored rather than rejected.

        Raises:
            InputError: Malformed project id
            NotProjectMemberError: Project missing or requester not in the team
        """
        pid = parse_id(project_id, "project")
        project = await self.projects.get_by_id(pid)
        if not permissions.can_read_project(project, user):
            raise NotProjectMemberError(message="Not authorized to view this project")

        return await self.tickets.list_for_project(
            pid,
            status=status,
            priority=priority,
            assignee_id=to_uuid(assignee),
            search=search,
        )

    async def get(self, user: User, ticket_id: Any) -> Ticket:
        """Single ticket, for members of its project."""
        ticket, project = await self._load(ticket_id)
        if not permissions.can_read_ticket(project, user):
            raise NotProjectMemberError(message="Not authorized")
        return ticket

    async def update(self, user: User, ticket_id: Any, changes: Dict[str, Any]) -> Ticket:
        """
        Apply a partial update.

        WHAT: ``changes`` holds only the fields the caller supplied. For
        ``assignee``: None or "" clears it, a malformed id is ignored, and a
        well-formed id is accepted only from admins or as a self-assignment.

        WHY: Members may pick up work themselves, but handing a ticket to
        someone else is an admin decision.

        Raises:
            TicketNotFoundError: No such ticket
            NotProjectMemberError: Requester is not in the team
            AuthorizationError: Not admin, creator or assignee; or assigning
                someone else without being admin
            ValidationError: Assignee id names no user
        """
        ticket, project = await self._load(ticket_id)

        if not permissions.is_member(project, user.id):
            raise NotProjectMemberError(message="Not a project member")

        if not permissions.can_write_ticket(project, ticket, user):
            raise AuthorizationError(message="Not authorized to update this ticket")

        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}

        if "assignee" in changes:
            value = changes["assignee"]
            if value is None or value == "":
                fields["assignee_id"] = None
            else:
                uid = to_uuid(value)
                if uid is not None:
                    if not permissions.can_assign_to(user, uid):
                        raise AuthorizationError(message="Only admins can assign to other users")
                    if not await self.users.exists(id=uid):
                        raise ValidationError(message="Assignee not found")
                    fields["assignee_id"] = uid

        if not fields:
            return ticket
        return await self.tickets.update(ticket.id, **fields)

    async def assign(self, user: User, ticket_id: Any, assignee: Any) -> Ticket:
        """
        Admin-only reassignment to a member of the ticket's project.

        WHY: Unlike create and update, assignment here is strict: the
        assignee must already be on the team, and a malformed id is a 400
        instead of being ignored.

        Raises:
            InsufficientPermissionsError: Requester is not an admin
            InputError: Malformed assignee or ticket id
            TicketNotFoundError: No such ticket
            ProjectNotFoundError: Ticket's project no longer exists
            ValidationError: Assignee is not in the team
        """
        if not permissions.is_admin(user):
            raise InsufficientPermissionsError(message="Only admins can assign tickets")

        assignee_id = to_uuid(assignee)
        if assignee_id is None:
            raise InputError(message="Invalid assignee ID", field="assignee")

        ticket, project = await self._load(ticket_id)
        if project is None:
            raise ProjectNotFoundError(project_id=str(ticket.project_id))

        if not permissions.is_member(project, assignee_id):
            raise ValidationError(message="Assignee must be a project member")

        ticket = await self.tickets.update(ticket.id, assignee_id=assignee_id)
        logger.info(f"Ticket {ticket.id} assigned to user {assignee_id}")
        return ticket

    async def delete(self, user: User, ticket_id: Any) -> str:
        """
        Delete a ticket. Its comments are left in place.

        Raises:
            TicketNotFoundError: No such ticket
            NotProjectMemberError: Requester is not in the team
            AuthorizationError: Neither admin nor creator
        """
        ticket, project = await self._load(ticket_id)

        if not permissions.is_member(project, user.id):
            raise NotProjectMemberError(message="Not authorized")

        if not permissions.can_delete_ticket(project, ticket, user):
            raise AuthorizationError(message="Only admin or ticket creator can delete")

        await self.tickets.delete(ticket.id)
        logger.info(f"Ticket {ticket.id} deleted by user {user.id}")
        return "Ticket deleted"
