"""
Ticket management API endpoints.

WHAT: RESTful API for bug tickets inside projects.

WHY: Tickets are the work items of the tracker:
1. Filed by any team member
2. Worked by their assignee
3. Filtered and searched on the project board

HOW: FastAPI router with:
- require_member / require_admin as role gates
- TicketService for membership, ownership and assignee rules
- Query parameters for the board filters
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.deps import get_current_user, require_admin, require_member
from bugtracker.db.session import get_db
from bugtracker.models.ticket import TicketPriority, TicketStatus
from bugtracker.models.user import User
from bugtracker.schemas.common import MessageResponse
from bugtracker.schemas.ticket import (
    TicketAssignRequest,
    TicketCreate,
    TicketResponse,
    TicketUpdate,
)
from bugtracker.services.ticket_service import TicketService


router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post(
    "",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create ticket",
)
async def create_ticket(
    data: TicketCreate,
    current_user: User = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    """
    Create a new ticket.

    WHAT: Files a ticket in the given project with status "To Do".

    WHY: Any team member can report a bug; the assignee is optional and
    silently dropped if it names no user.

    Args:
        data: Ticket creation data (projectId, title, description,
            priority, assignee)
        current_user: Admin or member filing the ticket
        db: Database session

    Returns:
        Created ticket

    Raises:
        InputError (400): Malformed project id
        ProjectNotFoundError (404): No such project
        NotProjectMemberError (403): Not in the project team
    """
    ticket = await TicketService(db).create(
        current_user,
        project_id=data.project_id,
        title=data.title,
        description=data.description,
        priority=data.priority,
        assignee=data.assignee,
    )
    return TicketResponse.model_validate(ticket)


@router.get(
    "/project/{project_id}",
    response_model=List[TicketResponse],
    summary="List project tickets",
    description="Filter by status, priority or assignee; search matches titles case-insensitively.",
)
async def list_tickets(
    project_id: str,
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = Query(None),
    assignee: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[TicketResponse]:
    """
    List a project's tickets, newest first.

    WHAT: Optional filters combine with AND; ``search`` matches titles
    case-insensitively.

    WHY: ``status`` is read through an alias so the handler argument does
    not shadow fastapi.status.
    """
    tickets = await TicketService(db).list_tickets(
        current_user,
        project_id,
        status=status_filter,
        priority=priority,
        assignee=assignee,
        search=search,
    )
    return [TicketResponse.model_validate(t) for t in tickets]


@router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Get ticket",
)
async def get_ticket(
    ticket_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    """Get a ticket, for members of its project."""
    ticket = await TicketService(db).get(current_user, ticket_id)
    return TicketResponse.model_validate(ticket)


@router.put(
    "/{ticket_id}",
    response_model=TicketResponse,
    summary="Update ticket",
    description="Admin, creator or assignee. Only the supplied fields change.",
)
async def update_ticket(
    ticket_id: str,
    data: TicketUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    """
    Update a ticket.

    WHAT: Partial update of title, description, priority, status and
    assignee.

    Raises:
        NotProjectMemberError (403): Not in the project team
        AuthorizationError (403): Not admin, creator or assignee, or a
            non-admin assigning someone else
    """
    ticket = await TicketService(db).update(
        current_user, ticket_id, data.model_dump(exclude_unset=True)
    )
    return TicketResponse.model_validate(ticket)


@router.put(
    "/{ticket_id}/assign",
    response_model=TicketResponse,
    summary="Assign ticket",
    description="Admin only. The assignee must be in the ticket's project.",
)
async def assign_ticket(
    ticket_id: str,
    data: TicketAssignRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    """
    Assign a ticket to a team member.

    Raises:
        InputError (400): Malformed assignee id
        ValidationError (400): Assignee not in the project team
        ProjectNotFoundError (404): Ticket's project was deleted
    """
    ticket = await TicketService(db).assign(current_user, ticket_id, data.assignee)
    return TicketResponse.model_validate(ticket)


@router.delete(
    "/{ticket_id}",
    response_model=MessageResponse,
    summary="Delete ticket",
)
async def delete_ticket(
    ticket_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a ticket.

    WHY: Only admins and the ticket's creator may delete; assignees can
    close work by status instead.
    """
    message = await TicketService(db).delete(current_user, ticket_id)
    return MessageResponse(message=message)
