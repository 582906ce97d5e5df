"""
Ticket Data Access Object.

WHAT: DAO for ticket CRUD and the filtered project ticket list.

WHY: Encapsulates the ticket queries:
1. Equality filters on status, priority and assignee
2. Case-insensitive title search
3. Newest-first ordering

HOW: Uses SQLAlchemy 2.0 async select() built up filter by filter.
"""

import uuid
from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.dao.base import BaseDAO
from bugtracker.models.ticket import Ticket, TicketStatus, TicketPriority


class TicketDAO(BaseDAO[Ticket]):
    """
    Data Access Object for Ticket operations.

    WHY: Tickets are looked up by id alone; the project a ticket points at
    may no longer exist, and the service decides what that means.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize TicketDAO with database session.

        Args:
            session: AsyncSession for database operations
        """
        super().__init__(Ticket, session)

    async def list_for_project(
        self,
        project_id: uuid.UUID,
        status: Optional[TicketStatus] = None,
        priority: Optional[TicketPriority] = None,
        assignee_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> List[Ticket]:
        """
        List a project's tickets with optional filters, newest first.

        WHAT: Every filter is optional and they combine with AND.

        WHY: The board view narrows by status or assignee and searches by
        title in the same request.

        Args:
            project_id: Project to list
            status: Exact status match
            priority: Exact priority match
            assignee_id: Exact assignee match
            search: Case-insensitive substring of the title

        Returns:
            List of tickets
        """
        query = select(Ticket).where(Ticket.project_id == project_id)

        if status is not None:
            query = query.where(Ticket.status == status)
        if priority is not None:
            query = query.where(Ticket.priority == priority)
        if assignee_id is not None:
            query = query.where(Ticket.assignee_id == assignee_id)
        if search:
            query = query.where(
                func.lower(Ticket.title).contains(search.lower(), autoescape=True)
            )

        query = query.order_by(Ticket.created_at.desc())
        result = await self.session.execute(query)
        return list(result.scalars().all())
