"""
Comment Data Access Object.

WHY: Comments are only ever read as a ticket's thread, newest first;
CommentDAO adds that one query to BaseDAO.
"""

import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.dao.base import BaseDAO
from bugtracker.models.comment import Comment


class CommentDAO(BaseDAO[Comment]):
    """Data Access Object for Comment model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Comment, session)

    async def list_for_ticket(self, ticket_id: uuid.UUID) -> List[Comment]:
        """Comments on a ticket, newest first."""
        result = await self.session.execute(
            select(Comment)
            .where(Comment.ticket_id == ticket_id)
            .order_by(Comment.created_at.desc())
        )
        return list(result.scalars().all())
