"""
Comment API endpoints.

WHAT: Discussion threads on tickets.

WHY: Comments let the team talk about a bug next to the ticket itself,
and are visible to exactly the people who can see the ticket.

HOW: ``GET`` and ``POST`` take a ticket id; ``DELETE`` takes a comment id.
CommentService resolves the ticket's project for every check.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.deps import get_current_user, require_member
from bugtracker.db.session import get_db
from bugtracker.models.user import User
from bugtracker.schemas.comment import CommentCreate, CommentResponse
from bugtracker.schemas.common import MessageResponse
from bugtracker.services.comment_service import CommentService


router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "/{ticket_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on ticket",
)
async def create_comment(
    ticket_id: str,
    data: CommentCreate,
    current_user: User = Depends(require_member),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """
    Add a comment to a ticket.

    Raises:
        TicketNotFoundError (404): No such ticket
        NotProjectMemberError (403): Not in the ticket's project
    """
    comment = await CommentService(db).create(current_user, ticket_id, data.text)
    return CommentResponse.model_validate(comment)


@router.get(
    "/{ticket_id}",
    response_model=List[CommentResponse],
    summary="List ticket comments",
)
async def list_comments(
    ticket_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[CommentResponse]:
    """List a ticket's comments, newest first."""
    comments = await CommentService(db).list_comments(current_user, ticket_id)
    return [CommentResponse.model_validate(c) for c in comments]


@router.delete(
    "/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
    description="Project member who is admin or the comment's author.",
)
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a comment.

    WHAT: Requires membership in the ticket's project, then admin role or
    authorship.
    """
    message = await CommentService(db).delete(current_user, comment_id)
    return MessageResponse(message=message)
