"""
Project management API endpoints.

WHAT: RESTful API for projects and their teams.

WHY: Projects group tickets and decide who may see them; the team is the
access list for everything inside a project.

HOW: FastAPI router with:
- require_admin as the role gate for creation
- ProjectService for membership and ownership checks
- ProjectResponse carrying the owner and team on every write
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.deps import get_current_user, require_admin
from bugtracker.db.session import get_db
from bugtracker.models.user import User
from bugtracker.schemas.common import MessageResponse
from bugtracker.schemas.project import (
    AddMemberRequest,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RemoveMemberRequest,
)
from bugtracker.services.project_service import ProjectService


router = APIRouter(prefix="/projects", tags=["projects"])


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description="Admin only. The creator becomes owner and first team member.",
)
async def create_project(
    data: ProjectCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """
    Create a new project.

    WHAT: Creates the project with the requester as owner and only member.

    Args:
        data: Title and description
        current_user: Admin creating the project
        db: Database session

    Returns:
        Created project
    """
    project = await ProjectService(db).create(current_user, data.title, data.description)
    return ProjectResponse.model_validate(project)


@router.get(
    "",
    response_model=List[ProjectResponse],
    summary="List my projects",
)
async def list_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> List[ProjectResponse]:
    """
    List projects the current user owns or belongs to.

    WHY: There is no global project list; users only see their own teams.
    """
    projects = await ProjectService(db).list_projects(current_user)
    return [ProjectResponse.model_validate(p) for p in projects]


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
)
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """Get a project the current user belongs to."""
    project = await ProjectService(db).get(current_user, project_id)
    return ProjectResponse.model_validate(project)


@router.put(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Update project",
    description="Admin or owner. Only the supplied fields change.",
)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """
    Update project title and/or description.

    WHY: exclude_unset keeps fields the client did not send untouched.

    Raises:
        AuthorizationError (403): Neither admin nor owner
    """
    project = await ProjectService(db).update(
        current_user, project_id, data.model_dump(exclude_unset=True)
    )
    return ProjectResponse.model_validate(project)


@router.delete(
    "/{project_id}",
    response_model=MessageResponse,
    summary="Delete project",
    description="Admin or owner. Tickets and comments are not deleted.",
)
async def delete_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Delete a project.

    Raises:
        ProjectNotFoundError (404): No such project
        AuthorizationError (403): Neither admin nor owner
    """
    message = await ProjectService(db).delete(current_user, project_id)
    return MessageResponse(message=message)


@router.post(
    "/{project_id}/add-member",
    response_model=ProjectResponse,
    summary="Add team member by email",
)
async def add_member(
    project_id: str,
    data: AddMemberRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """
    Add a registered user to the team.

    WHAT: Looks the user up by email (case-insensitive).

    Raises:
        UserNotFoundError (404): No account for the email
        AlreadyProjectMemberError (409): Already in the team
    """
    project = await ProjectService(db).add_member(current_user, project_id, data.email)
    return ProjectResponse.model_validate(project)


@router.post(
    "/{project_id}/remove-member",
    response_model=ProjectResponse,
    summary="Remove team member",
    description="Removing a non-member is a no-op; the owner cannot be removed.",
)
async def remove_member(
    project_id: str,
    data: RemoveMemberRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """
    Remove a user from the team.

    Raises:
        InputError (400): Malformed user id
        ValidationError (400): Target is the owner
    """
    project = await ProjectService(db).remove_member(current_user, project_id, data.user_id)
    return ProjectResponse.model_validate(project)
