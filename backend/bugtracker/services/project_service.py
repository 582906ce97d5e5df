"""
Project service.

WHAT: Business logic for projects and their teams.

WHY: A project is the access boundary of the tracker. Its team decides who
sees its tickets and comments, so creating projects and changing teams are
restricted to admins and the project owner.

HOW: Checks run in a fixed order: role gate, identifier format (400),
existence (404), then membership or ownership (403).
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core import permissions
from bugtracker.core.exceptions import (
    AlreadyProjectMemberError,
    AuthorizationError,
    InsufficientPermissionsError,
    NotProjectMemberError,
    ProjectNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from bugtracker.core.ids import parse_id
from bugtracker.dao.project import ProjectDAO
from bugtracker.dao.user import UserDAO
from bugtracker.models.project import Project
from bugtracker.models.user import User

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description")


class ProjectService:
    """
    Service for project CRUD and team membership.

    HOW: Loads through ProjectDAO and UserDAO, asks core.permissions for
    every decision and raises AppException subclasses.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.projects = ProjectDAO(session)
        self.users = UserDAO(User, session)

    async def _load(self, project_id: Any) -> Project:
        """Parse, fetch, or raise InputError / ProjectNotFoundError."""
        pid = parse_id(project_id, "project")
        project = await self.projects.get_by_id(pid)
        if project is None:
            raise ProjectNotFoundError(project_id=str(pid))
        return project

    async def create(self, user: User, title: str, description: str = "") -> Project:
        """
        Create a project owned by the requester.

        WHAT: The requester becomes owner and the only initial team member.

        Raises:
            InsufficientPermissionsError: Requester is not an admin
        """
        if not permissions.can_create_project(user):
            raise InsufficientPermissionsError(message="Only admins can create projects")

        project = await self.projects.create_project(title=title, description=description, owner=user)
        logger.info(f"Project {project.id} created by user {user.id}")
        return project

    async def list_projects(self, user: User) -> List[Project]:
        """Projects the requester owns or belongs to, newest first."""
        return await self.projects.list_for_user(user.id)

    async def get(self, user: User, project_id: Any) -> Project:
        """
        Single project, for members only.

        Raises:
            InputError: Malformed id
            ProjectNotFoundError: No such project
            NotProjectMemberError: Requester is not in the team
        """
        project = await self._load(project_id)
        if not permissions.can_read_project(project, user):
            raise NotProjectMemberError()
        return project

    async def update(self, user: User, project_id: Any, changes: Dict[str, Any]) -> Project:
        """
        Apply a partial update of title and/or description.

        Args:
            user: Requester
            project_id: Project to update
            changes: Only the fields supplied by the caller

        Raises:
            InputError: Malformed id
            ProjectNotFoundError: No such project
            AuthorizationError: Requester is neither admin nor owner
        """
        project = await self._load(project_id)
        if not permissions.can_write_project(project, user):
            raise AuthorizationError(message="Only admin or project owner can update")

        fields = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS and v is not None}
        if not fields:
            return project
        return await self.projects.update(project.id, **fields)

    async def delete(self, user: User, project_id: Any) -> str:
        """
        Delete a project. Its tickets and comments are left in place.

        WHY: Deletion does not cascade. The orphans stay in the database but
        nobody passes the membership check for them any more.

        Raises:
            InputError: Malformed id
            ProjectNotFoundError: No such project
            AuthorizationError: Requester is neither admin nor owner
        """
        project = await self._load(project_id)
        if not permissions.can_delete_project(project, user):
            raise AuthorizationError(message="Only admin or project owner can delete")

        await self.projects.delete(project.id)
        logger.info(f"Project {project.id} deleted by user {user.id}")
        return "Project deleted successfully"

    async def add_member(self, user: User, project_id: Any, email: str) -> Project:
        """
        Add a registered user to the team by email.

        WHY: Owners know their teammates by email, not by id. Adding someone
        twice is a 409 so the client can tell a no-op from a change.

        Raises:
            ProjectNotFoundError: No such project
            AuthorizationError: Requester is neither admin nor owner
            UserNotFoundError: No account for the email
            AlreadyProjectMemberError: User already in the team
        """
        project = await self._load(project_id)
        if not permissions.can_manage_members(project, user):
            raise AuthorizationError(message="Only admin or owner can add members")

        new_member = await self.users.get_by_email(email)
        if new_member is None:
            raise UserNotFoundError()

        if permissions.is_member(project, new_member.id):
            raise AlreadyProjectMemberError(user_id=str(new_member.id))

        project = await self.projects.add_member(project, new_member)
        logger.info(f"User {new_member.id} added to project {project.id}")
        return project

    async def remove_member(self, user: User, project_id: Any, member_id: Any) -> Project:
        """
        Remove a user from the team.

        WHY: Removing someone who is not in the team is a no-op, so repeating
        the request is safe. The owner cannot be removed; a project without
        its owner in the team would lock out the person who manages it.

        Raises:
            InputError: Malformed project or user id
            ProjectNotFoundError: No such project
            AuthorizationError: Requester is neither admin nor owner
            ValidationError: Target is the owner
        """
        project = await self._load(project_id)
        if not permissions.can_manage_members(project, user):
            raise AuthorizationError(message="Only admin or owner can remove members")

        uid = parse_id(member_id, "user")
        if permissions.is_owner(project, uid):
            raise ValidationError(message="Cannot remove project owner")

        if uid in project.member_ids:
            logger.info(f"User {uid} removed from project {project.id}")
        return await self.projects.remove_member(project, uid)
