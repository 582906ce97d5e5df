"""
Project Data Access Object.

WHAT: Project creation, per-user listing and team management.

WHY: Membership decides access to every ticket and comment, so the team
is always loaded with the project (selectin) and kept consistent here.

HOW: Membership lives in the ``project_members`` association table and is
exposed on the model as ``team_members``. The owner is written into the team
when the project is created.
"""

import uuid
from typing import List

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.dao.base import BaseDAO
from bugtracker.models.project import Project, project_members
from bugtracker.models.user import User


class ProjectDAO(BaseDAO[Project]):
    """
    Data Access Object for Project model.

    HOW: Team changes go through the ORM relationship and are flushed, then
    the project is re-read so callers see the new team.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Project, session)

    async def create_project(self, title: str, description: str, owner: User) -> Project:
        """
        Create a project owned by ``owner``, who becomes its only member.

        Args:
            title: Project title
            description: Project description
            owner: Creating user

        Returns:
            Created Project with owner and team loaded
        """
        project = Project(
            title=title,
            description=description,
            owner_id=owner.id,
            team_members=[owner],
        )
        return await self.save(project)

    async def list_for_user(self, user_id: uuid.UUID) -> List[Project]:
        """
        Projects the user owns or belongs to, newest first.

        HOW: One query: owner match OR id in a subquery on project_members.

        Args:
            user_id: Requesting user's id

        Returns:
            List of projects
        """
        member_of = select(project_members.c.project_id).where(
            project_members.c.user_id == user_id
        )
        query = (
            select(Project)
            .where(or_(Project.owner_id == user_id, Project.id.in_(member_of)))
            .order_by(Project.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def add_member(self, project: Project, user: User) -> Project:
        """Append a user to the team; callers check for duplicates first."""
        project.team_members.append(user)
        await self.session.flush()
        return await self.get_by_id(project.id)

    async def remove_member(self, project: Project, user_id: uuid.UUID) -> Project:
        """
        Drop a user from the team.

        Removing a user who is not in the team leaves the project unchanged.
        """
        remaining = [member for member in project.team_members if member.id != user_id]
        if len(remaining) != len(project.team_members):
            project.team_members = remaining
            await self.session.flush()
        return await self.get_by_id(project.id)
