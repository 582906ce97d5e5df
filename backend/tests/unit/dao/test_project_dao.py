"""
Tests for ProjectDAO: creation, listing and team membership.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.dao.project import ProjectDAO
from bugtracker.models.project import project_members
from bugtracker.models.user import UserRole

from tests.factories import ProjectFactory, UserFactory


class TestCreateProject:
    @pytest.mark.asyncio
    async def test_owner_is_first_member(self, db_session: AsyncSession):
        owner = await UserFactory.create(db_session, role=UserRole.ADMIN)

        project = await ProjectDAO(db_session).create_project(
            title="Tracker", description="Bugs", owner=owner
        )

        assert project.owner_id == owner.id
        assert project.owner.id == owner.id
        assert project.member_ids == [owner.id]


class TestListForUser:
    @pytest.mark.asyncio
    async def test_lists_owned_and_joined_newest_first(self, db_session: AsyncSession):
        admin = await UserFactory.create(db_session, role=UserRole.ADMIN)
        member = await UserFactory.create(db_session)
        outsider = await UserFactory.create(db_session)

        first = await ProjectFactory.create(db_session, owner=admin, title="First", members=[member])
        second = await ProjectFactory.create(db_session, owner=admin, title="Second", members=[member])
        await ProjectFactory.create(db_session, owner=admin, title="Private")

        dao = ProjectDAO(db_session)

        assert [p.id for p in await dao.list_for_user(member.id)] == [second.id, first.id]
        assert len(await dao.list_for_user(admin.id)) == 3
        assert await dao.list_for_user(outsider.id) == []


class TestMembership:
    @pytest.mark.asyncio
    async def test_add_member(self, db_session: AsyncSession):
        admin = await UserFactory.create(db_session, role=UserRole.ADMIN)
        member = await UserFactory.create(db_session)
        project = await ProjectFactory.create(db_session, owner=admin)

        project = await ProjectDAO(db_session).add_member(project, member)

        assert set(project.member_ids) == {admin.id, member.id}

    @pytest.mark.asyncio
    async def test_remove_member(self, db_session: AsyncSession):
        admin = await UserFactory.create(db_session, role=UserRole.ADMIN)
        member = await UserFactory.create(db_session)
        project = await ProjectFactory.create(db_session, owner=admin, members=[member])

        project = await ProjectDAO(db_session).remove_member(project, member.id)

        assert project.member_ids == [admin.id]

    @pytest.mark.asyncio
    async def test_remove_non_member_is_noop(self, db_session: AsyncSession):
        admin = await UserFactory.create(db_session, role=UserRole.ADMIN)
        stranger = await UserFactory.create(db_session)
        project = await ProjectFactory.create(db_session, owner=admin)

        project = await ProjectDAO(db_session).remove_member(project, stranger.id)

        assert project.member_ids == [admin.id]

    @pytest.mark.asyncio
    async def test_delete_removes_membership_rows(self, db_session: AsyncSession):
        admin = await UserFactory.create(db_session, role=UserRole.ADMIN)
        member = await UserFactory.create(db_session)
        project = await ProjectFactory.create(db_session, owner=admin, members=[member])

        assert await ProjectDAO(db_session).delete(project.id)

        rows = await db_session.execute(
            select(project_members).where(project_members.c.project_id == project.id)
        )
        assert rows.all() == []
        assert await ProjectDAO(db_session).get_by_id(project.id) is None
