"""
Tests for the authorization predicates.

The predicates only read attributes, so plain namespaces stand in for
models here.
"""

import uuid
from types import SimpleNamespace

import pytest

from bugtracker.core import permissions
from bugtracker.models.user import UserRole


def make_user(role=UserRole.MEMBER):
    return SimpleNamespace(id=uuid.uuid4(), role=role)


def make_project(owner, members=()):
    member_ids = [owner.id] + [m.id for m in members]
    return SimpleNamespace(id=uuid.uuid4(), owner_id=owner.id, member_ids=member_ids)


@pytest.fixture
def admin():
    return make_user(UserRole.ADMIN)


@pytest.fixture
def member():
    return make_user()


@pytest.fixture
def outsider():
    return make_user()


@pytest.fixture
def project(admin, member):
    return make_project(admin, [member])


class TestRoles:
    def test_has_role(self, admin, member):
        assert permissions.has_role(admin, UserRole.ADMIN)
        assert not permissions.has_role(member, UserRole.ADMIN)
        assert permissions.has_role(member, UserRole.ADMIN, UserRole.MEMBER)

    def test_has_role_accepts_plain_strings(self):
        assert permissions.is_admin(SimpleNamespace(id=uuid.uuid4(), role="admin"))

    def test_only_admins_create_projects(self, admin, member):
        assert permissions.can_create_project(admin)
        assert not permissions.can_create_project(member)


class TestMembership:
    def test_owner_and_team_are_members(self, project, admin, member, outsider):
        assert permissions.is_member(project, admin.id)
        assert permissions.is_member(project, member.id)
        assert not permissions.is_member(project, outsider.id)

    def test_owner_counts_even_if_missing_from_team(self, admin):
        project = SimpleNamespace(owner_id=admin.id, member_ids=[])

        assert permissions.is_member(project, admin.id)

    def test_missing_project_has_no_members(self, admin):
        assert not permissions.is_member(None, admin.id)
        assert not permissions.can_read_project(None, admin)

    def test_admin_outside_team_cannot_read(self, member):
        other_admin = make_user(UserRole.ADMIN)
        project = make_project(member)

        assert not permissions.can_read_project(project, other_admin)
        assert permissions.can_write_project(project, other_admin)


class TestProjectWrites:
    def test_owner_and_admin_manage(self, member, outsider):
        project = make_project(member, [outsider])

        assert permissions.can_write_project(project, member)
        assert permissions.can_manage_members(project, member)
        assert not permissions.can_write_project(project, outsider)
        assert not permissions.can_delete_project(project, outsider)


class TestTickets:
    def test_write_allowed_for_admin_creator_and_assignee(self, project, admin, member):
        third = make_user()
        project.member_ids.append(third.id)
        ticket = SimpleNamespace(created_by_id=member.id, assignee_id=third.id)

        assert permissions.can_write_ticket(project, ticket, admin)
        assert permissions.can_write_ticket(project, ticket, member)
        assert permissions.can_write_ticket(project, ticket, third)

    def test_write_denied_for_other_member(self, project, admin, member):
        third = make_user()
        project.member_ids.append(third.id)
        ticket = SimpleNamespace(created_by_id=admin.id, assignee_id=None)

        assert not permissions.can_write_ticket(project, ticket, third)
        assert not permissions.can_write_ticket(project, ticket, member)

    def test_write_requires_membership(self, project, outsider):
        ticket = SimpleNamespace(created_by_id=outsider.id, assignee_id=outsider.id)

        assert not permissions.can_write_ticket(project, ticket, outsider)

    def test_orphaned_ticket_is_closed_to_everyone(self, admin):
        ticket = SimpleNamespace(created_by_id=admin.id, assignee_id=None)

        assert not permissions.can_read_ticket(None, admin)
        assert not permissions.can_write_ticket(None, ticket, admin)
        assert not permissions.can_delete_ticket(None, ticket, admin)

    def test_delete_is_admin_or_creator(self, project, admin, member):
        third = make_user()
        project.member_ids.append(third.id)
        ticket = SimpleNamespace(created_by_id=member.id, assignee_id=third.id)

        assert permissions.can_delete_ticket(project, ticket, admin)
        assert permissions.can_delete_ticket(project, ticket, member)
        assert not permissions.can_delete_ticket(project, ticket, third)

    def test_assign_to(self, admin, member):
        someone = uuid.uuid4()

        assert permissions.can_assign_to(admin, someone)
        assert permissions.can_assign_to(member, member.id)
        assert permissions.can_assign_to(member, None)
        assert not permissions.can_assign_to(member, someone)


class TestComments:
    def test_create_and_read_require_membership(self, project, member, outsider):
        assert permissions.can_create_comment(project, member)
        assert permissions.can_read_comment(project, member)
        assert not permissions.can_create_comment(project, outsider)
        assert not permissions.can_read_comment(project, outsider)

    def test_delete_is_admin_or_author(self, project, admin, member):
        third = make_user()
        project.member_ids.append(third.id)
        comment = SimpleNamespace(author_id=member.id)

        assert permissions.can_delete_comment(project, comment, admin)
        assert permissions.can_delete_comment(project, comment, member)
        assert not permissions.can_delete_comment(project, comment, third)
