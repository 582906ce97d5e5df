"""
Authorization predicates.

WHAT: Every "may this user do that" decision for projects, tickets and
comments, as pure functions over already-fetched data.

WHY: Keeping the rules in one place means:
1. Each service enforces the same membership and ownership rules
2. The rules can be tested without a database
3. A rule change is a one-line diff

HOW: Functions never touch the database and never raise. Services call
them after loading the resources involved and raise the matching exception
when one returns False.

Arguments are duck-typed:
- ``user``: anything with ``id`` and ``role``
- ``project``: anything with ``owner_id`` and ``member_ids``; may be None for
  tickets and comments whose project has been deleted
- ``ticket``: anything with ``created_by_id`` and ``assignee_id``
- ``comment``: anything with ``author_id``

Two tiers apply. The role gate (``has_role``) is checked before any resource
is loaded; membership and ownership are checked after.
"""

from typing import Any, Optional

from bugtracker.models.user import UserRole


def _role_value(role: Any) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def has_role(user: Any, *roles: UserRole) -> bool:
    """
    Check the requester's role against an allowed set.

    Example:
        >>> has_role(admin, UserRole.ADMIN, UserRole.MEMBER)
        True
    """
    allowed = {_role_value(r) for r in roles}
    return _role_value(user.role) in allowed


def is_admin(user: Any) -> bool:
    return has_role(user, UserRole.ADMIN)


def is_member(project: Optional[Any], user_id: Any) -> bool:
    """
    Check project membership.

    WHAT: True iff the user owns the project or is in its team.

    WHY: Membership is the first check for every ticket and comment
    operation. A missing project (None) has no members, so orphaned
    tickets and comments are unreachable.
    """
    if project is None:
        return False
    if project.owner_id == user_id:
        return True
    return user_id in set(project.member_ids)


def is_owner(project: Optional[Any], user_id: Any) -> bool:
    """Ownership only; admins are not owners."""
    return project is not None and project.owner_id == user_id


# ============================================================================
# Projects
# ============================================================================


def can_create_project(user: Any) -> bool:
    """Only admins create projects."""
    return is_admin(user)


def can_read_project(project: Optional[Any], user: Any) -> bool:
    return is_member(project, user.id)


def can_write_project(project: Optional[Any], user: Any) -> bool:
    """Title/description updates: admin or owner."""
    return is_admin(user) or is_owner(project, user.id)


def can_delete_project(project: Optional[Any], user: Any) -> bool:
    return is_admin(user) or is_owner(project, user.id)


def can_manage_members(project: Optional[Any], user: Any) -> bool:
    return is_admin(user) or is_owner(project, user.id)


# ============================================================================
# Tickets
# ============================================================================


def can_create_ticket(project: Optional[Any], user: Any) -> bool:
    """Role gate plus membership."""
    return has_role(user, UserRole.ADMIN, UserRole.MEMBER) and is_member(project, user.id)


def can_read_ticket(project: Optional[Any], user: Any) -> bool:
    """Reading a ticket requires membership in its project."""
    return is_member(project, user.id)


def can_write_ticket(project: Optional[Any], ticket: Any, user: Any) -> bool:
    """
    Check ticket update rights.

    WHAT: Membership, then admin, creator or current assignee.

    WHY: The assignee works the ticket and must be able to move its status
    without being its creator.
    """
    if not is_member(project, user.id):
        return False
    return (
        is_admin(user)
        or ticket.created_by_id == user.id
        or (ticket.assignee_id is not None and ticket.assignee_id == user.id)
    )


def can_delete_ticket(project: Optional[Any], ticket: Any, user: Any) -> bool:
    """Membership, then admin or creator; the assignee may not delete."""
    if not is_member(project, user.id):
        return False
    return is_admin(user) or ticket.created_by_id == user.id


def can_assign_to(user: Any, assignee_id: Any) -> bool:
    """
    Check who a ticket may be assigned to.

    WHAT: Non-admins may only assign tickets to themselves.

    WHY: Handing work to someone else is an admin decision; taking it on
    yourself is not. Clearing the assignee (``assignee_id`` None) is always allowed.
    """
    if assignee_id is None:
        return True
    return is_admin(user) or assignee_id == user.id


# ============================================================================
# Comments
# ============================================================================


def can_create_comment(project: Optional[Any], user: Any) -> bool:
    return has_role(user, UserRole.ADMIN, UserRole.MEMBER) and is_member(project, user.id)


def can_read_comment(project: Optional[Any], user: Any) -> bool:
    return is_member(project, user.id)


def can_delete_comment(project: Optional[Any], comment: Any, user: Any) -> bool:
    """Membership, then admin or the comment author."""
    if not is_member(project, user.id):
        return False
    return is_admin(user) or comment.author_id == user.id
