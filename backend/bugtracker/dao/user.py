"""
User Data Access Object.

WHY: UserDAO owns every user query, so email normalization (trim and
lowercase) is applied in one place for lookups and writes alike.
"""

from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.dao.base import BaseDAO
from bugtracker.models.user import User, UserRole


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address; every lookup and write uses this form."""
    return email.strip().lower()


class UserDAO(BaseDAO[User]):
    """
    Data Access Object for User model.

    WHAT: Email lookups and user creation on top of BaseDAO.

    WHY: Registration, login and password reset all start from an email
    address typed by a user; the case-insensitive lookup keeps
    "Ada@Example.com" and "ada@example.com" the same account.
    """

    def __init__(self, model: type[User], session: AsyncSession):
        """Initialize UserDAO with model and session."""
        super().__init__(model, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address.

        Comparison is case-insensitive and ignores surrounding whitespace.

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise

        Example:
            >>> user = await user_dao.get_by_email(" Admin@Example.com ")
            >>> user.email
            'admin@example.com'
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        """
        Check if email already exists in database.

        Args:
            email: Email address to check

        Returns:
            True if email exists, False otherwise
        """
        result = await self.session.execute(
            select(User.id).where(func.lower(User.email) == normalize_email(email)).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create_user(
        self,
        email: str,
        hashed_password: str,
        name: str,
        role: UserRole = UserRole.MEMBER,
        is_verified: bool = False,
    ) -> User:
        """
        Create a new user with a normalized email.

        Args:
            email: Email address (normalized before storing)
            hashed_password: bcrypt hash
            name: Display name
            role: User role (default: member)
            is_verified: Whether the email is already confirmed

        Returns:
            Created User instance
        """
        return await self.create(
            email=normalize_email(email),
            hashed_password=hashed_password,
            name=name,
            role=role,
            is_verified=is_verified,
        )
