"""
User model.

WHAT: Accounts, their role, and the transient one-time code state.

WHY: Users register with email + password, confirm ownership of the email with a
one-time code, and only then may log in. The role decides coarse access:
admins create projects and assign tickets, members work inside the projects
they belong to.
"""

import enum
from sqlalchemy import Column, String, Enum, Boolean, DateTime

from bugtracker.models.base import Base, TimestampMixin, PrimaryKeyMixin


class UserRole(str, enum.Enum):
    """User role enumeration."""

    ADMIN = "admin"
    MEMBER = "member"


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User model representing individuals who use the tracker.

    HOW: ``otp_hash`` and ``otp_expires_at`` are set while a code is
    outstanding and cleared once it is used. Emails are stored trimmed and lowercased; the unique index is therefore
    effectively case-insensitive.
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    hashed_password = Column(String(255), nullable=False)

    role = Column(
        Enum(UserRole, name="userrole", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.MEMBER,
    )

    is_verified = Column(Boolean, default=False, nullable=False)

    # Outstanding one-time code: HMAC digest and expiry, both cleared once used
    otp_hash = Column(String(64), nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)

    def clear_otp(self) -> None:
        self.otp_hash = None
        self.otp_expires_at = None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
