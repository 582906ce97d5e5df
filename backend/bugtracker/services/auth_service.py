"""
Authentication service: registration, login and password reset.

WHAT: The email + OTP account flows behind the /auth endpoints.

WHY: An account is only usable once its owner has proven control of the
email address, and a forgotten password is recovered the same way. Both
flows share one mechanism: a short-lived code, hashed at rest, sent by
email.

HOW: Account states:
    registration:   unregistered -> pending-otp -> verified
    password reset: verified -> otp-issued -> verified

Only the transient OTP fields change during a reset. A pending account can be
re-registered (name and password overwritten) until it is verified.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.core.auth import create_access_token, hash_password, verify_password
from bugtracker.core.config import settings
from bugtracker.core.exceptions import (
    AccountAlreadyVerifiedError,
    AuthenticationError,
    OTPInvalidError,
    UserNotFoundError,
)
from bugtracker.core.otp import generate_otp, hash_otp, is_otp_valid, otp_expiry
from bugtracker.dao.user import UserDAO, normalize_email
from bugtracker.models.user import User
from bugtracker.schemas.auth import LoginResponse, OTPPurpose
from bugtracker.services.email import EmailService, EmailType, get_email_service

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the email exists, OTP has been sent"


class AuthService:
    """
    Service for the email + OTP account flows.

    WHY: The routers stay thin; every rule about codes, verification and
    credentials lives here and is tested without HTTP.

    HOW: The clock is injected, so expiry can be tested at exact offsets
    from the moment a code was issued.

    Example:
        service = AuthService(db)
        await service.register_send_otp("Ada", "ada@example.com", "secret1")
        await service.verify_otp_and_register("ada@example.com", "123456")
        token = await service.login("ada@example.com", "secret1")
    """

    def __init__(
        self,
        session: AsyncSession,
        email_service: Optional[EmailService] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize AuthService.

        Args:
            session: Async database session
            email_service: Email sender (defaults to the global service)
            clock: Source of the current naive-UTC time, injectable for tests
        """
        self.session = session
        self.users = UserDAO(User, session)
        self.email_service = email_service or get_email_service()
        self._clock = clock

    async def _issue_otp(self, user: User, email_type: EmailType) -> None:
        """Store a fresh code on the user and email it."""
        code = generate_otp()
        user.otp_hash = hash_otp(code)
        user.otp_expires_at = otp_expiry(self._clock())
        await self.session.flush()

        await self.email_service.send_otp_email(
            to_email=user.email,
            user_name=user.name,
            code=code,
            email_type=email_type,
        )
        logger.info(f"OTP issued for user {user.id} ({email_type.value})")

    def _check_otp(self, user: User, otp: str) -> None:
        """Raise OTPInvalidError unless ``otp`` matches the stored, unexpired code."""
        if not is_otp_valid(user.otp_hash, user.otp_expires_at, otp, now=self._clock()):
            raise OTPInvalidError()

    # =========================================================================
    # Registration
    # =========================================================================

    async def register_send_otp(self, name: str, email: str, password: str) -> str:
        """
        Create or overwrite an unverified account and email a code.

        WHY: A pending account is overwritten rather than rejected, so a user
        who mistyped their password or lost the first code can simply
        register again.

        Raises:
            AccountAlreadyVerifiedError: If a verified account owns the email
            EmailServiceError: If the code could not be sent
        """
        email = normalize_email(email)
        user = await self.users.get_by_email(email)

        if user is not None and user.is_verified:
            raise AccountAlreadyVerifiedError(message="User already exists and is verified")

        if user is None:
            user = await self.users.create_user(
                email=email,
                hashed_password=hash_password(password),
                name=name,
            )
        else:
            user.name = name
            user.hashed_password = hash_password(password)

        await self._issue_otp(user, EmailType.VERIFICATION)
        return "OTP sent to email"

    async def verify_otp_and_register(self, email: str, otp: str) -> str:
        """
        Mark an account verified when the code matches and is unexpired.

        Raises:
            UserNotFoundError: No account for the email
            AccountAlreadyVerifiedError: Account already verified
            OTPInvalidError: Code absent, wrong or expired
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFoundError()

        if user.is_verified:
            raise AccountAlreadyVerifiedError()

        self._check_otp(user, otp)

        user.is_verified = True
        user.clear_otp()
        await self.session.flush()

        logger.info(f"Account verified: user {user.id}")
        return "Account verified successfully"

    # =========================================================================
    # Login
    # =========================================================================

    async def login(self, email: str, password: str) -> LoginResponse:
        """
        Authenticate a verified user and issue a session token.

        WHAT: Returns the token plus id, name, email and role.

        WHY: Unverified accounts cannot log in; the email was never proven.

        Raises:
            AuthenticationError: Unknown email, unverified account or wrong password
        """
        user = await self.users.get_by_email(email)

        if user is None or not user.is_verified:
            raise AuthenticationError(message="Invalid credentials or account not verified")

        if not verify_password(password, user.hashed_password):
            raise AuthenticationError(message="Invalid credentials")

        token = create_access_token({"user_id": str(user.id)})

        return LoginResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            access_token=token,
            token_type="bearer",
            expires_in=settings.JWT_EXPIRATION_MINUTES * 60,
        )

    # =========================================================================
    # Password reset
    # =========================================================================

    async def forgot_password_send_otp(self, email: str) -> str:
        """
        Email a reset code if the account exists.

        WHY: The response is the same whether or not it does, so this
        endpoint cannot be used to enumerate registered emails.
        """
        user = await self.users.get_by_email(email)
        if user is not None:
            await self._issue_otp(user, EmailType.PASSWORD_RESET)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password_with_otp(self, email: str, otp: str, new_password: str) -> str:
        """
        Replace the password when the code matches and is unexpired.

        Raises:
            UserNotFoundError: No account for the email
            OTPInvalidError: Code absent, wrong or expired
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFoundError()

        self._check_otp(user, otp)

        user.hashed_password = hash_password(new_password)
        user.clear_otp()
        await self.session.flush()

        logger.info(f"Password reset for user {user.id}")
        return "Password reset successful"

    async def resend_otp(self, email: str, purpose: OTPPurpose) -> str:
        """
        Regenerate and resend a code for either flow.

        Raises:
            UserNotFoundError: No account for the email
            AccountAlreadyVerifiedError: ``register`` requested for a verified account
        """
        user = await self.users.get_by_email(email)
        if user is None:
            raise UserNotFoundError(message="No account found")

        if purpose == OTPPurpose.REGISTER and user.is_verified:
            raise AccountAlreadyVerifiedError()

        email_type = EmailType.VERIFICATION if purpose == OTPPurpose.REGISTER else EmailType.PASSWORD_RESET
        await self._issue_otp(user, email_type)
        return "OTP resent successfully"
