"""
Authentication API endpoints.

WHAT: Registration with email verification, login, and password reset
through one-time codes.

WHY: These are the only unauthenticated endpoints, and each one either
checks a credential or sends an email. They are rate limited by
RateLimitMiddleware and never reveal more than the flow needs (the forgot
password answer is the same for unknown emails).

HOW: Thin handlers over AuthService. Failures are raised as AppException
subclasses and rendered by the exception handlers.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from bugtracker.db.session import get_db
from bugtracker.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterSendOTPRequest,
    ResendOTPRequest,
    ResetPasswordRequest,
    VerifyOTPRequest,
)
from bugtracker.schemas.common import MessageResponse
from bugtracker.services.auth_service import AuthService


router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register/send-otp",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Start registration",
    description="Create or refresh an unverified account and email a one-time code",
)
async def register_send_otp(
    data: RegisterSendOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Start registration.

    WHAT: Creates (or refreshes) an unverified account and emails a code.

    WHY: The account cannot log in until the code comes back through
    /register/verify-otp, which proves the address belongs to the user.

    Raises:
        AccountAlreadyVerifiedError (400): A verified account owns the email
        EmailServiceError (502): The code could not be sent
    """
    message = await AuthService(db).register_send_otp(data.name, data.email, data.password)
    return MessageResponse(message=message)


@router.post(
    "/register/verify-otp",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Complete registration",
)
async def verify_otp_and_register(
    data: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Complete registration with the emailed code.

    Raises:
        UserNotFoundError (404): No account for the email
        AccountAlreadyVerifiedError (400): Already verified
        OTPInvalidError (400): Code absent, wrong or expired
    """
    message = await AuthService(db).verify_otp_and_register(data.email, data.otp)
    return MessageResponse(message=message)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Login user",
    description="Authenticate a verified user with email and password, returns JWT token",
)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Login user.

    WHAT: Verifies credentials and returns a JWT with the user's id, name,
    email and role.

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        LoginResponse with access_token

    Raises:
        AuthenticationError (401): Unknown email, unverified account or wrong password
    """
    return await AuthService(db).login(credentials.email, credentials.password)


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request password reset code",
    description="Always answers the same way, whether or not the account exists",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Request a password reset code.

    WHY: The answer never says whether the email is registered, so this
    endpoint cannot be used to enumerate accounts.
    """
    message = await AuthService(db).forgot_password_send_otp(data.email)
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset password with code",
)
async def reset_password(
    data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Set a new password with the emailed reset code.

    Raises:
        UserNotFoundError (404): No account for the email
        OTPInvalidError (400): Code absent, wrong or expired
    """
    message = await AuthService(db).reset_password_with_otp(data.email, data.otp, data.new_password)
    return MessageResponse(message=message)


@router.post(
    "/resend-otp",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Resend a one-time code",
)
async def resend_otp(
    data: ResendOTPRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Issue a fresh code for registration or reset.

    WHY: Codes expire after OTP_EXPIRATION_MINUTES; a new one replaces the
    old, which stops working.

    Raises:
        UserNotFoundError (404): No account for the email
        AccountAlreadyVerifiedError (400): ``register`` on a verified account
    """
    message = await AuthService(db).resend_otp(data.email, data.type)
    return MessageResponse(message=message)
