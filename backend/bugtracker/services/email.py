"""
Email service for sending one-time codes.

WHAT: Sends the two transactional emails the accounts flow needs: the
registration code ("Verify Your Email") and the password reset code
("Password Reset OTP").

WHY: Emailing a code is how a user proves control of an address, both when
registering and when recovering a password.

HOW: A provider abstraction with two implementations:
- ResendProvider: Resend HTTP API through httpx, used when RESEND_API_KEY is set
- MockEmailProvider: logs and keeps a short in-memory history, used otherwise

Design decisions:
- Single attempt: the send is awaited inside the request; a failure raises
  EmailServiceError (502) and fails that request, nothing is retried
- The code never goes into logs or message metadata
"""

import html
import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, Deque
from urllib.parse import urlparse

import httpx

from bugtracker.core.config import settings
from bugtracker.core.exceptions import EmailServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

# Messages the mock provider keeps; older ones are dropped
MOCK_EMAIL_HISTORY = 50


# ============================================================================
# Email Types and Messages
# ============================================================================


class EmailType(str, Enum):
    """
    Types of transactional emails.

    WHY: The type selects the subject line and tags log records.
    """

    VERIFICATION = "verification"
    """Registration code."""

    PASSWORD_RESET = "password_reset"
    """Password reset code."""


@dataclass
class EmailMessage:
    """An email to be sent."""

    to_email: str
    """Recipient email address."""

    subject: str
    """Email subject line."""

    html_content: str
    """HTML email body."""

    text_content: Optional[str] = None
    """Plain text fallback."""

    from_email: Optional[str] = None
    """Sender email (defaults to configured sender)."""

    email_type: EmailType = EmailType.VERIFICATION
    """Type of email for logging."""

    metadata: Optional[Dict[str, Any]] = None
    """Additional metadata for logging. Never holds the code."""


@dataclass
class EmailResult:
    """Result of an email send operation."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    provider: Optional[str] = None


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.

    WHY: Provider abstraction allows:
    - Switching providers through configuration
    - Testing with a mock provider or an httpx mock transport
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """True if API keys/credentials are present."""
        pass


class ResendProvider(EmailProvider):
    """
    Resend email provider implementation.

    WHAT: Posts messages to the Resend REST API.

    HOW: One httpx.AsyncClient per send; the transport can be injected so
    tests never reach the network.
    """

    def __init__(self, api_key: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize Resend provider.

        Args:
            api_key: Resend API key (defaults to settings)
            transport: Optional httpx transport, for tests
        """
        self._api_key = api_key or settings.RESEND_API_KEY
        self._transport = transport
        self._default_from = settings.EMAIL_FROM or f"Bug Tracker <noreply@{self._get_domain()}>"

    def _get_domain(self) -> str:
        """Get domain from FRONTEND_URL for default sender."""
        parsed = urlparse(settings.FRONTEND_URL)
        return parsed.hostname or "localhost"

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via Resend API.

        Transport errors and non-2xx responses are reported as a failed
        result; nothing is retried.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        if not self.is_configured():
            return EmailResult(
                success=False,
                error="Resend API key not configured",
                provider="resend",
            )

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "from": message.from_email or self._default_from,
                        "to": [message.to_email],
                        "subject": message.subject,
                        "html": message.html_content,
                        "text": message.text_content,
                    },
                    timeout=30.0,
                )
        except httpx.HTTPError as e:
            logger.error(f"Resend send error: {e}")
            return EmailResult(success=False, error=str(e), provider="resend")

        if response.status_code in (200, 201):
            data = response.json()
            return EmailResult(
                success=True,
                message_id=data.get("id"),
                provider="resend",
            )

        return EmailResult(
            success=False,
            error=f"Resend API error: {response.status_code} - {response.text}",
            provider="resend",
        )


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    WHAT: Logs a summary (recipient, subject, type) instead of sending.

    WHY: Lets the accounts flow run locally and in tests without a
    provider account.

    HOW: Keeps the last MOCK_EMAIL_HISTORY messages in ``sent_emails`` so
    tests can read a code back. The history is bounded, since message
    bodies carry plaintext codes and a long-running dev server would
    otherwise hold every one of them.
    """

    sent_emails: Deque[EmailMessage] = deque(maxlen=MOCK_EMAIL_HISTORY)
    """Class-level history of recent messages, newest last."""

    def is_configured(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        logger.info(
            f"[MOCK EMAIL] To: {message.to_email}, "
            f"Subject: {message.subject}, "
            f"Type: {message.email_type.value}"
        )

        MockEmailProvider.sent_emails.append(message)

        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.utcnow().timestamp()}",
            provider="mock",
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails history (for test cleanup)."""
        cls.sent_emails.clear()


# ============================================================================
# Email Templates
# ============================================================================


class EmailTemplates:
    """
    Email template generator.

    WHAT: Subjects plus HTML and plain text bodies for the one-time code
    emails.

    HOW: Static methods return (subject, html, text) tuples; user-supplied
    names are HTML-escaped.
    """

    VERIFICATION_SUBJECT = "Verify Your Email"
    PASSWORD_RESET_SUBJECT = "Password Reset OTP"

    @staticmethod
    def _base_template(content: str, title: str = "") -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>{title}</title>
            <style>
                body {{
                    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;
                    line-height: 1.6;
                    color: #333;
                }}
                .code {{
                    background-color: #f3f4f6;
                    padding: 12px 16px;
                    border-radius: 6px;
                    font-family: monospace;
                    font-size: 22px;
                    letter-spacing: 4px;
                    text-align: center;
                }}
            </style>
        </head>
        <body>
            {content}
            <p style="color: #6b7280;">If you didn't request this email, please ignore it.</p>
        </body>
        </html>
        """

    @classmethod
    def otp_email(cls, subject: str, user_name: str, code: str) -> tuple[str, str, str]:
        """
        Build a one-time code email.

        Args:
            subject: Subject line
            user_name: Recipient's display name
            code: The one-time code

        Returns:
            Tuple of (subject, html_content, text_content)
        """
        minutes = settings.OTP_EXPIRATION_MINUTES
        content = f"""
        <p>Hi {html.escape(user_name)},</p>
        <p>Your OTP is:</p>
        <div class="code">{code}</div>
        <p>It expires in {minutes} minutes.</p>
        """
        text_content = f"Hi {user_name},\n\nYour OTP is {code}. It expires in {minutes} minutes.\n"
        return subject, cls._base_template(content, title=subject), text_content

    @classmethod
    def verification_email(cls, user_name: str, code: str) -> tuple[str, str, str]:
        return cls.otp_email(cls.VERIFICATION_SUBJECT, user_name, code)

    @classmethod
    def password_reset_email(cls, user_name: str, code: str) -> tuple[str, str, str]:
        return cls.otp_email(cls.PASSWORD_RESET_SUBJECT, user_name, code)


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service.

    WHAT: Builds one-time code emails and hands them to the provider.

    WHY: Keeps template and provider details out of AuthService, which
    only asks for "send this code to this address".

    HOW: Picks ResendProvider when RESEND_API_KEY is set, MockEmailProvider
    otherwise, unless a provider is passed in.
    """

    def __init__(self, provider: Optional[EmailProvider] = None):
        """
        Initialize email service.

        Args:
            provider: Email provider to use (auto-detected if not provided)
        """
        if provider:
            self._provider = provider
        elif settings.RESEND_API_KEY:
            self._provider = ResendProvider()
        else:
            logger.warning("No email provider configured, using mock provider")
            self._provider = MockEmailProvider()

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    async def send_email(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        logger.info(
            f"Sending {message.email_type.value} email to {message.to_email}",
            extra={
                "email_type": message.email_type.value,
                "to": message.to_email,
            },
        )

        result = await self._provider.send(message)

        if result.success:
            logger.info(
                f"Email sent successfully: {result.message_id}",
                extra={
                    "message_id": result.message_id,
                    "provider": result.provider,
                },
            )
        else:
            logger.error(
                f"Email send failed: {result.error}",
                extra={
                    "email_type": message.email_type.value,
                    "to": message.to_email,
                    "error": result.error,
                },
            )

        return result

    async def send_otp_email(
        self,
        to_email: str,
        user_name: str,
        code: str,
        email_type: EmailType,
    ) -> EmailResult:
        """
        Send a one-time code.

        WHAT: Renders the verification or reset template and sends it once.

        WHY: Callers need a hard failure, not a result flag: a user who never
        receives the code cannot finish the flow, so the request fails with
        502 instead of reporting success.

        Args:
            to_email: Recipient email address
            user_name: User's display name
            code: The one-time code
            email_type: VERIFICATION or PASSWORD_RESET (selects the subject)

        Returns:
            EmailResult of the successful send

        Raises:
            EmailServiceError: If the provider reports failure
        """
        if email_type == EmailType.PASSWORD_RESET:
            subject, html_content, text_content = EmailTemplates.password_reset_email(user_name, code)
        else:
            subject, html_content, text_content = EmailTemplates.verification_email(user_name, code)

        message = EmailMessage(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
            email_type=email_type,
            metadata={"user_name": user_name},
        )

        result = await self.send_email(message)
        if not result.success:
            raise EmailServiceError(
                provider=result.provider,
                email_type=email_type.value,
            )
        return result


# ============================================================================
# Module-level convenience functions
# ============================================================================


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """
    Get or create the global email service instance.

    WHY: The provider is chosen once per process; tests reset the
    module-level instance to pick up changed settings.

    Returns:
        EmailService instance
    """
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
