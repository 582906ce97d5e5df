"""
One-time code generation and verification.

WHAT: Generates, hashes and checks the short numeric codes emailed during
registration and password reset.

WHY: A code proves control of an email address. It must be:
1. Unpredictable (drawn from ``secrets``, not ``random``)
2. Useless if the users table leaks (only an HMAC-SHA256 digest is stored)
3. Short-lived (OTP_EXPIRATION_MINUTES, 10 by default)

HOW: The plain code exists just long enough to be emailed. Verification
hashes the supplied code and compares digests with ``hmac.compare_digest``.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

from bugtracker.core.config import settings


def generate_otp(length: Optional[int] = None) -> str:
    """
    Generate a numeric one-time code.

    Args:
        length: Number of digits (default: OTP_LENGTH, 6)

    Returns:
        Code as a string, leading zeros preserved
    """
    length = length or settings.OTP_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp(code: str) -> str:
    """
    Keyed digest of a code, as stored on the user row.

    WHY: Keyed with OTP_SECRET, so a leaked digest cannot be brute-forced
    over the 10^6 possible codes without the key.
    """
    return hmac.new(
        settings.otp_secret.encode("utf-8"),
        code.strip().encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def otp_expiry(now: Optional[datetime] = None) -> datetime:
    """Expiry for a code issued at ``now``."""
    now = now or datetime.utcnow()
    return now + timedelta(minutes=settings.OTP_EXPIRATION_MINUTES)


def is_otp_valid(
    otp_hash: Optional[str],
    expires_at: Optional[datetime],
    supplied: Optional[str],
    now: Optional[datetime] = None,
) -> bool:
    """
    Check a supplied code against the stored digest and expiry.

    WHAT: A code is valid iff a digest and an expiry are stored, the expiry
    has not passed, and the supplied code hashes to the stored digest.

    HOW: Constant-time digest comparison; the expiry boundary itself is
    still valid (``expires_at >= now``).

    Args:
        otp_hash: Stored digest (None when no code is outstanding)
        expires_at: Stored expiry (naive UTC)
        supplied: Code entered by the user
        now: Current time, injectable for tests

    Returns:
        True if the code is valid
    """
    if not otp_hash or expires_at is None or not supplied:
        return False

    now = now or datetime.utcnow()
    if expires_at < now:
        return False

    return hmac.compare_digest(otp_hash, hash_otp(supplied))
