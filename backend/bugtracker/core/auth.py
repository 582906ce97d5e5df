"""
Password hashing and session token utilities.

WHY: This module provides the authentication primitives:
1. Password hashing with bcrypt (OWASP A07: Authentication Failures)
2. Session token generation and verification

HOW: Passwords are hashed through passlib. Session tokens are HS256 JWTs
carrying a single ``user_id`` claim plus the standard time claims.
"""

from datetime import datetime, timedelta
from typing import Dict, Any, Optional
from jose import jwt, JWTError
from passlib.context import CryptContext

from bugtracker.core.config import settings
from bugtracker.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# Password Hashing
# ============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    WHY: bcrypt is built for password storage:
    - Adaptive cost factor
    - Automatic per-hash salt
    - Resistance to rainbow table and brute-force attacks

    Args:
        password: Plain text password

    Returns:
        Hashed password (60 characters, includes salt and cost factor)

    Example:
        >>> hashed = hash_password("MyPassword123!")
        >>> len(hashed)
        60
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its hash.

    WHY: passlib compares in constant time, so response timing does not
    reveal how much of a guess was right.

    Args:
        plain_password: Password provided by user
        hashed_password: Hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return pwd_context.verify(plain_password, hashed_password)


# ============================================================================
# JWT Token Management
# ============================================================================


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed session token.

    Token includes:
    - Caller data (``user_id``)
    - exp: Expiration time (default: JWT_EXPIRATION_MINUTES, 30 days)
    - iat: Issued at time
    - nbf: Not before time

    Args:
        data: Claims to encode; values must be JSON serializable
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string

    Example:
        >>> token = create_access_token({"user_id": "0b6f..."})
        >>> len(token) > 100
        True
    """
    to_encode = data.copy()

    now = datetime.utcnow()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "nbf": now,
        }
    )

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a session token.

    WHAT: Checks signature, expiry and not-before, then returns the claims.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed or signature invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )

    except jwt.ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(
            message="Invalid token",
            error=str(e),
        )
