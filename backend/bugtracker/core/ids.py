"""
Identifier helpers.

WHAT: Parsing and validation of resource identifiers (UUIDs).

WHY: Path and body identifiers are checked for well-formedness before any
lookup, so a malformed id is a 400 with a clear message and never reaches
the database.
"""

import uuid
from typing import Any, Optional

from bugtracker.core.exceptions import InputError


def to_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return ``value`` as a UUID, or None when it is not a well-formed id."""
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        return None


def is_valid_id(value: Any) -> bool:
    return to_uuid(value) is not None


def parse_id(value: Any, resource: str) -> uuid.UUID:
    """
    Parse an identifier or fail with a 400.

    Args:
        value: Raw identifier from the path or body
        resource: Resource name used in the error message ("project", ...)

    Returns:
        Parsed UUID

    Raises:
        InputError: If the identifier is malformed

    Example:
        >>> parse_id("not-an-id", "project")
        Traceback (most recent call last):
        ...
        InputError: Invalid project ID
    """
    parsed = to_uuid(value)
    if parsed is None:
        raise InputError(message=f"Invalid {resource} ID", field=f"{resource}_id")
    return parsed
