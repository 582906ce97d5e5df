"""
Base model class for all SQLAlchemy models.

WHY: Centralizing common model functionality (UUID primary key, timestamps)
in mixins keeps every table consistent and reduces duplication.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with typed mappings and async support.
    """

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.

    WHY: Every list in the API is ordered newest first by created_at, so
    the column is indexed.
    """

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PrimaryKeyMixin:
    """
    Mixin to add a UUID primary key to models.

    WHY: UUIDs do not reveal how many projects or tickets exist and are
    generated client-side, so they are known before flush.
    """

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
