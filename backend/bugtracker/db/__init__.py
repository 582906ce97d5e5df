"""
Database package.

WHAT: Async engine, session factory and the get_db dependency.
"""

from bugtracker.db.session import AsyncSessionLocal, engine, get_db
from bugtracker.models.base import Base

__all__ = ["Base", "AsyncSessionLocal", "engine", "get_db"]
