"""Database layer for PRManager.

This module handles database connections, session management, and the
SQLAlchemy schema backing the repository adapter.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    create_schema: Create all tables on an engine.
    Base: SQLAlchemy declarative base for all models.
"""

from prmanager.database.connection import create_schema, get_engine, get_session_factory
from prmanager.database.models import (
    Base,
    PullRequestRecord,
    PullRequestReviewerRecord,
    TeamRecord,
    TimestampMixin,
    UserRecord,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "create_schema",
    "Base",
    "TimestampMixin",
    "TeamRecord",
    "UserRecord",
    "PullRequestRecord",
    "PullRequestReviewerRecord",
]
