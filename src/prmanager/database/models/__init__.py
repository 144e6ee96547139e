"""SQLAlchemy ORM models for PRManager.

This module defines the database schema: teams, users, pull requests and
pull request reviewer assignments.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from prmanager.database.models.base import Base, TimestampMixin
from prmanager.database.models.pull_request import (
    PullRequestRecord,
    PullRequestReviewerRecord,
)
from prmanager.database.models.team import TeamRecord, UserRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "TeamRecord",
    "UserRecord",
    "PullRequestRecord",
    "PullRequestReviewerRecord",
]
