"""Team and user models for PRManager.

A team is identified by its unique name. Every user belongs to exactly
one team at a time, and only active users are eligible as reviewers.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from prmanager.database.models.base import Base, TimestampMixin


class TeamRecord(TimestampMixin, Base):
    """A team of engineers.

    Attributes:
        name: Unique team name (primary key).
        created_at: Row creation timestamp (from TimestampMixin).
        updated_at: Last modification timestamp (from TimestampMixin).
    """

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(Text, primary_key=True)


class UserRecord(TimestampMixin, Base):
    """A user and their team membership.

    Attributes:
        id: Caller-supplied user id (primary key).
        username: Display name.
        team_name: Foreign key to the user's team.
        is_active: Whether the user can be picked as a reviewer.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    team_name: Mapped[str] = mapped_column(
        ForeignKey("teams.name"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
