"""Pull request and reviewer assignment models for PRManager.

Reviewer assignments live in their own table so that a reviewer can be
swapped with a single delete and insert. The surrogate integer key on
``pull_request_reviewers`` records assignment order for display.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from prmanager.database.models.base import Base, TimestampMixin
from prmanager.entities import PullRequestStatus


class PullRequestRecord(TimestampMixin, Base):
    """A pull request awaiting or finished with review.

    Attributes:
        id: Caller-supplied pull request id (primary key).
        name: Pull request title.
        author_id: Foreign key to the authoring user.
        status: OPEN or MERGED.
        need_more_reviewers: True while below the target reviewer count.
        merged_at: Set exactly once, when the pull request is merged.
        created_at: Row creation timestamp (from TimestampMixin).
    """

    __tablename__ = "pull_requests"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    status: Mapped[PullRequestStatus] = mapped_column(
        Enum(PullRequestStatus, name="pull_request_status"),
        default=PullRequestStatus.OPEN,
        nullable=False,
        index=True,
    )
    need_more_reviewers: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    merged_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )


class PullRequestReviewerRecord(Base):
    """Assignment of one reviewer to one pull request.

    Attributes:
        id: Autoincrement key, doubles as assignment order.
        pull_request_id: Foreign key to the pull request.
        user_id: Foreign key to the reviewing user.
        assigned_at: Timestamp of the assignment.
    """

    __tablename__ = "pull_request_reviewers"
    __table_args__ = (
        UniqueConstraint("pull_request_id", "user_id", name="uq_pull_request_reviewer"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pull_request_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
