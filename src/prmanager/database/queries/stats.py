"""Aggregate query functions for reviewer load statistics."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from prmanager.database.models.pull_request import (
    PullRequestRecord,
    PullRequestReviewerRecord,
)
from prmanager.entities import PullRequestStatus


async def count_assignments_by_reviewer(session: AsyncSession) -> dict[str, int]:
    """Count reviewer assignments per user across all pull requests.

    Merged pull requests are included; only the assignment rows matter.

    Returns:
        Mapping of reviewer id to number of assigned pull requests.
    """
    stmt = (
        select(PullRequestReviewerRecord.user_id, func.count())
        .group_by(PullRequestReviewerRecord.user_id)
        .order_by(PullRequestReviewerRecord.user_id.asc())
    )
    result = await session.execute(stmt)
    return {user_id: count for user_id, count in result.all()}


async def count_open_pull_requests(session: AsyncSession) -> int:
    """Count pull requests with status OPEN."""
    stmt = (
        select(func.count())
        .select_from(PullRequestRecord)
        .where(PullRequestRecord.status == PullRequestStatus.OPEN)
    )
    result = await session.execute(stmt)
    return int(result.scalar_one())
