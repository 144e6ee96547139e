"""Pull request query functions for PRManager.

Provides async functions for creating pull requests with their initial
reviewers, merging, swapping reviewers and the bulk lookups used by the
deactivation cascade.

These functions never begin or commit a transaction themselves; the caller
owns the session and its transaction boundary.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from datetime import datetime, timezone

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prmanager.database.models.pull_request import (
    PullRequestRecord,
    PullRequestReviewerRecord,
)
from prmanager.database.models.team import UserRecord
from prmanager.entities import PullRequestStatus
from prmanager.errors import (
    AuthorNotFoundError,
    PullRequestExistsError,
    PullRequestNotFoundError,
    ReviewerNotAssignedError,
)

logger = structlog.get_logger(__name__)


async def create_pull_request(
    session: AsyncSession,
    pull_request_id: str,
    name: str,
    author_id: str,
    reviewer_ids: Sequence[str],
    need_more_reviewers: bool,
) -> PullRequestRecord:
    """Create an OPEN pull request and attach its reviewers.

    Args:
        session: Active async database session.
        pull_request_id: Caller-supplied unique id.
        name: Pull request title.
        author_id: Id of the authoring user.
        reviewer_ids: Reviewers to assign, in display order.
        need_more_reviewers: Initial value of the flag.

    Returns:
        The newly created PullRequestRecord.

    Raises:
        PullRequestExistsError: If the id is already taken.
        AuthorNotFoundError: If the author does not exist.
    """
    if await get_pull_request(session, pull_request_id) is not None:
        raise PullRequestExistsError(f"pull request {pull_request_id} already exists")

    if await session.get(UserRecord, author_id) is None:
        raise AuthorNotFoundError(f"author {author_id} not found")

    pull_request = PullRequestRecord(
        id=pull_request_id,
        name=name,
        author_id=author_id,
        status=PullRequestStatus.OPEN,
        need_more_reviewers=need_more_reviewers,
    )
    session.add(pull_request)
    try:
        await session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same id
        raise PullRequestExistsError(
            f"pull request {pull_request_id} already exists"
        ) from exc

    for reviewer_id in reviewer_ids:
        session.add(
            PullRequestReviewerRecord(
                pull_request_id=pull_request_id,
                user_id=reviewer_id,
            )
        )
    await session.flush()
    await session.refresh(pull_request)

    logger.info(
        "pull_request_created",
        pull_request_id=pull_request_id,
        author_id=author_id,
        reviewer_count=len(reviewer_ids),
    )
    return pull_request


async def get_pull_request(
    session: AsyncSession,
    pull_request_id: str,
) -> PullRequestRecord | None:
    """Retrieve a pull request by id.

    Returns:
        The PullRequestRecord if found, None otherwise.
    """
    stmt = (
        select(PullRequestRecord)
        .where(PullRequestRecord.id == pull_request_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_assigned_reviewers(
    session: AsyncSession,
    pull_request_id: str,
) -> list[str]:
    """List the reviewer ids of a pull request in assignment order."""
    stmt = (
        select(PullRequestReviewerRecord.user_id)
        .where(PullRequestReviewerRecord.pull_request_id == pull_request_id)
        .order_by(PullRequestReviewerRecord.id.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_reviewers_for_pull_requests(
    session: AsyncSession,
    pull_request_ids: Sequence[str],
) -> dict[str, list[str]]:
    """List reviewer ids for several pull requests in one query.

    Returns:
        Mapping of pull request id to reviewer ids in assignment order.
        Pull requests without reviewers are absent from the mapping.
    """
    if not pull_request_ids:
        return {}

    stmt = (
        select(
            PullRequestReviewerRecord.pull_request_id,
            PullRequestReviewerRecord.user_id,
        )
        .where(PullRequestReviewerRecord.pull_request_id.in_(list(pull_request_ids)))
        .order_by(PullRequestReviewerRecord.id.asc())
    )
    result = await session.execute(stmt)

    reviewers: dict[str, list[str]] = defaultdict(list)
    for pull_request_id, user_id in result.all():
        reviewers[pull_request_id].append(user_id)
    return dict(reviewers)


async def set_pull_request_merged(
    session: AsyncSession,
    pull_request_id: str,
) -> PullRequestRecord:
    """Mark a pull request as merged.

    Merging is idempotent: merging an already merged pull request keeps
    its original merged_at timestamp.

    Raises:
        PullRequestNotFoundError: If the pull request does not exist.
    """
    pull_request = await get_pull_request(session, pull_request_id)
    if pull_request is None:
        raise PullRequestNotFoundError(f"pull request {pull_request_id} not found")

    if pull_request.status != PullRequestStatus.MERGED:
        pull_request.status = PullRequestStatus.MERGED
    if pull_request.merged_at is None:
        pull_request.merged_at = datetime.now(timezone.utc)
    await session.flush()

    logger.info(
        "pull_request_merged",
        pull_request_id=pull_request_id,
        merged_at=pull_request.merged_at.isoformat(),
    )
    return pull_request


async def replace_reviewer(
    session: AsyncSession,
    pull_request_id: str,
    old_reviewer_id: str,
    new_reviewer_id: str | None,
) -> None:
    """Remove a reviewer and optionally assign a replacement.

    Args:
        session: Active async database session.
        pull_request_id: Pull request to update.
        old_reviewer_id: Reviewer to remove.
        new_reviewer_id: Reviewer to add in its place, or None to only
            remove.

    Raises:
        ReviewerNotAssignedError: If old_reviewer_id is not currently
            assigned to the pull request.
    """
    stmt = delete(PullRequestReviewerRecord).where(
        PullRequestReviewerRecord.pull_request_id == pull_request_id,
        PullRequestReviewerRecord.user_id == old_reviewer_id,
    )
    result = await session.execute(stmt)
    if result.rowcount == 0:
        raise ReviewerNotAssignedError(
            f"reviewer {old_reviewer_id} is not assigned to {pull_request_id}"
        )

    if new_reviewer_id is not None:
        session.add(
            PullRequestReviewerRecord(
                pull_request_id=pull_request_id,
                user_id=new_reviewer_id,
            )
        )
    await session.flush()

    logger.info(
        "reviewer_replaced",
        pull_request_id=pull_request_id,
        old_reviewer_id=old_reviewer_id,
        new_reviewer_id=new_reviewer_id,
    )


async def update_need_more_reviewers(
    session: AsyncSession,
    pull_request_id: str,
    need_more_reviewers: bool,
) -> None:
    """Persist the need_more_reviewers flag of a pull request."""
    stmt = (
        update(PullRequestRecord)
        .where(PullRequestRecord.id == pull_request_id)
        .values(need_more_reviewers=need_more_reviewers)
    )
    await session.execute(stmt)


async def list_pull_requests_by_reviewer(
    session: AsyncSession,
    user_id: str,
) -> list[PullRequestRecord]:
    """List every pull request a user reviews, newest first.

    Pull requests created within the same clock tick are ordered by the most
    recent assignment first.
    """
    stmt = (
        select(PullRequestRecord)
        .join(
            PullRequestReviewerRecord,
            PullRequestReviewerRecord.pull_request_id == PullRequestRecord.id,
        )
        .where(PullRequestReviewerRecord.user_id == user_id)
        .order_by(
            PullRequestRecord.created_at.desc(),
            PullRequestReviewerRecord.id.desc(),
        )
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_open_pull_requests_by_reviewers(
    session: AsyncSession,
    user_ids: Sequence[str],
) -> dict[str, list[PullRequestRecord]]:
    """Find all OPEN pull requests reviewed by any of the given users.

    Returns:
        Mapping of reviewer id to the open pull requests they review.
        Reviewers without open reviews are absent from the mapping.
    """
    if not user_ids:
        return {}

    stmt = (
        select(PullRequestReviewerRecord.user_id, PullRequestRecord)
        .join(
            PullRequestRecord,
            PullRequestRecord.id == PullRequestReviewerRecord.pull_request_id,
        )
        .where(
            PullRequestReviewerRecord.user_id.in_(list(user_ids)),
            PullRequestRecord.status == PullRequestStatus.OPEN,
        )
        .order_by(PullRequestReviewerRecord.id.asc())
    )
    result = await session.execute(stmt)

    by_reviewer: dict[str, list[PullRequestRecord]] = defaultdict(list)
    for user_id, pull_request in result.all():
        by_reviewer[user_id].append(pull_request)
    return dict(by_reviewer)
