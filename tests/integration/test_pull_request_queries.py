"""Integration tests for pull request and stats query functions.

Tests pull request creation with reviewers, merging, reviewer swaps and
the bulk lookups used when rebalancing reviews.
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from prmanager.database.queries.pull_request import (
    create_pull_request,
    get_pull_request,
    list_assigned_reviewers,
    list_open_pull_requests_by_reviewers,
    list_pull_requests_by_reviewer,
    list_reviewers_for_pull_requests,
    replace_reviewer,
    set_pull_request_merged,
    update_need_more_reviewers,
)
from prmanager.database.queries.stats import (
    count_assignments_by_reviewer,
    count_open_pull_requests,
)
from prmanager.database.queries.team import create_team
from prmanager.entities import PullRequestStatus, TeamMember
from prmanager.errors import (
    AuthorNotFoundError,
    PullRequestExistsError,
    PullRequestNotFoundError,
    ReviewerNotAssignedError,
)


async def _seed_backend(session: AsyncSession) -> None:
    await create_team(
        session,
        "backend",
        [TeamMember(user_id=user_id, username=user_id) for user_id in ("u1", "u2", "u3", "u4")],
    )


@pytest.mark.asyncio
async def test_create_pull_request_with_reviewers(db_session: AsyncSession) -> None:
    """Test that a new pull request is OPEN with reviewers in order."""
    await _seed_backend(db_session)

    pull_request = await create_pull_request(
        db_session,
        pull_request_id="pr-1",
        name="Add search",
        author_id="u1",
        reviewer_ids=["u3", "u2"],
        need_more_reviewers=False,
    )

    assert pull_request.id == "pr-1"
    assert pull_request.status == PullRequestStatus.OPEN
    assert pull_request.need_more_reviewers is False
    assert pull_request.created_at is not None
    assert pull_request.merged_at is None
    assert await list_assigned_reviewers(db_session, "pr-1") == ["u3", "u2"]


@pytest.mark.asyncio
async def test_create_pull_request_without_reviewers(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)

    pull_request = await create_pull_request(db_session, "pr-1", "Solo", "u1", [], True)

    assert pull_request.need_more_reviewers is True
    assert await list_assigned_reviewers(db_session, "pr-1") == []


@pytest.mark.asyncio
async def test_create_pull_request_duplicate(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "First", "u1", ["u2"], True)

    with pytest.raises(PullRequestExistsError):
        await create_pull_request(db_session, "pr-1", "Second", "u1", ["u3"], True)


@pytest.mark.asyncio
async def test_create_pull_request_unknown_author(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)

    with pytest.raises(AuthorNotFoundError):
        await create_pull_request(db_session, "pr-1", "Orphan", "ghost", [], True)
    assert await get_pull_request(db_session, "pr-1") is None


@pytest.mark.asyncio
async def test_merge_is_idempotent(db_session: AsyncSession) -> None:
    """Test that merging twice keeps the first merge timestamp."""
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Change", "u1", ["u2"], True)

    merged = await set_pull_request_merged(db_session, "pr-1")
    first_merged_at = merged.merged_at
    assert merged.status == PullRequestStatus.MERGED
    assert first_merged_at is not None

    merged_again = await set_pull_request_merged(db_session, "pr-1")
    assert merged_again.status == PullRequestStatus.MERGED
    assert merged_again.merged_at is not None
    assert merged_again.merged_at.replace(tzinfo=None) == first_merged_at.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_merge_missing(db_session: AsyncSession) -> None:
    with pytest.raises(PullRequestNotFoundError):
        await set_pull_request_merged(db_session, "pr-404")


@pytest.mark.asyncio
async def test_replace_reviewer(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Change", "u1", ["u2", "u3"], False)

    await replace_reviewer(db_session, "pr-1", "u2", "u4")

    assert await list_assigned_reviewers(db_session, "pr-1") == ["u3", "u4"]


@pytest.mark.asyncio
async def test_replace_reviewer_remove_only(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Change", "u1", ["u2", "u3"], False)

    await replace_reviewer(db_session, "pr-1", "u3", None)

    assert await list_assigned_reviewers(db_session, "pr-1") == ["u2"]


@pytest.mark.asyncio
async def test_replace_reviewer_not_assigned(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Change", "u1", ["u2"], True)

    with pytest.raises(ReviewerNotAssignedError):
        await replace_reviewer(db_session, "pr-1", "u4", "u3")
    assert await list_assigned_reviewers(db_session, "pr-1") == ["u2"]


@pytest.mark.asyncio
async def test_update_need_more_reviewers(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Change", "u1", ["u2", "u3"], False)

    await update_need_more_reviewers(db_session, "pr-1", True)

    pull_request = await get_pull_request(db_session, "pr-1")
    assert pull_request is not None
    assert pull_request.need_more_reviewers is True


@pytest.mark.asyncio
async def test_list_pull_requests_by_reviewer(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "First", "u1", ["u2", "u3"], False)
    await create_pull_request(db_session, "pr-2", "Second", "u3", ["u2"], True)
    await create_pull_request(db_session, "pr-3", "Third", "u2", ["u4"], True)

    reviewed = await list_pull_requests_by_reviewer(db_session, "u2")

    assert sorted(pr.id for pr in reviewed) == ["pr-1", "pr-2"]
    assert await list_pull_requests_by_reviewer(db_session, "u1") == []


@pytest.mark.asyncio
async def test_list_pull_requests_by_reviewer_newest_first(db_session: AsyncSession) -> None:
    """Test that pull requests created in the same second list the later one first."""
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "First", "u1", ["u2"], True)
    await create_pull_request(db_session, "pr-2", "Second", "u1", ["u2"], True)
    await create_pull_request(db_session, "pr-3", "Third", "u1", ["u2"], True)

    reviewed = await list_pull_requests_by_reviewer(db_session, "u2")

    assert [pr.id for pr in reviewed] == ["pr-3", "pr-2", "pr-1"]


@pytest.mark.asyncio
async def test_list_open_pull_requests_by_reviewers(db_session: AsyncSession) -> None:
    """Test that merged pull requests and other reviewers are excluded."""
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "Open", "u1", ["u2", "u3"], False)
    await create_pull_request(db_session, "pr-2", "Merged", "u1", ["u2"], True)
    await create_pull_request(db_session, "pr-3", "Other", "u1", ["u4"], True)
    await set_pull_request_merged(db_session, "pr-2")

    by_reviewer = await list_open_pull_requests_by_reviewers(db_session, ["u2", "u3"])

    assert set(by_reviewer) == {"u2", "u3"}
    assert [pr.id for pr in by_reviewer["u2"]] == ["pr-1"]
    assert [pr.id for pr in by_reviewer["u3"]] == ["pr-1"]
    assert await list_open_pull_requests_by_reviewers(db_session, []) == {}


@pytest.mark.asyncio
async def test_list_reviewers_for_pull_requests(db_session: AsyncSession) -> None:
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "First", "u1", ["u2", "u3"], False)
    await create_pull_request(db_session, "pr-2", "Second", "u1", [], True)

    reviewers = await list_reviewers_for_pull_requests(db_session, ["pr-1", "pr-2"])

    assert reviewers == {"pr-1": ["u2", "u3"]}
    assert await list_reviewers_for_pull_requests(db_session, []) == {}


@pytest.mark.asyncio
async def test_stats_queries(db_session: AsyncSession) -> None:
    """Test that assignment counts include merged pull requests."""
    await _seed_backend(db_session)
    await create_pull_request(db_session, "pr-1", "First", "u1", ["u2", "u3"], False)
    await create_pull_request(db_session, "pr-2", "Second", "u1", ["u2"], True)
    await set_pull_request_merged(db_session, "pr-2")

    assert await count_assignments_by_reviewer(db_session) == {"u2": 2, "u3": 1}
    assert await count_open_pull_requests(db_session) == 1
