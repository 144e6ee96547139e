"""Shared fixtures for service unit tests.

``FakeStore`` is a dictionary-backed implementation of the three storage
ports. It follows the same error contract as ``SqlAlchemyRepository`` so
the services can be exercised without a database.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

import pytest

from prmanager.entities import (
    PullRequest,
    PullRequestShort,
    PullRequestStatus,
    Team,
    TeamMember,
    User,
)
from prmanager.errors import (
    AuthorNotFoundError,
    PullRequestExistsError,
    PullRequestNotFoundError,
    ReviewerNotAssignedError,
    TeamExistsError,
    TeamNotFoundError,
    UserNotFoundError,
)
from prmanager.services.random_source import RandomSource


class FakeStore:
    """In-memory directory, pull request and stats storage."""

    def __init__(self) -> None:
        self.teams: set[str] = set()
        self.users: dict[str, User] = {}
        self.pull_requests: dict[str, PullRequest] = {}

    # -- helpers -------------------------------------------------------------

    def add_team(self, name: str, *members: str, inactive: Sequence[str] = ()) -> None:
        self.teams.add(name)
        for user_id in members:
            self.users[user_id] = User(
                id=user_id,
                username=user_id,
                team_name=name,
                is_active=user_id not in inactive,
            )

    def add_pull_request(
        self,
        pull_request_id: str,
        author_id: str,
        reviewers: Sequence[str],
        status: PullRequestStatus = PullRequestStatus.OPEN,
    ) -> PullRequest:
        pull_request = PullRequest(
            id=pull_request_id,
            name=f"PR {pull_request_id}",
            author_id=author_id,
            status=status,
            assigned_reviewers=list(reviewers),
            need_more_reviewers=len(reviewers) < 2,
            created_at=datetime.now(timezone.utc),
        )
        self.pull_requests[pull_request_id] = pull_request
        return pull_request

    # -- DirectoryPort -------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        if user_id not in self.users:
            raise UserNotFoundError(f"user {user_id} not found")
        return self.users[user_id].model_copy()

    async def list_active_members(self, team_name: str) -> list[User]:
        if team_name not in self.teams:
            raise TeamNotFoundError(f"team {team_name} not found")
        return [
            user.model_copy()
            for user in sorted(self.users.values(), key=lambda u: u.username)
            if user.team_name == team_name and user.is_active
        ]

    async def bulk_set_active(
        self, team_name: str, user_ids: Sequence[str], is_active: bool
    ) -> list[User]:
        if team_name not in self.teams:
            raise TeamNotFoundError(f"team {team_name} not found")
        members = [u for u in self.users.values() if u.team_name == team_name]
        if user_ids:
            member_ids = {u.id for u in members}
            if any(user_id not in member_ids for user_id in user_ids):
                raise UserNotFoundError("user not found in team")
            members = [u for u in members if u.id in user_ids]
        for user in members:
            user.is_active = is_active
        return [u.model_copy() for u in members]

    async def create_team(self, team: Team) -> Team:
        if team.name in self.teams:
            raise TeamExistsError(f"team {team.name} already exists")
        self.teams.add(team.name)
        for member in team.members:
            self.users[member.user_id] = User(
                id=member.user_id,
                username=member.username,
                team_name=team.name,
                is_active=member.is_active,
            )
        return await self.get_team(team.name)

    async def get_team(self, name: str) -> Team:
        if name not in self.teams:
            raise TeamNotFoundError(f"team {name} not found")
        return Team(
            name=name,
            members=[
                TeamMember(user_id=u.id, username=u.username, is_active=u.is_active)
                for u in sorted(self.users.values(), key=lambda u: u.username)
                if u.team_name == name
            ],
        )

    async def set_user_active(self, user_id: str, is_active: bool) -> User:
        if user_id not in self.users:
            raise UserNotFoundError(f"user {user_id} not found")
        self.users[user_id].is_active = is_active
        return self.users[user_id].model_copy()

    # -- PullRequestPort -----------------------------------------------------

    async def create(self, pull_request: PullRequest) -> PullRequest:
        if pull_request.id in self.pull_requests:
            raise PullRequestExistsError(f"pull request {pull_request.id} already exists")
        if pull_request.author_id not in self.users:
            raise AuthorNotFoundError(f"author {pull_request.author_id} not found")
        stored = pull_request.model_copy(
            update={"created_at": datetime.now(timezone.utc)}, deep=True
        )
        self.pull_requests[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get(self, pull_request_id: str) -> PullRequest:
        if pull_request_id not in self.pull_requests:
            raise PullRequestNotFoundError(f"pull request {pull_request_id} not found")
        return self.pull_requests[pull_request_id].model_copy(deep=True)

    async def set_merged(self, pull_request_id: str) -> PullRequest:
        pull_request = self.pull_requests.get(pull_request_id)
        if pull_request is None:
            raise PullRequestNotFoundError(f"pull request {pull_request_id} not found")
        pull_request.status = PullRequestStatus.MERGED
        if pull_request.merged_at is None:
            pull_request.merged_at = datetime.now(timezone.utc)
        return pull_request.model_copy(deep=True)

    async def list_assigned_reviewers(self, pull_request_id: str) -> list[str]:
        return list(self.pull_requests[pull_request_id].assigned_reviewers)

    async def replace_reviewer(
        self,
        pull_request_id: str,
        old_reviewer_id: str,
        new_reviewer_id: str | None,
    ) -> None:
        reviewers = self.pull_requests[pull_request_id].assigned_reviewers
        if old_reviewer_id not in reviewers:
            raise ReviewerNotAssignedError(f"reviewer {old_reviewer_id} not assigned")
        reviewers.remove(old_reviewer_id)
        if new_reviewer_id is not None:
            reviewers.append(new_reviewer_id)

    async def list_open_pull_requests_by_reviewers(
        self, reviewer_ids: Sequence[str]
    ) -> dict[str, list[PullRequest]]:
        result: dict[str, list[PullRequest]] = {}
        for pull_request in self.pull_requests.values():
            if pull_request.status != PullRequestStatus.OPEN:
                continue
            for reviewer_id in pull_request.assigned_reviewers:
                if reviewer_id in reviewer_ids:
                    result.setdefault(reviewer_id, []).append(
                        pull_request.model_copy(deep=True)
                    )
        return result

    async def update_need_more_reviewers_flag(
        self, pull_request_id: str, need_more_reviewers: bool
    ) -> None:
        self.pull_requests[pull_request_id].need_more_reviewers = need_more_reviewers

    async def list_by_reviewer(self, user_id: str) -> list[PullRequestShort]:
        return [
            PullRequestShort(
                id=pr.id, name=pr.name, author_id=pr.author_id, status=pr.status
            )
            for pr in self.pull_requests.values()
            if user_id in pr.assigned_reviewers
        ]

    # -- StatsPort -----------------------------------------------------------

    async def count_assignments_by_reviewer(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for pull_request in self.pull_requests.values():
            for reviewer_id in pull_request.assigned_reviewers:
                counts[reviewer_id] = counts.get(reviewer_id, 0) + 1
        return counts

    async def count_open_pull_requests(self) -> int:
        return sum(
            1 for pr in self.pull_requests.values() if pr.status == PullRequestStatus.OPEN
        )


@pytest.fixture
def store() -> FakeStore:
    """Create an empty in-memory store."""
    return FakeStore()


@pytest.fixture
def random_source() -> RandomSource:
    """Create a seeded randomness source."""
    return RandomSource(seed=1234)
