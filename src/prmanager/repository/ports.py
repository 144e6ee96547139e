"""Storage contracts consumed by the PRManager services.

The services depend only on these three narrow protocols, never on a
database session, so the assignment rules stay storage-agnostic. The
concrete adapter is wired in at composition time (see ``prmanager.app``).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from prmanager.entities import PullRequest, PullRequestShort, Team, User


@runtime_checkable
class DirectoryPort(Protocol):
    """Team and user persistence."""

    async def get_user(self, user_id: str) -> User:
        """Resolve a user. Raises UserNotFoundError."""
        ...

    async def list_active_members(self, team_name: str) -> list[User]:
        """List active members of a team. Raises TeamNotFoundError."""
        ...

    async def bulk_set_active(
        self, team_name: str, user_ids: Sequence[str], is_active: bool
    ) -> list[User]:
        """Set the active flag for team members (all of them if user_ids is empty).

        Raises TeamNotFoundError, or UserNotFoundError for a named id
        that is not a member of the team.
        """
        ...

    async def create_team(self, team: Team) -> Team:
        """Create a team and upsert its members. Raises TeamExistsError."""
        ...

    async def get_team(self, name: str) -> Team:
        """Fetch a team with its members. Raises TeamNotFoundError."""
        ...

    async def set_user_active(self, user_id: str, is_active: bool) -> User:
        """Set one user's active flag. Raises UserNotFoundError."""
        ...


@runtime_checkable
class PullRequestPort(Protocol):
    """Pull request and reviewer assignment persistence."""

    async def create(self, pull_request: PullRequest) -> PullRequest:
        """Store a new pull request with its reviewers.

        Raises PullRequestExistsError or AuthorNotFoundError.
        """
        ...

    async def get(self, pull_request_id: str) -> PullRequest:
        """Fetch a pull request. Raises PullRequestNotFoundError."""
        ...

    async def set_merged(self, pull_request_id: str) -> PullRequest:
        """Mark a pull request merged. Raises PullRequestNotFoundError."""
        ...

    async def list_assigned_reviewers(self, pull_request_id: str) -> list[str]:
        """Current reviewer ids in assignment order."""
        ...

    async def replace_reviewer(
        self,
        pull_request_id: str,
        old_reviewer_id: str,
        new_reviewer_id: str | None,
    ) -> None:
        """Atomically swap (or only remove) a reviewer.

        Raises ReviewerNotAssignedError if old_reviewer_id is not assigned.
        """
        ...

    async def list_open_pull_requests_by_reviewers(
        self, reviewer_ids: Sequence[str]
    ) -> dict[str, list[PullRequest]]:
        """Open pull requests keyed by each reviewer who reviews them."""
        ...

    async def update_need_more_reviewers_flag(
        self, pull_request_id: str, need_more_reviewers: bool
    ) -> None:
        """Persist the need_more_reviewers flag."""
        ...

    async def list_by_reviewer(self, user_id: str) -> list[PullRequestShort]:
        """Pull requests a user reviews, newest first."""
        ...


@runtime_checkable
class StatsPort(Protocol):
    """Read-only aggregates over the pull request store."""

    async def count_assignments_by_reviewer(self) -> dict[str, int]:
        ...

    async def count_open_pull_requests(self) -> int:
        ...
