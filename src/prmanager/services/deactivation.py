"""Deactivation cascade: repair open pull requests after users go inactive.

Deactivating team members happens in one storage transaction. Repairing
the pull requests they were reviewing does not: each (reviewer, pull
request) pair is repaired with its own storage calls, one after another.
If a repair fails, pull requests repaired earlier in the cascade stay
repaired and the remaining ones are left untouched; the error propagates
to the caller.

Repair rules for one (deactivated reviewer, pull request) pair:

1. Re-read the pull request's current reviewers, because an earlier step
   of the same cascade may already have changed them.
2. Candidates are the team's remaining active members, minus the author,
   minus everyone currently assigned.
3. With a candidate, swap the deactivated reviewer for a random one.
4. Without one, drop the deactivated reviewer and leave the slot empty.
5. Recompute ``need_more_reviewers`` from the resulting reviewer count.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from prmanager.entities import DeactivateResult, PullRequest, User
from prmanager.errors import InvalidInputError, ReviewerNotAssignedError
from prmanager.logging import bind_operation_context
from prmanager.repository.ports import DirectoryPort, PullRequestPort
from prmanager.services.assignment import (
    DEFAULT_REVIEWERS_PER_PULL_REQUEST,
    needs_more_reviewers,
)
from prmanager.services.random_source import RandomSource

logger = structlog.get_logger(__name__)


class DeactivationCascade:
    """Deactivates team members and rebalances their open reviews.

    Attributes:
        directory: Team and user storage.
        pull_requests: Pull request storage.
        random_source: Shared randomness source for reviewer draws.
        reviewers_per_pull_request: Target number of reviewers.
    """

    def __init__(
        self,
        directory: DirectoryPort,
        pull_requests: PullRequestPort,
        random_source: RandomSource,
        reviewers_per_pull_request: int = DEFAULT_REVIEWERS_PER_PULL_REQUEST,
    ) -> None:
        self.directory = directory
        self.pull_requests = pull_requests
        self.random_source = random_source
        self.reviewers_per_pull_request = reviewers_per_pull_request
        self._logger = logger.bind(component="DeactivationCascade")

    async def deactivate_team_users(
        self,
        team_name: str,
        user_ids: Sequence[str] | None = None,
    ) -> DeactivateResult:
        """Deactivate team members and repair every open pull request they review.

        Args:
            team_name: Team whose members are deactivated.
            user_ids: Members to deactivate. None or empty deactivates the
                whole team.

        Returns:
            The deactivated users and the final state of each affected
            open pull request, listed once even when several of its
            reviewers were deactivated.

        Raises:
            InvalidInputError: If team_name is empty.
            TeamNotFoundError: If the team does not exist.
            UserNotFoundError: If a named user is not a member of the team.
        """
        if not team_name:
            raise InvalidInputError("team name is required")
        bind_operation_context("deactivate_team_users", team_name=team_name)

        requested = list(user_ids or [])
        self._logger.info(
            "deactivating_team_users",
            team_name=team_name,
            requested_count=len(requested),
        )

        deactivated = await self.directory.bulk_set_active(team_name, requested, False)
        affected = await self._repair_open_reviews(team_name, deactivated)

        self._logger.info(
            "deactivation_cascade_completed",
            team_name=team_name,
            deactivated_count=len(deactivated),
            affected_pull_requests=len(affected),
        )
        return DeactivateResult(users=deactivated, affected_pull_requests=affected)

    async def _repair_open_reviews(
        self,
        team_name: str,
        deactivated: list[User],
    ) -> list[PullRequest]:
        reviewer_ids = [user.id for user in deactivated]
        open_reviews = await self.pull_requests.list_open_pull_requests_by_reviewers(
            reviewer_ids
        )
        if not open_reviews:
            return []

        active_members = await self.directory.list_active_members(team_name)
        active_ids = [member.id for member in active_members]

        affected_ids: dict[str, None] = {}
        for reviewer_id, pull_requests in open_reviews.items():
            for pull_request in pull_requests:
                affected_ids[pull_request.id] = None
                await self._repair(pull_request, reviewer_id, active_ids)

        return [await self.pull_requests.get(pull_request_id) for pull_request_id in affected_ids]

    async def _repair(
        self,
        pull_request: PullRequest,
        reviewer_id: str,
        active_ids: list[str],
    ) -> None:
        current = await self.pull_requests.list_assigned_reviewers(pull_request.id)
        assigned = set(current)
        assigned.discard(reviewer_id)

        pool = [
            member_id
            for member_id in active_ids
            if member_id != pull_request.author_id and member_id not in assigned
        ]

        if pool:
            new_reviewer_id = self.random_source.choice(pool)
            await self.pull_requests.replace_reviewer(
                pull_request.id, reviewer_id, new_reviewer_id
            )
            self._logger.info(
                "deactivated_reviewer_replaced",
                pull_request_id=pull_request.id,
                old_reviewer_id=reviewer_id,
                new_reviewer_id=new_reviewer_id,
            )
        else:
            try:
                await self.pull_requests.replace_reviewer(pull_request.id, reviewer_id, None)
            except ReviewerNotAssignedError:
                self._logger.debug(
                    "deactivated_reviewer_already_removed",
                    pull_request_id=pull_request.id,
                    reviewer_id=reviewer_id,
                )
            else:
                self._logger.info(
                    "deactivated_reviewer_dropped",
                    pull_request_id=pull_request.id,
                    reviewer_id=reviewer_id,
                )

        remaining = await self.pull_requests.list_assigned_reviewers(pull_request.id)
        await self.pull_requests.update_need_more_reviewers_flag(
            pull_request.id,
            needs_more_reviewers(len(remaining), self.reviewers_per_pull_request),
        )
