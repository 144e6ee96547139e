"""Reassignment coordinator: swap one named reviewer for a fresh one.

The replacement is drawn from the *departing reviewer's* team, not from
the pull request author's team. When the two teams differ this can pull
in a reviewer from outside the author's team; the rule is kept as is
until product decides otherwise.

Reassignment is a read-then-write sequence with no lock held between the
read of the pull request and the swap. If a concurrent actor removes the
old reviewer in between, the swap fails with ``ReviewerNotAssignedError``.
"""

from __future__ import annotations

import structlog

from prmanager.entities import PullRequest, PullRequestStatus, ReassignResult
from prmanager.errors import (
    InvalidInputError,
    NoCandidateError,
    PullRequestMergedError,
    ReviewerNotAssignedError,
)
from prmanager.logging import bind_operation_context
from prmanager.repository.ports import DirectoryPort, PullRequestPort
from prmanager.services.assignment import (
    DEFAULT_REVIEWERS_PER_PULL_REQUEST,
    needs_more_reviewers,
)
from prmanager.services.random_source import RandomSource

logger = structlog.get_logger(__name__)


class ReassignmentCoordinator:
    """Replaces an assigned reviewer with a randomly chosen teammate.

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
        self._logger = logger.bind(component="ReassignmentCoordinator")

    async def reassign_reviewer(
        self,
        pull_request_id: str,
        old_reviewer_id: str,
    ) -> ReassignResult:
        """Swap ``old_reviewer_id`` for a new reviewer on an open pull request.

        Candidates are the active members of the old reviewer's team,
        excluding the old reviewer, the author and anyone already assigned.

        Args:
            pull_request_id: Pull request to update.
            old_reviewer_id: Currently assigned reviewer to replace.

        Returns:
            The updated pull request and the id of the new reviewer.

        Raises:
            InvalidInputError: If either argument is empty.
            PullRequestNotFoundError: If the pull request does not exist.
            PullRequestMergedError: If the pull request is merged.
            ReviewerNotAssignedError: If old_reviewer_id is not assigned,
                including when a concurrent change removed it first.
            UserNotFoundError: If the old reviewer no longer exists.
            NoCandidateError: If nobody is eligible to take over.
        """
        if not pull_request_id or not old_reviewer_id:
            raise InvalidInputError("pull request id and old reviewer id are required")
        bind_operation_context("reassign_reviewer", pull_request_id=pull_request_id)

        self._logger.debug(
            "reassigning_reviewer",
            pull_request_id=pull_request_id,
            old_reviewer_id=old_reviewer_id,
        )

        pull_request = await self.pull_requests.get(pull_request_id)

        if pull_request.status == PullRequestStatus.MERGED:
            raise PullRequestMergedError(f"pull request {pull_request_id} is merged")

        if old_reviewer_id not in pull_request.assigned_reviewers:
            raise ReviewerNotAssignedError(
                f"reviewer {old_reviewer_id} is not assigned to {pull_request_id}"
            )

        new_reviewer_id = await self._find_replacement(pull_request, old_reviewer_id)

        await self.pull_requests.replace_reviewer(
            pull_request_id, old_reviewer_id, new_reviewer_id
        )
        updated = await self._refresh_reviewer_flag(pull_request_id)

        self._logger.info(
            "reviewer_reassigned",
            pull_request_id=pull_request_id,
            old_reviewer_id=old_reviewer_id,
            new_reviewer_id=new_reviewer_id,
        )
        return ReassignResult(pull_request=updated, replaced_by=new_reviewer_id)

    async def _find_replacement(
        self,
        pull_request: PullRequest,
        old_reviewer_id: str,
    ) -> str:
        reviewer = await self.directory.get_user(old_reviewer_id)
        members = await self.directory.list_active_members(reviewer.team_name)

        excluded = {old_reviewer_id, pull_request.author_id, *pull_request.assigned_reviewers}
        available = [member.id for member in members if member.id not in excluded]

        if not available:
            self._logger.warning(
                "no_replacement_candidate",
                pull_request_id=pull_request.id,
                old_reviewer_id=old_reviewer_id,
                team_name=reviewer.team_name,
            )
            raise NoCandidateError(
                f"no active replacement for {old_reviewer_id} in team {reviewer.team_name}"
            )

        return self.random_source.choice(available)

    async def _refresh_reviewer_flag(self, pull_request_id: str) -> PullRequest:
        updated = await self.pull_requests.get(pull_request_id)
        need_more = needs_more_reviewers(
            len(updated.assigned_reviewers), self.reviewers_per_pull_request
        )
        await self.pull_requests.update_need_more_reviewers_flag(pull_request_id, need_more)
        return updated.model_copy(update={"need_more_reviewers": need_more})
