"""Assignment engine: reviewer selection for new pull requests.

When a pull request is created its reviewers are drawn at random from the
author's team: every active member except the author is a candidate, and
up to ``reviewers_per_pull_request`` of them are picked. A pull request
that could not be fully staffed is flagged with ``need_more_reviewers``.

The engine also owns the other pull-request-scoped operations that do not
touch reviewer selection: merging and listing a user's reviews.

Example:
    >>> engine = AssignmentEngine(directory, pull_requests, RandomSource())
    >>> pr = await engine.create_pull_request("pr-1", "Add search", "u1")
    >>> pr.need_more_reviewers
    False
"""

from __future__ import annotations

import structlog

from prmanager.entities import PullRequest, PullRequestShort, PullRequestStatus
from prmanager.errors import (
    AuthorNotFoundError,
    InvalidInputError,
    UserNotFoundError,
)
from prmanager.logging import bind_operation_context
from prmanager.repository.ports import DirectoryPort, PullRequestPort
from prmanager.services.random_source import RandomSource

logger = structlog.get_logger(__name__)

DEFAULT_REVIEWERS_PER_PULL_REQUEST = 2


def needs_more_reviewers(
    reviewer_count: int,
    target: int = DEFAULT_REVIEWERS_PER_PULL_REQUEST,
) -> bool:
    """Return True when a pull request is below its target reviewer count."""
    return reviewer_count < target


class AssignmentEngine:
    """Creates pull requests with randomly assigned reviewers.

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
        self._logger = logger.bind(component="AssignmentEngine")

    async def create_pull_request(
        self,
        pull_request_id: str,
        name: str,
        author_id: str,
    ) -> PullRequest:
        """Create a pull request and assign reviewers from the author's team.

        Args:
            pull_request_id: Caller-supplied unique id.
            name: Pull request title.
            author_id: Id of the authoring user.

        Returns:
            The stored pull request.

        Raises:
            InvalidInputError: If any argument is empty.
            AuthorNotFoundError: If the author does not exist.
            TeamNotFoundError: If the author's team no longer exists.
            PullRequestExistsError: If the id is already taken.
        """
        if not pull_request_id or not name or not author_id:
            raise InvalidInputError("pull request id, name and author id are required")
        bind_operation_context("create_pull_request", pull_request_id=pull_request_id)

        self._logger.debug(
            "creating_pull_request",
            pull_request_id=pull_request_id,
            author_id=author_id,
        )

        try:
            author = await self.directory.get_user(author_id)
        except UserNotFoundError as exc:
            raise AuthorNotFoundError(f"author {author_id} not found") from exc

        members = await self.directory.list_active_members(author.team_name)
        candidates = [member.id for member in members if member.id != author.id]
        selected = self.random_source.pick(candidates, self.reviewers_per_pull_request)

        pull_request = PullRequest(
            id=pull_request_id,
            name=name,
            author_id=author_id,
            status=PullRequestStatus.OPEN,
            assigned_reviewers=selected,
            need_more_reviewers=needs_more_reviewers(
                len(selected), self.reviewers_per_pull_request
            ),
        )
        created = await self.pull_requests.create(pull_request)

        self._logger.info(
            "pull_request_created",
            pull_request_id=created.id,
            reviewers=created.assigned_reviewers,
            need_more_reviewers=created.need_more_reviewers,
        )
        return created

    async def merge_pull_request(self, pull_request_id: str) -> PullRequest:
        """Mark a pull request as merged.

        Merging twice is harmless and keeps the first merge timestamp.

        Raises:
            InvalidInputError: If the id is empty.
            PullRequestNotFoundError: If the pull request does not exist.
        """
        if not pull_request_id:
            raise InvalidInputError("pull request id is required")
        bind_operation_context("merge_pull_request", pull_request_id=pull_request_id)

        self._logger.info("merging_pull_request", pull_request_id=pull_request_id)
        return await self.pull_requests.set_merged(pull_request_id)

    async def get_user_reviews(self, user_id: str) -> list[PullRequestShort]:
        """List the pull requests a user is assigned to review.

        Raises:
            InvalidInputError: If the id is empty.
            UserNotFoundError: If the user does not exist.
        """
        if not user_id:
            raise InvalidInputError("user id is required")
        bind_operation_context("get_user_reviews")

        await self.directory.get_user(user_id)
        return await self.pull_requests.list_by_reviewer(user_id)
