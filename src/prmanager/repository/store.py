"""SQLAlchemy implementation of the PRManager storage ports.

``SqlAlchemyRepository`` implements ``DirectoryPort``, ``PullRequestPort``
and ``StatsPort`` on top of an async session factory. Every port call runs
in its own session and its own transaction, so a single call (create a pull
request with reviewers, swap a reviewer, bulk-deactivate a team) is atomic,
while sequences of calls made by a service are not.

Domain errors raised by the query functions propagate unchanged and roll
the transaction back. Any other ``SQLAlchemyError`` is logged and re-raised
as ``StorageFailureError``. ``asyncio.CancelledError`` is never caught.

Example:
    >>> repository = SqlAlchemyRepository(session_factory)
    >>> pull_request = await repository.get("pr-1")
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prmanager.database.models.pull_request import PullRequestRecord
from prmanager.database.models.team import UserRecord
from prmanager.database.queries import pull_request as pr_queries
from prmanager.database.queries import stats as stats_queries
from prmanager.database.queries import team as team_queries
from prmanager.entities import (
    PullRequest,
    PullRequestShort,
    Team,
    TeamMember,
    User,
)
from prmanager.errors import (
    PullRequestNotFoundError,
    StorageFailureError,
    TeamNotFoundError,
    UserNotFoundError,
)

logger = structlog.get_logger(__name__)


def _to_user(record: UserRecord) -> User:
    return User(
        id=record.id,
        username=record.username,
        team_name=record.team_name,
        is_active=record.is_active,
    )


def _to_pull_request(record: PullRequestRecord, reviewers: list[str]) -> PullRequest:
    return PullRequest(
        id=record.id,
        name=record.name,
        author_id=record.author_id,
        status=record.status,
        assigned_reviewers=reviewers,
        need_more_reviewers=record.need_more_reviewers,
        created_at=record.created_at,
        merged_at=record.merged_at,
    )


class SqlAlchemyRepository:
    """Directory, pull request and stats storage backed by SQLAlchemy.

    Attributes:
        session_factory: Factory producing AsyncSession instances.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self._logger = logger.bind(component="SqlAlchemyRepository")

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session with a transaction committed on success."""
        try:
            async with self.session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            self._logger.error(
                "storage_failure",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise StorageFailureError(str(exc)) from exc

    # -- DirectoryPort -------------------------------------------------------

    async def get_user(self, user_id: str) -> User:
        async with self._transaction() as session:
            record = await team_queries.get_user(session, user_id)
            if record is None:
                raise UserNotFoundError(f"user {user_id} not found")
            return _to_user(record)

    async def list_active_members(self, team_name: str) -> list[User]:
        async with self._transaction() as session:
            records = await team_queries.list_users_by_team(
                session, team_name, only_active=True
            )
            return [_to_user(record) for record in records]

    async def bulk_set_active(
        self, team_name: str, user_ids: Sequence[str], is_active: bool
    ) -> list[User]:
        async with self._transaction() as session:
            records = await team_queries.bulk_set_users_active(
                session, team_name, user_ids, is_active
            )
            return [_to_user(record) for record in records]

    async def create_team(self, team: Team) -> Team:
        async with self._transaction() as session:
            await team_queries.create_team(session, team.name, team.members)
        return await self.get_team(team.name)

    async def get_team(self, name: str) -> Team:
        async with self._transaction() as session:
            if await team_queries.get_team(session, name) is None:
                raise TeamNotFoundError(f"team {name} not found")
            records = await team_queries.list_users_by_team(session, name)
            return Team(
                name=name,
                members=[
                    TeamMember(
                        user_id=record.id,
                        username=record.username,
                        is_active=record.is_active,
                    )
                    for record in records
                ],
            )

    async def set_user_active(self, user_id: str, is_active: bool) -> User:
        async with self._transaction() as session:
            record = await team_queries.set_user_active(session, user_id, is_active)
            return _to_user(record)

    # -- PullRequestPort -----------------------------------------------------

    async def create(self, pull_request: PullRequest) -> PullRequest:
        async with self._transaction() as session:
            await pr_queries.create_pull_request(
                session,
                pull_request_id=pull_request.id,
                name=pull_request.name,
                author_id=pull_request.author_id,
                reviewer_ids=pull_request.assigned_reviewers,
                need_more_reviewers=pull_request.need_more_reviewers,
            )
        return await self.get(pull_request.id)

    async def get(self, pull_request_id: str) -> PullRequest:
        async with self._transaction() as session:
            record = await pr_queries.get_pull_request(session, pull_request_id)
            if record is None:
                raise PullRequestNotFoundError(
                    f"pull request {pull_request_id} not found"
                )
            reviewers = await pr_queries.list_assigned_reviewers(session, pull_request_id)
            return _to_pull_request(record, reviewers)

    async def set_merged(self, pull_request_id: str) -> PullRequest:
        async with self._transaction() as session:
            record = await pr_queries.set_pull_request_merged(session, pull_request_id)
            reviewers = await pr_queries.list_assigned_reviewers(session, pull_request_id)
            return _to_pull_request(record, reviewers)

    async def list_assigned_reviewers(self, pull_request_id: str) -> list[str]:
        async with self._transaction() as session:
            return await pr_queries.list_assigned_reviewers(session, pull_request_id)

    async def replace_reviewer(
        self,
        pull_request_id: str,
        old_reviewer_id: str,
        new_reviewer_id: str | None,
    ) -> None:
        async with self._transaction() as session:
            await pr_queries.replace_reviewer(
                session, pull_request_id, old_reviewer_id, new_reviewer_id
            )

    async def list_open_pull_requests_by_reviewers(
        self, reviewer_ids: Sequence[str]
    ) -> dict[str, list[PullRequest]]:
        async with self._transaction() as session:
            by_reviewer = await pr_queries.list_open_pull_requests_by_reviewers(
                session, reviewer_ids
            )
            pull_request_ids = list(
                dict.fromkeys(
                    record.id for records in by_reviewer.values() for record in records
                )
            )
            reviewers = await pr_queries.list_reviewers_for_pull_requests(
                session, pull_request_ids
            )
            return {
                reviewer_id: [
                    _to_pull_request(record, list(reviewers.get(record.id, [])))
                    for record in records
                ]
                for reviewer_id, records in by_reviewer.items()
            }

    async def update_need_more_reviewers_flag(
        self, pull_request_id: str, need_more_reviewers: bool
    ) -> None:
        async with self._transaction() as session:
            await pr_queries.update_need_more_reviewers(
                session, pull_request_id, need_more_reviewers
            )

    async def list_by_reviewer(self, user_id: str) -> list[PullRequestShort]:
        async with self._transaction() as session:
            records = await pr_queries.list_pull_requests_by_reviewer(session, user_id)
            return [
                PullRequestShort(
                    id=record.id,
                    name=record.name,
                    author_id=record.author_id,
                    status=record.status,
                )
                for record in records
            ]

    # -- StatsPort -----------------------------------------------------------

    async def count_assignments_by_reviewer(self) -> dict[str, int]:
        async with self._transaction() as session:
            return await stats_queries.count_assignments_by_reviewer(session)

    async def count_open_pull_requests(self) -> int:
        async with self._transaction() as session:
            return await stats_queries.count_open_pull_requests(session)
