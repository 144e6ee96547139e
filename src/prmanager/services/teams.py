"""Team directory operations.

Thin validation layer over ``DirectoryPort`` for creating and reading
teams and toggling individual users. Bulk deactivation is delegated to
``DeactivationCascade`` so that reviews are rebalanced; a direct
``set_user_active`` call does not touch any pull request.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from prmanager.entities import DeactivateResult, Team, User
from prmanager.errors import InvalidInputError
from prmanager.logging import bind_operation_context
from prmanager.repository.ports import DirectoryPort
from prmanager.services.deactivation import DeactivationCascade

logger = structlog.get_logger(__name__)


class TeamService:
    """Creates teams, reads them and manages member activity.

    Attributes:
        directory: Team and user storage.
        cascade: Processor used for bulk deactivation.
    """

    def __init__(self, directory: DirectoryPort, cascade: DeactivationCascade) -> None:
        self.directory = directory
        self.cascade = cascade
        self._logger = logger.bind(component="TeamService")

    async def create_team(self, team: Team) -> Team:
        """Create a team with its members.

        Raises:
            InvalidInputError: If the team name is empty.
            TeamExistsError: If the name is taken.
        """
        if not team.name:
            raise InvalidInputError("team name is required")
        bind_operation_context("create_team", team_name=team.name)

        self._logger.info(
            "creating_team",
            team_name=team.name,
            member_count=len(team.members),
        )
        return await self.directory.create_team(team)

    async def get_team(self, name: str) -> Team:
        """Fetch a team with its members.

        Raises:
            InvalidInputError: If the name is empty.
            TeamNotFoundError: If the team does not exist.
        """
        if not name:
            raise InvalidInputError("team name is required")
        bind_operation_context("get_team", team_name=name)
        return await self.directory.get_team(name)

    async def set_user_active(self, user_id: str, is_active: bool) -> User:
        """Activate or deactivate a single user.

        Raises:
            InvalidInputError: If the id is empty.
            UserNotFoundError: If the user does not exist.
        """
        if not user_id:
            raise InvalidInputError("user id is required")
        bind_operation_context("set_user_active")

        self._logger.info("setting_user_active", user_id=user_id, is_active=is_active)
        return await self.directory.set_user_active(user_id, is_active)

    async def deactivate_team_users(
        self,
        team_name: str,
        user_ids: Sequence[str] | None = None,
    ) -> DeactivateResult:
        """Deactivate members and rebalance their open reviews."""
        return await self.cascade.deactivate_team_users(team_name, user_ids)
