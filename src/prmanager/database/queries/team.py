"""Team and user query functions for PRManager.

Provides async functions for creating teams, resolving users, listing team
members and toggling the active flag of one or many users.

These functions never begin or commit a transaction themselves; the caller
owns the session and its transaction boundary.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prmanager.database.models.team import TeamRecord, UserRecord
from prmanager.entities import TeamMember
from prmanager.errors import TeamExistsError, TeamNotFoundError, UserNotFoundError

logger = structlog.get_logger(__name__)


async def create_team(
    session: AsyncSession,
    name: str,
    members: Sequence[TeamMember],
) -> TeamRecord:
    """Create a team and upsert its members.

    A member whose user id already exists is moved to the new team and
    takes the given username and active flag.

    Args:
        session: Active async database session.
        name: Unique team name.
        members: Members to place in the team.

    Returns:
        The newly created TeamRecord.

    Raises:
        TeamExistsError: If a team with this name already exists.
    """
    if await get_team(session, name) is not None:
        raise TeamExistsError(f"team {name} already exists")

    team = TeamRecord(name=name)
    session.add(team)
    try:
        await session.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent insert of the same name
        raise TeamExistsError(f"team {name} already exists") from exc

    for member in members:
        user = await session.get(UserRecord, member.user_id)
        if user is None:
            session.add(
                UserRecord(
                    id=member.user_id,
                    username=member.username,
                    team_name=name,
                    is_active=member.is_active,
                )
            )
        else:
            user.username = member.username
            user.team_name = name
            user.is_active = member.is_active

    await session.flush()

    logger.info("team_created", team_name=name, member_count=len(members))
    return team


async def get_team(
    session: AsyncSession,
    name: str,
) -> TeamRecord | None:
    """Retrieve a team by name.

    Returns:
        The TeamRecord if found, None otherwise.
    """
    stmt = select(TeamRecord).where(TeamRecord.name == name)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user(
    session: AsyncSession,
    user_id: str,
) -> UserRecord | None:
    """Retrieve a user by id.

    Returns:
        The UserRecord if found, None otherwise.
    """
    stmt = select(UserRecord).where(UserRecord.id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_users_by_team(
    session: AsyncSession,
    team_name: str,
    only_active: bool = False,
) -> list[UserRecord]:
    """List the members of a team, ordered by username.

    An empty result is only returned for a team that exists; a missing
    team is reported as an error so callers can tell the two apart.

    Args:
        session: Active async database session.
        team_name: Team to list.
        only_active: If True, only active members are returned.

    Returns:
        List of matching UserRecord instances.

    Raises:
        TeamNotFoundError: If the team does not exist.
    """
    stmt = select(UserRecord).where(UserRecord.team_name == team_name)
    if only_active:
        stmt = stmt.where(UserRecord.is_active.is_(True))
    stmt = stmt.order_by(UserRecord.username.asc(), UserRecord.id.asc())

    result = await session.execute(stmt)
    users = list(result.scalars().all())

    if not users and await get_team(session, team_name) is None:
        raise TeamNotFoundError(f"team {team_name} not found")

    return users


async def set_user_active(
    session: AsyncSession,
    user_id: str,
    is_active: bool,
) -> UserRecord:
    """Set the active flag of a single user.

    Raises:
        UserNotFoundError: If the user does not exist.
    """
    user = await get_user(session, user_id)
    if user is None:
        raise UserNotFoundError(f"user {user_id} not found")

    user.is_active = is_active
    await session.flush()

    logger.info("user_active_updated", user_id=user_id, is_active=is_active)
    return user


async def bulk_set_users_active(
    session: AsyncSession,
    team_name: str,
    user_ids: Sequence[str],
    is_active: bool,
) -> list[UserRecord]:
    """Set the active flag for several members of one team.

    Args:
        session: Active async database session.
        team_name: Team whose members are updated.
        user_ids: Members to update. An empty sequence updates every
            member of the team.
        is_active: New value of the active flag.

    Returns:
        The updated UserRecord instances.

    Raises:
        TeamNotFoundError: If the team does not exist.
        UserNotFoundError: If an explicitly named id is not a member of
            the team.
    """
    if await get_team(session, team_name) is None:
        raise TeamNotFoundError(f"team {team_name} not found")

    requested = list(dict.fromkeys(user_ids))

    stmt = select(UserRecord).where(UserRecord.team_name == team_name)
    if requested:
        stmt = stmt.where(UserRecord.id.in_(requested))
    stmt = stmt.order_by(UserRecord.username.asc(), UserRecord.id.asc())

    result = await session.execute(stmt)
    users = list(result.scalars().all())

    if requested:
        found = {user.id for user in users}
        missing = [user_id for user_id in requested if user_id not in found]
        if missing:
            raise UserNotFoundError(
                f"users {', '.join(missing)} not found in team {team_name}"
            )

    for user in users:
        user.is_active = is_active
    await session.flush()

    logger.info(
        "team_users_active_updated",
        team_name=team_name,
        count=len(users),
        is_active=is_active,
    )
    return users
