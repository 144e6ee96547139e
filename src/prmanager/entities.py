"""Domain entities returned by PRManager operations.

These are plain Pydantic models, decoupled from the ORM tables in
``prmanager.database.models``. The repository adapter converts rows into
these entities so the services never see a database session.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field


class PullRequestStatus(str, enum.Enum):
    """Lifecycle status of a pull request.

    The only allowed transition is OPEN -> MERGED.
    """

    OPEN = "OPEN"
    MERGED = "MERGED"


class User(BaseModel):
    """A user together with the team they belong to."""

    id: str
    username: str
    team_name: str
    is_active: bool = True


class TeamMember(BaseModel):
    """A member entry as listed inside a team."""

    user_id: str
    username: str
    is_active: bool = True


class Team(BaseModel):
    """A team and its members, ordered by username."""

    name: str
    members: list[TeamMember] = Field(default_factory=list)


class PullRequest(BaseModel):
    """A pull request with its assigned reviewers.

    Attributes:
        id: Caller-supplied unique identifier.
        name: Pull request title.
        author_id: Id of the authoring user.
        status: OPEN or MERGED.
        assigned_reviewers: Reviewer ids in assignment order.
        need_more_reviewers: True while fewer than the target number of
            reviewers are assigned.
        created_at: Creation timestamp.
        merged_at: Set once, when the pull request is merged.
    """

    id: str
    name: str
    author_id: str
    status: PullRequestStatus = PullRequestStatus.OPEN
    assigned_reviewers: list[str] = Field(default_factory=list)
    need_more_reviewers: bool = False
    created_at: datetime | None = None
    merged_at: datetime | None = None


class PullRequestShort(BaseModel):
    """Compact pull request view used in per-user review listings."""

    id: str
    name: str
    author_id: str
    status: PullRequestStatus


class Stats(BaseModel):
    """Reviewer load rollup.

    Attributes:
        assignments_by_user: Reviewer id to number of assigned reviews.
        open_pull_requests: Number of pull requests with status OPEN.
    """

    assignments_by_user: dict[str, int] = Field(default_factory=dict)
    open_pull_requests: int = 0


class ReassignResult(BaseModel):
    """Outcome of a reviewer reassignment."""

    pull_request: PullRequest
    replaced_by: str


class DeactivateResult(BaseModel):
    """Outcome of a team deactivation cascade.

    Attributes:
        users: Users that were deactivated.
        affected_pull_requests: Final state of every open pull request that
            had a deactivated reviewer, each listed once.
    """

    users: list[User] = Field(default_factory=list)
    affected_pull_requests: list[PullRequest] = Field(default_factory=list)
