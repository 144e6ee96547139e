"""Error kinds raised by PRManager operations.

Every failure an operation reports belongs to the closed ``ErrorKind`` set.
Each kind has its own exception class so callers can either catch a
specific class or catch ``PRManagerError`` and match on ``err.kind``.

Anything the storage layer raises that has no domain meaning is wrapped in
``StorageFailureError`` with the original exception chained as its cause.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Closed set of failure kinds."""

    INVALID_INPUT = "INVALID_INPUT"
    TEAM_NOT_FOUND = "TEAM_NOT_FOUND"
    TEAM_EXISTS = "TEAM_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    AUTHOR_NOT_FOUND = "AUTHOR_NOT_FOUND"
    PULL_REQUEST_NOT_FOUND = "PULL_REQUEST_NOT_FOUND"
    PULL_REQUEST_EXISTS = "PULL_REQUEST_EXISTS"
    PULL_REQUEST_MERGED = "PULL_REQUEST_MERGED"
    REVIEWER_NOT_ASSIGNED = "REVIEWER_NOT_ASSIGNED"
    NO_CANDIDATE = "NO_CANDIDATE"
    STORAGE_FAILURE = "STORAGE_FAILURE"


class PRManagerError(Exception):
    """Base class for all PRManager failures.

    Only the concrete subclasses carry a kind; the base class is never
    raised on its own.

    Attributes:
        kind: The error kind this exception represents.
        message: Human-readable description.
    """

    kind: ErrorKind
    default_message: str = "operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(PRManagerError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "invalid input"


class TeamNotFoundError(PRManagerError):
    kind = ErrorKind.TEAM_NOT_FOUND
    default_message = "team not found"


class TeamExistsError(PRManagerError):
    kind = ErrorKind.TEAM_EXISTS
    default_message = "team exists"


class UserNotFoundError(PRManagerError):
    kind = ErrorKind.USER_NOT_FOUND
    default_message = "user not found"


class AuthorNotFoundError(PRManagerError):
    kind = ErrorKind.AUTHOR_NOT_FOUND
    default_message = "author not found"


class PullRequestNotFoundError(PRManagerError):
    kind = ErrorKind.PULL_REQUEST_NOT_FOUND
    default_message = "pull request not found"


class PullRequestExistsError(PRManagerError):
    kind = ErrorKind.PULL_REQUEST_EXISTS
    default_message = "pull request exists"


class PullRequestMergedError(PRManagerError):
    kind = ErrorKind.PULL_REQUEST_MERGED
    default_message = "pull request merged"


class ReviewerNotAssignedError(PRManagerError):
    kind = ErrorKind.REVIEWER_NOT_ASSIGNED
    default_message = "reviewer not assigned"


class NoCandidateError(PRManagerError):
    kind = ErrorKind.NO_CANDIDATE
    default_message = "no candidate available"


class StorageFailureError(PRManagerError):
    """Unmapped failure from the persistence layer.

    The underlying exception is available as ``__cause__``.
    """

    kind = ErrorKind.STORAGE_FAILURE
    default_message = "storage failure"
