"""Storage ports and their SQLAlchemy adapter.

Public API:
    DirectoryPort: Team and user persistence contract.
    PullRequestPort: Pull request persistence contract.
    StatsPort: Aggregate read contract.
    SqlAlchemyRepository: Adapter implementing all three ports.
"""

from prmanager.repository.ports import DirectoryPort, PullRequestPort, StatsPort
from prmanager.repository.store import SqlAlchemyRepository

__all__ = [
    "DirectoryPort",
    "PullRequestPort",
    "StatsPort",
    "SqlAlchemyRepository",
]
