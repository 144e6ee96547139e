"""Reviewer assignment and rebalancing services.

This package contains the rules that decide who reviews a pull request:

- RandomSource: thread-safe uniform sampling of candidates
- AssignmentEngine: initial reviewers for new pull requests, merge, user reviews
- ReassignmentCoordinator: swap one named reviewer for a fresh one
- DeactivationCascade: deactivate team members and repair their open reviews
- StatsAggregator: reviewer load rollup
- TeamService: team creation, lookup and member activity
"""

from prmanager.services.assignment import AssignmentEngine, needs_more_reviewers
from prmanager.services.deactivation import DeactivationCascade
from prmanager.services.random_source import RandomSource
from prmanager.services.reassignment import ReassignmentCoordinator
from prmanager.services.stats import StatsAggregator
from prmanager.services.teams import TeamService

__all__ = [
    "RandomSource",
    "AssignmentEngine",
    "needs_more_reviewers",
    "ReassignmentCoordinator",
    "DeactivationCascade",
    "StatsAggregator",
    "TeamService",
]
