"""Stats aggregator: read-only rollup of reviewer load."""

from __future__ import annotations

import structlog

from prmanager.entities import Stats
from prmanager.logging import bind_operation_context
from prmanager.repository.ports import StatsPort

logger = structlog.get_logger(__name__)


class StatsAggregator:
    """Reports assignment counts per reviewer and the open pull request count."""

    def __init__(self, stats: StatsPort) -> None:
        self.stats = stats
        self._logger = logger.bind(component="StatsAggregator")

    async def get_stats(self) -> Stats:
        """Return current reviewer load.

        Assignment counts cover every pull request regardless of status;
        the open count covers only pull requests with status OPEN.
        """
        bind_operation_context("get_stats")
        assignments = await self.stats.count_assignments_by_reviewer()
        open_count = await self.stats.count_open_pull_requests()

        self._logger.debug(
            "stats_collected",
            reviewer_count=len(assignments),
            open_pull_requests=open_count,
        )
        return Stats(assignments_by_user=assignments, open_pull_requests=open_count)
