"""Composition root for PRManager.

Builds the database engine, the storage adapter, the shared randomness
source and every service from a ``PRManagerConfig``. Transport layers
(HTTP handlers, workers) create one ``AppContext`` at startup and call
the services on it.

Example:
    >>> config = load_config()
    >>> context = initialize_context(config)
    >>> pr = await context.assignment.create_pull_request("pr-1", "Add search", "u1")
    >>> await context.dispose()
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine

from prmanager.config import PRManagerConfig
from prmanager.database.connection import get_engine, get_session_factory
from prmanager.repository.store import SqlAlchemyRepository
from prmanager.services import (
    AssignmentEngine,
    DeactivationCascade,
    RandomSource,
    ReassignmentCoordinator,
    StatsAggregator,
    TeamService,
)

logger = structlog.get_logger(__name__)


class AppContext:
    """Application context shared by all callers.

    Attributes:
        config: Loaded PRManager configuration
        engine: Async SQLAlchemy engine
        session_factory: Factory for creating database sessions
        repository: Storage adapter implementing all ports
        random_source: Randomness source shared by every service
        assignment: Pull request creation, merge and review listing
        reassignment: Reviewer reassignment
        cascade: Deactivation cascade
        stats: Reviewer load statistics
        teams: Team directory operations
    """

    def __init__(self, config: PRManagerConfig, engine: AsyncEngine | None = None):
        """Initialize application context.

        Args:
            config: PRManager configuration
            engine: Optional pre-built engine; built from config.database
                when omitted.
        """
        self.config = config
        self.engine = engine if engine is not None else get_engine(config.database)
        self.session_factory = get_session_factory(self.engine)
        self.repository = SqlAlchemyRepository(self.session_factory)
        self.random_source = RandomSource(config.assignment.random_seed)

        target = config.assignment.reviewers_per_pull_request
        self.assignment = AssignmentEngine(
            self.repository, self.repository, self.random_source, target
        )
        self.reassignment = ReassignmentCoordinator(
            self.repository, self.repository, self.random_source, target
        )
        self.cascade = DeactivationCascade(
            self.repository, self.repository, self.random_source, target
        )
        self.stats = StatsAggregator(self.repository)
        self.teams = TeamService(self.repository, self.cascade)

    async def dispose(self) -> None:
        """Release all pooled database connections."""
        await self.engine.dispose()
        logger.info("app_context_disposed")


_app_context: AppContext | None = None


def get_app_context() -> AppContext:
    """Get the shared application context.

    Raises:
        RuntimeError: If context has not been initialized
    """
    if _app_context is None:
        raise RuntimeError("Application context not initialized. Call initialize_context first.")
    return _app_context


def initialize_context(
    config: PRManagerConfig,
    engine: AsyncEngine | None = None,
) -> AppContext:
    """Initialize the global application context.

    Args:
        config: PRManager configuration
        engine: Optional pre-built engine

    Returns:
        Initialized AppContext instance
    """
    global _app_context
    _app_context = AppContext(config, engine)
    logger.info(
        "app_context_initialized",
        reviewers_per_pull_request=config.assignment.reviewers_per_pull_request,
        seeded=config.assignment.random_seed is not None,
    )
    return _app_context
