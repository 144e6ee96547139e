"""Thread-safe uniform sampling of reviewer candidates.

The randomness source is an explicit object handed to each service rather
than module-level state, so tests can inject a seeded instance and get
reproducible selections.

Example:
    >>> source = RandomSource(seed=7)
    >>> reviewers = source.pick(["u2", "u3", "u4"], 2)
    >>> len(reviewers)
    2
"""

from __future__ import annotations

import random
import threading
from collections.abc import Sequence


class RandomSource:
    """Uniform sampling without replacement over small candidate pools.

    The underlying ``random.Random`` is shared between callers, so every
    index draw is serialized with a lock. Draws are synchronous and never
    span an ``await``.
    """

    def __init__(self, seed: int | None = None) -> None:
        """Initialize the source.

        Args:
            seed: Optional seed for deterministic draws. None seeds from
                the operating system.
        """
        self._rng = random.Random(seed)
        self._lock = threading.Lock()

    def _index(self, n: int) -> int:
        with self._lock:
            return self._rng.randrange(n)

    def pick(self, pool: Sequence[str], limit: int) -> list[str]:
        """Draw up to ``limit`` distinct ids from ``pool``.

        Duplicate ids in the pool are collapsed to their first occurrence.
        If the pool holds no more than ``limit`` ids it is returned whole,
        in pool order. Otherwise ``limit`` ids are drawn by repeatedly
        removing a uniformly random element from a working copy.

        Args:
            pool: Candidate ids.
            limit: Maximum number of ids to return.

        Returns:
            The selected ids, in draw order.
        """
        candidates = list(dict.fromkeys(pool))
        if limit <= 0 or not candidates:
            return []
        if len(candidates) <= limit:
            return candidates

        selected: list[str] = []
        while len(selected) < limit:
            selected.append(candidates.pop(self._index(len(candidates))))
        return selected

    def choice(self, pool: Sequence[str]) -> str:
        """Draw a single id uniformly from ``pool``.

        Raises:
            ValueError: If the pool is empty.
        """
        selected = self.pick(pool, 1)
        if not selected:
            raise ValueError("cannot choose from an empty pool")
        return selected[0]
