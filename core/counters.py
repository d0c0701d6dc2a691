"""
Outcome Counters
================

Fire-and-forget observability sink. Each protocol branch calls
`increment(operation, outcome)`; the Redis INCR runs as a background task
and its failure is logged and dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Set, Union

from core.store import ClientStore


# Set up module logger
logger = logging.getLogger(__name__)


class OutcomeCounter:
    """
    Schedules counter increments without making callers wait for Redis.

    Pending tasks are held in a set so they are not garbage collected
    mid-flight; `flush()` waits for all of them.
    """

    def __init__(self, store: ClientStore):
        self.store = store
        self._pending: Set[asyncio.Task] = set()

    def increment(self, operation: str, outcome: Union[str, Enum]) -> None:
        """
        Record that `operation` took the `outcome` branch.

        Must be called from inside a running event loop.
        """
        name = outcome.value if isinstance(outcome, Enum) else outcome
        task = asyncio.create_task(self._increment(operation, name))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _increment(self, operation: str, outcome: str) -> None:
        try:
            await self.store.increment(operation, outcome)
        except Exception as e:
            logger.warning(f"Counter {operation}:{outcome} not recorded: {e}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def flush(self) -> None:
        """Wait for every scheduled increment to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
