"""
Vitrine Backend — Visit Counter
================================

What:  Increments and reads the site visit counter (stats row id = 1).
How:   increment() is a single server-side `visits = coalesce(visits, 0) + 1`
       UPDATE ... RETURNING statement. There is no fetch-then-write window,
       so N concurrent increments from baseline V always end at V + N.
Who:   Called by GET /visit and GET /visits.
"""

import logging

from vitrine.exceptions import RecordError
from vitrine.models.item import VISIT_COUNTER_ID
from vitrine.services.record_store import StatsRepository

logger = logging.getLogger(__name__)


class VisitCounter:
    """Visit counter over the singleton stats row."""

    def __init__(self, stats: StatsRepository, counter_id: int = VISIT_COUNTER_ID):
        self.stats = stats
        self.counter_id = counter_id

    async def increment(self) -> int:
        """
        Record one visit.

        Returns:
            The new visit count.

        Raises:
            RecordError: Update failed, or the stats row is missing
        """
        new_count = await self.stats.increment_visits(self.counter_id)
        if new_count is None:
            raise RecordError(
                message="Visit counter row is missing",
                context={"table": "stats", "id": self.counter_id},
            )
        logger.debug("Visit recorded: %d", new_count)
        return new_count

    async def get(self) -> int:
        """
        Read the current count without changing it. A null count reads as 0.

        Raises:
            RecordError: Query failed, or the stats row is missing
        """
        row = await self.stats.get_visits(self.counter_id)
        if row is None:
            raise RecordError(
                message="Visit counter row is missing",
                context={"table": "stats", "id": self.counter_id},
            )
        return row.visits or 0
