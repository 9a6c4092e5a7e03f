"""StatisticsRepository protocol — grouped aggregate queries for leaderboards."""

from datetime import date
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class StatisticsRepository(Protocol):
    """Aggregate queries over users, progress rows and profiles.

    Each row is a dict with at least ``user_id``, ``username`` and ``avatar``.
    """

    async def completion_totals(
        self, since: Optional[date], limit: int
    ) -> List[Dict[str, Any]]:
        """Per-user ``total`` and ``completed`` counts for challenges dated >= *since*.

        Users without any rows in the window are omitted. Ordered by completion
        rate (completed / total) desc, then completed desc, then user id.
        """
        ...

    async def points_totals(self, since: Optional[date], limit: int) -> List[Dict[str, Any]]:
        """Per-user sum of points over completed challenges dated >= *since*."""
        ...

    async def streaks(self, limit: int) -> List[Dict[str, Any]]:
        """Active users ordered by profile streak desc."""
        ...
