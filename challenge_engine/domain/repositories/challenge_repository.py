"""ChallengeRepository protocol — defines daily challenge lookup and persistence contract."""

from datetime import date
from typing import List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ChallengeRepository(Protocol):
    """Repository interface for DailyChallenge entity access."""

    async def find_by_date(self, challenge_date: date) -> List[object]:
        """Get every challenge generated for a calendar day.

        Args:
            challenge_date: The day-normalised challenge date.

        Returns:
            List of DailyChallenge objects ordered by ID (may be empty).
        """
        ...

    async def find_active_from(self, start: date) -> List[object]:
        """Get active challenges dated on or after *start*."""
        ...

    async def find_between(
        self, start: date, end: date, active_only: bool = False
    ) -> List[object]:
        """Get challenges with start <= date < end."""
        ...

    async def get(self, challenge_id: int) -> Optional[object]:
        """Look up a challenge by ID, or None if not found."""
        ...

    async def add_batch(self, challenges: Sequence[object]) -> List[object]:
        """Persist a whole day's batch atomically.

        Args:
            challenges: DailyChallenge objects sharing one date.

        Returns:
            The persisted objects with IDs populated.

        Raises:
            DuplicateChallengeBatch: the store's (date, title) constraint rejected
                the batch because another caller persisted it first. Nothing from
                the batch is kept.
        """
        ...

    async def deactivate_before(self, cutoff: date) -> int:
        """Flip is_active to False for active challenges dated before *cutoff*.

        Returns:
            Number of challenges deactivated.
        """
        ...
