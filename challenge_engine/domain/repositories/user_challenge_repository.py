"""UserChallengeRepository protocol — defines per-user progress row contract."""

from datetime import date, datetime
from typing import Iterable, List, Optional, Protocol, Set, runtime_checkable


@runtime_checkable
class UserChallengeRepository(Protocol):
    """Repository interface for UserDailyChallenge entity access and persistence.

    Rows are unique per (user_id, challenge_id). State transitions are
    conditional updates so that two concurrent callers cannot both win the
    same transition.
    """

    async def find(self, user_id: int, challenge_id: int) -> Optional[object]:
        """Look up the progress row for one user and challenge.

        Returns:
            The UserDailyChallenge (challenge loaded), or None if not found.
        """
        ...

    async def find_for_user(self, user_id: int) -> List[object]:
        """Get every progress row for a user, challenge loaded."""
        ...

    async def find_for_user_on(self, user_id: int, challenge_date: date) -> List[object]:
        """Get a user's progress rows for challenges dated *challenge_date*."""
        ...

    async def find_for_user_from(self, user_id: int, start: date) -> List[object]:
        """Get a user's progress rows for challenges dated on or after *start*."""
        ...

    async def add(self, user_challenge: object) -> object:
        """Insert a new progress row.

        Raises:
            DuplicateUserChallenge: a row for the same (user_id, challenge_id)
                already exists. Only the failed insert is rolled back.
        """
        ...

    async def set_progress(self, user_id: int, challenge_id: int, progress: int) -> None:
        """Record *progress* without touching completion state."""
        ...

    async def mark_completed(
        self, user_id: int, challenge_id: int, progress: int, completed_at: datetime
    ) -> bool:
        """Perform the one-way completion transition.

        Only updates a row whose ``completed`` is still False.

        Returns:
            True if this call performed the transition, False if the row was
            already completed (or is missing).
        """
        ...

    async def mark_claimed(self, user_id: int, challenge_id: int) -> bool:
        """Set ``claimed`` on a completed, unclaimed row.

        Returns:
            True if this call claimed the reward, False otherwise.
        """
        ...

    async def completed_challenge_dates(self, user_id: int, start: date) -> Set[date]:
        """Dates (>= *start*) of challenges the user has completed."""
        ...

    async def completed_challenge_ids(
        self, user_id: int, challenge_ids: Iterable[int]
    ) -> Set[int]:
        """Subset of *challenge_ids* the user has completed."""
        ...
