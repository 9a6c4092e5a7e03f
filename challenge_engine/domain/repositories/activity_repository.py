"""ActivityRepository protocol — read-only view of learning activity and profiles."""

from datetime import datetime
from typing import List, Optional, Protocol, Set, runtime_checkable


@runtime_checkable
class ActivityRepository(Protocol):
    """Repository interface for review history, profile level and user listing."""

    async def count_reviews_since(self, user_id: int, since: datetime) -> int:
        """Count review events with review_time >= *since*."""
        ...

    async def review_categories_since(self, user_id: int, since: datetime) -> Set[str]:
        """Distinct content categories reviewed since *since* (None excluded)."""
        ...

    async def get_user_level(self, user_id: int) -> Optional[int]:
        """Gamification level for a user, or None when they have no profile."""
        ...

    async def list_active_user_ids(self, offset: int = 0, limit: int = 500) -> List[int]:
        """Page through active user IDs in ascending order."""
        ...
