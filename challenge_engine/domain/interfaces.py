"""
Collaborator interfaces (Protocols) consumed by challenge subscribers.

Points, achievements and notifications live in other bounded contexts.
Subscribers depend on these Protocols; concrete adapters are wired at
startup (constructor injection).
"""

from typing import Any, Dict, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class PointsAwarder(Protocol):
    """Abstraction over the points ledger (lives in the *points* context)."""

    async def award(
        self,
        user_id: int,
        amount: int,
        reason: str,
        *,
        reference: Optional[str] = None,
    ) -> bool: ...


@runtime_checkable
class AchievementChecker(Protocol):
    """Abstraction over achievement progress (lives in the *achievements* context)."""

    async def recheck_for_user(self, user_id: int) -> Sequence[str]:
        """Re-evaluate achievements; returns the codes newly unlocked."""
        ...


@runtime_checkable
class NotificationEmitter(Protocol):
    """Abstraction over user-facing notifications."""

    async def emit(self, event_type: str, payload: Dict[str, Any]) -> None: ...
