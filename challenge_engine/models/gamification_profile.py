"""
Gamification profile and points ledger.

The profile supplies the level used for difficulty scaling and the streak used by
the streak leaderboard. PointTransaction is the append-only ledger behind
GamificationProfile.points.
"""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class GamificationProfile(Base, TimestampMixin):
    __tablename__ = "gamification_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    experience: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<GamificationProfile(user_id={self.user_id}, level={self.level}, "
            f"points={self.points}, streak={self.streak})>"
        )


class PointTransaction(Base, TimestampMixin):
    __tablename__ = "point_transactions"
    __table_args__ = (
        UniqueConstraint("user_id", "reference", name="uq_point_transactions_reference"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    # Idempotency key, e.g. "challenge:42"
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<PointTransaction(user_id={self.user_id}, amount={self.amount}, reason={self.reason!r})>"
