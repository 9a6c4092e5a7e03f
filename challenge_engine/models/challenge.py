"""
Daily challenge models.

DailyChallenge: one template instance for a calendar day, shared by all users.
UserDailyChallenge: a user's progress row against one DailyChallenge.
"""

import enum
import datetime as dt
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class ChallengeType(str, enum.Enum):
    """What a challenge counts."""

    REVIEW_COUNT = "REVIEW_COUNT"
    REVIEW_ACCURACY = "REVIEW_ACCURACY"
    MEMORY_CREATED = "MEMORY_CREATED"
    STREAK_DAYS = "STREAK_DAYS"
    CATEGORY_FOCUS = "CATEGORY_FOCUS"


class DailyChallenge(Base, TimestampMixin):
    __tablename__ = "daily_challenges"
    __table_args__ = (
        UniqueConstraint("date", "title", name="uq_daily_challenges_date_title"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[ChallengeType] = mapped_column(Enum(ChallengeType), nullable=False)
    target: Mapped[int] = mapped_column(Integer, nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<DailyChallenge(id={self.id}, date={self.date}, title={self.title!r}, "
            f"target={self.target}, points={self.points})>"
        )


class UserDailyChallenge(Base, TimestampMixin):
    __tablename__ = "user_daily_challenges"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "challenge_id", name="uq_user_daily_challenges_user_challenge"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    challenge_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("daily_challenges.id"), nullable=False, index=True
    )

    # Percentage 0-100; completion is progress >= 100
    progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[dt.datetime]] = mapped_column(DateTime, nullable=True)
    claimed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    challenge: Mapped[DailyChallenge] = relationship(DailyChallenge, lazy="joined")

    # --- Domain behavior ---

    def is_claimable(self) -> bool:
        """A reward can be claimed once, and only after completion."""
        return bool(self.completed) and not self.claimed

    def __repr__(self) -> str:
        return (
            f"<UserDailyChallenge(user_id={self.user_id}, challenge_id={self.challenge_id}, "
            f"progress={self.progress}, completed={self.completed}, claimed={self.claimed})>"
        )
