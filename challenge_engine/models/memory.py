"""
Learning activity records read by the challenge condition evaluator.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class MemoryContent(Base, TimestampMixin):
    __tablename__ = "memory_contents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<MemoryContent(id={self.id}, title={self.title!r}, category={self.category})>"


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    memory_content_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("memory_contents.id"), nullable=False
    )
    review_time: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False, index=True
    )
    is_completed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    accuracy: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    memory_content: Mapped[MemoryContent] = relationship(MemoryContent)

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, user_id={self.user_id}, review_time={self.review_time})>"
