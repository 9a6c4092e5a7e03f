"""
Pure domain logic for daily challenges.

No database, no network I/O: the template catalog, difficulty scaling,
template selection and the calendar helpers shared by the generator, the
progress hooks and the condition evaluator.
"""

import enum
import math
import random
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Collection, List, Optional, Tuple

from ..models.challenge import ChallengeType

DEFAULT_LEVEL = 1
DEFAULT_COMPLETION_RATE = 0.5

COMPLETE_PERCENT = 100


class ChallengeCondition(str, enum.Enum):
    """Qualifying predicate attached to an advanced template."""

    TIME_LIMIT = "time_limit"
    CONSECUTIVE_DAYS = "consecutive_days"
    VARIETY = "variety"
    WEEKEND_ONLY = "weekend_only"
    WEEKLY_COMPLETION = "weekly_completion"

    @classmethod
    def parse(cls, tag: str) -> Optional["ChallengeCondition"]:
        """Return the condition for *tag*, or None if the tag is unknown."""
        try:
            return cls(tag)
        except ValueError:
            return None


@dataclass(frozen=True)
class ChallengeTemplate:
    """Static description of a challenge kind. Never persisted."""

    title: str
    description: str
    type: ChallengeType
    base_target: int
    base_points: int
    condition: Optional[ChallengeCondition] = None


@dataclass(frozen=True)
class ScaledChallenge:
    """A template after the difficulty multiplier has been applied."""

    title: str
    description: str
    type: ChallengeType
    target: int
    points: int
    condition: Optional[ChallengeCondition] = None


BASE_TEMPLATES: Tuple[ChallengeTemplate, ...] = (
    ChallengeTemplate(
        title="Daily Review",
        description="Complete 10 reviews",
        type=ChallengeType.REVIEW_COUNT,
        base_target=10,
        base_points=50,
    ),
    ChallengeTemplate(
        title="Memory Creator",
        description="Create 3 new memories",
        type=ChallengeType.MEMORY_CREATED,
        base_target=3,
        base_points=30,
    ),
    ChallengeTemplate(
        title="Category Expert",
        description="Review 5 memories from one category",
        type=ChallengeType.CATEGORY_FOCUS,
        base_target=5,
        base_points=40,
    ),
    ChallengeTemplate(
        title="Perfect Review",
        description="Score full marks on 5 reviews in a row",
        type=ChallengeType.REVIEW_ACCURACY,
        base_target=5,
        base_points=60,
    ),
)

ADVANCED_TEMPLATES: Tuple[ChallengeTemplate, ...] = (
    ChallengeTemplate(
        title="Speed Master",
        description="Complete 5 reviews within 30 minutes",
        type=ChallengeType.REVIEW_COUNT,
        base_target=5,
        base_points=80,
        condition=ChallengeCondition.TIME_LIMIT,
    ),
    ChallengeTemplate(
        title="Streak Expert",
        description="Complete daily challenges 7 days in a row",
        type=ChallengeType.STREAK_DAYS,
        base_target=7,
        base_points=100,
        condition=ChallengeCondition.CONSECUTIVE_DAYS,
    ),
    ChallengeTemplate(
        title="All-round Learner",
        description="Review memories from 3 different categories",
        type=ChallengeType.CATEGORY_FOCUS,
        base_target=3,
        base_points=70,
        condition=ChallengeCondition.VARIETY,
    ),
    ChallengeTemplate(
        title="Weekend Sprint",
        description="Complete 15 reviews in one day",
        type=ChallengeType.REVIEW_COUNT,
        base_target=15,
        base_points=90,
        condition=ChallengeCondition.WEEKEND_ONLY,
    ),
    ChallengeTemplate(
        title="Perfect Week",
        description="Complete every daily challenge for a week",
        type=ChallengeType.REVIEW_COUNT,
        base_target=7,
        base_points=150,
        condition=ChallengeCondition.WEEKLY_COMPLETION,
    ),
)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def difficulty_multiplier(level: int, completion_rate: float) -> Decimal:
    """Scale factor from profile level and historical completion rate.

    The level step and the completion-rate step multiply. Decimal keeps
    1.5 * 1.2 at exactly 1.8 so floor() lands on the expected integer.
    """
    multiplier = Decimal("1.0")
    if level >= 10:
        multiplier = Decimal("1.5")
    elif level >= 5:
        multiplier = Decimal("1.2")
    elif level >= 3:
        multiplier = Decimal("1.1")

    if completion_rate > 0.8:
        multiplier *= Decimal("1.2")
    elif completion_rate < 0.3:
        multiplier *= Decimal("0.8")
    return multiplier


def scale_template(template: ChallengeTemplate, multiplier: Decimal) -> ScaledChallenge:
    """Apply *multiplier* to a template's target and points."""
    target = max(1, math.floor(template.base_target * multiplier))
    points = math.floor(template.base_points * multiplier)
    # Only the first occurrence: "Complete 5 reviews within 30 minutes"
    description = template.description.replace(str(template.base_target), str(target), 1)
    return ScaledChallenge(
        title=template.title,
        description=description,
        type=template.type,
        target=target,
        points=points,
        condition=template.condition,
    )


def select_templates(
    day: date, rng: Optional[random.Random] = None
) -> List[ChallengeTemplate]:
    """Templates for *day*: every base template, the weekend template on
    Saturday and Sunday, and one random advanced template."""
    rng = rng or random
    selected = list(BASE_TEMPLATES)

    if is_weekend(day):
        selected.extend(
            t for t in ADVANCED_TEMPLATES if t.condition == ChallengeCondition.WEEKEND_ONLY
        )

    others = [t for t in ADVANCED_TEMPLATES if t.condition != ChallengeCondition.WEEKEND_ONLY]
    if others:
        selected.append(rng.choice(others))
    return selected


def progress_percent(count: int, target: int) -> int:
    """Percentage (0-100) of *target* reached by *count*."""
    if target <= 0:
        return COMPLETE_PERCENT
    if count >= target:
        return COMPLETE_PERCENT
    return max(0, count * COMPLETE_PERCENT // target)


def count_from_percent(percent: int, target: int) -> int:
    """Inverse of progress_percent for targets up to 100."""
    if percent >= COMPLETE_PERCENT:
        return target
    return max(0, -(-percent * target // COMPLETE_PERCENT))


def completion_rate(completed: int, total: int) -> float:
    return completed / total if total > 0 else 0.0


def recent_days(today: date, days: int) -> List[date]:
    """Today and the *days* - 1 days before it, newest first."""
    return [today - timedelta(days=offset) for offset in range(days)]


def covers_every_day(completed_dates: Collection[date], today: date, days: int) -> bool:
    """True if each of the last *days* calendar days has a completion."""
    return all(day in completed_dates for day in recent_days(today, days))
