"""
Typed domain errors for the daily challenge engine.

Callers (HTTP handlers, scheduled jobs) map each of these to a specific
failure response instead of inspecting error strings.
"""

from datetime import date


class DomainError(Exception):
    """Base class for all domain-specific errors."""


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class StoreNotReady(DomainError):
    """A store-bound operation ran before the database was initialised."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"{operation} requires an initialised challenge store; "
            "call init_database() during startup"
        )


# ---------------------------------------------------------------------------
# Challenge lookup and state
# ---------------------------------------------------------------------------


class ChallengeNotFound(DomainError):
    """Daily challenge with the given ID does not exist."""

    def __init__(self, challenge_id: int) -> None:
        self.challenge_id = challenge_id
        super().__init__(f"Daily challenge {challenge_id} not found")


class InvalidClaim(DomainError):
    """Reward claim rejected: row missing, not completed, or already claimed."""

    NOT_FOUND = "not_found"
    NOT_COMPLETED = "not_completed"
    ALREADY_CLAIMED = "already_claimed"

    def __init__(self, user_id: int, challenge_id: int, reason: str) -> None:
        self.user_id = user_id
        self.challenge_id = challenge_id
        self.reason = reason
        super().__init__(
            f"Cannot claim reward for challenge {challenge_id} "
            f"(user {user_id}): {reason}"
        )


# ---------------------------------------------------------------------------
# Constraint conflicts (recovered inside the engine)
# ---------------------------------------------------------------------------


class DuplicateChallengeBatch(DomainError):
    """Another caller already persisted the challenge batch for this date."""

    def __init__(self, challenge_date: date) -> None:
        self.challenge_date = challenge_date
        super().__init__(f"Daily challenges for {challenge_date} already exist")


class DuplicateUserChallenge(DomainError):
    """A progress row for (user_id, challenge_id) already exists."""

    def __init__(self, user_id: int, challenge_id: int) -> None:
        self.user_id = user_id
        self.challenge_id = challenge_id
        super().__init__(
            f"Progress row for user {user_id} / challenge {challenge_id} already exists"
        )
