import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..core.services import Services, get_service
from ..models.challenge import ChallengeType
from ..services.challenge_progress import ProgressUpdate
from ..services.challenge_statistics import LeaderboardPeriod, LeaderboardType
from ..services.daily_challenge_service import DailyChallengeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


def get_challenge_service() -> DailyChallengeService:
    """FastAPI dependency; tests override it via app.dependency_overrides."""
    return get_service(Services.CHALLENGE_SERVICE)


# Request/Response models
class ChallengeResponse(BaseModel):
    id: int
    title: str
    description: str
    type: ChallengeType
    target: int
    points: int
    date: dt.date
    is_active: bool

    class Config:
        from_attributes = True


class UserChallengeResponse(BaseModel):
    id: int
    user_id: int
    challenge_id: int
    progress: int
    completed: bool
    completed_at: Optional[dt.datetime]
    claimed: bool
    challenge: ChallengeResponse

    class Config:
        from_attributes = True


class ProgressRequest(BaseModel):
    challenge_id: int
    progress: int = Field(..., ge=0, description="Percentage; 100 or more completes")


class BatchProgressRequest(BaseModel):
    updates: List[ProgressRequest]
    stop_on_error: bool = False


class ProgressFailureResponse(BaseModel):
    challenge_id: int
    error: str

    class Config:
        from_attributes = True


class BatchProgressResponse(BaseModel):
    success: int
    failed: int
    updated: List[UserChallengeResponse]
    failures: List[ProgressFailureResponse]


class ClaimRequest(BaseModel):
    challenge_id: int


class ConditionResponse(BaseModel):
    condition: str
    satisfied: bool


class CreateChallengesRequest(BaseModel):
    date: Optional[dt.date] = None
    user_id: Optional[int] = None


class CreateChallengesResponse(BaseModel):
    challenges: List[ChallengeResponse]
    assigned: List[UserChallengeResponse] = []


class AutoAssignResponse(BaseModel):
    success: int
    failed: int


class ResetExpiredResponse(BaseModel):
    deactivated: int


class LeaderboardEntryResponse(BaseModel):
    user_id: int
    username: str
    avatar: Optional[str]
    value: int
    rank: int

    class Config:
        from_attributes = True


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


@router.get("/daily", response_model=List[ChallengeResponse])
async def get_daily_challenges(
    challenge_date: Optional[dt.date] = Query(None, alias="date"),
    available_only: bool = False,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> List[ChallengeResponse]:
    """Challenges for a day (default: every active challenge from today on)."""
    if available_only:
        challenges = await service.get_available_daily_challenges(challenge_date)
    else:
        challenges = await service.get_daily_challenges(challenge_date)
    return [ChallengeResponse.model_validate(c) for c in challenges]


@router.post(
    "/create", response_model=CreateChallengesResponse, status_code=status.HTTP_201_CREATED
)
async def create_daily_challenges(
    request: CreateChallengesRequest,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> CreateChallengesResponse:
    """Generate the day's challenges; also assign them when a user is given."""
    challenges = await service.create_daily_challenges(request.date, request.user_id)
    assigned = []
    if request.user_id is not None:
        assigned = await service.assign_daily_challenges_to_user(request.user_id, request.date)
    return CreateChallengesResponse(
        challenges=[ChallengeResponse.model_validate(c) for c in challenges],
        assigned=[UserChallengeResponse.model_validate(r) for r in assigned],
    )


@router.post("/auto-assign", response_model=AutoAssignResponse)
async def auto_assign_daily_challenges(
    service: DailyChallengeService = Depends(get_challenge_service),
) -> AutoAssignResponse:
    result = await service.auto_assign_daily_challenges_to_all_users()
    return AutoAssignResponse(**result.as_dict())


@router.post("/reset-expired", response_model=ResetExpiredResponse)
async def reset_expired_challenges(
    service: DailyChallengeService = Depends(get_challenge_service),
) -> ResetExpiredResponse:
    return ResetExpiredResponse(deactivated=await service.reset_expired_challenges())


@router.get("/leaderboard", response_model=List[LeaderboardEntryResponse])
async def get_challenge_leaderboard(
    leaderboard_type: LeaderboardType = Query(LeaderboardType.COMPLETION, alias="type"),
    period: LeaderboardPeriod = LeaderboardPeriod.ALL_TIME,
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: DailyChallengeService = Depends(get_challenge_service),
) -> List[LeaderboardEntryResponse]:
    entries = await service.get_challenge_leaderboard(leaderboard_type, period, limit)
    return [LeaderboardEntryResponse.model_validate(e) for e in entries]


# ---------------------------------------------------------------------------
# Per-user operations
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}", response_model=List[UserChallengeResponse])
async def get_user_challenges(
    user_id: int,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> List[UserChallengeResponse]:
    rows = await service.get_user_challenges(user_id)
    return [UserChallengeResponse.model_validate(r) for r in rows]


@router.post("/users/{user_id}/assign", response_model=List[UserChallengeResponse])
async def assign_daily_challenges(
    user_id: int,
    challenge_date: Optional[dt.date] = Query(None, alias="date"),
    service: DailyChallengeService = Depends(get_challenge_service),
) -> List[UserChallengeResponse]:
    rows = await service.assign_daily_challenges_to_user(user_id, challenge_date)
    return [UserChallengeResponse.model_validate(r) for r in rows]


@router.post("/users/{user_id}/progress", response_model=UserChallengeResponse)
async def update_challenge_progress(
    user_id: int,
    request: ProgressRequest,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> UserChallengeResponse:
    row = await service.update_challenge_progress(user_id, request.challenge_id, request.progress)
    return UserChallengeResponse.model_validate(row)


@router.post("/users/{user_id}/progress/batch", response_model=BatchProgressResponse)
async def batch_update_challenge_progress(
    user_id: int,
    request: BatchProgressRequest,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> BatchProgressResponse:
    """Apply several updates; failed items are reported, not fatal."""
    result = await service.batch_update_challenge_progress(
        user_id,
        [ProgressUpdate(u.challenge_id, u.progress) for u in request.updates],
        stop_on_error=request.stop_on_error,
    )
    return BatchProgressResponse(
        success=len(result.updated),
        failed=len(result.failures),
        updated=[UserChallengeResponse.model_validate(r) for r in result.updated],
        failures=[ProgressFailureResponse.model_validate(f) for f in result.failures],
    )


@router.post("/users/{user_id}/claim", response_model=UserChallengeResponse)
async def claim_challenge_reward(
    user_id: int,
    request: ClaimRequest,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> UserChallengeResponse:
    """Claim a completed challenge's reward (409 if not claimable)."""
    row = await service.claim_challenge_reward(user_id, request.challenge_id)
    return UserChallengeResponse.model_validate(row)


@router.post("/users/{user_id}/conditions/{condition}", response_model=ConditionResponse)
async def check_challenge_condition(
    user_id: int,
    condition: str,
    challenge_id: Optional[int] = None,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> ConditionResponse:
    satisfied = await service.check_challenge_progress_condition(user_id, condition, challenge_id)
    return ConditionResponse(condition=condition, satisfied=satisfied)


@router.get("/users/{user_id}/stats")
async def get_user_challenge_stats(
    user_id: int,
    days: Optional[int] = Query(None, ge=1, le=365),
    service: DailyChallengeService = Depends(get_challenge_service),
) -> Dict[str, Any]:
    """Lifetime totals, completion rate and per-type completion stats."""
    return {
        "user_id": user_id,
        "totals": await service.get_user_challenge_stats(user_id),
        "completion_rate": await service.get_user_challenge_completion_rate(user_id, days),
        "completion_stats": await service.get_challenge_completion_stats(user_id, days),
    }


@router.post("/users/{user_id}/activity/{activity}", response_model=List[UserChallengeResponse])
async def record_activity(
    user_id: int,
    activity: str,
    service: DailyChallengeService = Depends(get_challenge_service),
) -> List[UserChallengeResponse]:
    """Advance today's matching challenges for a review or a new memory."""
    if activity == "review":
        rows = await service.record_review_completed(user_id)
    elif activity == "memory":
        rows = await service.record_memory_created(user_id)
    else:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown activity '{activity}'",
        )
    return [UserChallengeResponse.model_validate(r) for r in rows]
