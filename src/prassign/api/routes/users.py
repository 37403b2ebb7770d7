"""User endpoints"""
from fastapi import APIRouter, Depends, Query

from ...core.schemas.pull_request import PullRequestShort, UserReviews
from ...core.schemas.team import UserResponse, UserSetActive
from ...core.services import TeamService
from ..dependencies import get_team_service

router = APIRouter()


@router.post("/users/setIsActive", response_model=UserResponse)
async def set_is_active(
    request: UserSetActive,
    service: TeamService = Depends(get_team_service),
):
    """Activate or deactivate a user.

    Deactivation moves the user's open reviews to other team members, or
    drops them when nobody else can take them.
    """
    user, report = await service.set_user_active(request.user_id, request.is_active)
    return UserResponse(
        user_id=user.user_id,
        username=user.username,
        team_name=user.team.team_name if user.team else None,
        is_active=user.is_active,
        healed_reviews=report.replaced + report.removed if report is not None else None,
    )


@router.get("/users/getReview", response_model=UserReviews)
async def get_reviews(
    user_id: str = Query(..., min_length=1, description="User id"),
    service: TeamService = Depends(get_team_service),
):
    """List pull requests the user is assigned to review."""
    pull_requests = await service.reviews_for_user(user_id)
    return UserReviews(
        user_id=user_id,
        pull_requests=[PullRequestShort.model_validate(pr) for pr in pull_requests],
    )
