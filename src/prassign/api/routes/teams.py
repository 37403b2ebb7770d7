"""Team endpoints"""
import logging
import time

from fastapi import APIRouter, Depends, Query

from ...core.schemas.team import (
    TeamCreate,
    TeamDeactivate,
    TeamDeactivateResponse,
    TeamMember,
    TeamResponse,
)
from ...core.services import TeamService
from ..dependencies import get_team_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _team_response(team, members) -> TeamResponse:
    return TeamResponse(
        team_name=team.team_name,
        members=[TeamMember.model_validate(user) for user in members],
    )


@router.post("/team/add", response_model=TeamResponse, status_code=201)
async def add_team(
    team_data: TeamCreate,
    service: TeamService = Depends(get_team_service),
):
    """Create a team, or update it, together with its members.

    Members switched from active to inactive have their open reviews
    healed before the response is sent.
    """
    team, members, report = await service.upsert_team(team_data.team_name, team_data.members)
    if report.replaced or report.removed:
        logger.info(
            f"Team {team.team_name} update healed {report.replaced + report.removed} reviews"
        )
    return _team_response(team, members)


@router.get("/team/get", response_model=TeamResponse)
async def get_team(
    team_name: str = Query(..., min_length=1, description="Team name"),
    service: TeamService = Depends(get_team_service),
):
    """Get a team with its members."""
    team, members = await service.get_team(team_name)
    return _team_response(team, members)


@router.post("/team/deactivate", response_model=TeamDeactivateResponse)
async def deactivate_team(
    request: TeamDeactivate,
    service: TeamService = Depends(get_team_service),
):
    """Deactivate every member of a team and re-balance the reviews they held."""
    started = time.perf_counter()
    report = await service.deactivate_team(request.team_name)
    duration_ms = int((time.perf_counter() - started) * 1000)

    return TeamDeactivateResponse(
        team_name=request.team_name,
        deactivated_users=report.deactivated,
        reassigned_reviewers=report.reassigned,
        removed_reviewers=report.removed,
        under_reviewed_prs=report.under_reviewed,
        duration_ms=duration_ms,
    )
