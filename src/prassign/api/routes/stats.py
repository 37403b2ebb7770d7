"""Statistics endpoints"""
from fastapi import APIRouter, Depends

from ...core.schemas.statistics import AssignmentStats, PullRequestStats, TeamStats, UserWorkload
from ...core.services import StatisticsService
from ..dependencies import get_statistics_service

router = APIRouter()


@router.get("/statistics/assignments", response_model=list[AssignmentStats])
async def assignment_statistics(
    service: StatisticsService = Depends(get_statistics_service),
):
    """Review assignments per user, split into open and merged pull requests."""
    return await service.assignment_stats()


@router.get("/statistics/workload", response_model=list[UserWorkload])
async def workload_statistics(
    service: StatisticsService = Depends(get_statistics_service),
):
    """Open reviews per user, busiest first."""
    return await service.user_workload()


@router.get("/statistics/pullRequests", response_model=list[PullRequestStats])
async def pull_request_statistics(
    service: StatisticsService = Depends(get_statistics_service),
):
    return await service.pull_request_stats()


@router.get("/statistics/teams", response_model=list[TeamStats])
async def team_statistics(
    service: StatisticsService = Depends(get_statistics_service),
):
    return await service.team_stats()
