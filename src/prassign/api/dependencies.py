"""FastAPI dependencies wiring routes to the process database and configuration."""
from fastapi import Depends

from ..core.config.settings import get_config
from ..core.routing import AssignmentEngine, HealingEngine
from ..core.services import PullRequestService, StatisticsService, TeamService
from ..core.storage.database import get_db


def get_assignment_engine() -> AssignmentEngine:
    return AssignmentEngine(get_db(), get_config())


def get_healing_engine() -> HealingEngine:
    return HealingEngine(get_db(), get_config())


def get_team_service(healing: HealingEngine = Depends(get_healing_engine)) -> TeamService:
    return TeamService(get_db(), get_config(), healing)


def get_pull_request_service() -> PullRequestService:
    return PullRequestService(get_db(), get_config())


def get_statistics_service() -> StatisticsService:
    return StatisticsService(get_db())
