"""Directory, pull request and statistics services used by the API and CLI."""
from .pull_requests import PullRequestService
from .statistics import StatisticsService
from .teams import TeamService

__all__ = ["PullRequestService", "StatisticsService", "TeamService"]
