"""prassign - pull request reviewer assignment and workload balancing.

Assigns reviewers to pull requests from the author's team, keeps open
review load even across members, and heals assignments when reviewers or
whole teams are deactivated.
"""
__version__ = "0.1.0"

from .core.config.settings import PrAssignConfig, get_config, init_config
from .core.errors import AssignmentError, ErrorKind
from .core.storage.database import Database, get_db, init_db
from .core.models import PullRequest, PullRequestStatus, ReviewerAssignment, Team, User
from .core.routing import AssignmentEngine, HealingEngine, HealingReport, WorkloadIndex
from .core.services import PullRequestService, StatisticsService, TeamService

from . import core

__all__ = [
    # Version
    "__version__",
    # Config
    "PrAssignConfig",
    "init_config",
    "get_config",
    # Database
    "Database",
    "init_db",
    "get_db",
    # Errors
    "AssignmentError",
    "ErrorKind",
    # Models
    "Team",
    "User",
    "PullRequest",
    "PullRequestStatus",
    "ReviewerAssignment",
    # Engines
    "AssignmentEngine",
    "HealingEngine",
    "HealingReport",
    "WorkloadIndex",
    # Services
    "TeamService",
    "PullRequestService",
    "StatisticsService",
    # Core module
    "core",
]
