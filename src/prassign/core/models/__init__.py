"""Core data models for teams, users, pull requests and reviewer assignments."""
# Import all models to ensure relationships work correctly
from .team import Team
from .user import User
from .pull_request import PullRequest, PullRequestStatus
from .assignment import ReviewerAssignment

__all__ = [
    "Team",
    "User",
    "PullRequest",
    "PullRequestStatus",
    "ReviewerAssignment",
]
