"""Pydantic schemas for API validation and serialization."""
from .pull_request import (
    AutoAssignRequest,
    PullRequestCreate,
    PullRequestRef,
    PullRequestResponse,
    PullRequestShort,
    ReassignResponse,
    ReviewerChange,
    ReviewerReassign,
    UserReviews,
)
from .statistics import AssignmentStats, PullRequestStats, TeamStats, UserWorkload
from .team import (
    TeamCreate,
    TeamDeactivate,
    TeamDeactivateResponse,
    TeamMember,
    TeamResponse,
    UserResponse,
    UserSetActive,
)

__all__ = [
    # Pull request schemas
    "AutoAssignRequest",
    "PullRequestCreate",
    "PullRequestRef",
    "PullRequestResponse",
    "PullRequestShort",
    "ReassignResponse",
    "ReviewerChange",
    "ReviewerReassign",
    "UserReviews",
    # Team schemas
    "TeamCreate",
    "TeamDeactivate",
    "TeamDeactivateResponse",
    "TeamMember",
    "TeamResponse",
    "UserResponse",
    "UserSetActive",
    # Statistics schemas
    "AssignmentStats",
    "PullRequestStats",
    "TeamStats",
    "UserWorkload",
]
