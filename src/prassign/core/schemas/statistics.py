"""Statistics schemas."""
from typing import Optional

from pydantic import BaseModel

from ..models.pull_request import PullRequestStatus


class AssignmentStats(BaseModel):
    """Review assignments per user."""
    user_id: str
    username: str
    team_name: Optional[str]
    total_assignments: int
    open_prs: int
    merged_prs: int


class UserWorkload(BaseModel):
    """Open reviews per user."""
    user_id: str
    username: str
    team_name: Optional[str]
    is_active: bool
    open_reviews_count: int


class PullRequestStats(BaseModel):
    """Reviewer count per pull request."""
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PullRequestStatus
    reviewers_count: int


class TeamStats(BaseModel):
    """Membership and review activity per team."""
    team_name: str
    total_members: int
    active_members: int
    total_prs_authored: int
    total_prs_reviewed: int
