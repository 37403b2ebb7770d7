"""Pull request and reviewer schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.pull_request import PullRequestStatus


class PullRequestCreate(BaseModel):
    """Schema for creating a pull request."""
    pull_request_id: str = Field(..., min_length=1, max_length=255, description="External PR id")
    pull_request_name: str = Field(..., min_length=1, max_length=500, description="PR title")
    author_id: str = Field(..., min_length=1, max_length=255, description="Author user id")
    reviewer_count: Optional[int] = Field(
        None, ge=0, le=10, description="Reviewers to auto-assign (defaults to configuration)"
    )


class PullRequestRef(BaseModel):
    """Schema carrying only a pull request id."""
    pull_request_id: str = Field(..., min_length=1, max_length=255)


class ReviewerChange(BaseModel):
    """Schema for assigning or removing one reviewer."""
    pull_request_id: str = Field(..., min_length=1, max_length=255)
    user_id: str = Field(..., min_length=1, max_length=255)


class ReviewerReassign(BaseModel):
    """Schema for replacing a reviewer; the new reviewer is picked when omitted."""
    pull_request_id: str = Field(..., min_length=1, max_length=255)
    old_user_id: str = Field(..., min_length=1, max_length=255)
    new_user_id: Optional[str] = Field(None, min_length=1, max_length=255)


class PullRequestResponse(BaseModel):
    """Pull request with its current reviewers."""
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PullRequestStatus
    assigned_reviewers: list[str]
    created_at: datetime
    merged_at: Optional[datetime] = None


class ReassignResponse(PullRequestResponse):
    """Pull request after a reviewer swap."""
    replaced_by: str


class PullRequestShort(BaseModel):
    """Pull request summary used in review listings."""
    pull_request_id: str
    pull_request_name: str
    author_id: str
    status: PullRequestStatus

    model_config = ConfigDict(from_attributes=True)


class UserReviews(BaseModel):
    """Pull requests a user is assigned to review."""
    user_id: str
    pull_requests: list[PullRequestShort]


class AutoAssignRequest(BaseModel):
    """Schema for topping up an existing pull request with auto-picked reviewers."""
    pull_request_id: str = Field(..., min_length=1, max_length=255)
    reviewer_count: Optional[int] = Field(None, ge=1, le=10)
