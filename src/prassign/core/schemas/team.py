"""Team and user schemas."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TeamMember(BaseModel):
    """Member entry used when adding or listing a team."""
    user_id: str = Field(..., min_length=1, max_length=255, description="External user id")
    username: str = Field(..., min_length=1, max_length=255, description="Display name")
    is_active: bool = Field(default=True, description="Whether the user can review")

    model_config = ConfigDict(from_attributes=True)


class TeamCreate(BaseModel):
    """Schema for creating or updating a team with its members."""
    team_name: str = Field(..., min_length=1, max_length=255, description="Unique team name")
    members: list[TeamMember] = Field(default_factory=list)

    @field_validator("members")
    @classmethod
    def unique_member_ids(cls, members: list[TeamMember]) -> list[TeamMember]:
        seen = set()
        for member in members:
            if member.user_id in seen:
                raise ValueError(f"duplicate member user_id: {member.user_id}")
            seen.add(member.user_id)
        return members


class TeamResponse(BaseModel):
    """Team with its members."""
    team_name: str
    members: list[TeamMember]


class TeamDeactivate(BaseModel):
    """Schema for deactivating every member of a team."""
    team_name: str = Field(..., min_length=1, max_length=255)


class TeamDeactivateResponse(BaseModel):
    """Outcome of a team deactivation."""
    team_name: str
    deactivated_users: int
    reassigned_reviewers: int
    removed_reviewers: int
    under_reviewed_prs: list[str]
    duration_ms: int


class UserSetActive(BaseModel):
    """Schema for toggling a user's active flag."""
    user_id: str = Field(..., min_length=1, max_length=255)
    is_active: bool


class UserResponse(BaseModel):
    """User with team name."""
    user_id: str
    username: str
    team_name: Optional[str]
    is_active: bool
    healed_reviews: Optional[int] = Field(
        None, description="Reviews moved or dropped because the user was deactivated"
    )
