"""Pull request model."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class PullRequestStatus(str, Enum):
    """Status of a pull request. OPEN -> MERGED is the only transition."""
    OPEN = "OPEN"
    MERGED = "MERGED"


class PullRequest(Base):
    """Pull request awaiting review."""

    __tablename__ = "pull_requests"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pull_request_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    pull_request_name: Mapped[str] = mapped_column(String(500), nullable=False)
    author_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.user_id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PullRequestStatus.OPEN.value, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    merged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    assignments: Mapped[list["ReviewerAssignment"]] = relationship(
        "ReviewerAssignment",
        back_populates="pull_request",
        cascade="all, delete-orphan",
        order_by="ReviewerAssignment.user_id",
    )

    @property
    def is_open(self) -> bool:
        return self.status == PullRequestStatus.OPEN.value

    def __repr__(self) -> str:
        return f"<PullRequest(pull_request_id='{self.pull_request_id}', status='{self.status}')>"
