"""ReviewerAssignment model - the (pull request, reviewer) edge."""
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class ReviewerAssignment(Base):
    """A user designated to review a pull request.

    The unique constraint keeps concurrent assignments of the same pair from
    producing duplicate edges.
    """

    __tablename__ = "pr_reviewers"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        UniqueConstraint("pull_request_id", "user_id", name="uq_pr_reviewers_pr_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pull_request_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("pull_requests.pull_request_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("users.user_id"), nullable=False, index=True
    )
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    pull_request: Mapped["PullRequest"] = relationship(
        "PullRequest", back_populates="assignments"
    )
    user: Mapped["User"] = relationship("User", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<ReviewerAssignment(pull_request_id='{self.pull_request_id}', "
            f"user_id='{self.user_id}')>"
        )
