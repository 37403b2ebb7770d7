"""User model."""
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class User(Base):
    """Team member who can author pull requests and review them."""

    __tablename__ = "users"
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (Index("idx_users_team_active", "team_id", "is_active"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    team_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("teams.id"), nullable=False, index=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    team: Mapped["Team"] = relationship(
        "Team", back_populates="members", lazy="joined", innerjoin=True
    )

    def __repr__(self) -> str:
        return f"<User(user_id='{self.user_id}', team_id={self.team_id}, is_active={self.is_active})>"
