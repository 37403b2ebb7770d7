"""Team model."""
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..storage.database import Base


class Team(Base):
    """Team of engineers; reviewers are picked from the author's team."""

    __tablename__ = "teams"
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    members: Mapped[list["User"]] = relationship(
        "User", back_populates="team", order_by="User.user_id"
    )

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, team_name='{self.team_name}')>"
