"""Persistence gateway consumed by the assignment and healing engines."""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import AlreadyAssigned, PullRequestAlreadyExists, TeamAlreadyExists
from ..models import PullRequest, PullRequestStatus, ReviewerAssignment, Team, User


class InactiveReviewer(NamedTuple):
    """An inactive user still assigned to an open pull request."""
    pull_request_id: str
    author_id: str
    inactive_user_id: str
    team_id: int


class ReviewGateway(ABC):
    """Abstract persistence interface for teams, users, pull requests and edges.

    One gateway instance is bound to one transaction: everything it reads and
    writes commits or rolls back together.
    """

    # Teams and users

    @abstractmethod
    async def team_by_name(self, team_name: str) -> Optional[Team]:
        pass

    @abstractmethod
    async def team_by_id(self, team_id: int) -> Optional[Team]:
        pass

    @abstractmethod
    async def list_teams(self) -> list[Team]:
        pass

    @abstractmethod
    async def create_team(self, team_name: str) -> Team:
        pass

    @abstractmethod
    async def team_members(self, team_id: int) -> list[User]:
        """All members of a team ordered by user id."""
        pass

    @abstractmethod
    async def user_by_external_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def active_users_in_team(
        self, team_id: int, exclude_user_id: Optional[str] = None
    ) -> list[User]:
        """Active members of a team ordered by user id."""
        pass

    @abstractmethod
    async def create_user(
        self, user_id: str, username: str, team_id: int, is_active: bool = True
    ) -> User:
        pass

    @abstractmethod
    async def update_user(
        self, user: User, username: str, team_id: int, is_active: bool
    ) -> User:
        pass

    @abstractmethod
    async def set_user_active(self, user: User, is_active: bool) -> User:
        pass

    @abstractmethod
    async def deactivate_all_users_in_team(self, team_id: int) -> list[User]:
        """Deactivate every active member of a team and return the changed users."""
        pass

    # Pull requests

    @abstractmethod
    async def pull_request_by_external_id(
        self, pull_request_id: str, for_update: bool = False
    ) -> Optional[PullRequest]:
        pass

    @abstractmethod
    async def list_pull_requests(self, status: Optional[str] = None) -> list[PullRequest]:
        pass

    @abstractmethod
    async def create_pull_request(
        self, pull_request_id: str, name: str, author_id: str
    ) -> PullRequest:
        pass

    @abstractmethod
    async def mark_merged(self, pull_request: PullRequest) -> PullRequest:
        pass

    # Reviewer assignments

    @abstractmethod
    async def is_user_assigned(self, pull_request_id: str, user_id: str) -> bool:
        pass

    @abstractmethod
    async def reviewer_assignments_for(self, pull_request_id: str) -> list[ReviewerAssignment]:
        pass

    @abstractmethod
    async def pull_requests_reviewed_by(
        self, user_id: str, status: Optional[str] = None
    ) -> list[PullRequest]:
        pass

    @abstractmethod
    async def open_review_counts_by_user(self) -> dict[str, int]:
        """Map user id to the number of OPEN pull requests they review."""
        pass

    @abstractmethod
    async def open_prs_with_inactive_reviewers(self) -> list[InactiveReviewer]:
        pass

    @abstractmethod
    async def create_assignment(self, pull_request_id: str, user_id: str) -> ReviewerAssignment:
        pass

    @abstractmethod
    async def delete_assignment(self, pull_request_id: str, user_id: str) -> bool:
        pass

    @abstractmethod
    async def delete_assignments(self, pull_request_id: str, user_ids: list[str]) -> int:
        pass

    @abstractmethod
    async def replace_assignment(
        self, pull_request_id: str, old_user_id: str, new_user_id: str
    ) -> ReviewerAssignment:
        pass


class SqlAlchemyGateway(ReviewGateway):
    """Gateway backed by an ``AsyncSession`` inside an open transaction."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Teams and users

    async def team_by_name(self, team_name: str) -> Optional[Team]:
        result = await self.session.execute(select(Team).where(Team.team_name == team_name))
        return result.scalar_one_or_none()

    async def team_by_id(self, team_id: int) -> Optional[Team]:
        return await self.session.get(Team, team_id)

    async def list_teams(self) -> list[Team]:
        result = await self.session.execute(select(Team).order_by(Team.team_name))
        return list(result.scalars().all())

    async def create_team(self, team_name: str) -> Team:
        team = Team(team_name=team_name)
        self.session.add(team)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise TeamAlreadyExists(team_name=team_name) from e
        return team

    async def team_members(self, team_id: int) -> list[User]:
        result = await self.session.execute(
            select(User).where(User.team_id == team_id).order_by(User.user_id)
        )
        return list(result.scalars().all())

    async def user_by_external_id(self, user_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.user_id == user_id))
        return result.scalar_one_or_none()

    async def active_users_in_team(
        self, team_id: int, exclude_user_id: Optional[str] = None
    ) -> list[User]:
        query = select(User).where(User.team_id == team_id, User.is_active.is_(True))
        if exclude_user_id is not None:
            query = query.where(User.user_id != exclude_user_id)
        result = await self.session.execute(query.order_by(User.user_id))
        return list(result.scalars().all())

    async def create_user(
        self, user_id: str, username: str, team_id: int, is_active: bool = True
    ) -> User:
        user = User(user_id=user_id, username=username, team_id=team_id, is_active=is_active)
        self.session.add(user)
        await self.session.flush()
        return user

    async def update_user(
        self, user: User, username: str, team_id: int, is_active: bool
    ) -> User:
        user.username = username
        user.team_id = team_id
        user.is_active = is_active
        await self.session.flush()
        return user

    async def set_user_active(self, user: User, is_active: bool) -> User:
        user.is_active = is_active
        await self.session.flush()
        return user

    async def deactivate_all_users_in_team(self, team_id: int) -> list[User]:
        result = await self.session.execute(
            select(User)
            .where(User.team_id == team_id, User.is_active.is_(True))
            .order_by(User.user_id)
            .with_for_update(of=User)
        )
        users = list(result.scalars().all())
        for user in users:
            user.is_active = False
        await self.session.flush()
        return users

    # Pull requests

    async def pull_request_by_external_id(
        self, pull_request_id: str, for_update: bool = False
    ) -> Optional[PullRequest]:
        query = select(PullRequest).where(PullRequest.pull_request_id == pull_request_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_pull_requests(self, status: Optional[str] = None) -> list[PullRequest]:
        query = select(PullRequest)
        if status:
            query = query.where(PullRequest.status == status)
        result = await self.session.execute(query.order_by(PullRequest.id))
        return list(result.scalars().all())

    async def create_pull_request(
        self, pull_request_id: str, name: str, author_id: str
    ) -> PullRequest:
        pull_request = PullRequest(
            pull_request_id=pull_request_id,
            pull_request_name=name,
            author_id=author_id,
            status=PullRequestStatus.OPEN.value,
        )
        self.session.add(pull_request)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise PullRequestAlreadyExists(pull_request_id=pull_request_id) from e
        return pull_request

    async def mark_merged(self, pull_request: PullRequest) -> PullRequest:
        pull_request.status = PullRequestStatus.MERGED.value
        pull_request.merged_at = datetime.now(timezone.utc)
        await self.session.flush()
        return pull_request

    # Reviewer assignments

    async def is_user_assigned(self, pull_request_id: str, user_id: str) -> bool:
        result = await self.session.execute(
            select(func.count(ReviewerAssignment.id)).where(
                ReviewerAssignment.pull_request_id == pull_request_id,
                ReviewerAssignment.user_id == user_id,
            )
        )
        return result.scalar_one() > 0

    async def reviewer_assignments_for(self, pull_request_id: str) -> list[ReviewerAssignment]:
        result = await self.session.execute(
            select(ReviewerAssignment)
            .where(ReviewerAssignment.pull_request_id == pull_request_id)
            .order_by(ReviewerAssignment.user_id)
        )
        return list(result.scalars().all())

    async def pull_requests_reviewed_by(
        self, user_id: str, status: Optional[str] = None
    ) -> list[PullRequest]:
        query = (
            select(PullRequest)
            .join(
                ReviewerAssignment,
                ReviewerAssignment.pull_request_id == PullRequest.pull_request_id,
            )
            .where(ReviewerAssignment.user_id == user_id)
        )
        if status:
            query = query.where(PullRequest.status == status)
        result = await self.session.execute(query.order_by(PullRequest.id))
        return list(result.scalars().all())

    async def open_review_counts_by_user(self) -> dict[str, int]:
        result = await self.session.execute(
            select(ReviewerAssignment.user_id, func.count(ReviewerAssignment.id))
            .join(
                PullRequest,
                PullRequest.pull_request_id == ReviewerAssignment.pull_request_id,
            )
            .where(PullRequest.status == PullRequestStatus.OPEN.value)
            .group_by(ReviewerAssignment.user_id)
        )
        return {user_id: count for user_id, count in result.all()}

    async def open_prs_with_inactive_reviewers(self) -> list[InactiveReviewer]:
        result = await self.session.execute(
            select(
                PullRequest.pull_request_id,
                PullRequest.author_id,
                ReviewerAssignment.user_id,
                User.team_id,
            )
            .join(
                ReviewerAssignment,
                ReviewerAssignment.pull_request_id == PullRequest.pull_request_id,
            )
            .join(User, User.user_id == ReviewerAssignment.user_id)
            .where(
                PullRequest.status == PullRequestStatus.OPEN.value,
                User.is_active.is_(False),
            )
            .order_by(PullRequest.id, ReviewerAssignment.user_id)
            .with_for_update(of=ReviewerAssignment)
        )
        return [InactiveReviewer(*row) for row in result.all()]

    async def create_assignment(self, pull_request_id: str, user_id: str) -> ReviewerAssignment:
        assignment = ReviewerAssignment(pull_request_id=pull_request_id, user_id=user_id)
        self.session.add(assignment)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise AlreadyAssigned(pull_request_id=pull_request_id, user_id=user_id) from e
        return assignment

    async def delete_assignment(self, pull_request_id: str, user_id: str) -> bool:
        return await self.delete_assignments(pull_request_id, [user_id]) > 0

    async def delete_assignments(self, pull_request_id: str, user_ids: list[str]) -> int:
        if not user_ids:
            return 0
        result = await self.session.execute(
            delete(ReviewerAssignment)
            .where(
                ReviewerAssignment.pull_request_id == pull_request_id,
                ReviewerAssignment.user_id.in_(user_ids),
            )
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    async def replace_assignment(
        self, pull_request_id: str, old_user_id: str, new_user_id: str
    ) -> ReviewerAssignment:
        await self.delete_assignment(pull_request_id, old_user_id)
        return await self.create_assignment(pull_request_id, new_user_id)
