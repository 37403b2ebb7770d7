"""Read-only aggregates over teams, users, pull requests and reviewer edges."""
from sqlalchemy import case, func, select

from ..models import PullRequest, PullRequestStatus, ReviewerAssignment, Team, User
from ..schemas.statistics import AssignmentStats, PullRequestStats, TeamStats, UserWorkload
from ..storage.database import Database


class StatisticsService:
    """Computes statistics straight from the database.

    None of these numbers feed back into assignment decisions; the engines
    build their own workload index inside each transaction.
    """

    def __init__(self, db: Database):
        self.db = db

    async def assignment_stats(self) -> list[AssignmentStats]:
        """Reviewer edges per user, split by pull request status."""
        open_edge = case((PullRequest.status == PullRequestStatus.OPEN.value, 1), else_=0)
        merged_edge = case((PullRequest.status == PullRequestStatus.MERGED.value, 1), else_=0)
        query = (
            select(
                User.user_id,
                User.username,
                Team.team_name,
                func.count(ReviewerAssignment.id),
                func.coalesce(func.sum(open_edge), 0),
                func.coalesce(func.sum(merged_edge), 0),
            )
            .join(Team, Team.id == User.team_id)
            .outerjoin(ReviewerAssignment, ReviewerAssignment.user_id == User.user_id)
            .outerjoin(
                PullRequest,
                PullRequest.pull_request_id == ReviewerAssignment.pull_request_id,
            )
            .group_by(User.user_id, User.username, Team.team_name)
            .order_by(User.user_id)
        )
        async with self.db.session() as session:
            result = await session.execute(query)
            return [
                AssignmentStats(
                    user_id=user_id,
                    username=username,
                    team_name=team_name,
                    total_assignments=total,
                    open_prs=open_prs,
                    merged_prs=merged_prs,
                )
                for user_id, username, team_name, total, open_prs, merged_prs in result.all()
            ]

    async def user_workload(self) -> list[UserWorkload]:
        """OPEN pull requests each user currently reviews, busiest first."""
        open_reviews = (
            select(ReviewerAssignment.user_id, func.count(ReviewerAssignment.id).label("reviews"))
            .join(
                PullRequest,
                PullRequest.pull_request_id == ReviewerAssignment.pull_request_id,
            )
            .where(PullRequest.status == PullRequestStatus.OPEN.value)
            .group_by(ReviewerAssignment.user_id)
            .subquery()
        )
        reviews = func.coalesce(open_reviews.c.reviews, 0)
        query = (
            select(User.user_id, User.username, Team.team_name, User.is_active, reviews)
            .join(Team, Team.id == User.team_id)
            .outerjoin(open_reviews, open_reviews.c.user_id == User.user_id)
            .order_by(reviews.desc(), User.user_id)
        )
        async with self.db.session() as session:
            result = await session.execute(query)
            return [
                UserWorkload(
                    user_id=user_id,
                    username=username,
                    team_name=team_name,
                    is_active=is_active,
                    open_reviews_count=count,
                )
                for user_id, username, team_name, is_active, count in result.all()
            ]

    async def pull_request_stats(self) -> list[PullRequestStats]:
        query = (
            select(
                PullRequest.pull_request_id,
                PullRequest.pull_request_name,
                PullRequest.author_id,
                PullRequest.status,
                func.count(ReviewerAssignment.id),
            )
            .outerjoin(
                ReviewerAssignment,
                ReviewerAssignment.pull_request_id == PullRequest.pull_request_id,
            )
            .group_by(
                PullRequest.id,
                PullRequest.pull_request_id,
                PullRequest.pull_request_name,
                PullRequest.author_id,
                PullRequest.status,
            )
            .order_by(PullRequest.id)
        )
        async with self.db.session() as session:
            result = await session.execute(query)
            return [
                PullRequestStats(
                    pull_request_id=pr_id,
                    pull_request_name=name,
                    author_id=author_id,
                    status=status,
                    reviewers_count=count,
                )
                for pr_id, name, author_id, status, count in result.all()
            ]

    async def team_stats(self) -> list[TeamStats]:
        """Members, active members, pull requests authored and reviewed per team."""
        members = (
            select(func.count(User.id)).where(User.team_id == Team.id).scalar_subquery()
        )
        active = (
            select(func.count(User.id))
            .where(User.team_id == Team.id, User.is_active.is_(True))
            .scalar_subquery()
        )
        authored = (
            select(func.count(PullRequest.id))
            .join(User, User.user_id == PullRequest.author_id)
            .where(User.team_id == Team.id)
            .scalar_subquery()
        )
        reviewed = (
            select(func.count(func.distinct(ReviewerAssignment.pull_request_id)))
            .join(User, User.user_id == ReviewerAssignment.user_id)
            .where(User.team_id == Team.id)
            .scalar_subquery()
        )
        query = select(Team.team_name, members, active, authored, reviewed).order_by(
            Team.team_name
        )
        async with self.db.session() as session:
            result = await session.execute(query)
            return [
                TeamStats(
                    team_name=team_name,
                    total_members=total,
                    active_members=active_count,
                    total_prs_authored=authored_count,
                    total_prs_reviewed=reviewed_count,
                )
                for team_name, total, active_count, authored_count, reviewed_count in result.all()
            ]
