"""Assignment engine: picks, assigns, replaces and removes reviewers."""
from typing import Optional

from ..errors import (
    AlreadyAssigned,
    CannotAssignAuthor,
    NoEligibleReviewers,
    NotAssigned,
    PullRequestAlreadyExists,
    PullRequestNotFound,
    PullRequestNotOpen,
    UserInactive,
    UserNotFound,
)
from ..models import PullRequest, ReviewerAssignment, User
from ..storage.gateway import ReviewGateway
from .base import EngineBase
from .selector import (
    eligible_pool,
    select_user_with_min_workload,
    select_users_with_min_workload,
)
from .workload import WorkloadIndex


class AssignmentEngine(EngineBase):
    """Engine for assigning reviewers to individual pull requests.

    Every public operation runs in one transaction: validation happens before
    the first write, and any failure leaves the reviewer set untouched.

    Usage:
        engine = AssignmentEngine(db, config)
        pr, reviewers = await engine.create_and_auto_assign("pr-1", "Fix", "u1")
    """

    async def create_and_auto_assign(
        self,
        pull_request_id: str,
        name: str,
        author_id: str,
        count: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> tuple[PullRequest, list[ReviewerAssignment]]:
        """Create an OPEN pull request and auto-assign up to ``count`` reviewers.

        An empty eligible pool does not fail creation; the pull request is
        stored with no reviewers.

        Raises:
            PullRequestAlreadyExists: If the id is taken
            UserNotFound: If the author is unknown
        """
        if count is None:
            count = self.config.default_reviewer_count

        async def work():
            async with self.db.transaction() as gateway:
                if await gateway.pull_request_by_external_id(pull_request_id) is not None:
                    raise PullRequestAlreadyExists(pull_request_id=pull_request_id)

                author = await gateway.user_by_external_id(author_id)
                if author is None:
                    raise UserNotFound(user_id=author_id)

                pull_request = await gateway.create_pull_request(pull_request_id, name, author_id)
                try:
                    assignments = await self._auto_assign(gateway, pull_request, author, count)
                except NoEligibleReviewers:
                    self.logger.warning(
                        f"Pull request {pull_request_id} created without reviewers: "
                        f"no eligible members in team {author.team_id}"
                    )
                    assignments = []

                self.logger.info(
                    f"Created pull request {pull_request_id} with reviewers "
                    f"{[a.user_id for a in assignments]}"
                )
                return pull_request, assignments

        return await self._run("create_and_auto_assign", work, timeout)

    async def auto_assign(
        self,
        pull_request_id: str,
        count: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> list[ReviewerAssignment]:
        """Assign up to ``count`` least-loaded reviewers to an existing OPEN pull request.

        Raises:
            PullRequestNotFound: If the pull request is unknown
            PullRequestNotOpen: If it has been merged
            UserNotFound: If the author cannot be resolved
            NoEligibleReviewers: If nobody in the author's team can review
        """
        if count is None:
            count = self.config.default_reviewer_count

        async def work():
            async with self.db.transaction() as gateway:
                pull_request = await self._open_pull_request(gateway, pull_request_id)
                author = await gateway.user_by_external_id(pull_request.author_id)
                if author is None:
                    raise UserNotFound(user_id=pull_request.author_id)
                return await self._auto_assign(gateway, pull_request, author, count)

        return await self._run("auto_assign", work, timeout)

    async def assign_reviewer(
        self,
        pull_request_id: str,
        user_id: str,
        timeout: Optional[float] = None,
    ) -> ReviewerAssignment:
        """Assign one named reviewer.

        Checks run in order: pull request exists and is OPEN, user exists,
        user is active, user is not the author, user is not yet assigned.
        """

        async def work():
            async with self.db.transaction() as gateway:
                pull_request = await self._open_pull_request(gateway, pull_request_id)
                user = await self._check_candidate(gateway, pull_request, user_id)
                assignment = await gateway.create_assignment(pull_request_id, user.user_id)
                self.logger.info(f"Assigned {user_id} to pull request {pull_request_id}")
                return assignment

        return await self._run("assign_reviewer", work, timeout)

    async def replace_reviewer(
        self,
        pull_request_id: str,
        old_user_id: str,
        new_user_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> ReviewerAssignment:
        """Swap ``old_user_id`` for another reviewer as one atomic change.

        When ``new_user_id`` is omitted, the least-loaded eligible member of
        the old reviewer's team is chosen.

        Returns:
            The newly created assignment

        Raises:
            NotAssigned: If ``old_user_id`` is not a reviewer of the pull request
            NoEligibleReviewers: If no replacement could be chosen
        """

        async def work():
            async with self.db.transaction() as gateway:
                pull_request = await self._open_pull_request(
                    gateway, pull_request_id, for_update=True
                )
                if not await gateway.is_user_assigned(pull_request_id, old_user_id):
                    raise NotAssigned(pull_request_id=pull_request_id, user_id=old_user_id)

                if new_user_id is None:
                    replacement = await self._pick_replacement(gateway, pull_request, old_user_id)
                else:
                    replacement = await self._check_candidate(gateway, pull_request, new_user_id)

                assignment = await gateway.replace_assignment(
                    pull_request_id, old_user_id, replacement.user_id
                )
                self.logger.info(
                    f"Replaced reviewer {old_user_id} with {replacement.user_id} "
                    f"on pull request {pull_request_id}"
                )
                return assignment

        return await self._run("replace_reviewer", work, timeout)

    async def remove_reviewer(
        self,
        pull_request_id: str,
        user_id: str,
        timeout: Optional[float] = None,
    ) -> None:
        """Remove a reviewer without choosing a replacement."""

        async def work():
            async with self.db.transaction() as gateway:
                await self._open_pull_request(gateway, pull_request_id)
                if not await gateway.delete_assignment(pull_request_id, user_id):
                    raise NotAssigned(pull_request_id=pull_request_id, user_id=user_id)
                self.logger.info(f"Removed reviewer {user_id} from pull request {pull_request_id}")

        await self._run("remove_reviewer", work, timeout)

    async def reviewers_for(self, pull_request_id: str) -> list[ReviewerAssignment]:
        async with self.db.transaction() as gateway:
            if await gateway.pull_request_by_external_id(pull_request_id) is None:
                raise PullRequestNotFound(pull_request_id=pull_request_id)
            return await gateway.reviewer_assignments_for(pull_request_id)

    async def _auto_assign(
        self,
        gateway: ReviewGateway,
        pull_request: PullRequest,
        author: User,
        count: int,
    ) -> list[ReviewerAssignment]:
        """Assign least-loaded members of the author's team inside an open transaction."""
        if count <= 0:
            return []
        assigned = [a.user_id for a in await gateway.reviewer_assignments_for(pull_request.pull_request_id)]
        members = await gateway.active_users_in_team(author.team_id, exclude_user_id=author.user_id)
        pool = eligible_pool(members, author.user_id, assigned)
        if not pool:
            raise NoEligibleReviewers(
                pull_request_id=pull_request.pull_request_id, team_id=author.team_id
            )

        workload = await WorkloadIndex.load(gateway)
        assignments = []
        for user in select_users_with_min_workload(pool, workload, count):
            assignments.append(
                await gateway.create_assignment(pull_request.pull_request_id, user.user_id)
            )
            workload.increment(user.user_id)
        return assignments

    async def _open_pull_request(
        self, gateway: ReviewGateway, pull_request_id: str, for_update: bool = False
    ) -> PullRequest:
        pull_request = await gateway.pull_request_by_external_id(pull_request_id, for_update=for_update)
        if pull_request is None:
            raise PullRequestNotFound(pull_request_id=pull_request_id)
        if not pull_request.is_open:
            raise PullRequestNotOpen(pull_request_id=pull_request_id, status=pull_request.status)
        return pull_request

    async def _check_candidate(
        self, gateway: ReviewGateway, pull_request: PullRequest, user_id: str
    ) -> User:
        user = await gateway.user_by_external_id(user_id)
        if user is None:
            raise UserNotFound(user_id=user_id)
        if not user.is_active:
            raise UserInactive(user_id=user_id)
        if user.user_id == pull_request.author_id:
            raise CannotAssignAuthor(pull_request_id=pull_request.pull_request_id, user_id=user_id)
        if await gateway.is_user_assigned(pull_request.pull_request_id, user_id):
            raise AlreadyAssigned(pull_request_id=pull_request.pull_request_id, user_id=user_id)
        return user

    async def _pick_replacement(
        self, gateway: ReviewGateway, pull_request: PullRequest, old_user_id: str
    ) -> User:
        old_user = await gateway.user_by_external_id(old_user_id)
        if old_user is None:
            raise UserNotFound(user_id=old_user_id)

        assigned = [a.user_id for a in await gateway.reviewer_assignments_for(pull_request.pull_request_id)]
        members = await gateway.active_users_in_team(old_user.team_id)
        pool = eligible_pool(members, pull_request.author_id, assigned)
        workload = await WorkloadIndex.load(gateway)
        replacement = select_user_with_min_workload(pool, workload)
        if replacement is None:
            raise NoEligibleReviewers(
                pull_request_id=pull_request.pull_request_id, team_id=old_user.team_id
            )
        return replacement
