"""Healing engine: moves reviews away from deactivated users.

Two flows share the same building blocks:

* reviewer-level healing replaces (or, failing that, removes) each edge held
  by an inactive user, one edge at a time, bumping the in-memory workload
  after every pick;
* team cascade healing deactivates a whole team, strips every inactive
  reviewer in bulk and then tops affected pull requests back up to
  ``config.min_reviewers``.

Counts in :class:`HealingReport` are per reviewer edge.
"""
from dataclasses import dataclass, field
from typing import Optional

from ..errors import TeamNotFound, UserNotFound, UserStillActive
from ..models import PullRequestStatus, User
from ..storage.gateway import InactiveReviewer, ReviewGateway
from .base import EngineBase
from .selector import eligible_pool, select_user_with_min_workload, select_users_with_min_workload
from .workload import WorkloadIndex


@dataclass
class HealingReport:
    """Outcome of a healing pass."""
    deactivated: int = 0
    replaced: int = 0
    removed: int = 0
    topped_up: int = 0
    under_reviewed: list[str] = field(default_factory=list)

    @property
    def reassigned(self) -> int:
        """Reviewer edges handed to a new reviewer."""
        return self.replaced + self.topped_up

    def mark_under_reviewed(self, pull_request_id: str) -> None:
        if pull_request_id not in self.under_reviewed:
            self.under_reviewed.append(pull_request_id)


class HealingEngine(EngineBase):
    """Engine for healing reviewer assignments after deactivations."""

    async def heal_after_user_deactivation(
        self, user_id: str, timeout: Optional[float] = None
    ) -> HealingReport:
        """Remove an inactive user from every OPEN pull request they review.

        Each edge is replaced by the least-loaded active member of the user's
        team who is neither the author nor already a reviewer; when nobody
        qualifies the edge is dropped. All changes commit together.

        Raises:
            UserNotFound: If the user is unknown
            UserStillActive: If the user has not been deactivated
        """

        async def work():
            async with self.db.transaction() as gateway:
                user = await gateway.user_by_external_id(user_id)
                if user is None:
                    raise UserNotFound(user_id=user_id)
                if user.is_active:
                    raise UserStillActive(user_id=user_id)
                return await self.heal_reviewer(gateway, user)

        return await self._run("heal_after_user_deactivation", work, timeout)

    async def heal_all_inactive(self, timeout: Optional[float] = None) -> HealingReport:
        """Heal every OPEN pull request that still has an inactive reviewer."""

        async def work():
            async with self.db.transaction() as gateway:
                rows = await gateway.open_prs_with_inactive_reviewers()
                report = HealingReport()
                if not rows:
                    return report

                workload = await WorkloadIndex.load(gateway)
                members: dict[int, list[User]] = {}
                for row in rows:
                    await self._heal_edge(gateway, row, workload, members, report)

                self._log_summary("all inactive reviewers", report)
                return report

        return await self._run("heal_all_inactive", work, timeout)

    async def heal_after_team_deactivation(
        self, team_id: int, timeout: Optional[float] = None
    ) -> HealingReport:
        """Deactivate a whole team and re-balance the pull requests it reviewed.

        Returns:
            Report whose ``deactivated`` and ``reassigned`` fields give the
            number of users switched off and reviewer slots refilled

        Raises:
            TeamNotFound: If the team is unknown
        """

        async def work():
            async with self.db.transaction() as gateway:
                team = await gateway.team_by_id(team_id)
                if team is None:
                    raise TeamNotFound(team_id=team_id)
                return await self._cascade(gateway, team_id, team.team_name)

        return await self._run("heal_after_team_deactivation", work, timeout)

    async def heal_reviewer(
        self,
        gateway: ReviewGateway,
        user: User,
        report: Optional[HealingReport] = None,
    ) -> HealingReport:
        """Heal every OPEN pull request reviewed by ``user`` inside the caller's transaction."""
        report = report if report is not None else HealingReport()
        pull_requests = await gateway.pull_requests_reviewed_by(
            user.user_id, status=PullRequestStatus.OPEN.value
        )
        if not pull_requests:
            return report

        workload = await WorkloadIndex.load(gateway)
        members: dict[int, list[User]] = {}
        for pull_request in pull_requests:
            row = InactiveReviewer(
                pull_request.pull_request_id, pull_request.author_id, user.user_id, user.team_id
            )
            await self._heal_edge(gateway, row, workload, members, report)

        self._log_summary(f"reviewer {user.user_id}", report)
        return report

    async def _heal_edge(
        self,
        gateway: ReviewGateway,
        row: InactiveReviewer,
        workload: WorkloadIndex,
        members: dict[int, list[User]],
        report: HealingReport,
    ) -> None:
        if row.team_id not in members:
            members[row.team_id] = await gateway.active_users_in_team(row.team_id)

        assigned = [a.user_id for a in await gateway.reviewer_assignments_for(row.pull_request_id)]
        pool = eligible_pool(members[row.team_id], row.author_id, assigned)
        replacement = select_user_with_min_workload(pool, workload)

        if replacement is not None:
            await gateway.replace_assignment(
                row.pull_request_id, row.inactive_user_id, replacement.user_id
            )
            workload.increment(replacement.user_id)
            workload.decrement(row.inactive_user_id)
            report.replaced += 1
            self.logger.info(
                f"Pull request {row.pull_request_id}: replaced inactive reviewer "
                f"{row.inactive_user_id} with {replacement.user_id}"
            )
        else:
            await gateway.delete_assignment(row.pull_request_id, row.inactive_user_id)
            workload.decrement(row.inactive_user_id)
            report.removed += 1
            report.mark_under_reviewed(row.pull_request_id)
            self.logger.warning(
                f"Pull request {row.pull_request_id}: no replacement for inactive reviewer "
                f"{row.inactive_user_id}, reviewer removed"
            )

    async def _cascade(self, gateway: ReviewGateway, team_id: int, team_name: str) -> HealingReport:
        report = HealingReport()

        # 1. Deactivate the team
        deactivated = await gateway.deactivate_all_users_in_team(team_id)
        report.deactivated = len(deactivated)
        if not deactivated:
            self.logger.info(f"Team {team_name} has no active members to deactivate")
            return report

        # 2. Open pull requests holding inactive reviewers, grouped per pull request
        affected: dict[str, list[InactiveReviewer]] = {}
        for row in await gateway.open_prs_with_inactive_reviewers():
            affected.setdefault(row.pull_request_id, []).append(row)

        # 3. Bulk removal
        for pull_request_id, rows in affected.items():
            report.removed += await gateway.delete_assignments(
                pull_request_id, [row.inactive_user_id for row in rows]
            )

        # 4. Fresh workload after the removal
        workload = await WorkloadIndex.load(gateway)

        # 5. Top up to the minimum reviewer count from the author's team
        target = self.config.min_reviewers
        for pull_request_id, rows in affected.items():
            current = [a.user_id for a in await gateway.reviewer_assignments_for(pull_request_id)]
            needed = target - len(current)
            if needed <= 0:
                continue

            author_id = rows[0].author_id
            author = await gateway.user_by_external_id(author_id)
            selected: list[User] = []
            if author is not None:
                candidates = await gateway.active_users_in_team(author.team_id, exclude_user_id=author_id)
                pool = eligible_pool(candidates, author_id, current)
                selected = select_users_with_min_workload(pool, workload, needed)

            for user in selected:
                await gateway.create_assignment(pull_request_id, user.user_id)
                workload.increment(user.user_id)
                report.topped_up += 1

            if len(selected) < needed:
                report.mark_under_reviewed(pull_request_id)
                self.logger.warning(
                    f"Pull request {pull_request_id} left with "
                    f"{len(current) + len(selected)} of {target} reviewers"
                )

        # 6. Report
        self._log_summary(f"team {team_name}", report)
        return report

    def _log_summary(self, scope: str, report: HealingReport) -> None:
        self.logger.info(
            f"Healed {scope}: deactivated={report.deactivated} replaced={report.replaced} "
            f"removed={report.removed} topped_up={report.topped_up} "
            f"under_reviewed={len(report.under_reviewed)}"
        )
