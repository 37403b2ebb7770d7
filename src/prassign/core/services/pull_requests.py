"""Pull request lifecycle: lookup, listing and merge."""
from typing import Optional

from ..errors import InvalidStatus, PullRequestNotFound, PullRequestNotOpen
from ..models import PullRequest, PullRequestStatus, ReviewerAssignment
from ..routing.base import EngineBase


def parse_status(status: str) -> PullRequestStatus:
    try:
        return PullRequestStatus(status.upper())
    except ValueError as e:
        raise InvalidStatus(status=status) from e


class PullRequestService(EngineBase):
    """Reads pull requests and moves them through OPEN -> MERGED."""

    async def get_pull_request(
        self, pull_request_id: str
    ) -> tuple[PullRequest, list[ReviewerAssignment]]:
        async with self.db.transaction() as gateway:
            pull_request = await gateway.pull_request_by_external_id(pull_request_id)
            if pull_request is None:
                raise PullRequestNotFound(pull_request_id=pull_request_id)
            return pull_request, await gateway.reviewer_assignments_for(pull_request_id)

    async def list_pull_requests(self, status: Optional[str] = None) -> list[PullRequest]:
        status_value = parse_status(status).value if status else None
        async with self.db.transaction() as gateway:
            return await gateway.list_pull_requests(status_value)

    async def merge_pull_request(
        self, pull_request_id: str, timeout: Optional[float] = None
    ) -> tuple[PullRequest, list[ReviewerAssignment]]:
        """Mark a pull request MERGED.

        Merging twice is a no-op: the second call returns the pull request
        unchanged and ``merged_at`` keeps its first value.
        """

        async def work():
            async with self.db.transaction() as gateway:
                pull_request = await gateway.pull_request_by_external_id(
                    pull_request_id, for_update=True
                )
                if pull_request is None:
                    raise PullRequestNotFound(pull_request_id=pull_request_id)
                if pull_request.is_open:
                    await gateway.mark_merged(pull_request)
                    self.logger.info(f"Merged pull request {pull_request_id}")
                return pull_request, await gateway.reviewer_assignments_for(pull_request_id)

        return await self._run("merge_pull_request", work, timeout)

    async def update_status(
        self, pull_request_id: str, status: str, timeout: Optional[float] = None
    ) -> tuple[PullRequest, list[ReviewerAssignment]]:
        """Apply a status change; only OPEN -> MERGED and no-op changes are legal."""
        target = parse_status(status)
        if target is PullRequestStatus.MERGED:
            return await self.merge_pull_request(pull_request_id, timeout=timeout)

        pull_request, reviewers = await self.get_pull_request(pull_request_id)
        if not pull_request.is_open:
            raise PullRequestNotOpen(
                pull_request_id=pull_request_id, status=pull_request.status, requested=target.value
            )
        return pull_request, reviewers
