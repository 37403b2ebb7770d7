"""Pull request and reviewer endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...core.models import PullRequest, ReviewerAssignment
from ...core.routing import AssignmentEngine
from ...core.schemas.pull_request import (
    AutoAssignRequest,
    PullRequestCreate,
    PullRequestRef,
    PullRequestResponse,
    PullRequestShort,
    ReassignResponse,
    ReviewerChange,
    ReviewerReassign,
)
from ...core.services import PullRequestService
from ..dependencies import get_assignment_engine, get_pull_request_service

router = APIRouter()


def _pull_request_response(
    pull_request: PullRequest, assignments: list[ReviewerAssignment]
) -> PullRequestResponse:
    return PullRequestResponse(
        pull_request_id=pull_request.pull_request_id,
        pull_request_name=pull_request.pull_request_name,
        author_id=pull_request.author_id,
        status=pull_request.status,
        assigned_reviewers=[a.user_id for a in assignments],
        created_at=pull_request.created_at,
        merged_at=pull_request.merged_at,
    )


@router.post("/pullRequest/create", response_model=PullRequestResponse, status_code=201)
async def create_pull_request(
    pr_data: PullRequestCreate,
    engine: AssignmentEngine = Depends(get_assignment_engine),
):
    """Create a pull request and auto-assign reviewers from the author's team.

    A team with no eligible reviewers does not block creation; the pull
    request is returned with an empty reviewer list.
    """
    pull_request, assignments = await engine.create_and_auto_assign(
        pr_data.pull_request_id,
        pr_data.pull_request_name,
        pr_data.author_id,
        count=pr_data.reviewer_count,
    )
    return _pull_request_response(pull_request, assignments)


@router.post("/pullRequest/merge", response_model=PullRequestResponse)
async def merge_pull_request(
    request: PullRequestRef,
    service: PullRequestService = Depends(get_pull_request_service),
):
    """Mark a pull request MERGED. Merging again returns it unchanged."""
    pull_request, assignments = await service.merge_pull_request(request.pull_request_id)
    return _pull_request_response(pull_request, assignments)


@router.post("/pullRequest/reassign", response_model=ReassignResponse)
async def reassign_reviewer(
    request: ReviewerReassign,
    engine: AssignmentEngine = Depends(get_assignment_engine),
    service: PullRequestService = Depends(get_pull_request_service),
):
    """Replace one reviewer; picks the least-loaded teammate when no new reviewer is named."""
    assignment = await engine.replace_reviewer(
        request.pull_request_id, request.old_user_id, request.new_user_id
    )
    pull_request, assignments = await service.get_pull_request(request.pull_request_id)
    response = _pull_request_response(pull_request, assignments)
    return ReassignResponse(**response.model_dump(), replaced_by=assignment.user_id)


@router.post("/pullRequest/assign", response_model=PullRequestResponse)
async def assign_reviewer(
    request: ReviewerChange,
    engine: AssignmentEngine = Depends(get_assignment_engine),
    service: PullRequestService = Depends(get_pull_request_service),
):
    """Assign one named reviewer."""
    await engine.assign_reviewer(request.pull_request_id, request.user_id)
    pull_request, assignments = await service.get_pull_request(request.pull_request_id)
    return _pull_request_response(pull_request, assignments)


@router.post("/pullRequest/removeReviewer", response_model=PullRequestResponse)
async def remove_reviewer(
    request: ReviewerChange,
    engine: AssignmentEngine = Depends(get_assignment_engine),
    service: PullRequestService = Depends(get_pull_request_service),
):
    await engine.remove_reviewer(request.pull_request_id, request.user_id)
    pull_request, assignments = await service.get_pull_request(request.pull_request_id)
    return _pull_request_response(pull_request, assignments)


@router.get("/pullRequest/get", response_model=PullRequestResponse)
async def get_pull_request(
    pull_request_id: str = Query(..., min_length=1, description="Pull request id"),
    service: PullRequestService = Depends(get_pull_request_service),
):
    """Get a pull request with its current reviewers."""
    pull_request, assignments = await service.get_pull_request(pull_request_id)
    return _pull_request_response(pull_request, assignments)


@router.get("/pullRequest/list", response_model=list[PullRequestShort])
async def list_pull_requests(
    status: Optional[str] = Query(None, description="Filter by status (OPEN or MERGED)"),
    service: PullRequestService = Depends(get_pull_request_service),
):
    """List pull requests, optionally filtered by status."""
    pull_requests = await service.list_pull_requests(status)
    return [PullRequestShort.model_validate(pr) for pr in pull_requests]


@router.post("/pullRequest/autoAssign", response_model=PullRequestResponse)
async def auto_assign_reviewers(
    request: AutoAssignRequest,
    engine: AssignmentEngine = Depends(get_assignment_engine),
    service: PullRequestService = Depends(get_pull_request_service),
):
    """Add least-loaded reviewers from the author's team to an open pull request."""
    await engine.auto_assign(request.pull_request_id, count=request.reviewer_count)
    pull_request, assignments = await service.get_pull_request(request.pull_request_id)
    return _pull_request_response(pull_request, assignments)
