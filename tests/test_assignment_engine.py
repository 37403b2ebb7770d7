"""Tests for the assignment engine."""
import asyncio

import pytest

from prassign.core.errors import (
    AlreadyAssigned,
    CannotAssignAuthor,
    DeadlineExceeded,
    ErrorKind,
    NoEligibleReviewers,
    NotAssigned,
    PullRequestAlreadyExists,
    PullRequestNotFound,
    PullRequestNotOpen,
    UserInactive,
    UserNotFound,
)
from prassign.core.models import ReviewerAssignment
from prassign.core.routing import AssignmentEngine, WorkloadIndex
from prassign.core.storage.database import Database


@pytest.fixture
async def team_t(seed_team):
    """Team "T" with u1..u3 active."""
    return await seed_team("T", "u1", "u2", "u3")


async def test_create_and_auto_assign_picks_team_members(engine, team_t):
    pr, assignments = await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    assert pr.pull_request_id == "PR1"
    assert pr.is_open
    assert [a.user_id for a in assignments] == ["u2", "u3"]


async def test_create_uses_configured_reviewer_count(engine, config, seed_team):
    await seed_team("T", "u1", "u2", "u3", "u4")
    config.default_reviewer_count = 1

    _, assignments = await engine.create_and_auto_assign("PR1", "x", "u1")

    assert [a.user_id for a in assignments] == ["u2"]


async def test_create_without_eligible_reviewers_still_creates(engine, seed_team, reviewers_of):
    await seed_team("Solo", "u1")
    await seed_team("Other", "u9")

    pr, assignments = await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    assert pr.pull_request_id == "PR1"
    assert assignments == []
    assert await reviewers_of("PR1") == []


async def test_create_skips_inactive_members(engine, seed_team):
    await seed_team("T", "u1", "u2", "u3", inactive=("u2",))

    _, assignments = await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    assert [a.user_id for a in assignments] == ["u3"]


async def test_create_rejects_duplicate_and_unknown_author(engine, team_t):
    await engine.create_and_auto_assign("PR1", "x", "u1")

    with pytest.raises(PullRequestAlreadyExists) as exc_info:
        await engine.create_and_auto_assign("PR1", "again", "u2")
    assert exc_info.value.kind is ErrorKind.CONFLICT

    with pytest.raises(UserNotFound) as exc_info:
        await engine.create_and_auto_assign("PR2", "x", "ghost")
    assert exc_info.value.details == {"user_id": "ghost"}


async def test_ten_pull_requests_spread_evenly(engine, seed_team, db):
    """Team of five: 20 reviewer slots over u2..u5 land exactly 5 each."""
    await seed_team("T", "u1", "u2", "u3", "u4", "u5")

    for i in range(10):
        await engine.create_and_auto_assign(f"PR{i}", f"change {i}", "u1", 2)

    async with db.transaction() as gateway:
        workload = await WorkloadIndex.load(gateway)

    counts = [workload[user_id] for user_id in ("u2", "u3", "u4", "u5")]
    assert counts == [5, 5, 5, 5]
    assert workload["u1"] == 0


async def test_auto_assign_tops_up_existing_pull_request(engine, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4")
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)

    added = await engine.auto_assign("PR1", 2)

    assert [a.user_id for a in added] == ["u3", "u4"]
    assert await reviewers_of("PR1") == ["u2", "u3", "u4"]


async def test_auto_assign_errors(engine, pr_service, team_t):
    with pytest.raises(PullRequestNotFound):
        await engine.auto_assign("missing")

    await engine.create_and_auto_assign("PR1", "x", "u1", 2)
    with pytest.raises(NoEligibleReviewers) as exc_info:
        await engine.auto_assign("PR1", 1)
    assert exc_info.value.kind is ErrorKind.NO_ELIGIBLE_CANDIDATES

    await pr_service.merge_pull_request("PR1")
    with pytest.raises(PullRequestNotOpen):
        await engine.auto_assign("PR1", 1)


async def test_assign_reviewer(engine, team_t, seed_team, reviewers_of):
    await seed_team("Other", "o1")
    await engine.create_and_auto_assign("PR1", "x", "u1", 0)

    assignment = await engine.assign_reviewer("PR1", "o1")

    assert assignment.user_id == "o1"
    assert await reviewers_of("PR1") == ["o1"]


async def test_assign_reviewer_validation_order(engine, pr_service, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4", inactive=("u3",))
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)

    with pytest.raises(PullRequestNotFound):
        await engine.assign_reviewer("missing", "ghost")
    with pytest.raises(UserNotFound):
        await engine.assign_reviewer("PR1", "ghost")
    with pytest.raises(UserInactive) as exc_info:
        await engine.assign_reviewer("PR1", "u3")
    assert exc_info.value.kind is ErrorKind.INVALID_ASSIGNMENT
    with pytest.raises(CannotAssignAuthor):
        await engine.assign_reviewer("PR1", "u1")
    with pytest.raises(AlreadyAssigned):
        await engine.assign_reviewer("PR1", "u2")

    assert await reviewers_of("PR1") == ["u2"]

    await pr_service.merge_pull_request("PR1")
    # Status is checked before the user, even for unknown users
    with pytest.raises(PullRequestNotOpen) as exc_info:
        await engine.assign_reviewer("PR1", "ghost")
    assert exc_info.value.kind is ErrorKind.INVALID_STATE


async def test_replace_reviewer_with_named_user(engine, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4")
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    assignment = await engine.replace_reviewer("PR1", "u2", "u4")

    assert assignment.user_id == "u4"
    assert await reviewers_of("PR1") == ["u3", "u4"]


async def test_replace_reviewer_picks_least_loaded(engine, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4", "u5")
    await engine.create_and_auto_assign("PR0", "busy", "u1", 2)  # u2, u3
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)  # u4
    await engine.replace_reviewer("PR0", "u3", "u5")  # PR0: u2, u5

    assignment = await engine.replace_reviewer("PR1", "u4")

    # u2 and u5 carry one review each, u3 carries none
    assert assignment.user_id == "u3"
    assert await reviewers_of("PR1") == ["u3"]


async def test_replace_reviewer_rejects_author_and_leaves_edges(engine, team_t, reviewers_of):
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)
    before = await reviewers_of("PR1")

    with pytest.raises(CannotAssignAuthor) as exc_info:
        await engine.replace_reviewer("PR1", "u2", "u1")

    assert exc_info.value.kind is ErrorKind.INVALID_ASSIGNMENT
    assert await reviewers_of("PR1") == before == ["u2"]


async def test_replace_reviewer_failures_leave_edges(engine, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4", inactive=("u4",))
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    with pytest.raises(NotAssigned):
        await engine.replace_reviewer("PR1", "u4", "u3")
    with pytest.raises(UserNotFound):
        await engine.replace_reviewer("PR1", "u2", "ghost")
    with pytest.raises(UserInactive):
        await engine.replace_reviewer("PR1", "u2", "u4")
    with pytest.raises(AlreadyAssigned):
        await engine.replace_reviewer("PR1", "u2", "u3")
    with pytest.raises(NoEligibleReviewers):
        await engine.replace_reviewer("PR1", "u2")

    assert await reviewers_of("PR1") == ["u2", "u3"]


async def test_remove_reviewer(engine, team_t, reviewers_of):
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    await engine.remove_reviewer("PR1", "u2")
    assert await reviewers_of("PR1") == ["u3"]

    with pytest.raises(NotAssigned):
        await engine.remove_reviewer("PR1", "u2")


async def test_merged_pull_request_rejects_every_mutation(engine, pr_service, team_t, reviewers_of):
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)
    await pr_service.merge_pull_request("PR1")

    attempts = [
        engine.assign_reviewer("PR1", "u3"),
        engine.replace_reviewer("PR1", "u2", "u3"),
        engine.replace_reviewer("PR1", "u2"),
        engine.remove_reviewer("PR1", "u2"),
        engine.auto_assign("PR1", 1),
    ]
    for attempt in attempts:
        with pytest.raises(PullRequestNotOpen) as exc_info:
            await attempt
        assert exc_info.value.kind is ErrorKind.INVALID_STATE

    assert await reviewers_of("PR1") == ["u2"]


async def test_reviewers_for(engine, team_t):
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    assert [a.user_id for a in await engine.reviewers_for("PR1")] == ["u2", "u3"]
    with pytest.raises(PullRequestNotFound):
        await engine.reviewers_for("missing")


async def test_author_never_reviews(engine, seed_team, db):
    await seed_team("T", "u1", "u2", "u3")
    for i, author in enumerate(["u1", "u2", "u3", "u1", "u2"]):
        await engine.create_and_auto_assign(f"PR{i}", "x", author, 2)

    async with db.transaction() as gateway:
        for pr in await gateway.list_pull_requests():
            reviewers = [a.user_id for a in await gateway.reviewer_assignments_for(pr.pull_request_id)]
            assert pr.author_id not in reviewers
            assert len(reviewers) == len(set(reviewers)) == 2


async def test_deadline_rolls_back_transaction(engine, team_t, db, reviewers_of):
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)

    async def slow_work():
        async with db.transaction() as gateway:
            await gateway.create_assignment("PR1", "u3")
            await asyncio.sleep(5)

    with pytest.raises(DeadlineExceeded) as exc_info:
        await engine._run("slow_assign", slow_work, timeout=0.05)

    assert exc_info.value.kind is ErrorKind.TIMEOUT
    assert exc_info.value.details["operation"] == "slow_assign"
    assert await reviewers_of("PR1") == ["u2"]


async def test_configured_timeout_applies(engine, config):
    config.operation_timeout = 0.05

    async def slow_work():
        await asyncio.sleep(5)

    with pytest.raises(DeadlineExceeded):
        await engine._run("slow", slow_work)


@pytest.fixture
async def file_db(tmp_path):
    """File-backed database so concurrent transactions use separate connections."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}")
    await db.create_tables()
    async with db.transaction() as gateway:
        team = await gateway.create_team("T")
        for user_id in ("u1", "u2", "u3"):
            await gateway.create_user(user_id, user_id.upper(), team.id)
        await gateway.create_pull_request("PR1", "x", "u1")
    yield db
    await db.close()


async def test_concurrent_assign_creates_one_edge(file_db, config):
    engine = AssignmentEngine(file_db, config)

    results = await asyncio.gather(
        engine.assign_reviewer("PR1", "u2"),
        engine.assign_reviewer("PR1", "u2"),
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, ReviewerAssignment)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(created) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], AlreadyAssigned)

    async with file_db.transaction() as gateway:
        assert [a.user_id for a in await gateway.reviewer_assignments_for("PR1")] == ["u2"]
