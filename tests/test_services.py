"""Tests for the team, pull request and statistics services."""
import pytest
from pydantic import ValidationError

from prassign.core.errors import (
    InvalidStatus,
    PullRequestNotFound,
    PullRequestNotOpen,
    TeamNotFound,
    UserNotFound,
)
from prassign.core.schemas import TeamCreate, TeamMember


def members(*specs):
    return [
        TeamMember(user_id=user_id, username=user_id.upper(), is_active=is_active)
        for user_id, is_active in specs
    ]


async def test_upsert_team_creates_then_updates(team_service):
    team, users, report = await team_service.upsert_team(
        "backend", members(("u2", True), ("u1", True))
    )
    assert team.team_name == "backend"
    assert [u.user_id for u in users] == ["u1", "u2"]
    assert report.replaced == report.removed == 0

    team_again, users, _ = await team_service.upsert_team(
        "backend", [TeamMember(user_id="u1", username="Renamed"), *members(("u3", False))]
    )
    assert team_again.id == team.id
    assert [(u.user_id, u.username, u.is_active) for u in users] == [
        ("u1", "Renamed", True),
        ("u2", "U2", True),
        ("u3", "U3", False),
    ]


async def test_upsert_team_moves_user_between_teams(team_service):
    await team_service.upsert_team("a", members(("u1", True), ("u2", True)))
    await team_service.upsert_team("b", members(("u2", True)))

    _, a_members = await team_service.get_team("a")
    _, b_members = await team_service.get_team("b")
    assert [u.user_id for u in a_members] == ["u1"]
    assert [u.user_id for u in b_members] == ["u2"]


async def test_upsert_team_heals_members_switched_off(team_service, engine, reviewers_of):
    await team_service.upsert_team(
        "T", members(("u1", True), ("u2", True), ("u3", True), ("u4", True))
    )
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)

    _, _, report = await team_service.upsert_team("T", members(("u2", False)))

    assert report.replaced == 1
    assert await reviewers_of("PR1") == ["u3"]


async def test_upsert_team_heals_after_all_flags_change(team_service, engine, reviewers_of):
    await team_service.upsert_team(
        "T", members(("u1", True), ("u2", True), ("u3", True), ("u4", True))
    )
    await engine.create_and_auto_assign("PR1", "x", "u1", 1)

    _, _, report = await team_service.upsert_team("T", members(("u2", False), ("u3", False)))

    assert await reviewers_of("PR1") == ["u4"]
    assert report.replaced == 1
    assert report.removed == 0


def test_team_payload_rejects_duplicate_member_ids():
    with pytest.raises(ValidationError):
        TeamCreate(team_name="T", members=members(("u1", True), ("u1", False)))


async def test_get_and_list_teams(team_service):
    await team_service.upsert_team("zeta", [])
    await team_service.upsert_team("alpha", members(("a1", True)))

    team, users = await team_service.get_team("alpha")
    assert team.team_name == "alpha"
    assert [u.user_id for u in users] == ["a1"]
    assert [t.team_name for t in await team_service.list_teams()] == ["alpha", "zeta"]

    with pytest.raises(TeamNotFound):
        await team_service.get_team("missing")


async def test_set_user_active_heals_on_deactivation(team_service, engine, seed_team, reviewers_of):
    await seed_team("T", "u1", "u2", "u3", "u4")
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)

    user, report = await team_service.set_user_active("u2", False)

    assert user.is_active is False
    assert report.replaced == 1
    assert await reviewers_of("PR1") == ["u3", "u4"]

    user, report = await team_service.set_user_active("u2", True)
    assert user.is_active is True
    assert report is None

    with pytest.raises(UserNotFound):
        await team_service.set_user_active("ghost", False)


async def test_deactivate_team_by_name(team_service, seed_team):
    await seed_team("T", "u1", "u2")

    report = await team_service.deactivate_team("T")
    assert report.deactivated == 2

    with pytest.raises(TeamNotFound):
        await team_service.deactivate_team("missing")


async def test_reviews_for_user(team_service, engine, pr_service, seed_team):
    await seed_team("T", "u1", "u2", "u3")
    await engine.create_and_auto_assign("PR1", "x", "u1", 2)
    await engine.create_and_auto_assign("PR2", "y", "u3", 2)
    await pr_service.merge_pull_request("PR1")

    reviews = await team_service.reviews_for_user("u2")
    assert [(pr.pull_request_id, pr.status) for pr in reviews] == [
        ("PR1", "MERGED"),
        ("PR2", "OPEN"),
    ]
    assert [pr.pull_request_id for pr in await team_service.reviews_for_user("u1")] == ["PR2"]

    with pytest.raises(UserNotFound):
        await team_service.reviews_for_user("ghost")


async def test_merge_is_idempotent(pr_service, engine, seed_team):
    await seed_team("T", "u1", "u2")
    await engine.create_and_auto_assign("PR1", "x", "u1")

    merged, reviewers = await pr_service.merge_pull_request("PR1")
    assert merged.status == "MERGED"
    assert [a.user_id for a in reviewers] == ["u2"]
    stored, _ = await pr_service.get_pull_request("PR1")
    first_merged_at = stored.merged_at
    assert first_merged_at is not None

    again, _ = await pr_service.merge_pull_request("PR1")
    assert again.status == "MERGED"
    assert again.merged_at == first_merged_at

    with pytest.raises(PullRequestNotFound):
        await pr_service.merge_pull_request("missing")


async def test_update_status_transitions(pr_service, engine, seed_team):
    await seed_team("T", "u1", "u2")
    await engine.create_and_auto_assign("PR1", "x", "u1")

    pr, _ = await pr_service.update_status("PR1", "open")
    assert pr.status == "OPEN"

    with pytest.raises(InvalidStatus):
        await pr_service.update_status("PR1", "CLOSED")

    pr, _ = await pr_service.update_status("PR1", "MERGED")
    assert pr.status == "MERGED"

    with pytest.raises(PullRequestNotOpen):
        await pr_service.update_status("PR1", "OPEN")


async def test_list_pull_requests(pr_service, engine, seed_team):
    await seed_team("T", "u1", "u2")
    await engine.create_and_auto_assign("PR1", "x", "u1")
    await engine.create_and_auto_assign("PR2", "y", "u1")
    await pr_service.merge_pull_request("PR2")

    assert [p.pull_request_id for p in await pr_service.list_pull_requests()] == ["PR1", "PR2"]
    assert [p.pull_request_id for p in await pr_service.list_pull_requests("merged")] == ["PR2"]
    with pytest.raises(InvalidStatus):
        await pr_service.list_pull_requests("draft")


async def test_statistics(stats_service, engine, pr_service, seed_team, deactivate):
    await seed_team("A", "a1", "a2", "a3")
    await seed_team("B", "b1")
    await engine.create_and_auto_assign("PR1", "x", "a1", 2)  # a2, a3
    await engine.create_and_auto_assign("PR2", "y", "a2", 1)  # a1
    await engine.create_and_auto_assign("PR3", "z", "b1", 2)  # nobody
    await pr_service.merge_pull_request("PR1")
    await deactivate("a3")

    assignments = {row.user_id: row for row in await stats_service.assignment_stats()}
    assert (assignments["a2"].total_assignments, assignments["a2"].open_prs) == (1, 0)
    assert assignments["a2"].merged_prs == 1
    assert assignments["a1"].open_prs == 1
    assert assignments["b1"].total_assignments == 0
    assert assignments["b1"].team_name == "B"

    workload = await stats_service.user_workload()
    assert workload[0].user_id == "a1"
    assert workload[0].open_reviews_count == 1
    assert {row.user_id: row.is_active for row in workload}["a3"] is False

    pr_stats = {
        row.pull_request_id: row.reviewers_count
        for row in await stats_service.pull_request_stats()
    }
    assert pr_stats == {"PR1": 2, "PR2": 1, "PR3": 0}

    teams = {row.team_name: row for row in await stats_service.team_stats()}
    assert (teams["A"].total_members, teams["A"].active_members) == (3, 2)
    assert (teams["A"].total_prs_authored, teams["A"].total_prs_reviewed) == (2, 2)
    assert (teams["B"].total_prs_authored, teams["B"].total_prs_reviewed) == (1, 0)
