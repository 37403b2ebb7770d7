"""Candidate selection by least workload.

Selection is deterministic: candidates are ordered by workload ascending and
ties keep the order of the eligible pool. Python's sort is stable, so a single
keyed sort gives exactly that ordering.
"""
from collections.abc import Sequence
from typing import Optional

from ..models import User
from .workload import WorkloadIndex


def select_users_with_min_workload(
    users: Sequence[User], workload: WorkloadIndex, count: int
) -> list[User]:
    """Pick up to ``count`` users with the smallest workload.

    Args:
        users: Eligible pool, already filtered to active non-author members
        workload: Workload snapshot for the current operation
        count: Number of users wanted

    Returns:
        At most ``min(count, len(users))`` users, least loaded first
    """
    if count <= 0:
        return []
    ranked = sorted(users, key=lambda user: workload.get(user.user_id))
    return ranked[:count]


def select_user_with_min_workload(
    users: Sequence[User], workload: WorkloadIndex
) -> Optional[User]:
    """Pick the single least-loaded user, or None for an empty pool."""
    selected = select_users_with_min_workload(users, workload, 1)
    return selected[0] if selected else None


def eligible_pool(
    members: Sequence[User], author_id: str, assigned_ids: Sequence[str] = ()
) -> list[User]:
    """Filter team members down to users who may review a pull request.

    Keeps active members that are neither the author nor already assigned,
    preserving the input order.
    """
    excluded = set(assigned_ids)
    excluded.add(author_id)
    return [
        user for user in members
        if user.is_active and user.user_id not in excluded
    ]
