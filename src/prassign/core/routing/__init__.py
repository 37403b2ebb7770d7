"""Reviewer routing: workload index, candidate selection, assignment and healing."""
from .engine import AssignmentEngine
from .healing import HealingEngine, HealingReport
from .selector import (
    eligible_pool,
    select_user_with_min_workload,
    select_users_with_min_workload,
)
from .workload import WorkloadIndex

__all__ = [
    "AssignmentEngine",
    "HealingEngine",
    "HealingReport",
    "WorkloadIndex",
    "eligible_pool",
    "select_user_with_min_workload",
    "select_users_with_min_workload",
]
