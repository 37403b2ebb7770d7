"""Workload index: open review counts per user for one operation."""
from collections.abc import Mapping
from typing import Optional

from ..storage.gateway import ReviewGateway


class WorkloadIndex:
    """Snapshot of how many OPEN pull requests each user is reviewing.

    The index is built fresh for every operation and lives only in memory.
    Engines bump it after each pick inside a pass so that later picks in the
    same pass see the assignments already made.
    """

    def __init__(self, counts: Optional[Mapping[str, int]] = None):
        self._counts: dict[str, int] = dict(counts or {})

    @classmethod
    async def load(cls, gateway: ReviewGateway) -> "WorkloadIndex":
        """Build the index from the gateway's current state."""
        return cls(await gateway.open_review_counts_by_user())

    def get(self, user_id: str) -> int:
        return self._counts.get(user_id, 0)

    def __getitem__(self, user_id: str) -> int:
        return self.get(user_id)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._counts

    def increment(self, user_id: str, by: int = 1) -> int:
        self._counts[user_id] = self.get(user_id) + by
        return self._counts[user_id]

    def decrement(self, user_id: str, by: int = 1) -> int:
        self._counts[user_id] = max(0, self.get(user_id) - by)
        return self._counts[user_id]

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def __repr__(self) -> str:
        return f"<WorkloadIndex(users={len(self._counts)})>"
