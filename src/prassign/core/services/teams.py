"""Team and user directory operations."""
import logging
from collections.abc import Sequence
from typing import Optional

from ..config.settings import PrAssignConfig
from ..errors import TeamNotFound, UserNotFound
from ..models import PullRequest, Team, User
from ..routing.base import EngineBase
from ..routing.healing import HealingEngine, HealingReport
from ..schemas.team import TeamMember
from ..storage.database import Database


class TeamService(EngineBase):
    """Creates teams, maintains membership and toggles users.

    Deactivating a user here heals their open reviews in the same
    transaction, so no inactive user is left reviewing once it commits.
    """

    def __init__(
        self,
        db: Database,
        config: PrAssignConfig,
        healing: HealingEngine,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(db, config, logger)
        self.healing = healing

    async def upsert_team(
        self,
        team_name: str,
        members: Sequence[TeamMember],
        timeout: Optional[float] = None,
    ) -> tuple[Team, list[User], HealingReport]:
        """Create the team on first reference and create or update its members.

        Returns:
            The team, its members ordered by user id, and the healing report
            for members switched from active to inactive
        """

        async def work():
            async with self.db.transaction() as gateway:
                team = await gateway.team_by_name(team_name)
                if team is None:
                    team = await gateway.create_team(team_name)
                    self.logger.info(f"Created team {team_name}")

                switched_off = []
                for member in members:
                    user = await gateway.user_by_external_id(member.user_id)
                    if user is None:
                        await gateway.create_user(
                            member.user_id, member.username, team.id, member.is_active
                        )
                        continue

                    was_active = user.is_active
                    await gateway.update_user(user, member.username, team.id, member.is_active)
                    if was_active and not member.is_active:
                        switched_off.append(user)

                # Flags are final before healing picks any replacement.
                report = HealingReport()
                for user in switched_off:
                    await self.healing.heal_reviewer(gateway, user, report)

                return team, await gateway.team_members(team.id), report

        return await self._run("upsert_team", work, timeout)

    async def get_team(self, team_name: str) -> tuple[Team, list[User]]:
        async with self.db.transaction() as gateway:
            team = await gateway.team_by_name(team_name)
            if team is None:
                raise TeamNotFound(team_name=team_name)
            return team, await gateway.team_members(team.id)

    async def list_teams(self) -> list[Team]:
        async with self.db.transaction() as gateway:
            return await gateway.list_teams()

    async def deactivate_team(
        self, team_name: str, timeout: Optional[float] = None
    ) -> HealingReport:
        """Deactivate every member of a team and cascade-heal their reviews."""
        async with self.db.transaction() as gateway:
            team = await gateway.team_by_name(team_name)
            if team is None:
                raise TeamNotFound(team_name=team_name)
            team_id = team.id
        return await self.healing.heal_after_team_deactivation(team_id, timeout=timeout)

    async def get_user(self, user_id: str) -> User:
        async with self.db.transaction() as gateway:
            user = await gateway.user_by_external_id(user_id)
            if user is None:
                raise UserNotFound(user_id=user_id)
            return user

    async def set_user_active(
        self, user_id: str, is_active: bool, timeout: Optional[float] = None
    ) -> tuple[User, Optional[HealingReport]]:
        """Set a user's active flag.

        Returns:
            The user and, for a deactivation, the healing report
        """

        async def work():
            async with self.db.transaction() as gateway:
                user = await gateway.user_by_external_id(user_id)
                if user is None:
                    raise UserNotFound(user_id=user_id)

                await gateway.set_user_active(user, is_active)
                if is_active:
                    self.logger.info(f"Activated user {user_id}")
                    return user, None

                self.logger.info(f"Deactivated user {user_id}")
                return user, await self.healing.heal_reviewer(gateway, user)

        return await self._run("set_user_active", work, timeout)

    async def reviews_for_user(self, user_id: str) -> list[PullRequest]:
        """Pull requests, in any status, that the user is assigned to review."""
        async with self.db.transaction() as gateway:
            if await gateway.user_by_external_id(user_id) is None:
                raise UserNotFound(user_id=user_id)
            return await gateway.pull_requests_reviewed_by(user_id)
