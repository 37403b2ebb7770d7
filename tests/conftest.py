"""Shared fixtures: a fresh in-memory database per test and seeding helpers."""
import pytest

from prassign.core.config.settings import PrAssignConfig, init_config
from prassign.core.routing import AssignmentEngine, HealingEngine
from prassign.core.services import PullRequestService, StatisticsService, TeamService
from prassign.core.storage.database import Database, init_db


@pytest.fixture
def config() -> PrAssignConfig:
    """Process configuration pointed at an in-memory SQLite database."""
    config = init_config()
    config.db_path = ":memory:"
    config.db_url = None
    config.storage = "sqlite"
    config.default_reviewer_count = 2
    config.min_reviewers = 2
    config.operation_timeout = None
    return config


@pytest.fixture
async def db(config: PrAssignConfig):
    """Create test database."""
    db = init_db(config.get_database_url())
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def engine(db: Database, config: PrAssignConfig) -> AssignmentEngine:
    return AssignmentEngine(db, config)


@pytest.fixture
def healing(db: Database, config: PrAssignConfig) -> HealingEngine:
    return HealingEngine(db, config)


@pytest.fixture
def team_service(db: Database, config: PrAssignConfig, healing: HealingEngine) -> TeamService:
    return TeamService(db, config, healing)


@pytest.fixture
def pr_service(db: Database, config: PrAssignConfig) -> PullRequestService:
    return PullRequestService(db, config)


@pytest.fixture
def stats_service(db: Database) -> StatisticsService:
    return StatisticsService(db)


@pytest.fixture
def seed_team(db: Database):
    """Return a coroutine that creates a team with the given user ids.

    Usernames are the upper-cased ids; ids listed in ``inactive`` are
    created inactive.
    """

    async def _seed(team_name: str, *user_ids: str, inactive=()) -> int:
        async with db.transaction() as gateway:
            team = await gateway.team_by_name(team_name)
            if team is None:
                team = await gateway.create_team(team_name)
            for user_id in user_ids:
                await gateway.create_user(
                    user_id, user_id.upper(), team.id, is_active=user_id not in inactive
                )
            return team.id

    return _seed


@pytest.fixture
def reviewers_of(db: Database):
    """Return a coroutine listing the reviewer ids of a pull request."""

    async def _reviewers(pull_request_id: str) -> list[str]:
        async with db.transaction() as gateway:
            return [a.user_id for a in await gateway.reviewer_assignments_for(pull_request_id)]

    return _reviewers


@pytest.fixture
def deactivate(db: Database):
    """Return a coroutine that flips a user inactive without healing."""

    async def _deactivate(user_id: str) -> None:
        async with db.transaction() as gateway:
            user = await gateway.user_by_external_id(user_id)
            await gateway.set_user_active(user, False)

    return _deactivate
