"""CLI interface for prassign.

This module provides a command-line interface for running the reviewer
assignment service and for operator tasks such as inspecting workload and
re-running healing for reviewers that were left inactive.
"""
import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from . import __version__
from .core.config import PrAssignConfig, init_config
from .core.logging import configure_logging
from .core.models import PullRequest, PullRequestStatus, ReviewerAssignment, Team, User
from .core.routing import HealingEngine
from .core.services import StatisticsService
from .core.storage import Database


def _load_config(config: str) -> PrAssignConfig:
    return init_config(config) if config else init_config()


async def _with_database(app_config: PrAssignConfig, work):
    """Open the database, run ``work(db)`` and always dispose of the engine."""
    db = Database(app_config.get_database_url(), echo=app_config.db_echo)
    try:
        await db.create_tables()
        return await work(db)
    finally:
        await db.close()


@click.group()
@click.version_option(version=__version__)
def cli():
    """prassign - pull request reviewer assignment and workload balancing."""
    pass


@cli.command()
@click.option(
    "--config-path",
    "-c",
    type=click.Path(dir_okay=False),
    default="prassign.yaml",
    help="Path to configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Force overwrite existing config")
def init(config_path: str, force: bool):
    """Initialize prassign configuration.

    Creates a default configuration file with recommended settings.
    """
    config_file = Path(config_path)

    if config_file.exists() and not force:
        click.echo(f"Configuration file already exists: {config_path}")
        click.echo("Use --force to overwrite")
        return

    try:
        config = PrAssignConfig.create_default_config(config_file)

        click.echo(f"✓ Created configuration file: {config_path}")
        click.echo("\nDefault configuration:")
        click.echo(f"  API Server: {config.api_host}:{config.api_port}")
        click.echo(f"  Database: {config.get_database_url()}")
        click.echo(f"  Reviewers per pull request: {config.default_reviewer_count}")
        click.echo(f"\nEdit {config_path} to customize settings.")

    except (OSError, ValueError) as e:
        click.echo(f"Error creating configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--host", help="Override API host")
@click.option("--port", type=int, help="Override API port")
def start(config: str, host: str, port: int):
    """Start the prassign API server."""
    try:
        app_config = _load_config(config)

        # Override with CLI options
        if host:
            app_config.api_host = host
        if port:
            app_config.api_port = port

        click.echo("Starting prassign...")
        click.echo(f"   API: http://{app_config.api_host}:{app_config.api_port}")
        click.echo("\nPress Ctrl+C to stop\n")

        uvicorn.run(
            "prassign.api:app",
            host=app_config.api_host,
            port=app_config.api_port,
            log_level=app_config.log_level.lower(),
        )

    except KeyboardInterrupt:
        click.echo("\n\nStopping prassign...")
    except Exception as e:
        click.echo(f"Error starting server: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
def status(config: str):
    """Check prassign system status.

    Displays configuration and row counts for every table.
    """
    try:
        app_config = _load_config(config)

        click.echo("prassign Status")
        click.echo("=" * 50)
        click.echo(f"Configuration: {config or 'default'}")
        click.echo(f"Database URL: {app_config.get_database_url()}")
        click.echo(f"API Server: {app_config.api_host}:{app_config.api_port}")
        click.echo(f"Reviewers per pull request: {app_config.default_reviewer_count}")
        click.echo(f"Log Level: {app_config.log_level}")

        async def get_counts(db: Database):
            from sqlalchemy import func, select

            async with db.session() as session:
                counts = {}
                for label, column in (
                    ("teams", Team.id),
                    ("users", User.id),
                    ("pull_requests", PullRequest.id),
                    ("assignments", ReviewerAssignment.id),
                ):
                    result = await session.execute(select(func.count(column)))
                    counts[label] = result.scalar_one()

                result = await session.execute(
                    select(func.count(PullRequest.id)).where(
                        PullRequest.status == PullRequestStatus.OPEN.value
                    )
                )
                counts["open"] = result.scalar_one()
                return counts

        counts = asyncio.run(_with_database(app_config, get_counts))
        click.echo("\n✓ Database connection successful")
        click.echo(f"\nTeams: {counts['teams']}, users: {counts['users']}")
        click.echo(
            f"Pull requests: {counts['pull_requests']} total, {counts['open']} open; "
            f"reviewer assignments: {counts['assignments']}"
        )

    except Exception as e:
        click.echo(f"Error checking status: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--team", "team_name", type=str, help="Only show members of this team")
def workload(config: str, team_name: str):
    """Show open review counts per user, busiest first."""
    try:
        app_config = _load_config(config)

        async def load(db: Database):
            return await StatisticsService(db).user_workload()

        rows = asyncio.run(_with_database(app_config, load))
        if team_name:
            rows = [row for row in rows if row.team_name == team_name]

        if not rows:
            click.echo("No users found")
            return

        click.echo(f"{'USER':<20} {'TEAM':<20} {'ACTIVE':<8} {'OPEN REVIEWS':>12}")
        click.echo("-" * 63)
        for row in rows:
            active = "yes" if row.is_active else "no"
            click.echo(
                f"{row.user_id:<20} {row.team_name or '-':<20} {active:<8} "
                f"{row.open_reviews_count:>12}"
            )

    except Exception as e:
        click.echo(f"Error loading workload: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to configuration file",
)
@click.option("--timeout", type=float, help="Deadline in seconds for the healing pass")
def heal(config: str, timeout: float):
    """Heal every open pull request that still has an inactive reviewer.

    Use this to retry healing after a deactivation whose healing
    transaction was rolled back.
    """
    try:
        app_config = _load_config(config)
        configure_logging(app_config)

        async def run(db: Database):
            return await HealingEngine(db, app_config).heal_all_inactive(timeout=timeout)

        report = asyncio.run(_with_database(app_config, run))
        click.echo(
            f"✓ Healing complete: {report.replaced} replaced, {report.removed} removed"
        )
        if report.under_reviewed:
            click.echo(f"Under-reviewed pull requests: {', '.join(report.under_reviewed)}")

    except Exception as e:
        click.echo(f"Error healing reviewers: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
