import click


def import_from_alembic():
    """Load the Alembic command module and the project's `alembic.ini`.

    Returns
    -------
    Tuple[command.Command, config.Config]
        Alembic command module and configured Config instance.
    """
    from alembic import command, config

    alembic_cfg = config.Config("alembic.ini")
    return command, alembic_cfg


@click.group()
def cli():
    """Management commands for the Construction QA notification service."""
    pass


@cli.command()
@click.option("--message", "-m", required=True, help="Migration message")
def makemigrations(message):
    """Autogenerate an Alembic revision from the current SQLModel tables.

    Parameters
    ----------
    message: str
        Short description of the schema change.

    Examples
    --------
    Create a migration after adding a column to the report table:
        $ python manage.py makemigrations -m "Add report review comment"
    """
    command, alembic_cfg = import_from_alembic()
    command.revision(alembic_cfg, autogenerate=True, message=message)
    click.echo(f"Migration created: {message}")


@cli.command()
def migrate():
    """Upgrade the database schema to the latest revision."""
    command, alembic_cfg = import_from_alembic()
    command.upgrade(alembic_cfg, "head")
    click.echo("Migrations completed")


@cli.command()
def runserver():
    """Start the API server through the `main` module's entry point."""
    import runpy

    runpy.run_module("main", run_name="__main__")


@cli.command("purge-expired")
def purge_expired():
    """Delete expired notifications once and report how many were removed.

    Runs the same purge as the background sweeper, for deployments that
    disable the sweeper and schedule cleanup externally.
    """
    import asyncio

    from config.database import close_database_engine
    from core.infrastructure.logging import setup_logging
    from notifications.infrastructure.tasks import purge_expired_notifications

    setup_logging()

    async def run() -> int:
        try:
            return await purge_expired_notifications()
        finally:
            await close_database_engine()

    deleted = asyncio.run(run())
    click.echo(f"Purged {deleted} expired notification(s)")


@cli.command()
def clean():
    """Remove __pycache__ directories, .pyc files and the Ruff cache."""
    import os
    import shutil

    for root, dirs, files in os.walk("."):
        for dir_name in dirs:
            if dir_name in ("__pycache__", ".ruff_cache", ".pytest_cache"):
                shutil.rmtree(os.path.join(root, dir_name))
        for file_name in files:
            if file_name.endswith(".pyc"):
                os.remove(os.path.join(root, file_name))

    click.echo("Cleaned Python, pytest and Ruff cache directories.")


if __name__ == "__main__":
    cli()
