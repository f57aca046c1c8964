"""CLI commands for Quire."""

import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import UUID

import click
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from quire.config import clear_settings_cache, get_settings, set_config_path


@click.group()
@click.option(
    "-f",
    "--config-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Use this YAML config instead of app.yaml / app.$QUIRE_ENV.yaml",
)
@click.version_option(package_name="quire")
def cli(config_file):
    """Quire - user-defined ordering for pins, stars and collections."""
    if config_file is not None:
        set_config_path(config_file.resolve())
        clear_settings_cache()


@cli.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8080, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--workers", default=1, type=int, help="Number of worker processes")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
)
def serve(host, port, reload, workers, log_level):
    """Run the Quire API server."""
    import signal

    from hypercorn.asyncio import serve as hypercorn_serve
    from hypercorn.config import Config

    config = Config()
    config.application_path = "quire.asgi:app_factory()"
    config.bind = [f"{host}:{port}"]
    config.workers = 1 if reload else workers
    config.loglevel = log_level.upper()
    config.include_server_header = False

    if reload:
        config.use_reloader = True
        from hypercorn.run import run
        run(config)
        return

    from quire.asgi import app_factory

    app = app_factory()
    shutdown_event = asyncio.Event()

    loop = asyncio.new_event_loop()
    loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_event.set)
    try:
        loop.run_until_complete(
            hypercorn_serve(app, config, shutdown_trigger=shutdown_event.wait)
        )
    finally:
        loop.close()


def _run_alembic(args: list[str]) -> None:
    """Build an Alembic Config programmatically and run the given command."""
    from alembic.config import CommandLine, Config

    quire_dir = Path(__file__).parent
    alembic_ini = quire_dir / "alembic.ini"
    if not alembic_ini.exists():
        click.echo("Error: Could not find alembic.ini", err=True)
        sys.exit(1)

    cfg = Config(str(alembic_ini))
    cfg.set_main_option("script_location", str(quire_dir / "alembic"))

    cmd = CommandLine()
    options = cmd.parser.parse_args(args)
    if not hasattr(options, "cmd"):
        cmd.parser.error("too few arguments")
    else:
        cfg.cmd_opts = options
        fn, positional, kwarg = options.cmd
        fn(
            cfg,
            *[getattr(options, k, None) for k in positional],
            **{k: getattr(options, k, None) for k in kwarg},
        )


@cli.command(
    context_settings=dict(
        ignore_unknown_options=True,
        allow_extra_args=True,
    )
)
@click.pass_context
def db(ctx):
    """Run database migrations via Alembic.

    \b
    Examples:
        quire db upgrade head      # Apply all migrations
        quire db downgrade -1      # Rollback one migration
        quire db current           # Show current revision
        quire db history           # Show migration history
    """
    if not ctx.args:
        click.echo(ctx.get_help())
        return

    _run_alembic(ctx.args)


@asynccontextmanager
async def _open_session():
    settings = get_settings()
    engine = create_async_engine(settings.db.url, echo=settings.db.echo)
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session
    finally:
        await engine.dispose()


def _run(operation, *args):
    """Run a housekeeping coroutine against a fresh session."""

    async def main():
        async with _open_session() as session:
            return await operation(session, *args)

    return asyncio.run(main())


@cli.group()
def backfill():
    """Assign indices to rows created before ordering existed."""


@backfill.command("collections")
@click.option("--team-id", required=True, type=click.UUID, help="Team whose collections to backfill")
def backfill_collections(team_id: UUID):
    from quire.db.services.indexing import backfill_collection_order

    indices = _run(backfill_collection_order, team_id)
    click.echo(f"Backfilled {len(indices)} collections")


@backfill.command("stars")
@click.option("--user-id", required=True, type=click.UUID, help="User whose stars to backfill")
def backfill_stars(user_id: UUID):
    from quire.db.services.indexing import backfill_star_order

    indices = _run(backfill_star_order, user_id)
    click.echo(f"Backfilled {len(indices)} stars")


@backfill.command("memberships")
@click.option("--user-id", required=True, type=click.UUID, help="User whose shared documents to backfill")
def backfill_memberships(user_id: UUID):
    from quire.db.services.indexing import backfill_membership_order

    indices = _run(backfill_membership_order, user_id)
    click.echo(f"Backfilled {len(indices)} shared documents")


@cli.group()
def rebalance():
    """Rewrite a scope with short, evenly spaced indices."""


@rebalance.command("pins")
@click.option("--team-id", required=True, type=click.UUID)
@click.option("--collection-id", type=click.UUID, default=None, help="Omit for the team home")
def rebalance_pins(team_id: UUID, collection_id: UUID | None):
    from quire.db.services.indexing import rebalance_pins as rebalance_pin_scope

    indices = _run(rebalance_pin_scope, team_id, collection_id)
    click.echo(f"Rebalanced {len(indices)} pins")


@rebalance.command("stars")
@click.option("--user-id", required=True, type=click.UUID)
def rebalance_stars(user_id: UUID):
    from quire.db.services.indexing import rebalance_stars as rebalance_star_scope

    indices = _run(rebalance_star_scope, user_id)
    click.echo(f"Rebalanced {len(indices)} stars")


@rebalance.command("collections")
@click.option("--team-id", required=True, type=click.UUID)
def rebalance_collections(team_id: UUID):
    from quire.db.services.indexing import rebalance_collections as rebalance_collection_scope

    indices = _run(rebalance_collection_scope, team_id)
    click.echo(f"Rebalanced {len(indices)} collections")


@rebalance.command("memberships")
@click.option("--user-id", required=True, type=click.UUID)
def rebalance_memberships(user_id: UUID):
    from quire.db.services.indexing import rebalance_memberships as rebalance_membership_scope

    indices = _run(rebalance_membership_scope, user_id)
    click.echo(f"Rebalanced {len(indices)} shared documents")


if __name__ == "__main__":
    cli()
