"""Main CLI entry point."""

import click
from propfin.database.factories import create_sqlite_database
from propfin.logging_config import configure_logging

# Import and register all commands at module level
from propfin.cli.commands import (
    account,
    transaction,
    transfer,
    property,
    rent,
    backup,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides PROPFIN_DB_PATH environment variable)",
    envvar="PROPFIN_DB_PATH",
)
@click.option(
    "--user",
    "user_id",
    type=int,
    default=1,
    show_default=True,
    help="Acting user ID (created on first use)",
    envvar="PROPFIN_USER_ID",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (overrides PROPFIN_LOG_LEVEL environment variable)",
    envvar="PROPFIN_LOG_LEVEL",
)
@click.pass_context
def cli(ctx, db_path: str | None, user_id: int, log_level: str | None):
    """Propfin - accounts, transfers and shop rent ledgers.

    Track bank balances, collect rent per shop and month, and back up or
    restore everything for a user.
    """
    ctx.ensure_object(dict)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        configure_logging(log_level)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        if db.get_user(user_id) is None:
            db.create_user(username=f"user{user_id}", user_id=user_id)
        ctx.obj["db"] = db
        ctx.obj["user_id"] = user_id
        ctx.call_on_close(db.disconnect)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
transfer.register_commands(cli)
property.register_commands(cli)
rent.register_commands(cli)
backup.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
