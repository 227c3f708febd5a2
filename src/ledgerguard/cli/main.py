"""Main CLI entry point."""

import click

from ledgerguard.database.factories import create_sqlite_database
from ledgerguard.domain.compatibility import CompatibilityService
from ledgerguard.domain.entities import LedgerScope
from ledgerguard.logging_config import configure_logging

# Import and register all commands at module level
from ledgerguard.cli.commands import (
    account,
    check,
    compat,
    funding,
    import_cmd,
    transaction,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERGUARD_DB_PATH environment variable)",
    envvar="LEDGERGUARD_DB_PATH",
)
@click.option("--owner", envvar="LEDGERGUARD_OWNER", help="Owner whose ledger is checked")
@click.option(
    "--organization",
    envvar="LEDGERGUARD_ORGANIZATION",
    help="Restrict the ledger to one organization",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log level for diagnostics written to stderr",
)
@click.pass_context
def cli(ctx, db_path: str | None, owner: str | None, organization: str | None, log_level: str):
    """Ledgerguard - integrity checks for a pharmacy point-of-sale ledger.

    Validates accounts and transaction groups, scores storage compatibility,
    traces funding lineage and guards account deletion.
    """
    ctx.ensure_object(dict)
    configure_logging(level=log_level)

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        if not owner:
            click.echo("Error: --owner (or LEDGERGUARD_OWNER) is required", err=True)
            ctx.exit(1)
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["scope"] = LedgerScope(owner_id=owner, organization_id=organization)
        ctx.obj["compatibility"] = CompatibilityService()
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
check.register_commands(cli)
compat.register_commands(cli)
funding.register_commands(cli)
account.register_commands(cli)
transaction.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
