"""Ledger dump import command."""

import click

from ledgerguard.domain.ledger_import import LedgerImportService


@click.command("import")
@click.argument("dump_file", type=click.Path(exists=True))
@click.pass_context
def import_dump(ctx, dump_file: str):
    """Import accounts and transaction groups from a JSON ledger dump.

    Records are stored as found so that the integrity checks can report on
    them; records already present are skipped.

    Examples:
        ledgerguard --owner u1 import ledger.json
    """
    db = ctx.obj["db"]
    service = LedgerImportService(db)

    try:
        result = service.import_file(dump_file, ctx.obj["scope"])
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo("\nImport complete:")
    click.echo(f"  Accounts: {result['accounts']}")
    click.echo(f"  Transaction groups: {result['transactions']}")
    click.echo(f"  Skipped: {result['skipped']} already present")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


def register_commands(cli):
    """Register import command with main CLI."""
    cli.add_command(import_dump)
