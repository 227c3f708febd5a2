"""Storage compatibility command."""

import click

from ledgerguard.cli.commands.check import echo_issue
from ledgerguard.cli.error_handling import handle_domain_error
from ledgerguard.domain.errors import DomainError
from ledgerguard.domain.integrity import IntegrityService


def _cache_key(scope) -> str:
    return f"{scope.owner_id}:{scope.organization_id or ''}"


@click.command("compat")
@click.option("--sync", "run_sync", is_flag=True, help="Save missing normal balances, recheck embedded groups and reset the cache")
@click.pass_context
def compat(ctx, run_sync: bool):
    """Show storage compatibility of the ledger.

    Examples:
        ledgerguard --owner u1 compat
        ledgerguard --owner u1 compat --sync
    """
    db = ctx.obj["db"]
    scope = ctx.obj["scope"]
    service = ctx.obj["compatibility"]
    loader = IntegrityService(db, service)
    try:
        snapshot = loader.load_snapshot(scope)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if run_sync:
        sync_report = service.sync(snapshot)
        stored = {account.id: account.normal_balance for account in snapshot.accounts}
        try:
            for account in sync_report.accounts:
                if account.normal_balance != stored.get(account.id):
                    db.update_account_normal_balance(account.id, account.normal_balance)
            snapshot = loader.load_snapshot(scope)
        except DomainError as e:
            handle_domain_error(ctx, e)

        click.echo(
            f"Synced {sync_report.accounts_processed} accounts and "
            f"{sync_report.transactions_processed} transaction groups"
        )
        for fixed in sync_report.issues_fixed:
            click.echo(f"  fixed: {fixed}")
        for warning in sync_report.warnings:
            click.echo(f"  warning: {warning}")
        click.echo()

    result = service.check_cached(_cache_key(scope), snapshot)
    click.echo(service.summary_line(snapshot))
    storage_format = result.storage_format.value if result.storage_format else "none"
    click.echo(f"Storage format: {storage_format}")
    click.echo(f"Compatible: {'yes' if result.is_compatible else 'no'}")

    if result.issues:
        click.echo("\nIssues:")
        for issue in result.issues:
            echo_issue(issue)

    if result.recommendations:
        click.echo("\nRecommendations:")
        for recommendation in result.recommendations:
            click.echo(f"  - {recommendation}")


def register_commands(cli):
    """Register compat command with main CLI."""
    cli.add_command(compat)
