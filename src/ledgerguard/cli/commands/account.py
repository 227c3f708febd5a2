"""Account commands."""

import click

from ledgerguard.cli.error_handling import handle_domain_error
from ledgerguard.cli.resolution import resolve_account_or_exit
from ledgerguard.domain.account import AccountService
from ledgerguard.domain.errors import DomainError


@click.group()
def account_group():
    """Inspect, delete and deactivate accounts."""
    pass


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(ctx.obj["scope"], include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for acc in accounts:
        account_type = acc.account_type.value if acc.account_type else "-"
        status = "" if acc.is_active else " (inactive)"
        click.echo(f"{acc.code or '-':10s} | {acc.display_name:30.30s} | {account_type:9s} | {acc.id}{status}")


@account_group.command("can-delete")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def can_delete(ctx, account: str):
    """Tell whether ACCOUNT may be deleted.

    ACCOUNT can be an account code or ID.
    """
    service = AccountService(ctx.obj["db"])
    scope = ctx.obj["scope"]
    account_id = resolve_account_or_exit(ctx, service, scope, account)

    check = service.check_deletion(scope, account_id)
    if check.can_delete:
        click.echo("Account can be deleted.")
    else:
        click.echo(f"Account cannot be deleted: {check.reason}")
    click.echo(f"Referencing entries: {check.usage_count}")


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool):
    """Delete ACCOUNT.

    ACCOUNT can be an account code or ID. Accounts referenced by any entry
    cannot be deleted; use 'account deactivate' for those instead.

    Examples:
        ledgerguard --owner u1 account delete 1101
    """
    service = AccountService(ctx.obj["db"])
    scope = ctx.obj["scope"]
    account_id = resolve_account_or_exit(ctx, service, scope, account)
    account_obj = service.get_account(scope, account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.display_name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(scope, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.display_name}'")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Mark ACCOUNT inactive.

    ACCOUNT can be an account code or ID.
    """
    service = AccountService(ctx.obj["db"])
    scope = ctx.obj["scope"]
    account_id = resolve_account_or_exit(ctx, service, scope, account)

    try:
        service.deactivate_account(scope, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account {account}")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
