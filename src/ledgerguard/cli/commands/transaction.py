"""Transaction group status commands."""

import click

from ledgerguard.cli.error_handling import handle_domain_error
from ledgerguard.cli.resolution import resolve_transaction_or_exit
from ledgerguard.domain.errors import DomainError
from ledgerguard.domain.transaction import TransactionService


@click.group()
def transaction_group():
    """Change the status of transaction groups."""
    pass


def _transition(ctx, group: str, action: str, past: str) -> None:
    service = TransactionService(ctx.obj["db"])
    scope = ctx.obj["scope"]
    group_id = resolve_transaction_or_exit(ctx, service, scope, group)

    try:
        getattr(service, action)(scope, group_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Transaction group {group} {past}")


@transaction_group.command("confirm")
@click.argument("group", metavar="GROUP")
@click.pass_context
def confirm(ctx, group: str):
    """Confirm a balanced draft GROUP (group number or ID)."""
    _transition(ctx, group, "confirm", "confirmed")


@transaction_group.command("cancel")
@click.argument("group", metavar="GROUP")
@click.pass_context
def cancel(ctx, group: str):
    """Cancel a draft GROUP that funds no other group."""
    _transition(ctx, group, "cancel", "cancelled")


@transaction_group.command("reopen")
@click.argument("group", metavar="GROUP")
@click.pass_context
def reopen(ctx, group: str):
    """Return a confirmed GROUP to draft."""
    _transition(ctx, group, "reopen", "reopened")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
