"""CLI helpers for resolving account and transaction group arguments."""

from __future__ import annotations

import click

from ledgerguard.domain.account import AccountService
from ledgerguard.domain.entities import LedgerScope
from ledgerguard.domain.errors import NotFoundError
from ledgerguard.domain.transaction import TransactionService
from ledgerguard.utils.resolver import resolve_account, resolve_transaction


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, scope: LedgerScope, account: str
) -> str:
    """Resolve an account code or ID, or exit with a CLI error."""
    try:
        return resolve_account(account_service, scope, account)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_transaction_or_exit(
    ctx: click.Context,
    transaction_service: TransactionService,
    scope: LedgerScope,
    group: str,
) -> str:
    """Resolve a group number or ID, or exit with a CLI error."""
    try:
        return resolve_transaction(transaction_service, scope, group)
    except NotFoundError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
