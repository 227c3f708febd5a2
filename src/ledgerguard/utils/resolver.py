"""Resolve account and transaction group references typed on the command line."""

from ledgerguard.domain.account import AccountService
from ledgerguard.domain.entities import LedgerScope
from ledgerguard.domain.errors import NotFoundError, account_not_found, transaction_not_found
from ledgerguard.domain.transaction import TransactionService


def resolve_account(account_service: AccountService, scope: LedgerScope, account: str) -> str:
    """Resolve an account code or ID to the account ID.

    IDs win over codes; inactive accounts are only reachable by ID.

    Raises:
        NotFoundError: If no account matches
    """
    if account_service.get_account(scope, account) is not None:
        return account

    match = account_service.find_by_code(scope, account)
    if match is not None:
        return match.id

    raise NotFoundError(account_not_found(account))


def resolve_transaction(
    transaction_service: TransactionService, scope: LedgerScope, group: str
) -> str:
    """Resolve a group number or ID to the transaction group ID.

    Raises:
        NotFoundError: If no group matches
    """
    if transaction_service.get_transaction_group(scope, group) is not None:
        return group

    match = transaction_service.find_by_number(scope, group)
    if match is not None:
        return match.id

    raise NotFoundError(transaction_not_found(group))
