"""Account deletion guard."""

from ledgerguard.domain.entities import (
    DeletionCheck,
    LedgerSnapshot,
    TransactionStatus,
)
from ledgerguard.domain.errors import (
    account_delete_blocked_confirmed,
    account_delete_blocked_in_use,
)


def check_account_deletion(account_id: str, snapshot: LedgerSnapshot) -> DeletionCheck:
    """Decide whether an account may be removed.

    Any entry referencing the account blocks deletion. When one of the
    referencing groups is confirmed the block is permanent; otherwise the
    caller is pointed at deactivation instead.

    Args:
        account_id: Account to check
        snapshot: Snapshot holding the transaction groups to search

    Returns:
        DeletionCheck with the verdict, number of referencing entries and
        the reason when deletion is refused
    """
    usage_count = 0
    confirmed_count = 0

    for group in snapshot.transactions:
        references = sum(
            1 for entry in group.entries if entry.resolved_account_id == account_id
        )
        if references == 0:
            continue
        usage_count += references
        if group.status == TransactionStatus.CONFIRMED:
            confirmed_count += 1

    if usage_count == 0:
        return DeletionCheck(can_delete=True, usage_count=0)

    if confirmed_count > 0:
        return DeletionCheck(
            can_delete=False,
            usage_count=usage_count,
            reason=account_delete_blocked_confirmed(confirmed_count),
        )

    return DeletionCheck(
        can_delete=False,
        usage_count=usage_count,
        reason=account_delete_blocked_in_use(usage_count),
    )
