"""Cross-record reference checks between entries, accounts and funding sources."""

from typing import Any, Mapping, Optional

from ledgerguard.domain.entities import (
    Account,
    Entry,
    IssueCode,
    LedgerSnapshot,
    RelationshipIssue,
    Severity,
    ValidationOutcome,
)
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.relationships")


def resolve_account_ref(ref: Any) -> Optional[str]:
    """Reduce an account reference to its identifier.

    Accepts a bare identifier, an ``Account``, an ``Entry`` or a mapping
    carrying ``id`` / ``_id`` (a reference the document store already
    populated into an object).
    """
    if ref is None:
        return None
    if isinstance(ref, Entry):
        return ref.resolved_account_id
    if isinstance(ref, Account):
        return ref.id
    if isinstance(ref, Mapping):
        value = ref.get("id") or ref.get("_id")
        return str(value) if value else None
    return str(ref) or None


def referenced_account_ids(snapshot: LedgerSnapshot) -> set[str]:
    """Collect account identifiers referenced by any entry of the snapshot."""
    used: set[str] = set()
    for group in snapshot.transactions:
        for entry in group.entries:
            account_id = entry.resolved_account_id
            if account_id:
                used.add(account_id)
    return used


def validate_relationships(snapshot: LedgerSnapshot) -> ValidationOutcome:
    """Check entry references and flag accounts no entry uses.

    Entries pointing at an account outside the active account set are
    errors; entries pointing at a funding source outside the snapshot are
    warnings; active accounts no entry references are informational.
    """
    issues: list[RelationshipIssue] = []
    active_account_ids = {account.id for account in snapshot.accounts if account.is_active}
    transaction_ids = {group.id for group in snapshot.transactions}

    for group in snapshot.transactions:
        display_name = group.group_number or "Unknown"
        for entry in group.entries:
            account_id = entry.resolved_account_id
            if account_id and account_id not in active_account_ids:
                issues.append(
                    RelationshipIssue(
                        severity=Severity.ERROR,
                        code=IssueCode.DANGLING_ACCOUNT_REFERENCE,
                        entity_id=group.id,
                        entity_name=display_name,
                        description=f"entry references a non-existent account: {account_id}",
                        recommendation="Check whether the account exists or was deleted",
                        referenced_id=account_id,
                    )
                )

            source_id = entry.source_transaction_id
            if source_id and source_id not in transaction_ids:
                issues.append(
                    RelationshipIssue(
                        severity=Severity.WARNING,
                        code=IssueCode.DANGLING_FUNDING_REFERENCE,
                        entity_id=group.id,
                        entity_name=display_name,
                        description=f"entry references a non-existent funding source: {source_id}",
                        recommendation="Check whether the funding source transaction exists",
                        referenced_id=source_id,
                    )
                )

    used_account_ids = referenced_account_ids(snapshot)
    for account in snapshot.accounts:
        if not account.is_active or account.id in used_account_ids:
            continue
        issues.append(
            RelationshipIssue(
                severity=Severity.INFO,
                code=IssueCode.ORPHAN_ACCOUNT,
                entity_id=account.id,
                entity_name=account.display_name,
                description="account unused by any transaction",
                recommendation="Consider whether the account is needed or add related transactions",
            )
        )

    logger.debug(
        "relationship_check_completed",
        extra={"issue_count": len(issues), "used_accounts": len(used_account_ids)},
    )
    return ValidationOutcome.from_issues(issues)
