"""Double-entry balance validation."""

from decimal import Decimal
from typing import Sequence

from ledgerguard.domain.entities import (
    BalanceCheck,
    IssueCode,
    Severity,
    TransactionGroup,
    TransactionIssue,
    ValidationOutcome,
)

BALANCE_TOLERANCE = Decimal("0.01")
MIN_ENTRY_COUNT = 2


def check_balance(group: TransactionGroup) -> BalanceCheck:
    """Sum the debit and credit sides of a transaction group."""
    total_debit = sum((entry.debit_amount for entry in group.entries), Decimal("0"))
    total_credit = sum((entry.credit_amount for entry in group.entries), Decimal("0"))
    difference = total_debit - total_credit
    return BalanceCheck(
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
        is_balanced=abs(difference) <= BALANCE_TOLERANCE,
    )


def validate_group_balance(group: TransactionGroup) -> list[TransactionIssue]:
    """Return balance issues for one group; groups without entries yield none."""
    if not group.entries:
        return []

    issues: list[TransactionIssue] = []
    display_name = group.group_number or "Unknown"
    check = check_balance(group)

    if not check.is_balanced:
        issues.append(
            TransactionIssue(
                severity=Severity.ERROR,
                code=IssueCode.BALANCE_MISMATCH,
                entity_id=group.id,
                entity_name=display_name,
                description=(
                    f"balance mismatch: debit {check.total_debit} "
                    f"vs credit {check.total_credit}"
                ),
                recommendation="Adjust entry amounts so debits equal credits",
            )
        )

    if len(group.entries) < MIN_ENTRY_COUNT:
        issues.append(
            TransactionIssue(
                severity=Severity.WARNING,
                code=IssueCode.ENTRY_COUNT_LOW,
                entity_id=group.id,
                entity_name=display_name,
                description=f"Transaction group has fewer than {MIN_ENTRY_COUNT} entries",
                recommendation="Double-entry bookkeeping usually needs at least two entries",
            )
        )

    return issues


def validate_balances(transactions: Sequence[TransactionGroup]) -> ValidationOutcome:
    """Check every transaction group for debit/credit balance and entry count.

    Only balance mismatches make a group invalid; a single-entry group is
    reported as a warning.
    """
    issues: list[TransactionIssue] = []
    invalid_ids: list[str] = []

    for group in transactions:
        group_issues = validate_group_balance(group)
        if any(issue.severity == Severity.ERROR for issue in group_issues):
            invalid_ids.append(group.id)
        issues.extend(group_issues)

    return ValidationOutcome.from_issues(issues, invalid_ids)
