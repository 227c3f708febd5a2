"""Field-level validation of accounts and transaction groups."""

from typing import Optional, Sequence

from ledgerguard.domain.entities import (
    Account,
    AccountIssue,
    AccountType,
    IssueCode,
    NormalBalance,
    Severity,
    TransactionGroup,
    TransactionIssue,
    ValidationOutcome,
)

_DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def default_normal_balance(account_type: Optional[AccountType]) -> NormalBalance:
    """Return the normal balance side implied by an account type.

    Asset and expense accounts are debit-normal; liability, equity and
    revenue accounts are credit-normal. Unknown types fall back to debit.
    """
    if account_type is None or account_type in _DEBIT_NORMAL_TYPES:
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def validate_accounts(accounts: Sequence[Account]) -> ValidationOutcome:
    """Check required fields and per-owner uniqueness of accounts.

    The first account carrying a given code or name is accepted; later ones
    are flagged. Duplicate codes are errors, duplicate names only warnings.

    Args:
        accounts: Accounts from one snapshot, in load order

    Returns:
        ValidationOutcome with the issues and the number of accounts that
        produced at least one error
    """
    issues: list[AccountIssue] = []
    invalid_ids: list[str] = []
    seen_codes: set[str] = set()
    seen_names: set[str] = set()

    for account in accounts:
        account_issues = _check_account(account, seen_codes, seen_names)
        if any(issue.severity == Severity.ERROR for issue in account_issues):
            invalid_ids.append(account.id)
        issues.extend(account_issues)

    return ValidationOutcome.from_issues(issues, invalid_ids)


def _check_account(
    account: Account, seen_codes: set[str], seen_names: set[str]
) -> list[AccountIssue]:
    issues: list[AccountIssue] = []
    display_name = account.display_name

    if not account.code:
        issues.append(
            AccountIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=account.id,
                entity_name=account.name or "Unknown",
                description="Account is missing its code",
                recommendation="Assign a unique account code",
            )
        )

    if not account.name:
        issues.append(
            AccountIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=account.id,
                entity_name=account.code or "Unknown",
                description="Account is missing its name",
                recommendation="Give the account a descriptive name",
            )
        )

    if account.account_type is None:
        issues.append(
            AccountIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=account.id,
                entity_name=display_name,
                description="Account is missing its account type",
                recommendation=(
                    "Set the account type (asset, liability, equity, revenue, expense)"
                ),
            )
        )

    if account.code:
        if account.code in seen_codes:
            issues.append(
                AccountIssue(
                    severity=Severity.ERROR,
                    code=IssueCode.DUPLICATE_IDENTIFIER,
                    entity_id=account.id,
                    entity_name=account.name or "Unknown",
                    description=f"Duplicate account code: {account.code}",
                    recommendation="Use a unique account code",
                )
            )
        else:
            seen_codes.add(account.code)

    if account.name:
        if account.name in seen_names:
            issues.append(
                AccountIssue(
                    severity=Severity.WARNING,
                    code=IssueCode.DUPLICATE_IDENTIFIER,
                    entity_id=account.id,
                    entity_name=account.name,
                    description=f"Duplicate account name: {account.name}",
                    recommendation="Use unique account names to avoid confusion",
                )
            )
        else:
            seen_names.add(account.name)

    if account.balance is None and account.initial_balance is None:
        issues.append(
            AccountIssue(
                severity=Severity.WARNING,
                code=IssueCode.MISSING_FIELD,
                entity_id=account.id,
                entity_name=display_name,
                description="Account has no balance information",
                recommendation="Set an initial or current balance",
            )
        )

    if account.account_type is not None and account.normal_balance is None:
        default = default_normal_balance(account.account_type)
        issues.append(
            AccountIssue(
                severity=Severity.INFO,
                code=IssueCode.MISSING_FIELD,
                entity_id=account.id,
                entity_name=display_name,
                description="Account has no normal balance side",
                recommendation=f"Set the normal balance to {default.value}",
            )
        )

    return issues


def validate_transactions(transactions: Sequence[TransactionGroup]) -> ValidationOutcome:
    """Check required fields and group number uniqueness of transaction groups.

    Debit/credit balance is checked separately by ``validate_balances``.

    Args:
        transactions: Transaction groups from one snapshot, in load order

    Returns:
        ValidationOutcome with the issues and the groups that produced an error
    """
    issues: list[TransactionIssue] = []
    invalid_ids: list[str] = []
    seen_numbers: set[str] = set()

    for group in transactions:
        group_issues = _check_transaction(group, seen_numbers)
        if any(issue.severity == Severity.ERROR for issue in group_issues):
            invalid_ids.append(group.id)
        issues.extend(group_issues)

    return ValidationOutcome.from_issues(issues, invalid_ids)


def _check_transaction(
    group: TransactionGroup, seen_numbers: set[str]
) -> list[TransactionIssue]:
    issues: list[TransactionIssue] = []
    display_name = group.group_number or "Unknown"

    if not group.group_number:
        issues.append(
            TransactionIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=group.id,
                entity_name=group.description or "Unknown",
                description="Transaction group is missing its group number",
                recommendation="Assign a unique group number",
            )
        )

    if group.transaction_date is None:
        issues.append(
            TransactionIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=group.id,
                entity_name=display_name,
                description="Transaction group is missing its transaction date",
                recommendation="Set the transaction date",
            )
        )

    if group.group_number:
        if group.group_number in seen_numbers:
            issues.append(
                TransactionIssue(
                    severity=Severity.ERROR,
                    code=IssueCode.DUPLICATE_IDENTIFIER,
                    entity_id=group.id,
                    entity_name=group.description or "Unknown",
                    description=f"Duplicate group number: {group.group_number}",
                    recommendation="Use a unique group number",
                )
            )
        else:
            seen_numbers.add(group.group_number)

    if not group.entries:
        issues.append(
            TransactionIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id=group.id,
                entity_name=display_name,
                description="Transaction group has no entries",
                recommendation="Add at least two entries to the transaction group",
            )
        )

    if group.status is None:
        issues.append(
            TransactionIssue(
                severity=Severity.WARNING,
                code=IssueCode.MISSING_FIELD,
                entity_id=group.id,
                entity_name=display_name,
                description="Transaction group has no status",
                recommendation="Set the status (draft, confirmed, cancelled)",
            )
        )

    return issues
