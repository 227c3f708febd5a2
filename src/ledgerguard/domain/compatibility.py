"""Storage-shape compatibility checks and the ledger health score."""

from dataclasses import replace
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from ledgerguard.domain.balance import check_balance
from ledgerguard.domain.entities import (
    Account,
    CompatibilityIssue,
    CompatibilityResult,
    CompatibilityStats,
    IssueCode,
    LedgerSnapshot,
    Severity,
    StorageFormat,
    SyncReport,
    TransactionGroup,
)
from ledgerguard.domain.field_validation import default_normal_balance
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.compatibility")

MAX_SCORE = 100
MIXED_FORMAT_PENALTY = Decimal("30")
INCOMPLETE_RECORD_WEIGHT = Decimal("20")

SYSTEM_ENTITY_ID = "system"


def detect_storage_format(group: TransactionGroup) -> StorageFormat:
    """Return the shape a group was stored in.

    Groups loaded by a store carry their original shape; for other groups
    inline entries mean embedded storage and no inline entries mean the
    entries live elsewhere.
    """
    if group.storage_format in (StorageFormat.EMBEDDED, StorageFormat.STANDALONE):
        return group.storage_format
    return StorageFormat.EMBEDDED if group.entries else StorageFormat.STANDALONE


def count_storage_formats(transactions: Sequence[TransactionGroup]) -> tuple[int, int]:
    """Return (embedded, standalone) group counts."""
    embedded = sum(
        1 for group in transactions if detect_storage_format(group) == StorageFormat.EMBEDDED
    )
    return embedded, len(transactions) - embedded


def classify_storage(transactions: Sequence[TransactionGroup]) -> Optional[StorageFormat]:
    """Classify a dataset as embedded, standalone or mixed (None when empty)."""
    embedded, standalone = count_storage_formats(transactions)
    if embedded and standalone:
        return StorageFormat.MIXED
    if embedded:
        return StorageFormat.EMBEDDED
    if standalone:
        return StorageFormat.STANDALONE
    return None


def incomplete_accounts(accounts: Sequence[Account]) -> list[Account]:
    return [account for account in accounts if not account.code or account.account_type is None]


def incomplete_transactions(transactions: Sequence[TransactionGroup]) -> list[TransactionGroup]:
    return [
        group
        for group in transactions
        if not group.group_number or group.transaction_date is None
    ]


def compatibility_score(snapshot: LedgerSnapshot) -> int:
    """Compute the 0-100 health score of a snapshot.

    Starts at 100, loses 30 when embedded and standalone groups coexist, and
    loses up to 20 for each of the incomplete account and incomplete
    transaction ratios. Rounded half up, clamped to [0, 100].
    """
    score = Decimal(MAX_SCORE)

    if classify_storage(snapshot.transactions) == StorageFormat.MIXED:
        score -= MIXED_FORMAT_PENALTY

    if snapshot.accounts:
        ratio = Decimal(len(incomplete_accounts(snapshot.accounts))) / len(snapshot.accounts)
        score -= ratio * INCOMPLETE_RECORD_WEIGHT

    if snapshot.transactions:
        ratio = Decimal(len(incomplete_transactions(snapshot.transactions))) / len(
            snapshot.transactions
        )
        score -= ratio * INCOMPLETE_RECORD_WEIGHT

    rounded = int(score.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(MAX_SCORE, rounded))


class CompatibilityService:
    """Checks a ledger snapshot's storage compatibility and caches results.

    One instance is constructed by the application and handed to the
    services that need it. The cache maps a caller-chosen key to the last
    result written for it; writes replace the whole entry.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """Initialize compatibility service.

        Args:
            clock: Optional callable returning the current time
        """
        self._clock = clock or (lambda: datetime.now(UTC))
        self._cache: dict[str, CompatibilityResult] = {}
        self.last_sync_time: datetime = self._clock()

    def check_system_compatibility(self, snapshot: LedgerSnapshot) -> CompatibilityResult:
        """Classify the storage shape and report dataset-level concerns."""
        issues: list[CompatibilityIssue] = []
        recommendations: list[str] = []
        storage_format = classify_storage(snapshot.transactions)

        if storage_format == StorageFormat.MIXED:
            issues.append(
                CompatibilityIssue(
                    severity=Severity.WARNING,
                    code=IssueCode.MIXED_STORAGE_FORMAT,
                    entity_id=SYSTEM_ENTITY_ID,
                    entity_name="System Compatibility",
                    description="mixed storage formats present",
                    recommendation="Consolidate all transaction groups into one storage format",
                )
            )
            recommendations.append("Consolidate entries into the embedded format")
        elif storage_format == StorageFormat.STANDALONE:
            issues.append(
                CompatibilityIssue(
                    severity=Severity.INFO,
                    code=IssueCode.STANDALONE_STORAGE_FORMAT,
                    entity_id=SYSTEM_ENTITY_ID,
                    entity_name="System Optimization",
                    description="All transaction groups keep their entries in standalone storage",
                    recommendation="Consider embedding entries in their transaction groups",
                )
            )
            recommendations.append("Migrate standalone entries into the embedded format")

        missing_accounts = incomplete_accounts(snapshot.accounts)
        if missing_accounts:
            issues.append(
                CompatibilityIssue(
                    severity=Severity.WARNING,
                    code=IssueCode.INCOMPLETE_RECORD_RATIO,
                    entity_id=SYSTEM_ENTITY_ID,
                    entity_name="Account Completeness",
                    description=(
                        f"{len(missing_accounts)} of {len(snapshot.accounts)} accounts "
                        "lack a code or account type"
                    ),
                    recommendation="Complete account codes and types",
                )
            )

        missing_transactions = incomplete_transactions(snapshot.transactions)
        if missing_transactions:
            issues.append(
                CompatibilityIssue(
                    severity=Severity.WARNING,
                    code=IssueCode.INCOMPLETE_RECORD_RATIO,
                    entity_id=SYSTEM_ENTITY_ID,
                    entity_name="Transaction Completeness",
                    description=(
                        f"{len(missing_transactions)} of {len(snapshot.transactions)} "
                        "transaction groups lack a group number or transaction date"
                    ),
                    recommendation="Complete group numbers and transaction dates",
                )
            )

        return CompatibilityResult(
            is_compatible=not any(issue.severity == Severity.ERROR for issue in issues),
            storage_format=storage_format,
            issues=tuple(issues),
            recommendations=tuple(recommendations),
            stats=self.get_stats(snapshot),
        )

    def validate(self, snapshot: LedgerSnapshot) -> tuple[CompatibilityIssue, ...]:
        """Return compatibility issues, never raising.

        A failing check is reported as a single error issue so the rest of
        an integrity report stays usable.
        """
        try:
            return self.check_system_compatibility(snapshot).issues
        except Exception as exc:
            logger.exception("compatibility_check_failed")
            return (
                CompatibilityIssue(
                    severity=Severity.ERROR,
                    code=IssueCode.COMPATIBILITY_CHECK_FAILED,
                    entity_id=SYSTEM_ENTITY_ID,
                    entity_name="Compatibility Check",
                    description=f"Compatibility check failed: {exc}",
                    recommendation="Check the system configuration and data format",
                ),
            )

    def get_stats(self, snapshot: LedgerSnapshot) -> CompatibilityStats:
        embedded, standalone = count_storage_formats(snapshot.transactions)
        return CompatibilityStats(
            total_accounts=len(snapshot.accounts),
            active_accounts=sum(1 for account in snapshot.accounts if account.is_active),
            total_transactions=len(snapshot.transactions),
            embedded_transactions=embedded,
            standalone_transactions=standalone,
            compatibility_score=compatibility_score(snapshot),
            last_sync_time=self.last_sync_time,
        )

    def summary_line(self, snapshot: LedgerSnapshot) -> str:
        stats = self.get_stats(snapshot)
        return (
            f"Compatibility score: {stats.compatibility_score}/100 | "
            f"Accounts: {stats.active_accounts}/{stats.total_accounts} | "
            f"Transactions: {stats.total_transactions} "
            f"(embedded: {stats.embedded_transactions}, "
            f"standalone: {stats.standalone_transactions})"
        )

    def sync(self, snapshot: LedgerSnapshot) -> SyncReport:
        """Normalize accounts, recheck embedded groups and reset the cache.

        Accounts without a normal balance receive the type-derived default.
        Unbalanced embedded groups are reported as warnings, not repaired.
        """
        accounts: list[Account] = []
        issues_fixed: list[str] = []
        warnings: list[str] = []

        for account in snapshot.accounts:
            if account.normal_balance is None and account.account_type is not None:
                normal_balance = default_normal_balance(account.account_type)
                account = replace(account, normal_balance=normal_balance)
                issues_fixed.append(
                    f"Account {account.display_name}: normal balance set to {normal_balance.value}"
                )
            accounts.append(account)

        for group in snapshot.transactions:
            if detect_storage_format(group) != StorageFormat.EMBEDDED or not group.entries:
                continue
            check = check_balance(group)
            if not check.is_balanced:
                warnings.append(
                    f"Transaction group {group.display_name} is unbalanced: "
                    f"debit {check.total_debit} vs credit {check.total_credit}"
                )

        self.last_sync_time = self._clock()
        self.invalidate_all()

        logger.info(
            "compatibility_sync_completed",
            extra={"fixed": len(issues_fixed), "warnings": len(warnings)},
        )
        return SyncReport(
            accounts=tuple(accounts),
            accounts_processed=len(accounts),
            transactions_processed=len(snapshot.transactions),
            issues_fixed=tuple(issues_fixed),
            warnings=tuple(warnings),
        )

    # Cache operations
    def get_cached(self, key: str) -> Optional[CompatibilityResult]:
        return self._cache.get(key)

    def set_cached(self, key: str, result: CompatibilityResult) -> None:
        self._cache[key] = result

    def check_cached(self, key: str, snapshot: LedgerSnapshot) -> CompatibilityResult:
        """Return the cached result for key, computing and storing it if absent."""
        cached = self.get_cached(key)
        if cached is not None:
            return cached
        result = self.check_system_compatibility(snapshot)
        self.set_cached(key, result)
        return result

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)

    def invalidate_all(self) -> None:
        self._cache.clear()
