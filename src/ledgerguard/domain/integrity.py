"""Integrity report aggregation."""

from datetime import datetime, UTC
from typing import Callable, Optional, Sequence

from ledgerguard.database.base import LedgerStore
from ledgerguard.domain.balance import validate_balances
from ledgerguard.domain.compatibility import CompatibilityService, compatibility_score
from ledgerguard.domain.entities import (
    IntegrityReport,
    IntegritySummary,
    LedgerScope,
    LedgerSnapshot,
    Severity,
    ValidationIssue,
    ValidationReport,
)
from ledgerguard.domain.errors import SnapshotLoadError
from ledgerguard.domain.field_validation import validate_accounts, validate_transactions
from ledgerguard.domain.relationships import validate_relationships
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.integrity")

LOW_SCORE_THRESHOLD = 80
WARNING_COUNT_THRESHOLD = 5
VALID_RATIO_THRESHOLD = 0.9


def sort_issues(issues: Sequence[ValidationIssue]) -> tuple[ValidationIssue, ...]:
    """Order issues error, warning, info, keeping validator order within a severity."""
    return tuple(sorted(issues, key=lambda issue: issue.severity.rank))


def _valid_ratio(valid: int, total: int) -> float:
    return valid / total if total else 1.0


class IntegrityService:
    """Runs every validator over one snapshot and builds reports."""

    def __init__(
        self,
        db: LedgerStore,
        compatibility: CompatibilityService,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize integrity service.

        Args:
            db: Ledger store the snapshot is loaded from
            compatibility: Shared compatibility service
            clock: Optional callable returning the current time
        """
        self.db = db
        self.compatibility = compatibility
        self._clock = clock or (lambda: datetime.now(UTC))

    def load_snapshot(self, scope: LedgerScope) -> LedgerSnapshot:
        """Load a snapshot, failing closed.

        Raises:
            SnapshotLoadError: If the store cannot produce the snapshot; the
                message is the underlying error's
        """
        try:
            return self.db.load_snapshot(scope)
        except Exception as exc:
            logger.exception(
                "snapshot_load_failed",
                extra={"owner_id": scope.owner_id, "organization_id": scope.organization_id},
            )
            raise SnapshotLoadError(str(exc)) from exc

    def run_checks(self, snapshot: LedgerSnapshot) -> IntegrityReport:
        """Run all validators over an in-memory snapshot.

        Args:
            snapshot: Snapshot to check

        Returns:
            IntegrityReport with issues sorted by severity
        """
        account_outcome = validate_accounts(snapshot.accounts)
        transaction_outcome = validate_transactions(snapshot.transactions)
        balance_outcome = validate_balances(snapshot.transactions)
        relationship_outcome = validate_relationships(snapshot)
        compatibility_issues = self.compatibility.validate(snapshot)

        issues = sort_issues(
            account_outcome.issues
            + transaction_outcome.issues
            + balance_outcome.issues
            + relationship_outcome.issues
            + compatibility_issues
        )

        invalid_transactions = set(transaction_outcome.invalid_ids) | set(
            balance_outcome.invalid_ids
        )
        summary = IntegritySummary(
            total_accounts=len(snapshot.accounts),
            total_transactions=len(snapshot.transactions),
            valid_accounts=len(snapshot.accounts) - len(set(account_outcome.invalid_ids)),
            valid_transactions=len(snapshot.transactions) - len(invalid_transactions),
            compatibility_score=compatibility_score(snapshot),
        )
        report = IntegrityReport(
            is_valid=not any(issue.severity == Severity.ERROR for issue in issues),
            summary=summary,
            issues=issues,
        )

        logger.info(
            "integrity_check_completed",
            extra={
                "is_valid": report.is_valid,
                "errors": report.error_count,
                "warnings": report.warning_count,
                "score": summary.compatibility_score,
            },
        )
        return report

    def check_integrity(self, scope: LedgerScope) -> IntegrityReport:
        """Load the scope's snapshot and check it."""
        return self.run_checks(self.load_snapshot(scope))

    def generate_report(self, scope: LedgerScope) -> ValidationReport:
        """Check the scope and wrap the result with identity and recommendations."""
        details = self.check_integrity(scope)
        generated_at = self._clock()
        report_id = f"VAL-{int(generated_at.timestamp() * 1000)}-{scope.owner_id[-6:]}"

        return ValidationReport(
            report_id=report_id,
            generated_at=generated_at,
            summary=details.summary,
            details=details,
            recommendations=tuple(build_recommendations(details)),
        )


def build_recommendations(report: IntegrityReport) -> list[str]:
    """Derive follow-up advice from fixed report thresholds."""
    summary = report.summary
    recommendations: list[str] = []

    if summary.compatibility_score < LOW_SCORE_THRESHOLD:
        recommendations.append(
            "Compatibility score is low; consolidate the storage format of transaction groups"
        )

    error_count = report.error_count
    if error_count > 0:
        recommendations.append(f"Found {error_count} errors; resolve them first")

    warning_count = report.warning_count
    if warning_count > WARNING_COUNT_THRESHOLD:
        recommendations.append(f"Found {warning_count} warnings; address them gradually")

    if _valid_ratio(summary.valid_accounts, summary.total_accounts) < VALID_RATIO_THRESHOLD:
        recommendations.append("Account data is incomplete; fill in the required fields")

    if (
        _valid_ratio(summary.valid_transactions, summary.total_transactions)
        < VALID_RATIO_THRESHOLD
    ):
        recommendations.append(
            "Transaction data is incomplete; check debit/credit balance and required fields"
        )

    return recommendations
