"""Domain model entities for ledgerguard.

These are pure data classes representing ledger concepts, independent of the
storage schema. Both storage shapes of a transaction group (entries embedded
on the group, or entries kept in their own table) load into the same
``TransactionGroup`` so the validators only ever see one shape.
"""

from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Sequence, Union


class AccountType(str, Enum):
    """Chart of accounts classification."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Side on which an account normally carries its balance."""

    DEBIT = "debit"
    CREDIT = "credit"


class TransactionStatus(str, Enum):
    """Lifecycle status of a transaction group."""

    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class StorageFormat(str, Enum):
    """Storage shape a transaction group was loaded from."""

    EMBEDDED = "embedded"
    STANDALONE = "standalone"
    MIXED = "mixed"


class Severity(str, Enum):
    """Issue severity, declared in report order."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


class IssueType(str, Enum):
    """Discriminator of the issue union."""

    ACCOUNT = "account"
    TRANSACTION = "transaction"
    RELATIONSHIP = "relationship"
    COMPATIBILITY = "compatibility"


class IssueCode(str, Enum):
    """Machine-readable issue taxonomy."""

    MISSING_FIELD = "missing-field"
    DUPLICATE_IDENTIFIER = "duplicate-identifier"
    BALANCE_MISMATCH = "balance-mismatch"
    ENTRY_COUNT_LOW = "entry-count-low"
    DANGLING_ACCOUNT_REFERENCE = "dangling-account-reference"
    DANGLING_FUNDING_REFERENCE = "dangling-funding-reference"
    ORPHAN_ACCOUNT = "orphan-account"
    MIXED_STORAGE_FORMAT = "mixed-storage-format"
    STANDALONE_STORAGE_FORMAT = "standalone-storage-format"
    INCOMPLETE_RECORD_RATIO = "incomplete-record-ratio"
    COMPATIBILITY_CHECK_FAILED = "compatibility-check-failed"


@dataclass(frozen=True)
class LedgerScope:
    """Owner and optional organization a snapshot is loaded for."""

    owner_id: str
    organization_id: Optional[str] = None


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: str
    code: Optional[str]
    name: Optional[str]
    account_type: Optional[AccountType]
    normal_balance: Optional[NormalBalance] = None
    balance: Optional[Decimal] = None
    initial_balance: Optional[Decimal] = None
    is_active: bool = True
    parent_id: Optional[str] = None
    organization_id: Optional[str] = None
    owner_id: Optional[str] = None
    deleted_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.name or self.code or "Unknown"


@dataclass(frozen=True)
class Entry:
    """One debit-or-credit line of a transaction group.

    ``account`` is set when the store already resolved the reference into an
    account object; ``account_id`` always holds the bare identifier when known.
    """

    account_id: Optional[str]
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    sequence: int = 0
    id: Optional[str] = None
    description: Optional[str] = None
    source_transaction_id: Optional[str] = None
    funding_path: tuple[str, ...] = ()
    account: Optional[Account] = None

    @property
    def resolved_account_id(self) -> Optional[str]:
        if self.account_id:
            return self.account_id
        if self.account is not None:
            return self.account.id
        return None

    @property
    def amount(self) -> Decimal:
        return self.debit_amount + self.credit_amount


@dataclass(frozen=True)
class TransactionGroup:
    """Transaction group (one business event) with its ordered entries."""

    id: str
    group_number: Optional[str]
    transaction_date: Optional[date]
    status: Optional[TransactionStatus] = TransactionStatus.DRAFT
    total_amount: Decimal = Decimal("0")
    entries: tuple[Entry, ...] = ()
    description: Optional[str] = None
    funding_type: Optional[str] = None
    linked_transaction_ids: tuple[str, ...] = ()
    owner_id: Optional[str] = None
    organization_id: Optional[str] = None
    storage_format: Optional[StorageFormat] = None

    @property
    def display_name(self) -> str:
        return self.group_number or self.description or "Unknown"


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable set of accounts and transaction groups for one scope."""

    accounts: tuple[Account, ...] = ()
    transactions: tuple[TransactionGroup, ...] = ()
    scope: Optional[LedgerScope] = None

    def account_index(self) -> dict[str, Account]:
        return {account.id: account for account in self.accounts}

    def transaction_index(self) -> dict[str, TransactionGroup]:
        return {group.id: group for group in self.transactions}


# Issues ---------------------------------------------------------------------


@dataclass(frozen=True)
class _IssueBase:
    severity: Severity
    code: IssueCode
    entity_id: str
    entity_name: str
    description: str
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class AccountIssue(_IssueBase):
    """Problem with a single account record."""

    type: IssueType = field(default=IssueType.ACCOUNT, init=False)


@dataclass(frozen=True)
class TransactionIssue(_IssueBase):
    """Problem with a single transaction group."""

    type: IssueType = field(default=IssueType.TRANSACTION, init=False)


@dataclass(frozen=True)
class RelationshipIssue(_IssueBase):
    """Broken or missing reference between records."""

    referenced_id: Optional[str] = None
    type: IssueType = field(default=IssueType.RELATIONSHIP, init=False)


@dataclass(frozen=True)
class CompatibilityIssue(_IssueBase):
    """Dataset-wide storage or completeness concern."""

    type: IssueType = field(default=IssueType.COMPATIBILITY, init=False)


ValidationIssue = Union[AccountIssue, TransactionIssue, RelationshipIssue, CompatibilityIssue]


@dataclass(frozen=True)
class ValidationOutcome:
    """Issues from one validator plus the records that produced an error."""

    issues: tuple[ValidationIssue, ...] = ()
    invalid_ids: tuple[str, ...] = ()

    @property
    def invalid_count(self) -> int:
        return len(self.invalid_ids)

    @classmethod
    def from_issues(
        cls, issues: Sequence[ValidationIssue], invalid_ids: Sequence[str] = ()
    ) -> "ValidationOutcome":
        return cls(issues=tuple(issues), invalid_ids=tuple(invalid_ids))


@dataclass(frozen=True)
class BalanceCheck:
    """Debit/credit totals of one transaction group."""

    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool


# Reports --------------------------------------------------------------------


@dataclass(frozen=True)
class IntegritySummary:
    total_accounts: int
    total_transactions: int
    valid_accounts: int
    valid_transactions: int
    compatibility_score: int


@dataclass(frozen=True)
class IntegrityReport:
    """Result of a full integrity check."""

    is_valid: bool
    summary: IntegritySummary
    issues: tuple[ValidationIssue, ...]

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == Severity.WARNING)


@dataclass(frozen=True)
class ValidationReport:
    """Integrity report wrapped with identity and recommendations."""

    report_id: str
    generated_at: datetime
    summary: IntegritySummary
    details: IntegrityReport
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class CompatibilityStats:
    total_accounts: int
    active_accounts: int
    total_transactions: int
    embedded_transactions: int
    standalone_transactions: int
    compatibility_score: int
    last_sync_time: datetime


@dataclass(frozen=True)
class CompatibilityResult:
    """Outcome of a storage-shape compatibility check."""

    is_compatible: bool
    storage_format: Optional[StorageFormat]
    issues: tuple[CompatibilityIssue, ...]
    recommendations: tuple[str, ...]
    stats: CompatibilityStats


@dataclass(frozen=True)
class SyncReport:
    accounts: tuple[Account, ...]
    accounts_processed: int
    transactions_processed: int
    issues_fixed: tuple[str, ...]
    warnings: tuple[str, ...]


@dataclass(frozen=True)
class DeletionCheck:
    """Deletion Guard verdict for one account."""

    can_delete: bool
    usage_count: int
    reason: Optional[str] = None


# Funding --------------------------------------------------------------------


@dataclass(frozen=True)
class FundingContribution:
    """One entry drawing on a funding source."""

    transaction_id: str
    group_number: Optional[str]
    entry_sequence: int
    account_id: Optional[str]
    used_amount: Decimal
    transaction_date: Optional[date]
    status: Optional[TransactionStatus]


@dataclass(frozen=True)
class FundingFlowDetail:
    source_transaction_id: str
    source_group_number: Optional[str]
    source_description: Optional[str]
    total_amount: Decimal
    used_amount: Decimal
    available_amount: Decimal
    usage_count: int
    utilization_rate: Decimal
    contributions: tuple[FundingContribution, ...] = ()


@dataclass(frozen=True)
class FundingFlowAnalysis:
    total_funding_sources: int
    total_funding_amount: Decimal
    total_used_amount: Decimal
    total_available_amount: Decimal
    utilization_rate: Decimal
    flow_details: tuple[FundingFlowDetail, ...]
    cycles: tuple[tuple[str, ...], ...] = ()


@dataclass(frozen=True)
class FundingUsage:
    """How much of one source has been drawn, and by whom."""

    source: TransactionGroup
    total_amount: Decimal
    used_amount: Decimal
    remaining_amount: Decimal
    usage_details: tuple[FundingContribution, ...]


@dataclass(frozen=True)
class AvailableFundingSource:
    transaction_id: str
    group_number: Optional[str]
    description: Optional[str]
    transaction_date: Optional[date]
    total_amount: Decimal
    used_amount: Decimal
    available_amount: Decimal
    account_id: Optional[str]
    account_name: Optional[str]
    account_code: Optional[str]


@dataclass(frozen=True)
class FundingAllocation:
    """Request to draw ``amount`` from a source onto one entry."""

    source_transaction_id: str
    amount: Decimal
    entry_index: int = 0


@dataclass(frozen=True)
class AllocationResult:
    source_transaction_id: str
    amount: Decimal
    source_description: Optional[str]
    remaining_amount: Decimal


@dataclass(frozen=True)
class FundingAllocationCheck:
    is_valid: bool
    issues: tuple[str, ...]
    recommendations: tuple[str, ...]


def as_dict(value: Any) -> Any:
    """Convert a report value into plain JSON-friendly data."""
    if is_dataclass(value) and not isinstance(value, type):
        return _plain(asdict(value))
    return _plain(value)


def _plain(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value
