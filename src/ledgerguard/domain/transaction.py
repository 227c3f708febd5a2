"""Transaction group domain service."""

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ledgerguard.database.base import LedgerStore
from ledgerguard.domain.balance import check_balance
from ledgerguard.domain.entities import (
    Entry,
    LedgerScope,
    StorageFormat,
    TransactionGroup as TransactionGroupEntity,
    TransactionStatus,
)
from ledgerguard.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_group_number,
    invalid_status_transition,
    transaction_not_found,
)
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.transaction")

# cancelled is terminal
ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.DRAFT: frozenset({TransactionStatus.CONFIRMED, TransactionStatus.CANCELLED}),
    TransactionStatus.CONFIRMED: frozenset({TransactionStatus.DRAFT}),
    TransactionStatus.CANCELLED: frozenset(),
}


class TransactionService:
    """Service for transaction groups and their status lifecycle."""

    def __init__(self, db: LedgerStore):
        """Initialize transaction service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def create_transaction_group(
        self,
        scope: LedgerScope,
        group_number: Optional[str],
        transaction_date: Optional[date],
        entries: Sequence[Entry] = (),
        status: Optional[TransactionStatus] = TransactionStatus.DRAFT,
        total_amount: Optional[Decimal] = None,
        description: Optional[str] = None,
        funding_type: Optional[str] = None,
        linked_transaction_ids: Sequence[str] = (),
        storage_format: StorageFormat = StorageFormat.EMBEDDED,
        group_id: Optional[str] = None,
    ) -> str:
        """Create a transaction group.

        Returns:
            Transaction group ID

        Raises:
            ConflictError: If the scope already has a group with this number
        """
        if group_number and self.find_by_number(scope, group_number) is not None:
            raise ConflictError(duplicate_group_number(group_number))

        return self.db.create_transaction_group(
            scope,
            group_number=group_number,
            transaction_date=transaction_date,
            entries=entries,
            status=status,
            total_amount=total_amount,
            description=description,
            funding_type=funding_type,
            linked_transaction_ids=linked_transaction_ids,
            storage_format=storage_format,
            group_id=group_id,
        )

    def get_transaction_group(
        self, scope: LedgerScope, group_id: str
    ) -> Optional[TransactionGroupEntity]:
        """Get a transaction group of the scope by ID, or None."""
        group = self.db.get_transaction_group(group_id)
        if group is None or group.owner_id != scope.owner_id:
            return None
        if scope.organization_id is not None and group.organization_id != scope.organization_id:
            return None
        return group

    def find_by_number(
        self, scope: LedgerScope, group_number: str
    ) -> Optional[TransactionGroupEntity]:
        for group in self.db.list_transaction_groups(scope):
            if group.group_number == group_number:
                return group
        return None

    def list_transaction_groups(self, scope: LedgerScope) -> list[TransactionGroupEntity]:
        return self.db.list_transaction_groups(scope)

    def confirm(self, scope: LedgerScope, group_id: str) -> None:
        """Confirm a draft group.

        Raises:
            NotFoundError: If the group is not in the scope
            ValidationError: If the group is not a draft, has no entries or
                does not balance
        """
        group = self._require_group(scope, group_id)
        self._check_transition(group, TransactionStatus.CONFIRMED)

        if not group.entries:
            raise ValidationError(
                f"Transaction group {group.display_name} has no entries and cannot be confirmed"
            )
        check = check_balance(group)
        if not check.is_balanced:
            raise ValidationError(
                f"Transaction group {group.display_name} is unbalanced: "
                f"debit {check.total_debit} vs credit {check.total_credit}"
            )

        self._set_status(group, TransactionStatus.CONFIRMED)

    def cancel(self, scope: LedgerScope, group_id: str) -> None:
        """Cancel a draft group.

        Raises:
            NotFoundError: If the group is not in the scope
            ValidationError: If the group is not a draft or still funds
                other non-cancelled groups
        """
        group = self._require_group(scope, group_id)
        self._check_transition(group, TransactionStatus.CANCELLED)

        consumers = sorted(
            {
                other.display_name
                for other in self.db.list_transaction_groups(scope)
                if other.id != group.id
                and other.status != TransactionStatus.CANCELLED
                and any(entry.source_transaction_id == group.id for entry in other.entries)
            }
        )
        if consumers:
            raise ValidationError(
                f"Transaction group {group.display_name} funds {', '.join(consumers)} "
                "and cannot be cancelled"
            )

        self._set_status(group, TransactionStatus.CANCELLED)

    def reopen(self, scope: LedgerScope, group_id: str) -> None:
        """Return a confirmed group to draft.

        Raises:
            NotFoundError: If the group is not in the scope
            ValidationError: If the group is not confirmed
        """
        group = self._require_group(scope, group_id)
        self._check_transition(group, TransactionStatus.DRAFT)
        self._set_status(group, TransactionStatus.DRAFT)

    def _require_group(self, scope: LedgerScope, group_id: str) -> TransactionGroupEntity:
        group = self.get_transaction_group(scope, group_id)
        if group is None:
            raise NotFoundError(transaction_not_found(group_id))
        return group

    @staticmethod
    def _check_transition(group: TransactionGroupEntity, target: TransactionStatus) -> None:
        current = group.status or TransactionStatus.DRAFT
        if target not in ALLOWED_TRANSITIONS[current]:
            raise ValidationError(
                invalid_status_transition(group.display_name, current.value, target.value)
            )

    def _set_status(self, group: TransactionGroupEntity, target: TransactionStatus) -> None:
        self.db.update_transaction_status(group.id, target)
        logger.info(
            "transaction_status_changed",
            extra={
                "group_id": group.id,
                "from_status": (group.status or TransactionStatus.DRAFT).value,
                "to_status": target.value,
            },
        )
