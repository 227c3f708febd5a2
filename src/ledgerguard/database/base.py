"""Abstract ledger store interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from ledgerguard.domain.entities import (
    Account,
    AccountType,
    Entry,
    LedgerScope,
    LedgerSnapshot,
    NormalBalance,
    StorageFormat,
    TransactionGroup,
    TransactionStatus,
)


class LedgerStore(ABC):
    """Abstract store for ledger accounts and transaction groups.

    The read side is the snapshot loader the integrity engine consumes: it
    returns plain domain entities, each transaction group already carrying
    its entries whichever storage shape they were persisted in. The store
    does not enforce uniqueness or balance; detecting those problems is the
    engine's job.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize the storage schema (create tables)."""
        pass

    # Snapshot loading
    @abstractmethod
    def list_accounts(
        self, scope: LedgerScope, include_inactive: bool = False
    ) -> list[Account]:
        """List accounts of a scope; only active accounts unless asked otherwise."""
        pass

    @abstractmethod
    def list_transaction_groups(self, scope: LedgerScope) -> list[TransactionGroup]:
        """List transaction groups of a scope with their entries joined."""
        pass

    def load_snapshot(self, scope: LedgerScope) -> LedgerSnapshot:
        """Load the active accounts and all transaction groups of a scope."""
        return LedgerSnapshot(
            accounts=tuple(self.list_accounts(scope)),
            transactions=tuple(self.list_transaction_groups(scope)),
            scope=scope,
        )

    # Account operations
    @abstractmethod
    def create_account(
        self,
        scope: LedgerScope,
        code: Optional[str],
        name: Optional[str],
        account_type: Optional[AccountType],
        normal_balance: Optional[NormalBalance] = None,
        balance: Optional[Decimal] = None,
        initial_balance: Optional[Decimal] = None,
        parent_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> str:
        """Create an account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        """Get account by ID, active or not."""
        pass

    @abstractmethod
    def deactivate_account(
        self, account_id: str, deleted_at: Optional[datetime] = None
    ) -> None:
        """Mark an account inactive; a deletion also records ``deleted_at``."""
        pass

    @abstractmethod
    def update_account_normal_balance(
        self, account_id: str, normal_balance: NormalBalance
    ) -> None:
        """Set the normal balance side of an account."""
        pass

    # Transaction group operations
    @abstractmethod
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
        """Create a transaction group storing entries in the given shape.

        When ``total_amount`` is None it defaults to the debit total.
        Returns transaction group ID.
        """
        pass

    @abstractmethod
    def get_transaction_group(self, group_id: str) -> Optional[TransactionGroup]:
        """Get transaction group by ID with its entries."""
        pass

    @abstractmethod
    def update_transaction_status(self, group_id: str, status: TransactionStatus) -> None:
        """Set the status of a transaction group."""
        pass

    @abstractmethod
    def update_entry_funding(
        self,
        group_id: str,
        sequence: int,
        source_transaction_id: str,
        funding_path: Sequence[str],
    ) -> None:
        """Record the funding source and lineage of one entry."""
        pass

    @abstractmethod
    def embed_standalone_entries(self, group_id: str) -> int:
        """Move a group's standalone entry rows onto the group itself.

        Returns the number of entries moved.
        """
        pass
