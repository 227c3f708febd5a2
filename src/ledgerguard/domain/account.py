"""Account domain service."""

from datetime import datetime, UTC
from decimal import Decimal
from typing import Callable, Optional

from ledgerguard.database.base import LedgerStore
from ledgerguard.domain.deletion import check_account_deletion
from ledgerguard.domain.entities import (
    Account as AccountEntity,
    AccountType,
    DeletionCheck,
    LedgerScope,
    NormalBalance,
)
from ledgerguard.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    account_not_found,
    duplicate_account_code,
)
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.account")


class AccountService:
    """Service for looking up, deleting and deactivating accounts."""

    def __init__(self, db: LedgerStore, clock: Optional[Callable[[], datetime]] = None):
        """Initialize account service.

        Args:
            db: Ledger store instance
            clock: Optional callable returning the current time
        """
        self.db = db
        self._clock = clock or (lambda: datetime.now(UTC))

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
        """Create an account.

        Returns:
            Account ID

        Raises:
            ConflictError: If an active account of the scope already uses the code
        """
        if code and self.find_by_code(scope, code) is not None:
            raise ConflictError(duplicate_account_code(code))

        return self.db.create_account(
            scope,
            code=code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance,
            balance=balance,
            initial_balance=initial_balance,
            parent_id=parent_id,
            account_id=account_id,
        )

    def get_account(self, scope: LedgerScope, account_id: str) -> Optional[AccountEntity]:
        """Get an account of the scope by ID, or None."""
        account = self.db.get_account(account_id)
        if account is None or account.owner_id != scope.owner_id:
            return None
        if scope.organization_id is not None and account.organization_id != scope.organization_id:
            return None
        return account

    def find_by_code(self, scope: LedgerScope, code: str) -> Optional[AccountEntity]:
        """Find an active account of the scope by code."""
        for account in self.db.list_accounts(scope):
            if account.code == code:
                return account
        return None

    def list_accounts(
        self, scope: LedgerScope, include_inactive: bool = False
    ) -> list[AccountEntity]:
        return self.db.list_accounts(scope, include_inactive=include_inactive)

    def check_deletion(self, scope: LedgerScope, account_id: str) -> DeletionCheck:
        """Run the deletion guard for one account.

        Raises:
            NotFoundError: If the account is not in the scope
        """
        self._require_account(scope, account_id)
        return check_account_deletion(account_id, self.db.load_snapshot(scope))

    def delete_account(self, scope: LedgerScope, account_id: str) -> None:
        """Soft-delete an account no transaction references.

        The account is kept with ``is_active`` cleared and ``deleted_at``
        stamped.

        Raises:
            NotFoundError: If the account is not in the scope
            DependencyError: If any entry references the account
        """
        check = self.check_deletion(scope, account_id)
        if not check.can_delete:
            raise DependencyError(f"Cannot delete account {account_id}: {check.reason}")

        self.db.deactivate_account(account_id, deleted_at=self._clock())
        logger.info("account_deleted", extra={"account_id": account_id})

    def deactivate_account(self, scope: LedgerScope, account_id: str) -> None:
        """Mark an account inactive without recording a deletion.

        Raises:
            NotFoundError: If the account is not in the scope
        """
        self._require_account(scope, account_id)
        self.db.deactivate_account(account_id)
        logger.info("account_deactivated", extra={"account_id": account_id})

    def _require_account(self, scope: LedgerScope, account_id: str) -> AccountEntity:
        account = self.get_account(scope, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account
