"""Ledger dump import domain service."""

import json
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from ledgerguard.database.base import LedgerStore
from ledgerguard.domain.entities import (
    AccountType,
    Entry,
    LedgerScope,
    NormalBalance,
    StorageFormat,
    TransactionStatus,
)
from ledgerguard.domain.relationships import resolve_account_ref
from ledgerguard.logging_config import get_logger
from ledgerguard.utils.amount_parser import parse_amount
from ledgerguard.utils.date_parser import coerce_date, coerce_datetime

logger = get_logger("domain.ledger_import")

ZERO = Decimal("0")


def _record_id(record: dict[str, Any]) -> Optional[str]:
    value = record.get("_id") or record.get("id")
    return str(value) if value else None


def _optional_amount(value: Any):
    if value is None or value == "":
        return None
    return parse_amount(value)


def _records(document: dict[str, Any], key: str, result: dict[str, Any]) -> list[Any]:
    records = document.get(key)
    if records is None:
        return []
    if not isinstance(records, list):
        result["errors"].append(f"{key} must be a list")
        return []
    return records


def _is_record(record: Any, label: str, result: dict[str, Any]) -> bool:
    if isinstance(record, dict):
        return True
    result["errors"].append(f"{label}: Record must be an object")
    return False


def _entry_from_record(record: Any, position: int) -> Entry:
    if not isinstance(record, dict):
        raise ValueError(f"Entry {position}: Record must be an object")
    return Entry(
        id=_record_id(record),
        account_id=resolve_account_ref(record.get("accountId")),
        debit_amount=_optional_amount(record.get("debitAmount")) or ZERO,
        credit_amount=_optional_amount(record.get("creditAmount")) or ZERO,
        sequence=int(record.get("sequence") or position),
        description=record.get("description"),
        source_transaction_id=record.get("sourceTransactionId") or None,
        funding_path=tuple(str(item) for item in record.get("fundingPath") or ()),
    )


class LedgerImportService:
    """Service for loading a document-store ledger dump into the store.

    The dump is a JSON object with ``accounts``, ``transactionGroups`` and
    optionally ``entries`` arrays using the document store's camelCase
    field names. A group carrying an ``entries`` array is stored embedded;
    the top-level ``entries`` rows are attached by ``transactionGroupId`` to
    groups without one and stored standalone.

    Records are stored as found, duplicates and unbalanced groups included,
    so the integrity checks see the data as it was exported. Records whose
    ``_id`` already exists in the store are skipped.
    """

    def __init__(self, db: LedgerStore):
        """Initialize ledger import service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def import_file(self, file_path: str, scope: LedgerScope) -> dict[str, Any]:
        """Import a ledger dump file.

        Args:
            file_path: Path to the JSON dump
            scope: Scope the records are stored under

        Returns:
            Dict with import statistics:
            - accounts: number of accounts imported
            - transactions: number of transaction groups imported
            - skipped: number of records already present
            - errors: list of error messages

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file is not a JSON object
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Ledger dump not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Ledger dump is not valid JSON: {e}")

        if not isinstance(document, dict):
            raise ValueError("Ledger dump must be a JSON object")

        return self.import_document(document, scope)

    def import_document(self, document: dict[str, Any], scope: LedgerScope) -> dict[str, Any]:
        """Import an already parsed ledger dump. See ``import_file``."""
        result: dict[str, Any] = {"accounts": 0, "transactions": 0, "skipped": 0, "errors": []}

        for position, record in enumerate(_records(document, "accounts", result), start=1):
            if not _is_record(record, f"Account {position}", result):
                continue
            self._import_account(record, position, scope, result)

        standalone: dict[str, list[dict[str, Any]]] = {}
        for position, record in enumerate(_records(document, "entries", result), start=1):
            if not _is_record(record, f"Entry {position}", result):
                continue
            group_id = record.get("transactionGroupId")
            if not group_id:
                result["errors"].append(f"Entry {position}: Missing transactionGroupId")
                continue
            standalone.setdefault(str(group_id), []).append(record)

        imported_groups: set[str] = set()
        for position, record in enumerate(_records(document, "transactionGroups", result), start=1):
            if not _is_record(record, f"Transaction group {position}", result):
                continue
            group_id = self._import_group(record, position, scope, standalone, result)
            if group_id:
                imported_groups.add(group_id)

        for group_id in standalone:
            if group_id not in imported_groups and self.db.get_transaction_group(group_id) is None:
                result["errors"].append(
                    f"Entries reference unknown transaction group {group_id}"
                )

        logger.info(
            "ledger_import_completed",
            extra={
                "owner_id": scope.owner_id,
                "accounts": result["accounts"],
                "transactions": result["transactions"],
                "skipped": result["skipped"],
                "errors": len(result["errors"]),
            },
        )
        return result

    def _import_account(
        self, record: dict[str, Any], position: int, scope: LedgerScope, result: dict[str, Any]
    ) -> None:
        account_id = _record_id(record)
        if account_id and self.db.get_account(account_id) is not None:
            result["skipped"] += 1
            return

        try:
            account_type = AccountType(record["accountType"]) if record.get("accountType") else None
            normal_balance = (
                NormalBalance(record["normalBalance"]) if record.get("normalBalance") else None
            )
            balance = _optional_amount(record.get("balance"))
            initial_balance = _optional_amount(record.get("initialBalance"))
            deleted_at = coerce_datetime(record.get("deletedAt"))
        except (ValueError, TypeError, AttributeError) as e:
            result["errors"].append(f"Account {position}: {e}")
            return

        account_id = self.db.create_account(
            scope,
            code=record.get("code"),
            name=record.get("name"),
            account_type=account_type,
            normal_balance=normal_balance,
            balance=balance,
            initial_balance=initial_balance,
            parent_id=record.get("parentId"),
            account_id=account_id,
        )
        if record.get("isActive") is False or deleted_at is not None:
            self.db.deactivate_account(account_id, deleted_at=deleted_at)
        result["accounts"] += 1

    def _import_group(
        self,
        record: dict[str, Any],
        position: int,
        scope: LedgerScope,
        standalone: dict[str, list[dict[str, Any]]],
        result: dict[str, Any],
    ) -> Optional[str]:
        group_id = _record_id(record)
        if group_id and self.db.get_transaction_group(group_id) is not None:
            result["skipped"] += 1
            return group_id

        embedded = record.get("entries")
        if embedded is not None and not isinstance(embedded, list):
            result["errors"].append(f"Transaction group {position}: entries must be a list")
            return None
        if embedded is not None:
            storage_format = StorageFormat.EMBEDDED
            entry_records = embedded
        else:
            storage_format = StorageFormat.STANDALONE
            entry_records = standalone.get(group_id, []) if group_id else []

        try:
            status = TransactionStatus(record["status"]) if record.get("status") else None
            transaction_date = coerce_date(record.get("transactionDate"))
            total_amount = _optional_amount(record.get("totalAmount"))
            entries = [
                _entry_from_record(entry, index)
                for index, entry in enumerate(entry_records, start=1)
            ]
            linked_ids = [str(item) for item in record.get("linkedTransactionIds") or ()]
        except (ValueError, TypeError, AttributeError) as e:
            result["errors"].append(f"Transaction group {position}: {e}")
            return None

        group_id = self.db.create_transaction_group(
            scope,
            group_number=record.get("groupNumber"),
            transaction_date=transaction_date,
            entries=entries,
            status=status,
            total_amount=total_amount,
            description=record.get("description"),
            funding_type=record.get("fundingType"),
            linked_transaction_ids=linked_ids,
            storage_format=storage_format,
            group_id=group_id,
        )
        result["transactions"] += 1
        return group_id
