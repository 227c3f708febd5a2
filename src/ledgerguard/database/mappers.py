"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer is also where the two storage shapes of a transaction group are
joined into one representation: a group carrying an inline JSON entry list
(even an empty one) maps to an embedded group, any other group maps its entry
rows to a standalone group.
"""

from decimal import Decimal
from typing import Any, Optional

from ledgerguard.domain import entities as domain
from ledgerguard.domain.relationships import resolve_account_ref
from ledgerguard.database.models import (
    Account as ORMAccount,
    Entry as ORMEntry,
    TransactionGroup as ORMTransactionGroup,
)
from ledgerguard.utils.amount_parser import parse_amount


def _to_decimal(value: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        return parse_amount(value)
    return Decimal(str(value))


def _enum_or_none(enum_cls, value):
    return enum_cls(value) if value else None


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        code=orm_account.code,
        name=orm_account.name,
        account_type=_enum_or_none(domain.AccountType, orm_account.account_type),
        normal_balance=_enum_or_none(domain.NormalBalance, orm_account.normal_balance),
        balance=orm_account.balance,
        initial_balance=orm_account.initial_balance,
        is_active=bool(orm_account.is_active),
        parent_id=orm_account.parent_id,
        organization_id=orm_account.organization_id,
        owner_id=orm_account.owner_id,
        deleted_at=orm_account.deleted_at,
    )


def entry_to_domain(orm_entry: ORMEntry) -> domain.Entry:
    """Convert a standalone SQLAlchemy Entry row to a domain Entry."""
    return domain.Entry(
        id=orm_entry.id,
        account_id=orm_entry.account_id,
        debit_amount=_to_decimal(orm_entry.debit_amount),
        credit_amount=_to_decimal(orm_entry.credit_amount),
        sequence=orm_entry.sequence,
        description=orm_entry.description,
        source_transaction_id=orm_entry.source_transaction_id,
        funding_path=tuple(orm_entry.funding_path or ()),
    )


def embedded_entry_to_domain(data: dict[str, Any], index: int) -> domain.Entry:
    """Convert one inline JSON entry to a domain Entry.

    ``account_id`` may hold a populated account object rather than a bare
    identifier; only the identifier is kept.
    """
    return domain.Entry(
        id=data.get("id"),
        account_id=resolve_account_ref(data.get("account_id")),
        debit_amount=_to_decimal(data.get("debit_amount")),
        credit_amount=_to_decimal(data.get("credit_amount")),
        sequence=data.get("sequence", index + 1),
        description=data.get("description"),
        source_transaction_id=data.get("source_transaction_id"),
        funding_path=tuple(data.get("funding_path") or ()),
    )


def entry_to_embedded(entry: domain.Entry) -> dict[str, Any]:
    """Convert a domain Entry to its inline JSON form."""
    return {
        "id": entry.id,
        "account_id": entry.resolved_account_id,
        "debit_amount": str(entry.debit_amount),
        "credit_amount": str(entry.credit_amount),
        "sequence": entry.sequence,
        "description": entry.description,
        "source_transaction_id": entry.source_transaction_id,
        "funding_path": list(entry.funding_path),
    }


def transaction_group_to_domain(orm_group: ORMTransactionGroup) -> domain.TransactionGroup:
    """Convert SQLAlchemy TransactionGroup model to domain TransactionGroup entity."""
    if orm_group.embedded_entries is not None:
        storage_format = domain.StorageFormat.EMBEDDED
        entries = tuple(
            embedded_entry_to_domain(data, index)
            for index, data in enumerate(orm_group.embedded_entries)
        )
    else:
        storage_format = domain.StorageFormat.STANDALONE
        entries = tuple(entry_to_domain(row) for row in orm_group.entries)

    return domain.TransactionGroup(
        id=orm_group.id,
        group_number=orm_group.group_number,
        transaction_date=orm_group.transaction_date,
        status=_enum_or_none(domain.TransactionStatus, orm_group.status),
        total_amount=_to_decimal(orm_group.total_amount),
        entries=entries,
        description=orm_group.description,
        funding_type=orm_group.funding_type,
        linked_transaction_ids=tuple(orm_group.linked_transaction_ids or ()),
        owner_id=orm_group.owner_id,
        organization_id=orm_group.organization_id,
        storage_format=storage_format,
    )
