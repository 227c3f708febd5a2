"""Storage layer for ledgerguard."""

from ledgerguard.database.base import LedgerStore
from ledgerguard.database.factories import create_sqlite_database

__all__ = ["LedgerStore", "create_sqlite_database"]
