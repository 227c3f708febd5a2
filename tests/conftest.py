"""Shared pytest fixtures for ledgerguard tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
from pathlib import Path
import pytest

from ledgerguard.database.factories import create_sqlite_database
from ledgerguard.domain.account import AccountService
from ledgerguard.domain.compatibility import CompatibilityService
from ledgerguard.domain.entities import AccountType, NormalBalance
from ledgerguard.domain.funding import FundingService
from ledgerguard.domain.integrity import IntegrityService
from ledgerguard.domain.transaction import TransactionService
from ledgerguard.logging_config import reset_logging

from builders import OWNER, SCOPE, balanced_entries


@pytest.fixture(autouse=True)
def _reset_logging():
    """Each test starts and ends with unconfigured logging."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def scope():
    return SCOPE


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def funding_service(temp_db):
    """Create a FundingService with a temporary database."""
    return FundingService(temp_db)


@pytest.fixture
def compatibility_service():
    return CompatibilityService()


@pytest.fixture
def integrity_service(temp_db, compatibility_service):
    """Create an IntegrityService with a temporary database."""
    return IntegrityService(temp_db, compatibility_service)


@pytest.fixture
def stored_ledger(temp_db, scope):
    """Store cash, inventory and sales accounts plus one balanced draft sale.

    Returns a dict of the created IDs.
    """
    cash = temp_db.create_account(
        scope, code="1101", name="Cash", account_type=AccountType.ASSET,
        normal_balance=NormalBalance.DEBIT, balance=Decimal("0"), account_id="acc-cash",
    )
    stock = temp_db.create_account(
        scope, code="1301", name="Inventory", account_type=AccountType.ASSET,
        normal_balance=NormalBalance.DEBIT, balance=Decimal("0"), account_id="acc-stock",
    )
    sales = temp_db.create_account(
        scope, code="4101", name="Sales", account_type=AccountType.REVENUE,
        normal_balance=NormalBalance.CREDIT, balance=Decimal("0"), account_id="acc-sales",
    )
    sale = temp_db.create_transaction_group(
        scope,
        group_number="TX-0001",
        transaction_date=date(2024, 1, 15),
        entries=balanced_entries(cash, sales, "1000"),
        description="Counter sale",
        group_id="grp-sale",
    )
    return {"cash": cash, "stock": stock, "sales": sales, "sale": sale}


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_args(temp_db):
    """Global CLI options pointing at the temporary database."""
    return ["--db-path", temp_db.database_path, "--owner", OWNER]


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
