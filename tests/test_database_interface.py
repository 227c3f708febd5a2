"""Tests for the ledger store interface returning domain models."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerguard.database.factories import DB_PATH_ENV, create_sqlite_database
from ledgerguard.domain import entities
from ledgerguard.domain.errors import NotFoundError

from builders import SCOPE, balanced_entries, make_entry


def _add_group(db, group_id, storage_format=entities.StorageFormat.EMBEDDED, scope=SCOPE, **kwargs):
    kwargs.setdefault("entries", balanced_entries("acc-cash", "acc-sales", "100"))
    kwargs.setdefault("transaction_date", date(2024, 1, 15))
    return db.create_transaction_group(
        scope,
        group_number=kwargs.pop("group_number", f"TX-{group_id}"),
        storage_format=storage_format,
        group_id=group_id,
        **kwargs,
    )


class TestDatabaseInterface:
    """Tests to verify the store returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db):
        """Test that get_account returns a domain Account entity."""
        account_id = temp_db.create_account(
            SCOPE, code="1101", name="Cash", account_type=entities.AccountType.ASSET
        )

        account = temp_db.get_account(account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert len(account_id) == 32
        assert account.is_active is True
        assert temp_db.get_account("missing") is None

    def test_list_accounts_ordered_by_code(self, temp_db):
        temp_db.create_account(SCOPE, code="4101", name="Sales", account_type=entities.AccountType.REVENUE)
        temp_db.create_account(SCOPE, code="1101", name="Cash", account_type=entities.AccountType.ASSET)

        assert [acc.code for acc in temp_db.list_accounts(SCOPE)] == ["1101", "4101"]

    def test_list_accounts_hides_inactive(self, temp_db):
        kept = temp_db.create_account(SCOPE, code="1101", name="Cash", account_type=None)
        gone = temp_db.create_account(SCOPE, code="1102", name="Old till", account_type=None)
        temp_db.deactivate_account(gone)

        assert [acc.id for acc in temp_db.list_accounts(SCOPE)] == [kept]
        assert len(temp_db.list_accounts(SCOPE, include_inactive=True)) == 2

    def test_deactivate_unknown_account(self, temp_db):
        with pytest.raises(NotFoundError):
            temp_db.deactivate_account("missing")

    def test_update_account_normal_balance(self, temp_db):
        account_id = temp_db.create_account(
            SCOPE, code="1101", name="Cash", account_type=entities.AccountType.ASSET
        )

        temp_db.update_account_normal_balance(account_id, entities.NormalBalance.DEBIT)

        assert temp_db.get_account(account_id).normal_balance == entities.NormalBalance.DEBIT
        with pytest.raises(NotFoundError):
            temp_db.update_account_normal_balance("missing", entities.NormalBalance.CREDIT)

    def test_scope_filtering(self, temp_db):
        other_owner = entities.LedgerScope(owner_id="other")
        org_scope = entities.LedgerScope(owner_id=SCOPE.owner_id, organization_id="org-1")
        temp_db.create_account(SCOPE, code="1101", name="Cash", account_type=None)
        temp_db.create_account(org_scope, code="1201", name="Bank", account_type=None)
        temp_db.create_account(other_owner, code="9", name="Theirs", account_type=None)
        _add_group(temp_db, "mine")
        _add_group(temp_db, "theirs", scope=other_owner)

        assert {acc.code for acc in temp_db.list_accounts(SCOPE)} == {"1101", "1201"}
        assert [acc.code for acc in temp_db.list_accounts(org_scope)] == ["1201"]
        assert [group.id for group in temp_db.list_transaction_groups(SCOPE)] == ["mine"]
        assert temp_db.list_transaction_groups(org_scope) == []

    def test_groups_newest_first(self, temp_db):
        _add_group(temp_db, "old", transaction_date=date(2024, 1, 1))
        _add_group(temp_db, "new", transaction_date=date(2024, 5, 1))

        assert [group.id for group in temp_db.list_transaction_groups(SCOPE)] == ["new", "old"]

    def test_load_snapshot(self, temp_db, stored_ledger):
        snapshot = temp_db.load_snapshot(SCOPE)

        assert isinstance(snapshot, entities.LedgerSnapshot)
        assert snapshot.scope == SCOPE
        assert [acc.id for acc in snapshot.accounts] == ["acc-cash", "acc-stock", "acc-sales"]
        assert [group.id for group in snapshot.transactions] == ["grp-sale"]


class TestTransactionGroupStorage:
    """Both storage shapes load into the same domain model."""

    @pytest.mark.parametrize(
        "storage_format", [entities.StorageFormat.EMBEDDED, entities.StorageFormat.STANDALONE]
    )
    def test_round_trip(self, temp_db, storage_format):
        _add_group(
            temp_db,
            "grp-1",
            storage_format=storage_format,
            entries=[
                make_entry("acc-stock", debit="40.25", source_transaction_id="grp-0", funding_path=("grp-0",)),
                make_entry("acc-cash", credit="40.25"),
            ],
            description="Restock",
            linked_transaction_ids=["grp-0"],
        )

        group = temp_db.get_transaction_group("grp-1")

        assert isinstance(group, entities.TransactionGroup)
        assert group.storage_format == storage_format
        assert group.total_amount == Decimal("40.25")
        assert group.status == entities.TransactionStatus.DRAFT
        assert [entry.sequence for entry in group.entries] == [1, 2]
        assert group.entries[0].debit_amount == Decimal("40.25")
        assert group.entries[0].source_transaction_id == "grp-0"
        assert group.entries[0].funding_path == ("grp-0",)
        assert all(entry.id for entry in group.entries)
        assert group.linked_transaction_ids == ("grp-0",)

    def test_mixed_format_is_refused(self, temp_db):
        with pytest.raises(ValueError, match="mixed"):
            _add_group(temp_db, "grp-1", storage_format=entities.StorageFormat.MIXED)

    def test_explicit_total_is_kept(self, temp_db):
        _add_group(temp_db, "grp-1", total_amount=Decimal("99.00"))

        assert temp_db.get_transaction_group("grp-1").total_amount == Decimal("99.00")

    def test_empty_embedded_group(self, temp_db):
        _add_group(temp_db, "grp-1", entries=[])

        group = temp_db.get_transaction_group("grp-1")
        assert group.storage_format == entities.StorageFormat.EMBEDDED
        assert group.entries == ()

    def test_update_transaction_status(self, temp_db):
        _add_group(temp_db, "grp-1")

        temp_db.update_transaction_status("grp-1", entities.TransactionStatus.CONFIRMED)

        assert temp_db.get_transaction_group("grp-1").status == entities.TransactionStatus.CONFIRMED

    def test_update_status_of_unknown_group(self, temp_db):
        with pytest.raises(NotFoundError, match="Transaction group nope not found"):
            temp_db.update_transaction_status("nope", entities.TransactionStatus.CONFIRMED)

    @pytest.mark.parametrize(
        "storage_format", [entities.StorageFormat.EMBEDDED, entities.StorageFormat.STANDALONE]
    )
    def test_update_entry_funding(self, temp_db, storage_format):
        _add_group(temp_db, "grp-1", storage_format=storage_format)

        temp_db.update_entry_funding("grp-1", 2, "grp-src", ["grp-root", "grp-src"])

        entries = temp_db.get_transaction_group("grp-1").entries
        assert entries[0].source_transaction_id is None
        assert entries[1].source_transaction_id == "grp-src"
        assert entries[1].funding_path == ("grp-root", "grp-src")

    def test_update_funding_of_unknown_entry(self, temp_db):
        _add_group(temp_db, "grp-1")

        with pytest.raises(NotFoundError, match="Entry 7 of transaction group grp-1 not found"):
            temp_db.update_entry_funding("grp-1", 7, "grp-src", [])

    def test_embed_standalone_entries(self, temp_db):
        _add_group(temp_db, "grp-1", storage_format=entities.StorageFormat.STANDALONE)
        before = temp_db.get_transaction_group("grp-1")

        moved = temp_db.embed_standalone_entries("grp-1")

        after = temp_db.get_transaction_group("grp-1")
        assert moved == 2
        assert after.storage_format == entities.StorageFormat.EMBEDDED
        assert after.entries == before.entries
        assert temp_db.embed_standalone_entries("grp-1") == 0

    def test_embed_leaves_embedded_groups_alone(self, temp_db):
        _add_group(temp_db, "grp-1")

        assert temp_db.embed_standalone_entries("grp-1") == 0


def test_factory_reads_path_from_environment(tmp_path, monkeypatch):
    db_file = tmp_path / "env.db"
    monkeypatch.setenv(DB_PATH_ENV, str(db_file))

    db = create_sqlite_database()

    assert db.database_url == f"sqlite:///{db_file}"
    assert db_file.exists()
