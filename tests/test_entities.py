"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from ledgerguard.domain.entities import (
    Account,
    AccountIssue,
    CompatibilityIssue,
    Entry,
    IssueCode,
    IssueType,
    RelationshipIssue,
    Severity,
    TransactionGroup,
    TransactionIssue,
    as_dict,
)


class TestSeverity:
    def test_rank_order(self):
        assert Severity.ERROR.rank < Severity.WARNING.rank < Severity.INFO.rank

    def test_values(self):
        assert [severity.value for severity in Severity] == ["error", "warning", "info"]


class TestIssues:
    """The ``type`` field discriminates the issue union."""

    @pytest.mark.parametrize(
        "issue_cls,issue_type",
        [
            (AccountIssue, IssueType.ACCOUNT),
            (TransactionIssue, IssueType.TRANSACTION),
            (RelationshipIssue, IssueType.RELATIONSHIP),
            (CompatibilityIssue, IssueType.COMPATIBILITY),
        ],
    )
    def test_discriminator(self, issue_cls, issue_type):
        issue = issue_cls(
            severity=Severity.WARNING,
            code=IssueCode.MISSING_FIELD,
            entity_id="x",
            entity_name="X",
            description="something",
        )
        assert issue.type == issue_type
        assert issue.recommendation is None

    def test_type_cannot_be_passed(self):
        with pytest.raises(TypeError):
            AccountIssue(
                severity=Severity.ERROR,
                code=IssueCode.MISSING_FIELD,
                entity_id="x",
                entity_name="X",
                description="d",
                type=IssueType.TRANSACTION,
            )

    def test_relationship_issue_carries_reference(self):
        issue = RelationshipIssue(
            severity=Severity.ERROR,
            code=IssueCode.DANGLING_ACCOUNT_REFERENCE,
            entity_id="g1",
            entity_name="TX-1",
            description="entry references a non-existent account: a9",
            referenced_id="a9",
        )
        assert issue.referenced_id == "a9"


class TestAccount:
    """Tests for Account entity."""

    def test_account_immutability(self):
        """Test that Account entities are immutable."""
        account = Account(id="a1", code="1101", name="Cash", account_type=None)
        with pytest.raises(FrozenInstanceError):
            account.name = "Changed"

    def test_display_name_fallbacks(self):
        assert Account(id="a1", code="1101", name="Cash", account_type=None).display_name == "Cash"
        assert Account(id="a1", code="1101", name=None, account_type=None).display_name == "1101"
        assert Account(id="a1", code=None, name=None, account_type=None).display_name == "Unknown"


class TestEntry:
    def test_resolved_account_prefers_identifier(self):
        cash = Account(id="acc-cash", code="1101", name="Cash", account_type=None)
        assert Entry(account_id="acc-x", account=cash).resolved_account_id == "acc-x"
        assert Entry(account_id=None, account=cash).resolved_account_id == "acc-cash"
        assert Entry(account_id=None).resolved_account_id is None

    def test_amount(self):
        entry = Entry(account_id="a", debit_amount=Decimal("2.50"), credit_amount=Decimal("1"))
        assert entry.amount == Decimal("3.50")


class TestTransactionGroup:
    def test_display_name(self):
        assert TransactionGroup(id="g", group_number="TX-1", transaction_date=None).display_name == "TX-1"
        group = TransactionGroup(id="g", group_number=None, transaction_date=None, description="Sale")
        assert group.display_name == "Sale"


def test_as_dict_produces_json_friendly_data():
    group = TransactionGroup(
        id="g1",
        group_number="TX-1",
        transaction_date=date(2024, 1, 15),
        total_amount=Decimal("12.30"),
        entries=(Entry(account_id="a1", debit_amount=Decimal("12.30"), funding_path=("g0",)),),
    )

    data = as_dict(group)

    assert data["transaction_date"] == "2024-01-15"
    assert data["status"] == "draft"
    assert data["total_amount"] == "12.30"
    assert data["entries"][0]["funding_path"] == ["g0"]
    assert data["storage_format"] is None


def test_as_dict_plain_values():
    moment = datetime(2024, 1, 1, tzinfo=UTC)
    assert as_dict([Severity.INFO, moment]) == ["info", moment.isoformat()]
    assert as_dict({"n": 1}) == {"n": 1}
