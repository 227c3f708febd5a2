"""Tests for funding lineage analysis."""

from datetime import date
from decimal import Decimal

import pytest

from ledgerguard.domain.entities import FundingAllocation, TransactionStatus
from ledgerguard.domain.errors import NotFoundError, ValidationError
from ledgerguard.domain.funding import (
    analyze_funding_flow,
    available_funding_sources,
    find_funding_cycles,
    track_funding_usage,
    utilization_rate,
    validate_funding_allocation,
)

from builders import (
    SCOPE,
    balanced_entries,
    make_entry,
    make_group,
    make_snapshot,
    standard_accounts,
)


def _source(group_id, amount, transaction_date=date(2024, 1, 10), status=TransactionStatus.CONFIRMED):
    return make_group(
        group_id,
        entries=balanced_entries("acc-cash", "acc-sales", amount),
        transaction_date=transaction_date,
        status=status,
        description=f"Funding {group_id}",
    )


def _consumer(group_id, source_id, amount, status=TransactionStatus.DRAFT, transaction_date=date(2024, 2, 1), funding_path=()):
    return make_group(
        group_id,
        entries=[
            make_entry(
                "acc-stock",
                debit=amount,
                sequence=1,
                source_transaction_id=source_id,
                funding_path=funding_path,
            ),
            make_entry("acc-cash", credit=amount, sequence=2),
        ],
        status=status,
        transaction_date=transaction_date,
    )


class TestAnalyzeFundingFlow:
    def test_totals_and_rates(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-a", "1000"),
                _source("src-b", "500"),
                _consumer("use-1", "src-a", "250"),
                _consumer("use-2", "src-a", "250"),
                _consumer("use-3", "src-b", "400"),
            ],
        )

        analysis = analyze_funding_flow(snapshot)

        assert analysis.total_funding_sources == 2
        assert analysis.total_funding_amount == Decimal("1500")
        assert analysis.total_used_amount == Decimal("900")
        assert analysis.total_available_amount == (
            analysis.total_funding_amount - analysis.total_used_amount
        )
        assert analysis.utilization_rate == Decimal("0.6000")
        # Sorted by utilization, highest first
        assert [d.source_transaction_id for d in analysis.flow_details] == ["src-b", "src-a"]
        src_a = analysis.flow_details[1]
        assert src_a.usage_count == 2
        assert src_a.used_amount == Decimal("500")
        assert src_a.available_amount == Decimal("500")
        assert src_a.utilization_rate == Decimal("0.5000")
        assert [c.transaction_id for c in src_a.contributions] == ["use-1", "use-2"]

    def test_used_amount_counts_debit_and_credit(self):
        consumer = make_group(
            "use-1",
            entries=[
                make_entry("acc-stock", debit="100", sequence=1, source_transaction_id="src-a"),
                make_entry("acc-cash", credit="30", sequence=2, source_transaction_id="src-a"),
            ],
        )
        snapshot = make_snapshot(standard_accounts(), [_source("src-a", "1000"), consumer])

        analysis = analyze_funding_flow(snapshot)

        assert analysis.flow_details[0].used_amount == Decimal("130")
        assert analysis.flow_details[0].usage_count == 2

    def test_zero_total_gives_zero_rate(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [_source("src-a", "0"), _consumer("use-1", "src-a", "50")],
        )

        analysis = analyze_funding_flow(snapshot)

        assert analysis.total_funding_amount == Decimal("0")
        assert analysis.utilization_rate == Decimal("0")
        assert analysis.flow_details[0].utilization_rate == Decimal("0")

    def test_no_sources(self):
        analysis = analyze_funding_flow(make_snapshot(standard_accounts(), [_source("src-a", "10")]))

        assert analysis.total_funding_sources == 0
        assert analysis.utilization_rate == Decimal("0")
        assert analysis.flow_details == ()

    def test_cancelled_consumers_do_not_use_funding(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-a", "1000"),
                _consumer("use-1", "src-a", "300"),
                _consumer("use-2", "src-a", "500", status=TransactionStatus.CANCELLED),
            ],
        )

        detail = analyze_funding_flow(snapshot).flow_details[0]

        assert detail.used_amount == Decimal("300")
        assert detail.usage_count == 1

    def test_date_range_filters_sources(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-jan", "100", transaction_date=date(2024, 1, 5)),
                _source("src-mar", "100", transaction_date=date(2024, 3, 5)),
                _consumer("use-1", "src-jan", "10"),
                _consumer("use-2", "src-mar", "10"),
            ],
        )

        analysis = analyze_funding_flow(snapshot, date(2024, 3, 1), date(2024, 3, 31))

        assert [d.source_transaction_id for d in analysis.flow_details] == ["src-mar"]

    def test_range_bounds_are_inclusive(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [_source("src-a", "100", transaction_date=date(2024, 3, 1)), _consumer("use-1", "src-a", "10")],
        )

        assert analyze_funding_flow(snapshot, date(2024, 3, 1), date(2024, 3, 1)).total_funding_sources == 1
        assert analyze_funding_flow(snapshot, start_date=date(2024, 3, 2)).total_funding_sources == 0

    def test_dangling_sources_are_skipped(self):
        snapshot = make_snapshot(standard_accounts(), [_consumer("use-1", "nowhere", "10")])

        assert analyze_funding_flow(snapshot).total_funding_sources == 0

    def test_cycles_are_reported_without_failing(self):
        a = _consumer("grp-a", "grp-b", "10")
        b = _consumer("grp-b", "grp-a", "10")

        analysis = analyze_funding_flow(make_snapshot(standard_accounts(), [a, b]))

        assert analysis.cycles == (("grp-a", "grp-b"),)
        assert analysis.total_funding_sources == 2


def test_utilization_rate_never_divides_by_zero():
    assert utilization_rate(Decimal("5"), Decimal("0")) == Decimal("0")
    assert utilization_rate(Decimal("1"), Decimal("3")) == Decimal("0.3333")


class TestFindFundingCycles:
    def test_acyclic_chain(self):
        groups = [
            _source("src", "100"),
            _consumer("mid", "src", "50"),
            _consumer("leaf", "mid", "20", funding_path=("src",)),
        ]
        assert find_funding_cycles(make_snapshot(transactions=groups)) == ()

    def test_cycle_through_funding_path(self):
        groups = [
            _consumer("a", "b", "10"),
            _consumer("b", "c", "10"),
            _consumer("c", "x", "10", funding_path=("a",)),
        ]

        assert find_funding_cycles(make_snapshot(transactions=groups)) == (("a", "b", "c"),)

    def test_self_reference(self):
        groups = [_consumer("a", "a", "10")]
        assert find_funding_cycles(make_snapshot(transactions=groups)) == (("a",),)


class TestTrackFundingUsage:
    def test_usage_newest_first(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-a", "1000"),
                _consumer("use-old", "src-a", "100", transaction_date=date(2024, 2, 1)),
                _consumer("use-new", "src-a", "200", transaction_date=date(2024, 4, 1)),
                _consumer("use-undated", "src-a", "50", transaction_date=None),
            ],
        )

        usage = track_funding_usage(snapshot, "src-a")

        assert usage.total_amount == Decimal("1000")
        assert usage.used_amount == Decimal("350")
        assert usage.remaining_amount == Decimal("650")
        assert [d.transaction_id for d in usage.usage_details] == ["use-new", "use-old", "use-undated"]

    def test_unknown_source(self):
        with pytest.raises(NotFoundError, match="Funding source nope not found"):
            track_funding_usage(make_snapshot(), "nope")


class TestAvailableFundingSources:
    def test_only_confirmed_with_remaining_amount(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-small", "100"),
                _source("src-big", "900"),
                _source("src-used-up", "50"),
                _source("src-draft", "500", status=TransactionStatus.DRAFT),
                _consumer("use-1", "src-used-up", "50"),
            ],
        )

        sources = available_funding_sources(snapshot)

        assert [s.transaction_id for s in sources] == ["src-big", "src-small"]
        assert sources[0].available_amount == Decimal("900")
        assert sources[0].account_id == "acc-cash"
        assert sources[0].account_code == "1101"
        assert sources[0].account_name == "Cash"

    def test_account_filter(self):
        other = make_group(
            "src-other",
            entries=balanced_entries("acc-stock", "acc-sales", "300"),
            status=TransactionStatus.CONFIRMED,
        )
        snapshot = make_snapshot(standard_accounts(), [_source("src-a", "100"), other])

        sources = available_funding_sources(snapshot, account_id="acc-stock")

        assert [s.transaction_id for s in sources] == ["src-other"]


class TestValidateFundingAllocation:
    def test_valid_allocation(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [_source("src-a", "1000"), _consumer("use-1", "src-a", "400")],
        )

        check = validate_funding_allocation(snapshot, "use-1")

        assert check.is_valid
        assert check.issues == ()

    def test_amount_exceeding_remaining(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-a", "500"),
                _consumer("use-1", "src-a", "300"),
                _consumer("use-2", "src-a", "300"),
            ],
        )

        check = validate_funding_allocation(snapshot, "use-2")

        assert not check.is_valid
        assert "exceeds available funding 200" in check.issues[0]

    def test_unconfirmed_and_missing_sources(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-draft", "500", status=TransactionStatus.DRAFT),
                make_group(
                    "use-1",
                    entries=[
                        make_entry("acc-stock", debit="10", sequence=1, source_transaction_id="src-draft"),
                        make_entry("acc-cash", credit="10", sequence=2, source_transaction_id="gone"),
                    ],
                ),
            ],
        )

        check = validate_funding_allocation(snapshot, "use-1")

        assert check.issues == (
            "Entry 1: funding source TX-src-draft is not confirmed",
            "Entry 2: Funding source gone not found",
        )

    def test_recommends_source_for_unfunded_entries(self):
        snapshot = make_snapshot(
            standard_accounts(),
            [
                _source("src-a", "1000"),
                make_group("use-1", entries=balanced_entries("acc-stock", "acc-cash", "10")),
            ],
        )

        check = validate_funding_allocation(snapshot, "use-1")

        assert check.is_valid
        assert len(check.recommendations) == 2
        assert "TX-src-a" in check.recommendations[0]

    def test_self_reference_and_cycle(self):
        snapshot = make_snapshot(standard_accounts(), [_consumer("use-1", "use-1", "10")])

        check = validate_funding_allocation(snapshot, "use-1")

        assert not check.is_valid
        assert "references its own transaction group" in check.issues[0]
        assert check.issues[-1] == "Funding cycle detected: use-1 -> use-1"

    def test_group_without_entries(self):
        snapshot = make_snapshot(standard_accounts(), [make_group("tx-empty", entries=())])

        check = validate_funding_allocation(snapshot, "tx-empty")

        assert not check.is_valid
        assert check.issues == ("Transaction group has no entries",)
        assert check.recommendations == ()

    def test_unknown_group(self):
        with pytest.raises(NotFoundError):
            validate_funding_allocation(make_snapshot(), "nope")


class TestFundingService:
    def _store_source(self, temp_db, stored_ledger, amount="1000"):
        temp_db.create_transaction_group(
            SCOPE,
            group_number="FUND-1",
            transaction_date=date(2024, 1, 1),
            entries=balanced_entries(stored_ledger["cash"], stored_ledger["sales"], amount),
            status=TransactionStatus.CONFIRMED,
            description="Capital injection",
            group_id="src-1",
        )

    def test_allocate_funding_records_source_and_path(self, temp_db, stored_ledger, funding_service):
        self._store_source(temp_db, stored_ledger)

        results = funding_service.allocate_funding(
            SCOPE, "grp-sale", [FundingAllocation("src-1", Decimal("400"), entry_index=0)]
        )

        assert results[0].remaining_amount == Decimal("600")
        assert results[0].source_description == "Capital injection"
        group = temp_db.get_transaction_group("grp-sale")
        assert group.entries[0].source_transaction_id == "src-1"
        assert group.entries[0].funding_path == ("src-1",)
        assert funding_service.track_funding_usage(SCOPE, "src-1").used_amount == Decimal("1000")

    def test_allocation_exceeding_remaining_is_refused(self, temp_db, stored_ledger, funding_service):
        self._store_source(temp_db, stored_ledger, amount="300")

        with pytest.raises(ValidationError, match="exceeds available funding 300"):
            funding_service.allocate_funding(
                SCOPE, "grp-sale", [FundingAllocation("src-1", Decimal("500"))]
            )

        assert temp_db.get_transaction_group("grp-sale").entries[0].source_transaction_id is None

    def test_allocations_in_one_call_share_the_remainder(self, temp_db, stored_ledger, funding_service):
        self._store_source(temp_db, stored_ledger, amount="300")

        with pytest.raises(ValidationError):
            funding_service.allocate_funding(
                SCOPE,
                "grp-sale",
                [
                    FundingAllocation("src-1", Decimal("200"), entry_index=0),
                    FundingAllocation("src-1", Decimal("200"), entry_index=1),
                ],
            )

    def test_confirmed_target_is_refused(self, temp_db, stored_ledger, funding_service):
        self._store_source(temp_db, stored_ledger)
        temp_db.update_transaction_status("grp-sale", TransactionStatus.CONFIRMED)

        with pytest.raises(ValidationError, match="confirmed"):
            funding_service.allocate_funding(
                SCOPE, "grp-sale", [FundingAllocation("src-1", Decimal("10"))]
            )

    def test_unconfirmed_source_is_refused(self, temp_db, stored_ledger, funding_service):
        temp_db.create_transaction_group(
            SCOPE,
            group_number="FUND-2",
            transaction_date=date(2024, 1, 1),
            entries=balanced_entries(stored_ledger["cash"], stored_ledger["sales"], "500"),
            group_id="src-draft",
        )

        with pytest.raises(ValidationError, match="FUND-2 is not confirmed"):
            funding_service.allocate_funding(
                SCOPE, "grp-sale", [FundingAllocation("src-draft", Decimal("10"))]
            )

    def test_self_funding_is_refused(self, stored_ledger, funding_service):
        with pytest.raises(ValidationError, match="cannot fund itself"):
            funding_service.allocate_funding(
                SCOPE, "grp-sale", [FundingAllocation("grp-sale", Decimal("10"))]
            )

    def test_unknown_source(self, stored_ledger, funding_service):
        with pytest.raises(NotFoundError):
            funding_service.allocate_funding(
                SCOPE, "grp-sale", [FundingAllocation("nope", Decimal("10"))]
            )

    def test_analyze_through_store(self, temp_db, stored_ledger, funding_service):
        self._store_source(temp_db, stored_ledger)
        funding_service.allocate_funding(SCOPE, "grp-sale", [FundingAllocation("src-1", Decimal("250"))])

        analysis = funding_service.analyze_funding_flow(SCOPE)

        assert analysis.total_funding_sources == 1
        assert analysis.flow_details[0].source_group_number == "FUND-1"
