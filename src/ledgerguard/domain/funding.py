"""Funding lineage across linked transaction groups.

A transaction group funds another when one of the consumer's entries names
it in ``source_transaction_id``. An entry's ``funding_path`` records the
chain of sources further up. Consumption is attributed one level deep: each
consuming entry counts toward the source it names directly.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from ledgerguard.database.base import LedgerStore
from ledgerguard.domain.entities import (
    AllocationResult,
    AvailableFundingSource,
    FundingAllocation,
    FundingAllocationCheck,
    FundingContribution,
    FundingFlowAnalysis,
    FundingFlowDetail,
    FundingUsage,
    LedgerScope,
    LedgerSnapshot,
    TransactionGroup,
    TransactionStatus,
)
from ledgerguard.domain.errors import (
    NotFoundError,
    ValidationError,
    funding_source_not_found,
    transaction_not_found,
)
from ledgerguard.logging_config import get_logger

logger = get_logger("domain.funding")

ZERO = Decimal("0")
RATE_PLACES = Decimal("0.0001")


def utilization_rate(used: Decimal, total: Decimal) -> Decimal:
    """Return used / total to four places, 0 when total is 0."""
    if total == 0:
        return ZERO
    return (used / total).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def _in_range(value: Optional[date], start_date: Optional[date], end_date: Optional[date]) -> bool:
    if start_date is None and end_date is None:
        return True
    if value is None:
        return False
    if start_date is not None and value < start_date:
        return False
    if end_date is not None and value > end_date:
        return False
    return True


def referenced_sources(snapshot: LedgerSnapshot) -> list[str]:
    """Source identifiers named by any entry, in first-reference order."""
    seen: dict[str, None] = {}
    for group in snapshot.transactions:
        for entry in group.entries:
            if entry.source_transaction_id:
                seen.setdefault(entry.source_transaction_id, None)
    return list(seen)


def funding_contributions(
    snapshot: LedgerSnapshot, exclude_group_id: Optional[str] = None
) -> dict[str, list[FundingContribution]]:
    """Map each source identifier to the entries drawing on it.

    Entries of cancelled groups do not consume funding.
    """
    usage: dict[str, list[FundingContribution]] = {}
    for group in snapshot.transactions:
        if group.status == TransactionStatus.CANCELLED or group.id == exclude_group_id:
            continue
        for entry in group.entries:
            if not entry.source_transaction_id:
                continue
            usage.setdefault(entry.source_transaction_id, []).append(
                FundingContribution(
                    transaction_id=group.id,
                    group_number=group.group_number,
                    entry_sequence=entry.sequence,
                    account_id=entry.resolved_account_id,
                    used_amount=entry.amount,
                    transaction_date=group.transaction_date,
                    status=group.status,
                )
            )
    return usage


def _used_amount(contributions: Sequence[FundingContribution]) -> Decimal:
    return sum((item.used_amount for item in contributions), ZERO)


def analyze_funding_flow(
    snapshot: LedgerSnapshot,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> FundingFlowAnalysis:
    """Summarize how much of each funding source has been consumed.

    Sources are the groups referenced as ``source_transaction_id`` by at
    least one entry; when a date range is given only sources dated inside
    it (inclusive) are considered. References to groups outside the
    snapshot are left to the relationship validator.

    Args:
        snapshot: Ledger snapshot to analyze
        start_date: Optional inclusive lower bound on the source date
        end_date: Optional inclusive upper bound on the source date

    Returns:
        FundingFlowAnalysis with details sorted by utilization rate, highest
        first, and any funding cycles present in the snapshot
    """
    index = snapshot.transaction_index()
    usage = funding_contributions(snapshot)
    details: list[FundingFlowDetail] = []

    for source_id in referenced_sources(snapshot):
        source = index.get(source_id)
        if source is None:
            continue
        if not _in_range(source.transaction_date, start_date, end_date):
            continue

        contributions = usage.get(source_id, [])
        used = _used_amount(contributions)
        details.append(
            FundingFlowDetail(
                source_transaction_id=source.id,
                source_group_number=source.group_number,
                source_description=source.description,
                total_amount=source.total_amount,
                used_amount=used,
                available_amount=source.total_amount - used,
                usage_count=len(contributions),
                utilization_rate=utilization_rate(used, source.total_amount),
                contributions=tuple(contributions),
            )
        )

    details.sort(key=lambda detail: detail.utilization_rate, reverse=True)

    total_amount = sum((detail.total_amount for detail in details), ZERO)
    total_used = sum((detail.used_amount for detail in details), ZERO)

    return FundingFlowAnalysis(
        total_funding_sources=len(details),
        total_funding_amount=total_amount,
        total_used_amount=total_used,
        total_available_amount=total_amount - total_used,
        utilization_rate=utilization_rate(total_used, total_amount),
        flow_details=tuple(details),
        cycles=find_funding_cycles(snapshot),
    )


def track_funding_usage(snapshot: LedgerSnapshot, source_id: str) -> FundingUsage:
    """Return how much of one source is used, newest consumers first.

    Raises:
        NotFoundError: If the source is not in the snapshot
    """
    source = snapshot.transaction_index().get(source_id)
    if source is None:
        raise NotFoundError(funding_source_not_found(source_id))

    contributions = funding_contributions(snapshot).get(source_id, [])
    # Undated consumers sort last
    ordered = sorted(
        contributions,
        key=lambda item: (item.transaction_date is not None, item.transaction_date or date.min),
        reverse=True,
    )
    used = _used_amount(contributions)
    return FundingUsage(
        source=source,
        total_amount=source.total_amount,
        used_amount=used,
        remaining_amount=source.total_amount - used,
        usage_details=tuple(ordered),
    )


def available_funding_sources(
    snapshot: LedgerSnapshot, account_id: Optional[str] = None
) -> list[AvailableFundingSource]:
    """List confirmed groups with funding left, largest remainder first.

    Args:
        snapshot: Ledger snapshot
        account_id: When given, only groups with an entry on this account

    Returns:
        Available sources carrying the account of their first entry
    """
    accounts = snapshot.account_index()
    usage = funding_contributions(snapshot)
    sources: list[AvailableFundingSource] = []

    for group in snapshot.transactions:
        if group.status != TransactionStatus.CONFIRMED:
            continue
        if account_id is not None and not any(
            entry.resolved_account_id == account_id for entry in group.entries
        ):
            continue

        used = _used_amount(usage.get(group.id, []))
        available = group.total_amount - used
        if available <= 0:
            continue

        primary_account_id = group.entries[0].resolved_account_id if group.entries else None
        primary = accounts.get(primary_account_id) if primary_account_id else None
        sources.append(
            AvailableFundingSource(
                transaction_id=group.id,
                group_number=group.group_number,
                description=group.description,
                transaction_date=group.transaction_date,
                total_amount=group.total_amount,
                used_amount=used,
                available_amount=available,
                account_id=primary_account_id,
                account_name=primary.name if primary else None,
                account_code=primary.code if primary else None,
            )
        )

    sources.sort(key=lambda source: source.available_amount, reverse=True)
    return sources


def validate_funding_allocation(
    snapshot: LedgerSnapshot, transaction_id: str
) -> FundingAllocationCheck:
    """Check the funding recorded on one group's entries.

    The group's own consumption is left out when computing what remains of
    each source, so an allocation is compared with what other groups left.

    Raises:
        NotFoundError: If the group is not in the snapshot
    """
    index = snapshot.transaction_index()
    group = index.get(transaction_id)
    if group is None:
        raise NotFoundError(transaction_not_found(transaction_id))

    if not group.entries:
        return FundingAllocationCheck(
            is_valid=False, issues=("Transaction group has no entries",), recommendations=()
        )

    usage = funding_contributions(snapshot, exclude_group_id=group.id)
    issues: list[str] = []
    recommendations: list[str] = []
    candidates: Optional[list[AvailableFundingSource]] = None

    for position, entry in enumerate(group.entries, start=1):
        source_id = entry.source_transaction_id
        if not source_id:
            if entry.amount > 0:
                if candidates is None:
                    candidates = [
                        source
                        for source in available_funding_sources(snapshot)
                        if source.transaction_id != group.id
                    ]
                if candidates:
                    best = candidates[0]
                    recommendations.append(
                        f"Entry {position}: consider funding from "
                        f"{best.group_number or best.transaction_id} "
                        f"(available {best.available_amount})"
                    )
            continue

        if source_id == group.id:
            issues.append(f"Entry {position}: references its own transaction group as funding source")
            continue

        source = index.get(source_id)
        if source is None:
            issues.append(f"Entry {position}: {funding_source_not_found(source_id)}")
            continue

        if source.status != TransactionStatus.CONFIRMED:
            issues.append(
                f"Entry {position}: funding source {source.display_name} is not confirmed"
            )

        remaining = source.total_amount - _used_amount(usage.get(source_id, []))
        if entry.amount > remaining:
            issues.append(
                f"Entry {position}: amount {entry.amount} exceeds available funding "
                f"{remaining} from {source.display_name}"
            )

    for cycle in find_funding_cycles(snapshot):
        if group.id in cycle:
            issues.append("Funding cycle detected: " + " -> ".join(cycle + (cycle[0],)))

    return FundingAllocationCheck(
        is_valid=not issues,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
    )


def _funding_graph(snapshot: LedgerSnapshot) -> dict[str, list[str]]:
    known = {group.id for group in snapshot.transactions}
    graph: dict[str, list[str]] = {}
    for group in snapshot.transactions:
        targets: dict[str, None] = {}
        for entry in group.entries:
            if entry.source_transaction_id in known:
                targets.setdefault(entry.source_transaction_id, None)
            for ancestor in entry.funding_path:
                if ancestor in known:
                    targets.setdefault(ancestor, None)
        graph[group.id] = list(targets)
    return graph


def _canonical_cycle(path: Sequence[str]) -> tuple[str, ...]:
    start = path.index(min(path))
    return tuple(path[start:]) + tuple(path[:start])


def find_funding_cycles(snapshot: LedgerSnapshot) -> tuple[tuple[str, ...], ...]:
    """Find cycles in the funding graph.

    Edges run from a group to every source its entries name, directly or
    through ``funding_path``. Each cycle is reported once, rotated to start
    at its smallest identifier.
    """
    graph = _funding_graph(snapshot)
    finished: set[str] = set()
    cycles: set[tuple[str, ...]] = set()

    for root in graph:
        if root in finished:
            continue
        path = [root]
        on_path = {root: 0}
        pending = [iter(graph[root])]

        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
                node = path.pop()
                del on_path[node]
                finished.add(node)
                continue
            if child in on_path:
                cycles.add(_canonical_cycle(path[on_path[child]:]))
            elif child not in finished:
                on_path[child] = len(path)
                path.append(child)
                pending.append(iter(graph[child]))

    if cycles:
        logger.debug("funding_cycles_detected", extra={"count": len(cycles)})
    return tuple(sorted(cycles))


class FundingService:
    """Service for funding lineage queries and allocations."""

    def __init__(self, db: LedgerStore):
        """Initialize funding service.

        Args:
            db: Ledger store instance
        """
        self.db = db

    def analyze_funding_flow(
        self,
        scope: LedgerScope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FundingFlowAnalysis:
        analysis = analyze_funding_flow(self.db.load_snapshot(scope), start_date, end_date)
        logger.info(
            "funding_flow_analyzed",
            extra={
                "owner_id": scope.owner_id,
                "sources": analysis.total_funding_sources,
                "cycles": len(analysis.cycles),
            },
        )
        return analysis

    def track_funding_usage(self, scope: LedgerScope, source_id: str) -> FundingUsage:
        return track_funding_usage(self.db.load_snapshot(scope), source_id)

    def get_available_sources(
        self, scope: LedgerScope, account_id: Optional[str] = None
    ) -> list[AvailableFundingSource]:
        return available_funding_sources(self.db.load_snapshot(scope), account_id)

    def validate_allocation(self, scope: LedgerScope, transaction_id: str) -> FundingAllocationCheck:
        return validate_funding_allocation(self.db.load_snapshot(scope), transaction_id)

    def allocate_funding(
        self,
        scope: LedgerScope,
        target_id: str,
        allocations: Sequence[FundingAllocation],
    ) -> list[AllocationResult]:
        """Draw funding from sources onto entries of a draft group.

        All allocations are checked before any is written. Each one records
        the source on the chosen entry and appends it to the entry's
        funding path.

        Args:
            scope: Scope to load
            target_id: Group receiving the funding
            allocations: Sources, amounts and entry positions (0-based)

        Returns:
            One AllocationResult per allocation with the source's remainder

        Raises:
            NotFoundError: If the target or a source does not exist
            ValidationError: If the target is confirmed, a source is not
                confirmed, or an amount exceeds what the source has left
        """
        snapshot = self.db.load_snapshot(scope)
        index = snapshot.transaction_index()
        target = index.get(target_id)
        if target is None:
            raise NotFoundError(transaction_not_found(target_id))
        if target.status == TransactionStatus.CONFIRMED:
            raise ValidationError(
                f"Cannot allocate funding to confirmed transaction group {target.display_name}"
            )

        usage = funding_contributions(snapshot)
        drawn: dict[str, Decimal] = {}
        results: list[AllocationResult] = []
        writes: list[tuple[int, str, tuple[str, ...]]] = []

        for allocation in allocations:
            source = self._allocation_source(index, target, allocation)
            already_used = _used_amount(usage.get(source.id, [])) + drawn.get(source.id, ZERO)
            remaining = source.total_amount - already_used
            if allocation.amount > remaining:
                raise ValidationError(
                    f"Allocation of {allocation.amount} exceeds available funding "
                    f"{remaining} from {source.display_name}"
                )
            if not 0 <= allocation.entry_index < len(target.entries):
                raise ValidationError(
                    f"Transaction group {target.display_name} has no entry {allocation.entry_index}"
                )

            drawn[source.id] = drawn.get(source.id, ZERO) + allocation.amount
            entry = target.entries[allocation.entry_index]
            path = entry.funding_path
            if source.id not in path:
                path = path + (source.id,)
            writes.append((entry.sequence, source.id, path))
            target = replace(
                target,
                entries=tuple(
                    replace(item, funding_path=path) if item is entry else item
                    for item in target.entries
                ),
            )
            results.append(
                AllocationResult(
                    source_transaction_id=source.id,
                    amount=allocation.amount,
                    source_description=source.description,
                    remaining_amount=remaining - allocation.amount,
                )
            )

        for sequence, source_id, path in writes:
            self.db.update_entry_funding(target.id, sequence, source_id, path)

        logger.info(
            "funding_allocated",
            extra={"target_id": target.id, "allocations": len(results)},
        )
        return results

    @staticmethod
    def _allocation_source(
        index: dict[str, TransactionGroup],
        target: TransactionGroup,
        allocation: FundingAllocation,
    ) -> TransactionGroup:
        if allocation.amount <= 0:
            raise ValidationError("Allocation amount must be positive")
        if allocation.source_transaction_id == target.id:
            raise ValidationError("A transaction group cannot fund itself")
        source = index.get(allocation.source_transaction_id)
        if source is None:
            raise NotFoundError(funding_source_not_found(allocation.source_transaction_id))
        if source.status != TransactionStatus.CONFIRMED:
            raise ValidationError(
                f"Funding source {source.display_name} is not confirmed"
            )
        return source
