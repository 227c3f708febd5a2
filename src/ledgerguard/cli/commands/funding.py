"""Funding lineage commands."""

import click

from ledgerguard.cli.date_filters import resolve_cli_date_range
from ledgerguard.cli.error_handling import handle_domain_error
from ledgerguard.cli.resolution import resolve_account_or_exit, resolve_transaction_or_exit
from ledgerguard.domain.account import AccountService
from ledgerguard.domain.errors import DomainError
from ledgerguard.domain.funding import FundingService
from ledgerguard.domain.transaction import TransactionService


def _percent(rate) -> str:
    return f"{rate * 100:.1f}%"


@click.group()
def funding_group():
    """Trace funding lineage between transaction groups."""
    pass


@funding_group.command("flow")
@click.option("--start-date", help="Earliest source date (YYYY-MM-DD or relative like 'last month')")
@click.option("--end-date", help="Latest source date (YYYY-MM-DD or relative like 'today')")
@click.option("--this-month", is_flag=True, help="Sources dated in the current month")
@click.option("--this-year", is_flag=True, help="Sources dated in the current year")
@click.option("--last-month", is_flag=True, help="Sources dated in the previous month")
@click.option("--last-year", is_flag=True, help="Sources dated in the previous year")
@click.pass_context
def flow(
    ctx,
    start_date: str | None,
    end_date: str | None,
    this_month: bool,
    this_year: bool,
    last_month: bool,
    last_year: bool,
):
    """Show how much of each funding source has been used.

    Examples:
        ledgerguard --owner u1 funding flow
        ledgerguard --owner u1 funding flow --this-year
        ledgerguard --owner u1 funding flow --start-date 2024-01-01 --end-date 2024-03-31
    """
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags={
            "this-month": this_month,
            "this-year": this_year,
            "last-month": last_month,
            "last-year": last_year,
        },
    )

    service = FundingService(ctx.obj["db"])
    analysis = service.analyze_funding_flow(ctx.obj["scope"], start, end)

    if not analysis.flow_details:
        click.echo("No funding sources found.")
    else:
        click.echo(
            f"{'Source':<20} {'Total':>12} {'Used':>12} {'Available':>12} {'Uses':>5} {'Rate':>7}"
        )
        click.echo("-" * 73)
        for detail in analysis.flow_details:
            name = detail.source_group_number or detail.source_transaction_id
            click.echo(
                f"{name:<20.20} {detail.total_amount:>12,.2f} {detail.used_amount:>12,.2f} "
                f"{detail.available_amount:>12,.2f} {detail.usage_count:>5} "
                f"{_percent(detail.utilization_rate):>7}"
            )
        click.echo("-" * 73)
        click.echo(
            f"{'Total':<20} {analysis.total_funding_amount:>12,.2f} "
            f"{analysis.total_used_amount:>12,.2f} {analysis.total_available_amount:>12,.2f} "
            f"{'':>5} {_percent(analysis.utilization_rate):>7}"
        )

    for cycle in analysis.cycles:
        click.echo(f"Warning: funding cycle {' -> '.join(cycle + (cycle[0],))}", err=True)


@funding_group.command("usage")
@click.argument("source", metavar="SOURCE")
@click.pass_context
def usage(ctx, source: str):
    """Show which transaction groups draw on SOURCE.

    SOURCE can be a group number or ID.
    """
    scope = ctx.obj["scope"]
    source_id = resolve_transaction_or_exit(
        ctx, TransactionService(ctx.obj["db"]), scope, source
    )
    service = FundingService(ctx.obj["db"])
    try:
        funding_usage = service.track_funding_usage(scope, source_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Source: {funding_usage.source.display_name}")
    click.echo(f"  Total:     {funding_usage.total_amount:,.2f}")
    click.echo(f"  Used:      {funding_usage.used_amount:,.2f}")
    click.echo(f"  Remaining: {funding_usage.remaining_amount:,.2f}")

    if not funding_usage.usage_details:
        click.echo("\nNot used by any transaction group.")
        return

    click.echo("\nUsed by:")
    for detail in funding_usage.usage_details:
        when = detail.transaction_date.isoformat() if detail.transaction_date else "-"
        click.echo(
            f"  {when:10s} {detail.group_number or detail.transaction_id:<20} "
            f"entry {detail.entry_sequence:<3} {detail.used_amount:>12,.2f}"
        )


@funding_group.command("sources")
@click.option("--account", help="Only sources with an entry on this account (code or ID)")
@click.pass_context
def sources(ctx, account: str | None):
    """List confirmed transaction groups that still have funding available."""
    scope = ctx.obj["scope"]
    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(ctx.obj["db"]), scope, account)

    available = FundingService(ctx.obj["db"]).get_available_sources(scope, account_id)
    if not available:
        click.echo("No funding sources available.")
        return

    for source in available:
        name = source.group_number or source.transaction_id
        account_label = source.account_code or source.account_id or "-"
        click.echo(
            f"{name:<20.20} {source.available_amount:>12,.2f} of {source.total_amount:>12,.2f} "
            f"| account {account_label}"
        )


@funding_group.command("validate")
@click.argument("group", metavar="GROUP")
@click.pass_context
def validate(ctx, group: str):
    """Check the funding recorded on GROUP's entries.

    GROUP can be a group number or ID. Exits with status 1 when problems are found.
    """
    scope = ctx.obj["scope"]
    group_id = resolve_transaction_or_exit(ctx, TransactionService(ctx.obj["db"]), scope, group)
    try:
        check = FundingService(ctx.obj["db"]).validate_allocation(scope, group_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    for issue in check.issues:
        click.echo(f"Problem: {issue}")
    for recommendation in check.recommendations:
        click.echo(f"Suggestion: {recommendation}")

    if check.is_valid:
        click.echo("Funding allocation is valid.")
    else:
        ctx.exit(1)


def register_commands(cli):
    """Register funding commands with main CLI."""
    cli.add_command(funding_group, name="funding")
