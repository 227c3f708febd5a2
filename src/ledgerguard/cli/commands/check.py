"""Integrity check and report commands."""

import json

import click

from ledgerguard.cli.error_handling import handle_domain_error
from ledgerguard.domain.entities import IntegritySummary, ValidationIssue, as_dict
from ledgerguard.domain.errors import DomainError
from ledgerguard.domain.integrity import IntegrityService


def echo_issue(issue: ValidationIssue) -> None:
    """Print one issue as a single line, with its recommendation indented below."""
    click.echo(
        f"[{issue.severity.value.upper():7s}] {issue.code.value:28s} "
        f"{issue.entity_name}: {issue.description}"
    )
    if issue.recommendation:
        click.echo(f"{'':10s}-> {issue.recommendation}")


def _echo_summary(summary: IntegritySummary) -> None:
    click.echo(f"Accounts:      {summary.valid_accounts}/{summary.total_accounts} valid")
    click.echo(f"Transactions:  {summary.valid_transactions}/{summary.total_transactions} valid")
    click.echo(f"Compatibility: {summary.compatibility_score}/100")


def _integrity_service(ctx) -> IntegrityService:
    return IntegrityService(ctx.obj["db"], ctx.obj["compatibility"])


@click.command("check")
@click.option("--strict", is_flag=True, help="Exit with status 1 when any error is found")
@click.pass_context
def check(ctx, strict: bool):
    """Run every integrity check over the ledger.

    Issues are listed errors first, then warnings, then informational notes.

    Examples:
        ledgerguard --owner u1 check
        ledgerguard --owner u1 check --strict
    """
    service = _integrity_service(ctx)
    try:
        report = service.check_integrity(ctx.obj["scope"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    _echo_summary(report.summary)
    click.echo(
        f"Result:        {'valid' if report.is_valid else 'invalid'} "
        f"({report.error_count} errors, {report.warning_count} warnings)"
    )

    if report.issues:
        click.echo("\nIssues:")
        click.echo("-" * 80)
        for issue in report.issues:
            echo_issue(issue)

    if strict and not report.is_valid:
        ctx.exit(1)


@click.command("report")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.pass_context
def report(ctx, as_json: bool):
    """Generate a validation report with recommendations.

    Examples:
        ledgerguard --owner u1 report
        ledgerguard --owner u1 report --json > report.json
    """
    service = _integrity_service(ctx)
    try:
        validation_report = service.generate_report(ctx.obj["scope"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    if as_json:
        click.echo(json.dumps(as_dict(validation_report), indent=2, ensure_ascii=False))
        return

    click.echo(f"Report {validation_report.report_id}")
    click.echo(f"Generated at {validation_report.generated_at.isoformat()}")
    click.echo()
    _echo_summary(validation_report.summary)

    if validation_report.recommendations:
        click.echo("\nRecommendations:")
        for recommendation in validation_report.recommendations:
            click.echo(f"  - {recommendation}")
    else:
        click.echo("\nNo recommendations.")


def register_commands(cli):
    """Register check and report commands with main CLI."""
    cli.add_command(check)
    cli.add_command(report)
