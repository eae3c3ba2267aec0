"""CLI entry point for clinical-data-governance.

Invoked as::

    cdg [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m clinical_data_governance.cli.main

Commands
--------
- classify           Show the classification of a field
- redact             Redact a single value
- score              Score a JSON list of compliance check results
- evaluate           Run regulatory rule sets against JSON metrics and score them
- catalog validate   Load and validate a catalog file
- catalog show       Summarise the active catalog per category
- version            Show version information
"""
from __future__ import annotations

import json
import logging
import sys
import warnings
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import AliasChoices, BaseModel, Field, StrictBool, ValidationError
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from clinical_data_governance.compliance.scorer import ComplianceScore
    from clinical_data_governance.convenience import DataProtectionGovernor

console = Console()
err_console = Console(stderr=True)

_DEFAULT_CONFIG = Path("governance.yaml")

_STATUS_STYLES: dict[str, str] = {
    "excellent": "green",
    "good": "cyan",
    "acceptable": "yellow",
    "needsImprovement": "red",
}


class CheckItem(BaseModel):
    """One entry of the JSON list read by ``cdg score``.

    ``passed`` must be a JSON boolean; strings such as ``"false"`` are
    rejected rather than coerced.
    """

    model_config = {"extra": "ignore"}

    rule_id: str | None = Field(default=None, validation_alias=AliasChoices("rule_id", "ruleId"))
    passed: StrictBool
    actual_value: float = Field(
        default=0.0, validation_alias=AliasChoices("actual_value", "actualValue")
    )
    threshold: float = Field(default=0.0)


def _governor(ctx: click.Context) -> DataProtectionGovernor:
    from clinical_data_governance.convenience import DataProtectionGovernor

    if "governor" not in ctx.obj:
        ctx.obj["governor"] = DataProtectionGovernor.from_config_file(ctx.obj["config_path"])
    return ctx.obj["governor"]


def _read_json(source: str) -> object:
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        err_console.print(f"[red]Cannot read {source}:[/red] {exc.strerror or exc}")
        sys.exit(1)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        err_console.print(f"[red]Invalid JSON:[/red] {exc}")
        sys.exit(1)


def _print_score(result: ComplianceScore) -> None:
    style = _STATUS_STYLES.get(result.status.value, "white")
    console.print(
        Panel(
            f"[bold]{result.overall}[/bold] / 100  [{style}]{result.status.value}[/{style}]",
            title="Compliance Score",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="clinical-data-governance")
@click.option(
    "--config",
    "-c",
    "config_path",
    default=str(_DEFAULT_CONFIG),
    show_default=True,
    type=click.Path(),
    help="Path to governance.yaml (defaults apply when missing).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str, log_level: str | None) -> None:
    """Clinical data governance CLI for healthcare record protection."""
    from clinical_data_governance.config.loader import ConfigLoader

    path = Path(config_path)
    try:
        config = ConfigLoader().load_or_defaults(path)
    except ValueError as exc:
        err_console.print(f"[red]Invalid config:[/red] {exc}")
        sys.exit(1)
    logging.basicConfig(
        level=(log_level or config.logging.level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = path


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from clinical_data_governance import __version__
    from clinical_data_governance.catalog.loader import load_default_catalog

    console.print(
        Panel(
            f"[bold]clinical-data-governance[/bold]  v[cyan]{__version__}[/cyan]\n"
            f"Bundled catalog: [cyan]{load_default_catalog().version}[/cyan]",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# classify / redact
# ---------------------------------------------------------------------------


@cli.command(name="classify")
@click.argument("field_name")
@click.pass_context
def classify_command(ctx: click.Context, field_name: str) -> None:
    """Show the classification of FIELD_NAME."""
    from clinical_data_governance.classification.field_classifier import (
        UnknownFieldError,
        UnknownFieldWarning,
    )

    governor = _governor(ctx)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnknownFieldWarning)
        try:
            definition = governor.classify(field_name)
        except UnknownFieldError as exc:
            err_console.print(f"[red]Unknown field:[/red] {exc}")
            sys.exit(1)
    for warning in caught:
        err_console.print(f"[yellow]Warning:[/yellow] {warning.message}")

    policy = governor.catalog.policy(definition.category)
    rule = governor.engine.rule_for(field_name)

    table = Table(title=f"Field: {field_name}", box=box.SIMPLE, show_header=False)
    table.add_column("Attribute", style="cyan")
    table.add_column("Value")
    table.add_row("Category", f"{definition.category.value} (level {policy.level})")
    table.add_row("Kind", definition.pii_or_phi.value)
    table.add_row("Access control", policy.access_control)
    table.add_row("Encryption required", "yes" if policy.encryption_required else "no")
    table.add_row("Encryption level", definition.encryption_level or "-")
    table.add_row("Audit required", "yes" if policy.audit_required else "no")
    table.add_row(
        "Retention",
        f"{definition.retention_days} days" if definition.retention_days else "-",
    )
    table.add_row("Anonymization", rule.spec if rule else "-")
    console.print(table)


@cli.command(name="redact")
@click.argument("field_name")
@click.argument("value")
@click.pass_context
def redact_command(ctx: click.Context, field_name: str, value: str) -> None:
    """Print VALUE redacted according to the rule for FIELD_NAME."""
    from clinical_data_governance.classification.field_classifier import UnknownFieldError
    from clinical_data_governance.redaction.engine import MissingRedactionRuleError

    governor = _governor(ctx)
    try:
        click.echo(governor.redact(field_name, value))
    except (MissingRedactionRuleError, UnknownFieldError) as exc:
        err_console.print(f"[red]Refused:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# score / evaluate
# ---------------------------------------------------------------------------


@cli.command(name="score")
@click.argument("checks_json", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.pass_context
def score_command(ctx: click.Context, checks_json: str) -> None:
    """Score CHECKS_JSON, a JSON list of check results ('-' reads stdin).

    Each item needs ``rule_id`` and ``passed``; ``actual_value`` and
    ``threshold`` are optional.
    """
    from clinical_data_governance.compliance.scorer import ComplianceCheckResult

    raw = _read_json(checks_json)
    if not isinstance(raw, list):
        err_console.print("[red]Expected a JSON list of check results.[/red]")
        sys.exit(1)

    checks: list[ComplianceCheckResult] = []
    for index, item in enumerate(raw):
        try:
            parsed = CheckItem.model_validate(item)
        except ValidationError as exc:
            err_console.print(f"[red]Malformed check result at index {index}:[/red]")
            for error in exc.errors():
                location = ".".join(str(part) for part in error["loc"]) or "item"
                err_console.print(f"  - {location}: {error['msg']}")
            sys.exit(1)
        checks.append(
            ComplianceCheckResult(
                rule_id=parsed.rule_id or f"check-{index}",
                passed=parsed.passed,
                actual_value=parsed.actual_value,
                threshold=parsed.threshold,
            )
        )

    result = _governor(ctx).score(checks)
    _print_score(result)
    console.print(f"  Passed: [cyan]{result.passed}[/cyan] of [cyan]{result.total}[/cyan]")


@cli.command(name="evaluate")
@click.argument("metrics_json", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--rule-set", "-r", default=None, help="Rule set to run (all when omitted).")
@click.pass_context
def evaluate_command(ctx: click.Context, metrics_json: str, rule_set: str | None) -> None:
    """Run rule sets against METRICS_JSON, a JSON object of metric values."""
    raw = _read_json(metrics_json)
    if not isinstance(raw, dict):
        err_console.print("[red]Expected a JSON object of metric values.[/red]")
        sys.exit(1)

    governor = _governor(ctx)
    try:
        results = governor.evaluate(raw, rule_set)
    except KeyError as exc:
        err_console.print(f"[red]{exc.args[0]}[/red]")
        sys.exit(1)

    table = Table(title="Compliance Checks", box=box.SIMPLE)
    table.add_column("Rule", style="cyan")
    table.add_column("Result")
    table.add_column("Actual", justify="right")
    table.add_column("Threshold", justify="right")
    for check in results:
        verdict = "[green]PASS[/green]" if check.passed else "[red]FAIL[/red]"
        table.add_row(check.rule_id, verdict, f"{check.actual_value:g}", f"{check.threshold:g}")
    console.print(table)
    _print_score(governor.score(results))


# ---------------------------------------------------------------------------
# catalog group
# ---------------------------------------------------------------------------


@cli.group(name="catalog")
def catalog_group() -> None:
    """Policy catalog commands."""


@catalog_group.command(name="validate")
@click.argument("catalog_path", required=False, type=click.Path(exists=True))
def catalog_validate_command(catalog_path: str | None) -> None:
    """Validate CATALOG_PATH (the bundled catalog when omitted)."""
    from clinical_data_governance.catalog.loader import CatalogLoader, CatalogValidationError

    loader = CatalogLoader()
    try:
        catalog = loader.load(catalog_path) if catalog_path else loader.load_bundled()
    except CatalogValidationError as exc:
        err_console.print(f"[red]Invalid catalog[/red] {exc.source or ''}")
        for problem in exc.problems:
            err_console.print(f"  - {problem}")
        sys.exit(1)

    console.print(
        f"[green]Valid[/green] catalog [bold]{catalog.version}[/bold]: "
        f"{len(catalog.fields)} fields, {len(catalog.rules)} rules, "
        f"{len(catalog.rule_sets)} rule sets."
    )


@catalog_group.command(name="show")
@click.pass_context
def catalog_show_command(ctx: click.Context) -> None:
    """Summarise the active catalog per category."""
    from clinical_data_governance.catalog.model import Category

    catalog = _governor(ctx).catalog
    table = Table(title=f"Policy Catalog {catalog.version}", box=box.SIMPLE)
    table.add_column("Category", style="cyan")
    table.add_column("Level", justify="right")
    table.add_column("Access control")
    table.add_column("Fields", justify="right")
    table.add_column("With rule", justify="right")

    for category in Category:
        policy = catalog.policy(category)
        names = [name for name, d in catalog.fields.items() if d.category is category]
        with_rule = sum(1 for name in names if name in catalog.rules)
        table.add_row(
            category.value,
            str(policy.level),
            policy.access_control,
            str(len(names)),
            str(with_rule),
        )
    console.print(table)
    console.print(f"  Rule sets: [cyan]{', '.join(sorted(catalog.rule_sets)) or '-'}[/cyan]")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
