"""
CLI interface for DevOps Compliance Engine.

Usage:
    compliance check files --path ./deploy           # Check manifests, Dockerfiles, compose files
    compliance check docker --image nginx:1.25       # Check containers and one image
    compliance check k8s -n production --severity high
    compliance report all -f junit -o results.xml    # JUnit XML for CI
    compliance report k8s -f html -o report.html     # HTML report
    compliance policies --category "Docker Security" # List built-in policies
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ComplianceSettings, get_settings
from .core.exceptions import ProviderConnectionError
from .core.models import CheckOptions, Severity, Target
from .orchestrator import ComplianceOrchestrator, compute_exit_code
from .policies import filter_policies, policies_by_category
from .reports.generator import FORMATS, SEVERITY_BADGES, ReportGenerator, print_table, render, truncate

load_dotenv()

app = typer.Typer(
    name="compliance",
    help="DevOps Compliance — проверка Kubernetes, Docker и конфигурационных файлов",
)
console = Console()

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, level: str = "WARNING"):
    """Настроить логирование."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_orchestrator(settings: ComplianceSettings) -> ComplianceOrchestrator:
    return ComplianceOrchestrator(settings)


def split_rules(values: Optional[List[str]]) -> List[str]:
    """--skip A --skip B,C -> [A, B, C]."""
    rules = []
    for value in values or []:
        rules.extend(part.strip() for part in value.split(",") if part.strip())
    return rules


def _fail(message: str) -> None:
    console.print(f"[red]❌ {escape(message)}[/]")
    raise typer.Exit(1)


def _run_checks(target_name: str, options: CheckOptions):
    """Разобрать target, запустить checkers и вернуть (orchestrator, results)."""
    try:
        target = Target.parse(target_name)
    except ValueError as e:
        _fail(str(e))

    settings = get_settings()
    orchestrator = build_orchestrator(settings)

    try:
        with console.status(f"[bold]Running {target.value} compliance checks...[/]"):
            results = orchestrator.run(target, options)
        logger.info(f"{target.value}: {len(results)} results after filtering")
    except ProviderConnectionError as e:
        _fail(f"Check failed: {e}")

    return orchestrator, results


def _build_options(
    namespace: str,
    image: str,
    path: str,
    skip: Optional[List[str]],
    only: Optional[List[str]],
    severity: str,
) -> CheckOptions:
    try:
        return CheckOptions(
            namespace=namespace,
            image=image,
            path=path or get_settings().default_path,
            skip_rules=split_rules(skip),
            only_rules=split_rules(only),
            min_severity=severity,
        )
    except ValueError as e:
        _fail(str(e))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Подробные логи (DEBUG)"),
):
    """DevOps Compliance Engine."""
    setup_logging(verbose, get_settings().log_level)


@app.command()
def check(
    target: str = typer.Argument(..., help="Цель: k8s, docker, files, all"),
    namespace: str = typer.Option("", "--namespace", "-n", help="Kubernetes namespace"),
    image: str = typer.Option("", "--image", help="Docker image to check"),
    path: str = typer.Option("", "--path", help="Path to files to check"),
    skip: Optional[List[str]] = typer.Option(None, "--skip", help="Rules to skip (repeatable, comma-separated)"),
    only: Optional[List[str]] = typer.Option(None, "--only", help="Only report these rules"),
    severity: str = typer.Option("", "--severity", help="Minimum severity (low, medium, high, critical)"),
    fail_on_warn: bool = typer.Option(False, "--fail-on-warn", help="Exit with error on warnings"),
):
    """🔍 Запустить проверки и вывести результаты таблицей."""

    options = _build_options(namespace, image, path, skip, only, severity)
    orchestrator, results = _run_checks(target, options)

    report = orchestrator.build_report(results)
    print_table(report, console)

    exit_code = compute_exit_code(results, fail_on_warn)
    if exit_code:
        console.print("[red]Compliance check failed[/]")
        raise typer.Exit(exit_code)


@app.command()
def report(
    target: str = typer.Argument("all", help="Цель: k8s, docker, files, all"),
    output_format: str = typer.Option("table", "--format", "-f", help="Output format (table, json, junit, html)"),
    output_file: Optional[Path] = typer.Option(None, "--output-file", "-o", help="Output file path"),
    title: Optional[str] = typer.Option(None, "--title", help="Report title"),
    include_passed: bool = typer.Option(
        True, "--include-passed/--exclude-passed", help="Include passed checks in report"
    ),
    namespace: str = typer.Option("", "--namespace", "-n", help="Kubernetes namespace"),
    image: str = typer.Option("", "--image", help="Docker image to check"),
    path: str = typer.Option("", "--path", help="Path to files to check"),
    skip: Optional[List[str]] = typer.Option(None, "--skip", help="Rules to skip (repeatable, comma-separated)"),
    only: Optional[List[str]] = typer.Option(None, "--only", help="Only report these rules"),
    severity: str = typer.Option("", "--severity", help="Minimum severity (low, medium, high, critical)"),
):
    """📄 Сгенерировать отчёт (table, json, junit, html)."""

    fmt = output_format.strip().lower()
    if fmt not in FORMATS:
        _fail(f"Unknown format: {output_format} (valid formats: {', '.join(FORMATS)})")

    options = _build_options(namespace, image, path, skip, only, severity)
    orchestrator, results = _run_checks(target, options)

    compliance_report = orchestrator.build_report(results, title=title, include_passed=include_passed)

    if output_file is not None:
        written = ReportGenerator(get_settings().report_output_dir).write(compliance_report, fmt, output_file)
        console.print(f"[green]✓ Report written to {written}[/]")
    elif fmt == "table":
        print_table(compliance_report, console)
    else:
        typer.echo(render(compliance_report, fmt))


@app.command()
def policies(
    category: Optional[str] = typer.Option(None, "--category", help="Filter by category"),
    severity: Optional[str] = typer.Option(None, "--severity", help="Filter by severity"),
):
    """📋 Показать встроенные правила."""

    severity_filter = None
    if severity:
        try:
            severity_filter = Severity.parse(severity)
        except ValueError as e:
            _fail(str(e))

    selected = filter_policies(category=category, severity=severity_filter)
    if not selected:
        console.print("[yellow]No policies found matching the criteria[/]")
        return

    for category_name, category_policies in policies_by_category(selected).items():
        table = Table(title=f"[bold]{category_name}[/]", title_justify="left")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Severity")
        table.add_column("Name")
        table.add_column("Description", style="dim")

        for policy in category_policies:
            table.add_row(
                policy.id,
                SEVERITY_BADGES.get(policy.severity, policy.severity.value),
                policy.name,
                truncate(policy.description, 50),
            )

        console.print()
        console.print(table)

    console.print(f"\nTotal: {len(selected)} policies\n")


if __name__ == "__main__":
    app()
