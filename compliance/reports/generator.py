"""
Report renderers for compliance results.

Generates:
- Console tables (rich) for human reading
- JSON reports for machine processing
- JUnit XML for CI test dashboards
- Self-contained HTML for sharing

Every renderer is a pure function of the Report and never mutates it.
"""

import html
import io
import json
from pathlib import Path
from typing import Callable, Dict, Optional
from xml.sax.saxutils import escape as xml_escape
from xml.sax.saxutils import quoteattr

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.models import CheckResult, CheckStatus, Report, Severity

FORMATS = ("table", "json", "junit", "html")

FILE_EXTENSIONS = {
    "table": "txt",
    "json": "json",
    "junit": "xml",
    "html": "html",
}

SCORE_BAR_WIDTH = 30
RESOURCE_WIDTH = 30
MESSAGE_WIDTH = 40

SEVERITY_BADGES = {
    Severity.CRITICAL: "[bold red]CRIT[/]",
    Severity.HIGH: "[red]HIGH[/]",
    Severity.MEDIUM: "[yellow]MED[/]",
    Severity.LOW: "[cyan]LOW[/]",
}


def truncate(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


def score_bar(score: float, width: int = SCORE_BAR_WIDTH) -> str:
    """Полоса из width ячеек: заполнено int(score) процентов."""
    percent = max(0, min(100, int(score)))
    filled = percent * width // 100
    return "█" * filled + "░" * (width - filled)


def _status_icon(result: CheckResult) -> str:
    if result.status == CheckStatus.PASSED:
        return "[green]✓[/]"
    if result.status == CheckStatus.FAILED:
        if result.severity in (Severity.CRITICAL, Severity.HIGH):
            return "[red]✗[/]"
        return "[yellow]⚠[/]"
    return "[dim]○[/]"


# === Table ===

def print_table(report: Report, console: Console) -> None:
    """Вывести отчёт таблицами rich (по одной на категорию) + сводку."""
    if not report.results:
        console.print("[green]✓ No issues found![/]")
        return

    for category, results in report.results_by_category().items():
        table = Table(title=f"[bold]{escape(category)}[/]", title_justify="left", show_lines=False)
        table.add_column("Status", justify="center")
        table.add_column("Severity")
        table.add_column("Rule", style="cyan", no_wrap=True)
        table.add_column("Resource")
        table.add_column("Message", style="dim")

        for r in results:
            table.add_row(
                _status_icon(r),
                SEVERITY_BADGES.get(r.severity, r.severity.value),
                r.rule_id,
                escape(truncate(r.resource, RESOURCE_WIDTH)),
                escape(truncate(r.message, MESSAGE_WIDTH)),
            )

        console.print()
        console.print(table)

    # Failed findings are split into blocking failures and warnings
    failed = sum(
        1 for r in report.results
        if r.status == CheckStatus.FAILED and r.severity in (Severity.CRITICAL, Severity.HIGH)
    )
    warnings = report.summary.failed - failed
    summary = report.summary

    console.print()
    console.print("─" * 60)
    console.print("[bold]Summary[/]")
    console.print(f"  Total Checks: {summary.total}")
    console.print(f"  [green]✓[/] Passed: {summary.passed}")
    if failed:
        console.print(f"  [red]✗[/] Failed: {failed}")
    if warnings:
        console.print(f"  [yellow]⚠[/] Warnings: {warnings}")
    if summary.skipped:
        console.print(f"  [dim]○[/] Skipped: {summary.skipped}")

    console.print(f"\n  Compliance Score: {score_bar(summary.score)} {summary.score:.1f}%")
    console.print()


def render_table(report: Report, width: int = 120) -> str:
    """Табличный отчёт как обычный текст (без ANSI-кодов)."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, color_system=None, force_terminal=False)
    print_table(report, console)
    return buffer.getvalue()


# === JSON ===

def render_json(report: Report) -> str:
    return json.dumps(report.to_dict(), indent=2, ensure_ascii=False)


# === JUnit XML ===

def render_junit(report: Report) -> str:
    """
    JUnit XML: testsuite на категорию, testcase на результат.

    failed -> <failure>, skipped -> <skipped/>, passed -> пустой testcase.
    """
    summary = report.summary
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<testsuites name="Compliance Checks" tests="{summary.total}" '
        f'failures="{summary.failed}" skipped="{summary.skipped}" time="0">',
    ]

    for category, results in report.results_by_category().items():
        failures = sum(1 for r in results if r.status == CheckStatus.FAILED)
        skipped = sum(1 for r in results if r.status == CheckStatus.SKIPPED)
        lines.append(
            f'  <testsuite name={quoteattr(category)} tests="{len(results)}" '
            f'failures="{failures}" skipped="{skipped}">'
        )

        for r in results:
            lines.append(f'    <testcase name={quoteattr(r.rule_id)} classname={quoteattr(r.resource)}>')
            if r.status == CheckStatus.FAILED:
                lines.append(
                    f'      <failure message={quoteattr(r.message)} type={quoteattr(r.severity.value)}>'
                    f'{xml_escape(r.message)}</failure>'
                )
            elif r.status == CheckStatus.SKIPPED:
                lines.append('      <skipped/>')
            lines.append('    </testcase>')

        lines.append('  </testsuite>')

    lines.append('</testsuites>')
    return "\n".join(lines)


# === HTML ===

_HTML_STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: #0f172a; color: #e2e8f0; line-height: 1.6; }
        .container { max-width: 1200px; margin: 0 auto; padding: 2rem; }
        h1 { color: #7c3aed; margin-bottom: 0.5rem; }
        .subtitle { color: #64748b; margin-bottom: 2rem; }
        .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(150px, 1fr)); gap: 1rem; margin-bottom: 2rem; }
        .stat { background: #1e293b; padding: 1.5rem; border-radius: 8px; text-align: center; }
        .stat-value { font-size: 2rem; font-weight: bold; }
        .stat-label { color: #64748b; font-size: 0.875rem; }
        .passed { color: #10b981; }
        .failed { color: #ef4444; }
        .score-bar { height: 8px; background: #374151; border-radius: 4px; overflow: hidden; margin-top: 1rem; }
        .score-fill { height: 100%; background: linear-gradient(90deg, #10b981, #7c3aed); }
        .category { background: #1e293b; border-radius: 8px; margin-bottom: 1rem; overflow: hidden; }
        .category-header { padding: 1rem; background: #334155; font-weight: bold; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 0.75rem 1rem; text-align: left; border-bottom: 1px solid #374151; }
        th { background: #1e293b; color: #94a3b8; font-weight: 500; }
        .badge { display: inline-block; padding: 0.25rem 0.5rem; border-radius: 4px; font-size: 0.75rem; font-weight: bold; }
        .badge-critical { background: #ef4444; }
        .badge-high { background: #f97316; }
        .badge-medium { background: #f59e0b; color: #000; }
        .badge-low { background: #06b6d4; }
        .status-icon { width: 20px; text-align: center; }
"""

_HTML_STATUS = {
    CheckStatus.PASSED: ("passed", "✓"),
    CheckStatus.FAILED: ("failed", "✗"),
    CheckStatus.SKIPPED: ("", "○"),
}


def render_html(report: Report) -> str:
    """Самодостаточный HTML-документ (inline CSS, без внешних ресурсов)."""
    summary = report.summary
    title = html.escape(report.title)
    generated = report.generated_at.strftime("%Y-%m-%d %H:%M:%S")

    parts = [f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>{_HTML_STYLE}    </style>
</head>
<body>
    <div class="container">
        <h1>{title}</h1>
        <p class="subtitle">Generated: {generated}</p>

        <div class="summary">
            <div class="stat">
                <div class="stat-value">{summary.total}</div>
                <div class="stat-label">Total Checks</div>
            </div>
            <div class="stat">
                <div class="stat-value passed">{summary.passed}</div>
                <div class="stat-label">Passed</div>
            </div>
            <div class="stat">
                <div class="stat-value failed">{summary.failed}</div>
                <div class="stat-label">Failed</div>
            </div>
            <div class="stat">
                <div class="stat-value">{summary.score:.1f}%</div>
                <div class="stat-label">Score</div>
                <div class="score-bar"><div class="score-fill" style="width: {summary.score:.1f}%"></div></div>
            </div>
        </div>
"""]

    for category, results in report.results_by_category().items():
        parts.append(f"""
        <div class="category">
            <div class="category-header">{html.escape(category)}</div>
            <table>
                <thead>
                    <tr>
                        <th class="status-icon">Status</th>
                        <th>Severity</th>
                        <th>Rule</th>
                        <th>Resource</th>
                        <th>Message</th>
                    </tr>
                </thead>
                <tbody>
""")
        for r in results:
            status_class, status_icon = _HTML_STATUS[r.status]
            parts.append(f"""                    <tr>
                        <td class="status-icon {status_class}">{status_icon}</td>
                        <td><span class="badge badge-{r.severity.value}">{r.severity.value}</span></td>
                        <td>{html.escape(r.rule_id)}</td>
                        <td>{html.escape(r.resource)}</td>
                        <td>{html.escape(r.message)}</td>
                    </tr>
""")
        parts.append("""                </tbody>
            </table>
        </div>
""")

    parts.append("""    </div>
</body>
</html>""")
    return "".join(parts)


RENDERERS: Dict[str, Callable[[Report], str]] = {
    "table": render_table,
    "json": render_json,
    "junit": render_junit,
    "html": render_html,
}


def render(report: Report, fmt: str) -> str:
    """
    Отрендерить отчёт в заданном формате.

    Raises:
        ValueError: неизвестный формат
    """
    renderer = RENDERERS.get((fmt or "").strip().lower())
    if renderer is None:
        raise ValueError(f"Unknown format: {fmt} (valid formats: {', '.join(FORMATS)})")
    return renderer(report)


class ReportGenerator:
    """Генератор файлов отчётов."""

    def __init__(self, output_dir: Optional[Path] = None):
        """
        Args:
            output_dir: Директория для сохранения отчётов (по умолчанию compliance_reports/)
        """
        self.output_dir = Path(output_dir) if output_dir else Path("compliance_reports")

    def write(self, report: Report, fmt: str, output_file: Optional[Path] = None) -> Path:
        """
        Записать отчёт в файл.

        Args:
            report: Отчёт
            fmt: Формат (table, json, junit, html)
            output_file: Путь к файлу (None = output_dir/compliance_report_<timestamp>.<ext>)

        Returns:
            Путь к записанному файлу
        """
        content = render(report, fmt)

        if output_file is None:
            timestamp_str = report.generated_at.strftime("%Y%m%d_%H%M%S")
            extension = FILE_EXTENSIONS[fmt.strip().lower()]
            output_file = self.output_dir / f"compliance_report_{timestamp_str}.{extension}"

        filepath = Path(output_file)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(content)

        return filepath
