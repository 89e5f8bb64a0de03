"""Tests for report renderers and the report file writer."""

import json
from datetime import datetime, timezone
from xml.etree import ElementTree

import pytest

from compliance.core.models import CheckStatus, Report, Severity
from compliance.orchestrator import summarize
from compliance.reports.generator import (
    ReportGenerator,
    render,
    render_html,
    render_json,
    render_junit,
    render_table,
    score_bar,
    truncate,
)
from tests.conftest import make_result

GENERATED_AT = datetime(2024, 3, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def report():
    results = (
        make_result("K8S-SEC-001", severity=Severity.CRITICAL, status=CheckStatus.PASSED,
                    category="Kubernetes Security", resource="prod/web"),
        make_result("K8S-SEC-002", severity=Severity.HIGH, category="Kubernetes Security",
                    resource="prod/web", message="Container 'web' may run as root"),
        make_result("FILE-DOCKER-001", severity=Severity.LOW, category="File Compliance",
                    resource="./Dockerfile", message='Use COPY <not> ADD & "quote"'),
        make_result("FILE-DOCKER-004", severity=Severity.MEDIUM, status=CheckStatus.SKIPPED,
                    category="File Compliance", resource="./Dockerfile"),
    )
    return Report(title="Nightly <Audit>", generated_at=GENERATED_AT, summary=summarize(results), results=results)


class TestJUnit:

    def test_counts_match_summary(self, report):
        root = ElementTree.fromstring(render_junit(report))

        assert root.tag == "testsuites"
        assert root.get("name") == "Compliance Checks"
        assert root.get("tests") == "4"
        assert root.get("failures") == "2"
        assert root.get("skipped") == "1"
        assert root.get("time") == "0"

    def test_suites_per_category_in_order(self, report):
        root = ElementTree.fromstring(render_junit(report))
        suites = root.findall("testsuite")

        assert [s.get("name") for s in suites] == ["Kubernetes Security", "File Compliance"]
        assert [(s.get("tests"), s.get("failures")) for s in suites] == [("2", "1"), ("2", "1")]

    def test_testcase_children(self, report):
        root = ElementTree.fromstring(render_junit(report))
        cases = root.findall("testsuite/testcase")

        assert cases[0].get("name") == "K8S-SEC-001"
        assert cases[0].get("classname") == "prod/web"
        assert list(cases[0]) == []

        failure = cases[1].find("failure")
        assert failure.get("type") == "high"
        assert failure.get("message") == "Container 'web' may run as root"
        assert failure.text == "Container 'web' may run as root"

        assert cases[2].find("failure").text == 'Use COPY <not> ADD & "quote"'
        assert cases[3].find("skipped") is not None

    def test_header(self, report):
        assert render_junit(report).startswith('<?xml version="1.0" encoding="UTF-8"?>\n<testsuites ')


class TestJSON:

    def test_fields(self, report):
        data = json.loads(render_json(report))

        assert data["title"] == "Nightly <Audit>"
        assert data["generated_at"] == "2024-03-15T09:30:00+00:00"
        assert data["summary"] == {"total": 4, "passed": 1, "failed": 2, "skipped": 1, "score": pytest.approx(33.333, rel=1e-3)}
        assert data["results"][0]["rule_id"] == "K8S-SEC-001"
        assert "remediation" not in data["results"][0]
        assert data["results"][1]["remediation"] == "fix it"


class TestHTML:

    def test_structure_and_escaping(self, report):
        html = render_html(report)

        assert html.startswith("<!DOCTYPE html>")
        assert "<style>" in html
        assert "<title>Nightly &lt;Audit&gt;</title>" in html
        assert "Generated: 2024-03-15 09:30:00" in html
        assert 'style="width: 33.3%"' in html
        assert "Use COPY &lt;not&gt; ADD &amp; &quot;quote&quot;" in html
        assert html.index("Kubernetes Security") < html.index("File Compliance")
        assert 'class="badge badge-critical"' in html

    def test_zero_score_width(self):
        empty = Report(title="Empty", generated_at=GENERATED_AT, summary=summarize([]))
        assert 'style="width: 0.0%"' in render_html(empty)


class TestTable:

    def test_contains_rules_and_score(self, report):
        text = render_table(report)

        assert "Kubernetes Security" in text
        assert "K8S-SEC-002" in text
        assert "FILE-DOCKER-001" in text
        assert "Total Checks: 4" in text
        assert "33.3%" in text

    def test_empty_report(self):
        empty = Report(title="Empty", generated_at=GENERATED_AT, summary=summarize([]))
        assert "No issues found!" in render_table(empty)

    def test_helpers(self):
        assert truncate("short", 30) == "short"
        assert truncate("x" * 50, 40) == "x" * 37 + "..."
        assert score_bar(100.0) == "█" * 30
        assert score_bar(0.0) == "░" * 30
        assert score_bar(50.0).count("█") == 15


class TestDispatch:

    def test_renderers_do_not_mutate_report(self, report):
        before = report.to_dict()
        for fmt in ("table", "json", "junit", "html"):
            render(report, fmt)
        assert report.to_dict() == before

    def test_unknown_format(self, report):
        with pytest.raises(ValueError, match="Unknown format"):
            render(report, "pdf")


class TestReportGenerator:

    def test_write_to_explicit_file(self, report, tmp_path):
        target = tmp_path / "out" / "results.xml"
        written = ReportGenerator(tmp_path).write(report, "junit", target)

        assert written == target
        assert ElementTree.parse(target).getroot().get("tests") == "4"

    def test_write_default_name(self, report, tmp_path):
        written = ReportGenerator(tmp_path / "reports").write(report, "json")

        assert written.name == "compliance_report_20240315_093000.json"
        assert json.loads(written.read_text(encoding="utf-8"))["summary"]["total"] == 4
