"""Unit tests for the markdown and console reporters."""

from io import StringIO

import pytest
from rich.console import Console

from code_review_engine.analysis.reporters import ConsoleReporter, render_markdown
from code_review_engine.analysis.reporters.markdown import recommendations
from code_review_engine.analysis.review.models import (
    AnalysisType,
    Issue,
    IssueCategory,
    ProviderResult,
    ReviewMetrics,
    ReviewResult,
    ReviewSummary,
    Severity,
    SkippedFile,
)


def _issue(severity: Severity, category: IssueCategory, message: str) -> Issue:
    return Issue(
        category=category,
        severity=severity,
        file="src/app.js",
        line=3,
        column=7,
        message=message,
        suggestion="Fix it",
        rule_id="rule/x",
        source="heuristic",
    )


def _result(issues: list[Issue], provider_results=None, **metrics) -> ReviewResult:
    return ReviewResult(
        summary=ReviewSummary.from_issues(issues),
        issues=issues,
        metrics=ReviewMetrics(
            lines_of_code=metrics.get("loc", 10),
            complexity=metrics.get("complexity", 2),
            maintainability_index=metrics.get("mi", 150),
        ),
        provider_results=provider_results or [],
        target="src",
        analysis_type=AnalysisType.DIRECTORY,
        files_analyzed=1,
    )


@pytest.fixture
def issues() -> list[Issue]:
    return [
        _issue(Severity.CRITICAL, IssueCategory.SECURITY, "Hardcoded secret"),
        _issue(Severity.LOW, IssueCategory.STYLE, "Long line"),
        _issue(Severity.CRITICAL, IssueCategory.SECURITY, "eval call"),
    ]


def test_sections_in_order(issues):
    report = render_markdown(_result(issues))

    headings = [
        "# Code Review Report",
        "## Summary",
        "## Quality Assessment",
        "\n## Issues\n",
        "## Recommendations",
        "## Statistics",
    ]
    positions = [report.index(heading) for heading in headings]
    assert positions == sorted(positions)
    assert "## Providers" not in report
    assert "## No Issues Found" not in report


def test_issues_grouped_by_severity(issues):
    report = render_markdown(_result(issues))

    assert "### Critical (2)" in report
    assert "### Low (1)" in report
    assert "### High" not in report
    assert report.index("### Critical (2)") < report.index("### Low (1)")
    assert "`rule/x`" in report
    assert "**Suggestion**: Fix it" in report


def test_summary_mode_is_one_line_per_issue(issues):
    report = render_markdown(_result(issues), detailed=False)

    assert "- `src/app.js:3` [security] Hardcoded secret (`rule/x`)" in report
    assert "**Suggestion**" not in report


def test_no_issues_report():
    report = render_markdown(_result([]))

    assert "## No Issues Found" in report
    assert "## Recommendations" not in report
    assert "\n## Issues\n" not in report
    assert "**Overall grade**: A+" in report


def test_statistics_lists_every_category(issues):
    report = render_markdown(_result(issues))

    assert "- Security: 2" in report
    assert "- Style: 1" in report
    assert "- Performance: 0" in report


def test_skipped_files_listed():
    result = _result([])
    result.skipped_files = [SkippedFile("src/blob.js", "Cannot read")]

    report = render_markdown(result)

    assert "- Files skipped: 1" in report
    assert "`src/blob.js`: Cannot read" in report


def test_providers_section_shows_failures():
    provider_results = [
        ProviderResult(
            provider_id="sonarqube",
            provider_version="1.0.0",
            analysis_id="a1",
            timestamp="2026-01-01T00:00:00+00:00",
            processing_time_ms=12.0,
            file="src/app.js",
        ),
        ProviderResult(
            provider_id="semgrep",
            provider_version="1.0.0",
            analysis_id="a2",
            timestamp="2026-01-01T00:00:00+00:00",
            processing_time_ms=0.0,
            file="src/app.js",
            is_failure=True,
            error="bad | gateway",
        ),
    ]

    report = render_markdown(_result([], provider_results))

    assert "## Providers" in report
    assert "| sonarqube | `src/app.js` | ok | 0 | 12 |" in report
    assert "failed: bad \\| gateway" in report


def test_provider_error_with_newlines_stays_on_one_row():
    failed = ProviderResult(
        provider_id="semgrep",
        provider_version="1.0.0",
        analysis_id="a1",
        timestamp="2026-01-01T00:00:00+00:00",
        processing_time_ms=3.0,
        file="src/app.js",
        is_failure=True,
        error="Semgrep API error (HTTP 400):\n{\"error\":\r\n  \"bad request\"}",
    )

    report = render_markdown(_result([], [failed]))

    row = next(line for line in report.splitlines() if line.startswith("| semgrep"))
    assert row == (
        '| semgrep | `src/app.js` | failed: Semgrep API error (HTTP 400): '
        '{"error": "bad request"} | 0 | 3 |'
    )


def test_recommendations():
    critical = _result(
        [_issue(Severity.CRITICAL, IssueCategory.SECURITY, "x")], complexity=30, mi=40
    )
    items = recommendations(critical)

    assert any("critical" in item.lower() for item in items)
    assert any("complexity" in item.lower() for item in items)
    assert any("maintainability" in item.lower() for item in items)
    assert any("security" in item.lower() for item in items)

    minor = recommendations(_result([_issue(Severity.INFO, IssueCategory.STYLE, "x")]))
    assert minor == ["**Polish**: resolve the remaining minor findings"]


def test_console_reporter_summary(issues):
    buffer = StringIO()
    reporter = ConsoleReporter(Console(file=buffer, width=120, color_system=None))

    reporter.print_summary(_result(issues))

    output = buffer.getvalue()
    assert "Code Review: src" in output
    assert "critical" in output
    assert "total" in output


def test_console_reporter_warns_about_failed_providers():
    failed = ProviderResult(
        provider_id="semgrep",
        provider_version="1.0.0",
        analysis_id="a",
        timestamp="t",
        processing_time_ms=0.0,
        file="a.py",
        is_failure=True,
        error="timed out",
    )
    buffer = StringIO()
    reporter = ConsoleReporter(Console(file=buffer, width=120, color_system=None))

    reporter.print_summary(_result([], [failed]))

    assert "semgrep failed on a.py: timed out" in buffer.getvalue()
