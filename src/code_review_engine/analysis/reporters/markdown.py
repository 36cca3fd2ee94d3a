"""Markdown rendering of review results."""

from __future__ import annotations

from ..metrics import quality_grade
from ..review.models import (
    SEVERITY_ORDER,
    Issue,
    IssueCategory,
    ReviewResult,
    Severity,
)

SEVERITY_TITLES = {
    Severity.CRITICAL: "Critical",
    Severity.HIGH: "High",
    Severity.MEDIUM: "Medium",
    Severity.LOW: "Low",
    Severity.INFO: "Info",
}

CATEGORY_TITLES = {
    IssueCategory.QUALITY: "Code quality",
    IssueCategory.SECURITY: "Security",
    IssueCategory.PERFORMANCE: "Performance",
    IssueCategory.STYLE: "Style",
    IssueCategory.BUG: "Potential bugs",
    IssueCategory.MAINTAINABILITY: "Maintainability",
}

GRADE_DESCRIPTIONS = {
    "A+": "Excellent. Highly maintainable code with no issues found.",
    "A": "Very good. Maintainable code with only a few minor issues.",
    "B": "Good. Solid code with room for improvement.",
    "C": "Fair. The code would benefit from refactoring.",
    "D": "Needs attention. Address the most severe issues first.",
}

# Thresholds for the recommendations section
HIGH_COMPLEXITY = 20
LOW_MAINTAINABILITY = 60
MANY_ISSUES = 50


def render_markdown(result: ReviewResult, detailed: bool = True) -> str:
    """Render a review result as a markdown report.

    Sections, in order: title, Summary, Quality Assessment, Issues (or a
    no-issues section), Recommendations (only with issues), Statistics and
    Providers (only when providers ran).

    Args:
        result: Review result
        detailed: Full per-issue blocks when True, one line per issue otherwise

    Returns:
        Markdown text
    """
    parts: list[str] = []
    parts.append(_render_header(result))
    parts.append(_render_summary(result))
    parts.append(_render_quality(result))

    if result.issues:
        parts.append(_render_issues(result.issues, detailed))
        parts.append(_render_recommendations(result))
    else:
        parts.append(
            "## No Issues Found\n\n"
            "The code follows the checked practices; nothing to report.\n"
        )

    parts.append(_render_statistics(result))

    if result.provider_results:
        parts.append(_render_providers(result))

    return "\n".join(parts)


def _render_header(result: ReviewResult) -> str:
    lines = [
        "# Code Review Report",
        "",
        f"**Target**: `{result.target}` ({result.analysis_type.value})",
        f"**Files analyzed**: {result.files_analyzed}",
        "",
    ]
    return "\n".join(lines)


def _render_summary(result: ReviewResult) -> str:
    summary = result.summary
    metrics = result.metrics
    lines = [
        "## Summary",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Lines of code | {metrics.lines_of_code} |",
        f"| Complexity | {metrics.complexity} |",
        f"| Maintainability index | {metrics.maintainability_index} |",
        f"| Total issues | {summary.total_issues} |",
    ]
    for severity in SEVERITY_ORDER:
        lines.append(
            f"| {SEVERITY_TITLES[severity]} | {summary.count_for(severity)} |"
        )
    lines.append("")
    return "\n".join(lines)


def _render_quality(result: ReviewResult) -> str:
    grade = quality_grade(
        result.metrics.maintainability_index, result.summary.total_issues
    )
    return "\n".join(
        [
            "## Quality Assessment",
            "",
            f"**Overall grade**: {grade}",
            "",
            GRADE_DESCRIPTIONS[grade],
            "",
        ]
    )


def _render_issues(issues: list[Issue], detailed: bool) -> str:
    lines = ["## Issues", ""]
    for severity in SEVERITY_ORDER:
        group = [issue for issue in issues if issue.severity is severity]
        if not group:
            continue

        lines.append(f"### {SEVERITY_TITLES[severity]} ({len(group)})")
        lines.append("")
        for index, issue in enumerate(group, 1):
            if detailed:
                lines.extend(_render_issue_block(index, issue))
            else:
                rule = f" (`{issue.rule_id}`)" if issue.rule_id else ""
                lines.append(
                    f"- `{issue.file}:{issue.line}` [{issue.category.value}] "
                    f"{issue.message}{rule}"
                )
        lines.append("")
    return "\n".join(lines)


def _render_issue_block(index: int, issue: Issue) -> list[str]:
    location = f"line {issue.line}"
    if issue.column is not None:
        location += f", column {issue.column}"

    lines = [
        f"#### {index}. [{issue.category.value}] {issue.message}",
        "",
        f"- **File**: `{issue.file}`",
        f"- **Location**: {location}",
        f"- **Source**: {issue.source}",
    ]
    if issue.rule_id:
        lines.append(f"- **Rule**: `{issue.rule_id}`")
    if issue.description:
        lines.append(f"- **Details**: {issue.description}")
    if issue.suggestion:
        lines.append(f"- **Suggestion**: {issue.suggestion}")
    for fix in issue.fixes:
        lines.append(
            f"- **Fix** ({fix.kind}, line {fix.start.line}-{fix.end.line}): "
            f"{fix.description}"
        )
    lines.append("")
    return lines


def recommendations(result: ReviewResult) -> list[str]:
    """Improvement suggestions derived from the summary and metrics."""
    summary = result.summary
    metrics = result.metrics
    items: list[str] = []

    if summary.critical_issues > 0:
        items.append(
            "**Fix critical issues first**: resolve critical security and "
            "correctness problems immediately"
        )
    if summary.high_issues > 0:
        items.append(
            "**Address high-priority issues**: fix high-severity findings soon"
        )
    if metrics.complexity > HIGH_COMPLEXITY:
        items.append(
            "**Reduce complexity**: split complex functions into smaller ones"
        )
    if metrics.maintainability_index < LOW_MAINTAINABILITY:
        items.append(
            "**Improve maintainability**: restructure the code and document it"
        )
    if any(i.category is IssueCategory.SECURITY for i in result.issues):
        items.append(
            "**Harden security**: fix the reported vulnerabilities and adopt "
            "secure coding guidelines"
        )
    if any(i.category is IssueCategory.PERFORMANCE for i in result.issues):
        items.append(
            "**Optimize performance**: remove synchronous I/O and inefficient loops"
        )
    if summary.total_issues > MANY_ISSUES:
        items.append(
            "**Work in stages**: many issues were found; fix the highest-impact "
            "ones first"
        )
    if not items:
        items.append("**Polish**: resolve the remaining minor findings")
    return items


def _render_recommendations(result: ReviewResult) -> str:
    lines = ["## Recommendations", ""]
    for index, item in enumerate(recommendations(result), 1):
        lines.append(f"{index}. {item}")
    lines.append("")
    return "\n".join(lines)


def _render_statistics(result: ReviewResult) -> str:
    counts = {category: 0 for category in IssueCategory}
    for issue in result.issues:
        counts[issue.category] += 1

    lines = ["## Statistics", "", "### Issues by category", ""]
    for category in IssueCategory:
        lines.append(f"- {CATEGORY_TITLES[category]}: {counts[category]}")

    lines.extend(
        [
            "",
            "### Metrics",
            "",
            f"- Files analyzed: {result.files_analyzed}",
            f"- Lines of code: {result.metrics.lines_of_code}",
            f"- Complexity: {result.metrics.complexity}",
            f"- Maintainability index: {result.metrics.maintainability_index}",
        ]
    )
    if result.skipped_files:
        lines.append(f"- Files skipped: {len(result.skipped_files)}")
        for skipped in result.skipped_files:
            lines.append(f"  - `{skipped.path}`: {skipped.reason}")
    lines.append("")
    return "\n".join(lines)


def _table_cell(text: str) -> str:
    # One physical line per row; pipes would split the cell
    return " ".join(text.split()).replace("|", "\\|")


def _render_providers(result: ReviewResult) -> str:
    lines = [
        "## Providers",
        "",
        "| Provider | File | Status | Issues | Time (ms) |",
        "|----------|------|--------|--------|-----------|",
    ]
    for provider_result in result.provider_results:
        if provider_result.is_failure:
            status = f"failed: {_table_cell(provider_result.error or '')}"
        else:
            status = "ok"
        lines.append(
            f"| {provider_result.provider_id} | `{provider_result.file or '-'}` "
            f"| {status} | {len(provider_result.issues)} "
            f"| {provider_result.processing_time_ms:.0f} |"
        )
    lines.append("")
    return "\n".join(lines)
