"""Line, complexity and maintainability metrics for reviewed files."""

from __future__ import annotations

import math
from collections.abc import Iterable

from ..config.defaults import (
    COMPLEXITY_KEYWORDS,
    MI_BASE,
    MI_COMPLEXITY_COEFFICIENT,
    MI_ISSUE_PENALTY,
    MI_LOC_COEFFICIENT,
)
from .review.models import AnalysisStatistics, Issue

# Line prefixes counted as comments (after stripping indentation)
COMMENT_PREFIXES = ("//", "#", "/*", "*", "*/", "--", '"""', "'''", "<!--")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def count_lines(content: str) -> tuple[int, int, int, int]:
    """Count lines in a file.

    Returns:
        Tuple of (total, code, comment, blank) line counts
    """
    lines = content.splitlines()
    blank = 0
    comment = 0
    for line in lines:
        stripped = line.strip()
        if not stripped:
            blank += 1
        elif stripped.startswith(COMMENT_PREFIXES):
            comment += 1
    total = len(lines)
    return total, total - blank - comment, comment, blank


def non_blank_lines(content: str) -> int:
    """Number of lines containing anything other than whitespace."""
    return sum(1 for line in content.splitlines() if line.strip())


def compute_complexity(content: str) -> int:
    """Keyword-count complexity: 1 plus every whitespace-separated token that is a branch keyword."""
    return 1 + sum(1 for token in content.split() if token in COMPLEXITY_KEYWORDS)


def maintainability_index(loc: int, complexity: int, issue_count: int = 0) -> int:
    """Compute the maintainability index.

    ``max(0, round(171 - 5.2 * ln(loc) - 0.23 * complexity)) - 2 * issue_count``
    clamped at 0. The log term is 0 when ``loc`` is 0.

    Args:
        loc: Non-blank lines of code
        complexity: Keyword-count complexity
        issue_count: Issues penalized (directory scope only)

    Returns:
        Non-negative integer index
    """
    log_term = MI_LOC_COEFFICIENT * math.log(loc) if loc > 0 else 0.0
    raw = MI_BASE - log_term - MI_COMPLEXITY_COEFFICIENT * complexity
    value = max(0, _round_half_up(raw))
    if issue_count:
        value = max(0, value - MI_ISSUE_PENALTY * issue_count)
    return value


def build_statistics(content: str, issues: Iterable[Issue]) -> AnalysisStatistics:
    """Build per-file statistics from content and the issues found in it."""
    total, code, comment, blank = count_lines(content)
    complexity = compute_complexity(content)
    stats = AnalysisStatistics(
        total_lines=total,
        code_lines=code,
        comment_lines=comment,
        blank_lines=blank,
        complexity=complexity,
        maintainability_index=maintainability_index(
            non_blank_lines(content), complexity
        ),
    )
    count_issues(stats, issues)
    return stats


def count_issues(stats: AnalysisStatistics, issues: Iterable[Issue]) -> None:
    """Add issues to the per-category and per-severity counters in place."""
    for issue in issues:
        stats.issues_by_type[issue.category] += 1
        stats.issues_by_severity[issue.severity] += 1


def aggregate_statistics(items: Iterable[AnalysisStatistics]) -> AnalysisStatistics:
    """Sum statistics across files.

    Line counts, complexity and issue counters are summed. The
    maintainability index is recomputed from the totals (no issue penalty).
    """
    total = AnalysisStatistics()
    for stats in items:
        total.total_lines += stats.total_lines
        total.code_lines += stats.code_lines
        total.comment_lines += stats.comment_lines
        total.blank_lines += stats.blank_lines
        total.complexity += stats.complexity
        for category, count in stats.issues_by_type.items():
            total.issues_by_type[category] += count
        for severity, count in stats.issues_by_severity.items():
            total.issues_by_severity[severity] += count
    total.maintainability_index = maintainability_index(
        total.code_lines + total.comment_lines, total.complexity
    )
    return total


def quality_grade(maintainability: int, issue_count: int) -> str:
    """Letter grade used in reports.

    Grade thresholds:
    - A+: MI >= 80 and no issues
    - A: MI >= 70 and at most 5 issues
    - B: MI >= 60 and at most 15 issues
    - C: MI >= 40 and at most 30 issues
    - D: everything else
    """
    if maintainability >= 80 and issue_count == 0:
        return "A+"
    elif maintainability >= 70 and issue_count <= 5:
        return "A"
    elif maintainability >= 60 and issue_count <= 15:
        return "B"
    elif maintainability >= 40 and issue_count <= 30:
        return "C"
    return "D"
