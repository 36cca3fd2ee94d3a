"""Data structures for the code review engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal


class IssueCategory(str, Enum):
    """Category of a finding."""

    QUALITY = "quality"
    SECURITY = "security"
    PERFORMANCE = "performance"
    STYLE = "style"
    BUG = "bug"
    MAINTAINABILITY = "maintainability"


class Severity(str, Enum):
    """Severity level of a finding, ordered INFO < LOW < MEDIUM < HIGH < CRITICAL."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank (INFO=0 ... CRITICAL=4) for ordering and filtering."""
        return _SEVERITY_RANKS[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANKS = {
    Severity.INFO: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}

# Display/grouping order used by summaries and reports
SEVERITY_ORDER = [
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
]


class CodeReviewFeature(str, Enum):
    """Capability tags a provider can advertise."""

    SECURITY_SCAN = "security_scan"
    QUALITY_ANALYSIS = "quality_analysis"
    PERFORMANCE_CHECK = "performance_check"
    STYLE_CHECK = "style_check"
    COMPLEXITY_ANALYSIS = "complexity_analysis"
    DEPENDENCY_CHECK = "dependency_check"
    LICENSE_CHECK = "license_check"
    VULNERABILITY_SCAN = "vulnerability_scan"


class AnalysisType(str, Enum):
    """Scope of a review run."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass(frozen=True)
class Position:
    """1-based line, 1-based column."""

    line: int
    column: int


@dataclass
class CodeFix:
    """A proposed edit attached to an issue."""

    description: str
    kind: Literal["replace", "insert", "delete"]
    start: Position
    end: Position
    new_text: str | None = None


@dataclass
class Issue:
    """A single normalized finding."""

    category: IssueCategory
    severity: Severity
    file: str
    line: int
    message: str
    source: str
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    description: str | None = None
    suggestion: str | None = None
    rule_id: str | None = None
    confidence: float | None = None  # 0.0-1.0
    fixes: list[CodeFix] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
            "message": self.message,
            "description": self.description,
            "suggestion": self.suggestion,
            "rule_id": self.rule_id,
            "source": self.source,
            "confidence": self.confidence,
            "fixes": [
                {
                    "description": fix.description,
                    "kind": fix.kind,
                    "start": {"line": fix.start.line, "column": fix.start.column},
                    "end": {"line": fix.end.line, "column": fix.end.column},
                    "new_text": fix.new_text,
                }
                for fix in self.fixes
            ],
        }


def _empty_category_counts() -> dict[IssueCategory, int]:
    return {category: 0 for category in IssueCategory}


def _empty_severity_counts() -> dict[Severity, int]:
    return {severity: 0 for severity in Severity}


@dataclass
class AnalysisStatistics:
    """Per-file or aggregate counters.

    ``issues_by_type`` and ``issues_by_severity`` always carry every enum key.
    """

    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    blank_lines: int = 0
    complexity: int = 0
    maintainability_index: int = 0
    issues_by_type: dict[IssueCategory, int] = field(
        default_factory=_empty_category_counts
    )
    issues_by_severity: dict[Severity, int] = field(
        default_factory=_empty_severity_counts
    )

    @property
    def issue_count(self) -> int:
        return sum(self.issues_by_severity.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "code_lines": self.code_lines,
            "comment_lines": self.comment_lines,
            "blank_lines": self.blank_lines,
            "complexity": self.complexity,
            "maintainability_index": self.maintainability_index,
            "issues_by_type": {k.value: v for k, v in self.issues_by_type.items()},
            "issues_by_severity": {
                k.value: v for k, v in self.issues_by_severity.items()
            },
        }


@dataclass(frozen=True)
class FileInput:
    """A file submitted to a provider."""

    file_path: str
    content: str
    language: str | None = None
    encoding: str = "utf-8"


@dataclass
class AnalysisOptions:
    """Provider-facing analysis options."""

    review_types: list[IssueCategory] | None = None
    severity_filter: list[Severity] | None = None
    language_specific: dict[str, Any] = field(default_factory=dict)
    exclude_rules: list[str] = field(default_factory=list)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ProviderResult:
    """Output of one provider for one file in one run.

    Failed calls are represented here too, with ``is_failure=True``, no issues
    and ``error`` populated.
    """

    provider_id: str
    provider_version: str
    analysis_id: str
    timestamp: str
    processing_time_ms: float
    issues: list[Issue] = field(default_factory=list)
    statistics: AnalysisStatistics = field(default_factory=AnalysisStatistics)
    file: str | None = None
    is_failure: bool = False
    error: str | None = None
    raw_response: Any = None  # debugging only, never parsed downstream

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider_id": self.provider_id,
            "provider_version": self.provider_version,
            "analysis_id": self.analysis_id,
            "timestamp": self.timestamp,
            "processing_time_ms": self.processing_time_ms,
            "file": self.file,
            "is_failure": self.is_failure,
            "error": self.error,
            "issues": [issue.to_dict() for issue in self.issues],
            "statistics": self.statistics.to_dict(),
        }


@dataclass(frozen=True)
class FileError:
    """A file a batch call could not process."""

    file_path: str
    error: str
    error_code: str | None = None


@dataclass
class BatchResult:
    """Outcome of ``analyze_batch``; partial success is a normal outcome."""

    provider_id: str
    batch_id: str
    timestamp: str
    total_files: int
    processed_files: int
    failed_files: list[FileError]
    results: list[ProviderResult]
    overall_statistics: AnalysisStatistics


@dataclass
class ProviderHealthStatus:
    """Result of a provider health check."""

    is_healthy: bool
    response_time_ms: float
    last_checked: str
    error_message: str | None = None


@dataclass
class ReviewSummary:
    """Issue counts per severity; always computed from the filtered issue list."""

    total_issues: int = 0
    critical_issues: int = 0
    high_issues: int = 0
    medium_issues: int = 0
    low_issues: int = 0
    info_issues: int = 0

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> ReviewSummary:
        counts = _empty_severity_counts()
        for issue in issues:
            counts[issue.severity] += 1
        return cls(
            total_issues=len(issues),
            critical_issues=counts[Severity.CRITICAL],
            high_issues=counts[Severity.HIGH],
            medium_issues=counts[Severity.MEDIUM],
            low_issues=counts[Severity.LOW],
            info_issues=counts[Severity.INFO],
        )

    def count_for(self, severity: Severity) -> int:
        return getattr(self, f"{severity.value}_issues")

    def to_dict(self) -> dict[str, int]:
        return {
            "total_issues": self.total_issues,
            "critical_issues": self.critical_issues,
            "high_issues": self.high_issues,
            "medium_issues": self.medium_issues,
            "low_issues": self.low_issues,
            "info_issues": self.info_issues,
        }


@dataclass
class ReviewMetrics:
    """Aggregate metrics of a review run."""

    lines_of_code: int = 0
    complexity: int = 0
    maintainability_index: int = 0


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: str


@dataclass
class ReviewResult:
    """Complete result of a review run."""

    summary: ReviewSummary
    issues: list[Issue]
    metrics: ReviewMetrics
    provider_results: list[ProviderResult] = field(default_factory=list)
    target: str = ""
    analysis_type: AnalysisType = AnalysisType.FILE
    files_analyzed: int = 0
    skipped_files: list[SkippedFile] = field(default_factory=list)
    file_statistics: dict[str, AnalysisStatistics] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def failed_providers(self) -> list[ProviderResult]:
        return [r for r in self.provider_results if r.is_failure]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dictionary (CLI ``--json`` output)."""
        return {
            "target": self.target,
            "analysis_type": self.analysis_type.value,
            "files_analyzed": self.files_analyzed,
            "duration_seconds": round(self.duration_seconds, 3),
            "summary": self.summary.to_dict(),
            "metrics": {
                "lines_of_code": self.metrics.lines_of_code,
                "complexity": self.metrics.complexity,
                "maintainability_index": self.metrics.maintainability_index,
            },
            "issues": [issue.to_dict() for issue in self.issues],
            "provider_results": [r.to_dict() for r in self.provider_results],
            "skipped_files": [
                {"path": s.path, "reason": s.reason} for s in self.skipped_files
            ],
            "file_statistics": {
                path: stats.to_dict() for path, stats in self.file_statistics.items()
            },
        }


@dataclass
class ReviewOptions:
    """Caller-facing options for a review run.

    Attributes:
        analysis_type: Force file or directory scope (auto-detected when None)
        include_extensions: Extensions reviewed in directory scope
        severity_filter: Minimum severity kept in the result (None keeps all)
        category_filter: Categories kept in the result (None keeps all)
        enable_third_party: Fan out to third-party providers
        provider_ids: Restrict fan-out to these providers (None = all enabled)
        detailed: Render full issue details in formatted reports
        analysis_options: Options forwarded to providers
    """

    analysis_type: AnalysisType | None = None
    include_extensions: list[str] | None = None
    severity_filter: Severity | None = None
    category_filter: list[IssueCategory] | None = None
    enable_third_party: bool = False
    provider_ids: list[str] | None = None
    detailed: bool = True
    analysis_options: AnalysisOptions = field(default_factory=AnalysisOptions)


def filter_issues(
    issues: list[Issue],
    min_severity: Severity | None = None,
    categories: list[IssueCategory] | None = None,
) -> list[Issue]:
    """Keep issues at or above ``min_severity`` whose category is allowed.

    Order is preserved and applying the same filter twice changes nothing.
    """
    filtered = issues
    if min_severity is not None:
        filtered = [i for i in filtered if i.severity.rank >= min_severity.rank]
    if categories:
        allowed = set(categories)
        filtered = [i for i in filtered if i.category in allowed]
    return list(filtered)
