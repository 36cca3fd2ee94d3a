"""Multi-source code review.

Key Components:
- ReviewEngine (``engine``): orchestrates heuristic, AI and provider analysis
- HeuristicScanner (``heuristics``): local regex rule set
- AIAnalyzer (``ai_analyzer``): LLM review with tolerant JSON parsing
- ProviderRegistry (``registry``): validated, persisted provider configs
- Issue, ReviewResult, ReviewOptions: data structures shared by all of them

Usage:
    from code_review_engine import ReviewEngine, ReviewOptions, create_default_registry

    engine = ReviewEngine(llm_client, create_default_registry(store))
    result = await engine.review("src/", ReviewOptions(enable_third_party=True))

    for issue in result.issues:
        print(f"{issue.severity.value}: {issue.file}:{issue.line} {issue.message}")
"""

from .models import (
    AnalysisOptions,
    AnalysisType,
    Issue,
    IssueCategory,
    ProviderResult,
    ReviewOptions,
    ReviewResult,
    ReviewSummary,
    Severity,
    filter_issues,
)
from .taxonomy import coerce_category, coerce_severity

__all__ = [
    "AnalysisOptions",
    "AnalysisType",
    "Issue",
    "IssueCategory",
    "ProviderResult",
    "ReviewOptions",
    "ReviewResult",
    "ReviewSummary",
    "Severity",
    "coerce_category",
    "coerce_severity",
    "filter_issues",
]
