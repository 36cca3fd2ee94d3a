"""Code Review Engine - multi-source code review with heuristic, AI and third-party analysis."""

__version__ = "0.3.0"
__author__ = "Code Review Engine Contributors"

from .analysis.review.engine import ReviewEngine, ReviewEventListener
from .analysis.review.models import (
    Issue,
    IssueCategory,
    ReviewOptions,
    ReviewResult,
    Severity,
)
from .analysis.review.registry import ProviderRegistry, create_default_registry
from .core.exceptions import CodeReviewError

__all__ = [
    "CodeReviewError",
    "Issue",
    "IssueCategory",
    "ProviderRegistry",
    "ReviewEngine",
    "ReviewEventListener",
    "ReviewOptions",
    "ReviewResult",
    "Severity",
    "__version__",
    "create_default_registry",
]
