"""Mapping of external category/severity vocabularies onto the canonical enums.

Every string that enters the engine from outside (LLM output, vendor payloads,
CLI flags) goes through these helpers, so ``Issue.category`` and
``Issue.severity`` are always canonical members. Unknown values fall back to
``IssueCategory.QUALITY`` / ``Severity.MEDIUM``.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, TypeVar

from .models import IssueCategory, Severity

DEFAULT_CATEGORY = IssueCategory.QUALITY
DEFAULT_SEVERITY = Severity.MEDIUM

E = TypeVar("E", bound=Enum)

# Synonyms accepted from free-form sources such as LLM output
CATEGORY_SYNONYMS: dict[str, IssueCategory] = {
    "quality": IssueCategory.QUALITY,
    "code_smell": IssueCategory.QUALITY,
    "code-smell": IssueCategory.QUALITY,
    "best-practice": IssueCategory.QUALITY,
    "best_practice": IssueCategory.QUALITY,
    "security": IssueCategory.SECURITY,
    "vulnerability": IssueCategory.SECURITY,
    "performance": IssueCategory.PERFORMANCE,
    "style": IssueCategory.STYLE,
    "formatting": IssueCategory.STYLE,
    "bug": IssueCategory.BUG,
    "correctness": IssueCategory.BUG,
    "error": IssueCategory.BUG,
    "maintainability": IssueCategory.MAINTAINABILITY,
    "complexity": IssueCategory.MAINTAINABILITY,
}

SEVERITY_SYNONYMS: dict[str, Severity] = {
    "critical": Severity.CRITICAL,
    "blocker": Severity.CRITICAL,
    "high": Severity.HIGH,
    "major": Severity.HIGH,
    "error": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "warning": Severity.MEDIUM,
    "low": Severity.LOW,
    "minor": Severity.LOW,
    "info": Severity.INFO,
    "information": Severity.INFO,
    "informational": Severity.INFO,
    "note": Severity.INFO,
}


def map_vocabulary(table: Mapping[str, E], value: Any, default: E) -> E:
    """Look up a vendor value in a mapping table.

    Lookup is exact first, then case-insensitive. Anything that is not a
    non-empty string, or is missing from the table, maps to ``default``.

    Args:
        table: Vendor value -> canonical enum member
        value: Raw value from the external source
        default: Fallback member

    Returns:
        Canonical enum member
    """
    if not isinstance(value, str) or not value.strip():
        return default

    key = value.strip()
    if key in table:
        return table[key]

    lowered = key.lower()
    for candidate, member in table.items():
        if candidate.lower() == lowered:
            return member
    return default


def coerce_category(value: Any) -> IssueCategory:
    """Convert any external category value to an ``IssueCategory``."""
    if isinstance(value, IssueCategory):
        return value
    return map_vocabulary(CATEGORY_SYNONYMS, value, DEFAULT_CATEGORY)


def coerce_severity(value: Any) -> Severity:
    """Convert any external severity value to a ``Severity``."""
    if isinstance(value, Severity):
        return value
    return map_vocabulary(SEVERITY_SYNONYMS, value, DEFAULT_SEVERITY)
