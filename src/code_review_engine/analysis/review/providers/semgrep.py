"""Semgrep adapter."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ....config.defaults import DEFAULT_RETRY_BACKOFF_SECONDS
from ....core.exceptions import ProviderUnavailableError
from ..models import (
    AnalysisOptions,
    CodeFix,
    FileInput,
    Issue,
    IssueCategory,
    Position,
    Severity,
)
from ..taxonomy import DEFAULT_CATEGORY, DEFAULT_SEVERITY, map_vocabulary
from .base import HttpReviewProvider
from .templates import SEMGREP_TEMPLATE, ProviderTemplate

# Rule severities plus the newer four-level scale
SEVERITY_MAP: dict[str, Severity] = {
    "ERROR": Severity.HIGH,
    "WARNING": Severity.MEDIUM,
    "INFO": Severity.LOW,
    "CRITICAL": Severity.CRITICAL,
    "HIGH": Severity.HIGH,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}

CATEGORY_MAP: dict[str, IssueCategory] = {
    "security": IssueCategory.SECURITY,
    "correctness": IssueCategory.BUG,
    "performance": IssueCategory.PERFORMANCE,
    "best-practice": IssueCategory.QUALITY,
    "maintainability": IssueCategory.MAINTAINABILITY,
    "portability": IssueCategory.QUALITY,
}

CONFIDENCE_MAP = {"HIGH": 0.9, "MEDIUM": 0.6, "LOW": 0.3}

DEFAULT_RULESET = "auto"


class _Position(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line: int = 1
    col: int = 1


class _Metadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    category: str | None = None
    confidence: str | None = None


class _Extra(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""
    severity: str | None = None
    fix: str | None = None
    metadata: _Metadata = Field(default_factory=_Metadata)


class _Finding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    check_id: str | None = None
    path: str | None = None
    start: _Position = Field(default_factory=_Position)
    end: _Position | None = None
    extra: _Extra = Field(default_factory=_Extra)


class _ScanResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[_Finding] = Field(default_factory=list)


class SemgrepProvider(HttpReviewProvider):
    """Submits files to the Semgrep scan API."""

    provider_id = "semgrep"
    provider_name = "Semgrep"
    version = "1.0.0"

    DEFAULT_ENDPOINT = "https://semgrep.dev/api/v1"
    HEALTH_PATH = "/me"
    ANALYZE_PATH = "/scan"

    def __init__(
        self,
        template: ProviderTemplate = SEMGREP_TEMPLATE,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS,
    ) -> None:
        super().__init__(template, transport=transport, retry_backoff=retry_backoff)

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._require_config().api_key}"}

    async def _analyze(
        self, file: FileInput, options: AnalysisOptions
    ) -> tuple[list[Issue], Any]:
        config = self._require_config()
        payload = {
            "files": [{"path": file.file_path, "content": file.content}],
            "language": file.language,
            "rules": config.extra("rules") or DEFAULT_RULESET,
        }

        raw = await self._request("POST", self.ANALYZE_PATH, json=payload)
        try:
            response = _ScanResponse.model_validate(raw)
        except ValidationError as e:
            raise ProviderUnavailableError(
                f"Semgrep returned an unexpected payload: {e.error_count()} error(s)"
            ) from e

        return [self._to_issue(item, file.file_path) for item in response.results], raw

    def _to_issue(self, item: _Finding, file_path: str) -> Issue:
        extra = item.extra
        start = item.start
        end = item.end

        fixes = []
        if extra.fix is not None:
            fix_end = end or start
            fixes.append(
                CodeFix(
                    description="Apply Semgrep autofix",
                    kind="replace",
                    start=Position(line=start.line, column=start.col),
                    end=Position(line=fix_end.line, column=fix_end.col),
                    new_text=extra.fix,
                )
            )

        confidence = None
        if extra.metadata.confidence:
            confidence = CONFIDENCE_MAP.get(extra.metadata.confidence.upper())

        return Issue(
            category=map_vocabulary(
                CATEGORY_MAP, extra.metadata.category, DEFAULT_CATEGORY
            ),
            severity=map_vocabulary(SEVERITY_MAP, extra.severity, DEFAULT_SEVERITY),
            file=file_path,
            line=max(1, start.line),
            column=start.col,
            end_line=end.line if end else None,
            end_column=end.col if end else None,
            message=extra.message or (item.check_id or "Semgrep finding"),
            rule_id=item.check_id,
            confidence=confidence,
            fixes=fixes,
            source=self.provider_id,
        )
