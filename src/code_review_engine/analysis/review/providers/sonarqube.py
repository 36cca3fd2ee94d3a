"""SonarQube adapter."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ....config.defaults import DEFAULT_RETRY_BACKOFF_SECONDS
from ....core.exceptions import ProviderUnavailableError
from ..models import AnalysisOptions, FileInput, Issue, IssueCategory, Severity
from ..taxonomy import DEFAULT_CATEGORY, DEFAULT_SEVERITY, map_vocabulary
from .base import HttpReviewProvider
from .templates import SONARQUBE_TEMPLATE, ProviderTemplate

# Legacy severities plus the newer "impact" levels
SEVERITY_MAP: dict[str, Severity] = {
    "BLOCKER": Severity.CRITICAL,
    "CRITICAL": Severity.CRITICAL,
    "MAJOR": Severity.HIGH,
    "MINOR": Severity.MEDIUM,
    "INFO": Severity.LOW,
    "HIGH": Severity.HIGH,
    "MEDIUM": Severity.MEDIUM,
    "LOW": Severity.LOW,
}

# Issue types plus impact software qualities
CATEGORY_MAP: dict[str, IssueCategory] = {
    "BUG": IssueCategory.BUG,
    "VULNERABILITY": IssueCategory.SECURITY,
    "SECURITY_HOTSPOT": IssueCategory.SECURITY,
    "CODE_SMELL": IssueCategory.QUALITY,
    "SECURITY": IssueCategory.SECURITY,
    "RELIABILITY": IssueCategory.BUG,
    "MAINTAINABILITY": IssueCategory.MAINTAINABILITY,
}


class _TextRange(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start_line: int | None = Field(default=None, alias="startLine")
    end_line: int | None = Field(default=None, alias="endLine")
    start_offset: int | None = Field(default=None, alias="startOffset")
    end_offset: int | None = Field(default=None, alias="endOffset")


class _Impact(BaseModel):
    model_config = ConfigDict(extra="ignore")

    software_quality: str | None = Field(default=None, alias="softwareQuality")
    severity: str | None = None


class _SonarIssue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str | None = None
    rule: str | None = None
    severity: str | None = None
    type: str | None = None
    component: str | None = None
    message: str = ""
    line: int | None = None
    text_range: _TextRange | None = Field(default=None, alias="textRange")
    impacts: list[_Impact] = Field(default_factory=list)


class _SonarResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    issues: list[_SonarIssue] = Field(default_factory=list)


class SonarQubeProvider(HttpReviewProvider):
    """Submits files to a SonarQube server and maps its issues."""

    provider_id = "sonarqube"
    provider_name = "SonarQube"
    version = "1.0.0"

    HEALTH_PATH = "/api/system/status"
    ANALYZE_PATH = "/api/issues/search"

    def __init__(
        self,
        template: ProviderTemplate = SONARQUBE_TEMPLATE,
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
        payload: dict[str, Any] = {
            "files": [{"path": file.file_path, "content": file.content}],
            "language": file.language,
        }
        project_key = config.extra("projectKey")
        if project_key:
            payload["projectKey"] = project_key

        raw = await self._request("POST", self.ANALYZE_PATH, json=payload)
        try:
            response = _SonarResponse.model_validate(raw)
        except ValidationError as e:
            raise ProviderUnavailableError(
                f"SonarQube returned an unexpected payload: {e.error_count()} error(s)"
            ) from e

        return [self._to_issue(item, file.file_path) for item in response.issues], raw

    def _to_issue(self, item: _SonarIssue, file_path: str) -> Issue:
        impact = item.impacts[0] if item.impacts else None
        severity_value = item.severity or (impact.severity if impact else None)
        category_value = item.type or (impact.software_quality if impact else None)

        text_range = item.text_range
        line = item.line or (text_range.start_line if text_range else None) or 1
        column = None
        end_line = None
        end_column = None
        if text_range is not None:
            end_line = text_range.end_line
            if text_range.start_offset is not None:
                column = text_range.start_offset + 1
            if text_range.end_offset is not None:
                end_column = text_range.end_offset + 1

        return Issue(
            category=map_vocabulary(CATEGORY_MAP, category_value, DEFAULT_CATEGORY),
            severity=map_vocabulary(SEVERITY_MAP, severity_value, DEFAULT_SEVERITY),
            file=file_path,
            line=max(1, line),
            column=column,
            end_line=end_line,
            end_column=end_column,
            message=item.message or (item.rule or "SonarQube issue"),
            rule_id=item.rule,
            source=self.provider_id,
        )
