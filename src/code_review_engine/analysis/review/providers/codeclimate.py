"""CodeClimate adapter (JSON:API)."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ....config.defaults import DEFAULT_RETRY_BACKOFF_SECONDS
from ....core.exceptions import ProviderUnavailableError
from ..models import AnalysisOptions, FileInput, Issue, IssueCategory, Severity
from ..taxonomy import DEFAULT_CATEGORY, DEFAULT_SEVERITY, map_vocabulary
from .base import HttpReviewProvider
from .templates import CODECLIMATE_TEMPLATE, ProviderTemplate

SEVERITY_MAP: dict[str, Severity] = {
    "blocker": Severity.CRITICAL,
    "critical": Severity.CRITICAL,
    "major": Severity.HIGH,
    "minor": Severity.MEDIUM,
    "info": Severity.LOW,
}

CATEGORY_MAP: dict[str, IssueCategory] = {
    "Bug Risk": IssueCategory.BUG,
    "Clarity": IssueCategory.QUALITY,
    "Compatibility": IssueCategory.QUALITY,
    "Complexity": IssueCategory.QUALITY,
    "Duplication": IssueCategory.QUALITY,
    "Performance": IssueCategory.PERFORMANCE,
    "Security": IssueCategory.SECURITY,
    "Style": IssueCategory.STYLE,
}

# Reported when the vendor omits a confidence value
DEFAULT_CONFIDENCE = 0.5


class _Location(BaseModel):
    model_config = ConfigDict(extra="ignore")

    start_line: int | None = None
    start_column: int | None = None
    end_line: int | None = None
    end_column: int | None = None


class _Attributes(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categories: list[str] = Field(default_factory=list)
    severity: str | None = None
    location: _Location | None = None
    description: str | None = None
    remediation_points: int | None = None
    check_name: str | None = None
    confidence: float | None = None


class _Resource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    attributes: _Attributes = Field(default_factory=_Attributes)


class _Document(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[_Resource] = Field(default_factory=list)


class CodeClimateProvider(HttpReviewProvider):
    """Submits files to the CodeClimate analysis API."""

    provider_id = "codeclimate"
    provider_name = "CodeClimate"
    version = "1.0.0"

    DEFAULT_ENDPOINT = "https://api.codeclimate.com"
    HEALTH_PATH = "/v1/user"
    ANALYZE_PATH = "/v1/repos/analysis"
    CONTENT_TYPE = "application/vnd.api+json"

    def __init__(
        self,
        template: ProviderTemplate = CODECLIMATE_TEMPLATE,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS,
    ) -> None:
        super().__init__(template, transport=transport, retry_backoff=retry_backoff)

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Token {self._require_config().api_key}"}

    async def _analyze(
        self, file: FileInput, options: AnalysisOptions
    ) -> tuple[list[Issue], Any]:
        config = self._require_config()
        attributes: dict[str, Any] = {
            "file_path": file.file_path,
            "content": file.content,
        }
        repo_id = config.extra("repoId")
        if repo_id:
            attributes["repo_id"] = repo_id

        raw = await self._request(
            "POST",
            self.ANALYZE_PATH,
            json={"data": {"type": "analysis", "attributes": attributes}},
        )
        # A document whose data is not a list carries no issues
        if not isinstance(raw, dict) or not isinstance(raw.get("data"), list):
            return [], raw

        try:
            document = _Document.model_validate(raw)
        except ValidationError as e:
            raise ProviderUnavailableError(
                f"CodeClimate returned an unexpected payload: {e.error_count()} error(s)"
            ) from e

        return [self._to_issue(item, file.file_path) for item in document.data], raw

    def _to_issue(self, item: _Resource, file_path: str) -> Issue:
        attrs = item.attributes
        location = attrs.location or _Location()
        category = attrs.categories[0] if attrs.categories else None
        suggestion = (
            f"Estimated effort: {attrs.remediation_points} points"
            if attrs.remediation_points
            else None
        )
        confidence = (
            attrs.confidence if attrs.confidence is not None else DEFAULT_CONFIDENCE
        )

        return Issue(
            category=map_vocabulary(CATEGORY_MAP, category, DEFAULT_CATEGORY),
            severity=map_vocabulary(SEVERITY_MAP, attrs.severity, DEFAULT_SEVERITY),
            file=file_path,
            line=max(1, location.start_line or 1),
            column=location.start_column,
            end_line=location.end_line,
            end_column=location.end_column,
            message=attrs.description or "No description",
            suggestion=suggestion,
            rule_id=attrs.check_name,
            confidence=min(1.0, max(0.0, confidence)),
            source=self.provider_id,
        )
