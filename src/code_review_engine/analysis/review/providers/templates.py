"""Static descriptions of the built-in third-party providers."""

from dataclasses import dataclass, field
from typing import Any

from ..models import CodeReviewFeature


@dataclass(frozen=True)
class ProviderTemplate:
    """Immutable description of a provider and the settings it needs.

    ``required_config`` and ``optional_config`` use wire (camelCase) names.
    """

    provider_id: str
    name: str
    description: str
    supported_languages: frozenset[str]
    supported_features: frozenset[CodeReviewFeature]
    required_config: tuple[str, ...]
    optional_config: tuple[str, ...] = ()
    config_example: dict[str, Any] = field(default_factory=dict)
    documentation_url: str | None = None


SONARQUBE_TEMPLATE = ProviderTemplate(
    provider_id="sonarqube",
    name="SonarQube",
    description="Comprehensive static code analysis platform",
    supported_languages=frozenset(
        {
            "javascript",
            "typescript",
            "java",
            "python",
            "csharp",
            "cpp",
            "go",
            "php",
            "swift",
            "kotlin",
        }
    ),
    supported_features=frozenset(
        {
            CodeReviewFeature.SECURITY_SCAN,
            CodeReviewFeature.QUALITY_ANALYSIS,
            CodeReviewFeature.COMPLEXITY_ANALYSIS,
            CodeReviewFeature.VULNERABILITY_SCAN,
            CodeReviewFeature.DEPENDENCY_CHECK,
        }
    ),
    required_config=("endpoint", "apiKey"),
    optional_config=("timeout", "retryAttempts", "customHeaders", "projectKey"),
    config_example={
        "endpoint": "https://sonarqube.example.com",
        "apiKey": "your-sonarqube-token",
        "projectKey": "your-project-key",
        "timeout": 30000,
        "retryAttempts": 3,
    },
    documentation_url="https://docs.sonarqube.org/latest/extend/web-api/",
)

CODECLIMATE_TEMPLATE = ProviderTemplate(
    provider_id="codeclimate",
    name="CodeClimate",
    description="Automated code review for maintainability and quality",
    supported_languages=frozenset(
        {
            "javascript",
            "typescript",
            "ruby",
            "python",
            "php",
            "swift",
            "go",
            "scss",
            "coffeescript",
        }
    ),
    supported_features=frozenset(
        {
            CodeReviewFeature.QUALITY_ANALYSIS,
            CodeReviewFeature.COMPLEXITY_ANALYSIS,
            CodeReviewFeature.STYLE_CHECK,
        }
    ),
    required_config=("apiKey",),
    optional_config=("endpoint", "timeout", "retryAttempts", "repoId"),
    config_example={
        "apiKey": "your-codeclimate-token",
        "repoId": "your-repo-id",
        "timeout": 30000,
        "retryAttempts": 3,
    },
    documentation_url="https://developer.codeclimate.com/",
)

SEMGREP_TEMPLATE = ProviderTemplate(
    provider_id="semgrep",
    name="Semgrep",
    description="Static analysis tool for security and correctness",
    supported_languages=frozenset(
        {
            "javascript",
            "typescript",
            "python",
            "java",
            "go",
            "ruby",
            "php",
            "csharp",
            "scala",
        }
    ),
    supported_features=frozenset(
        {
            CodeReviewFeature.SECURITY_SCAN,
            CodeReviewFeature.VULNERABILITY_SCAN,
            CodeReviewFeature.QUALITY_ANALYSIS,
        }
    ),
    required_config=("apiKey",),
    optional_config=("endpoint", "timeout", "retryAttempts", "rules"),
    config_example={
        "apiKey": "your-semgrep-token",
        "endpoint": "https://semgrep.dev/api/v1",
        "timeout": 60000,
        "retryAttempts": 2,
    },
    documentation_url="https://semgrep.dev/docs/",
)

PROVIDER_TEMPLATES: dict[str, ProviderTemplate] = {
    template.provider_id: template
    for template in (SONARQUBE_TEMPLATE, CODECLIMATE_TEMPLATE, SEMGREP_TEMPLATE)
}
