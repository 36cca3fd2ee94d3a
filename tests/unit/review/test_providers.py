"""Unit tests for the third-party provider adapters.

Vendor APIs are replaced with ``httpx.MockTransport`` handlers.
"""

import json
from typing import Any

import httpx
import pytest

from code_review_engine.analysis.review.models import (
    AnalysisOptions,
    CodeReviewFeature,
    FileInput,
    IssueCategory,
    Position,
    Severity,
)
from code_review_engine.analysis.review.providers import (
    CodeClimateProvider,
    ProviderConfig,
    RateLimits,
    SemgrepProvider,
    SlidingWindowRateLimiter,
    SonarQubeProvider,
)
from code_review_engine.core.exceptions import (
    AuthError,
    ConfigInvalidError,
    NotConfiguredError,
    ProviderRequestError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitedError,
)


class RecordingHandler:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.requests)

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


def _sonar(handler, **config: Any) -> SonarQubeProvider:
    provider = SonarQubeProvider(
        transport=httpx.MockTransport(handler), retry_backoff=0
    )
    provider.configure(
        ProviderConfig.model_validate(
            {
                "endpoint": "https://sonar.example.com/",
                "apiKey": "squ_test_token",
                "retryAttempts": 0,
                **config,
            }
        )
    )
    return provider


SONAR_PAYLOAD = {
    "issues": [
        {
            "key": "k1",
            "rule": "javascript:S2068",
            "severity": "BLOCKER",
            "type": "VULNERABILITY",
            "message": "Hardcoded credential",
            "line": 5,
            "textRange": {
                "startLine": 5,
                "endLine": 5,
                "startOffset": 4,
                "endOffset": 20,
            },
        },
        {
            "rule": "javascript:S117",
            "type": "CODE_SMELL",
            "message": "Rename this variable",
            "impacts": [{"softwareQuality": "MAINTAINABILITY", "severity": "LOW"}],
        },
        {"rule": "javascript:S999", "severity": "WEIRD", "type": "ODD", "message": "?"},
    ]
}


class TestSonarQube:
    @pytest.mark.asyncio
    async def test_analyze_file_maps_issues(self):
        handler = RecordingHandler(httpx.Response(200, json=SONAR_PAYLOAD))
        provider = _sonar(handler, projectKey="my-project")

        result = await provider.analyze_file("src/app.js", "const a = 1;\n")

        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://sonar.example.com/api/issues/search"
        assert request.headers["Authorization"] == "Bearer squ_test_token"
        assert handler.body() == {
            "files": [{"path": "src/app.js", "content": "const a = 1;\n"}],
            "language": "javascript",
            "projectKey": "my-project",
        }

        assert result.provider_id == "sonarqube"
        assert result.file == "src/app.js"
        assert not result.is_failure
        assert result.raw_response == SONAR_PAYLOAD

        first, second, third = result.issues
        assert first.category is IssueCategory.SECURITY
        assert first.severity is Severity.CRITICAL
        assert (first.line, first.column, first.end_line, first.end_column) == (5, 5, 5, 21)
        assert first.rule_id == "javascript:S2068"
        assert first.source == "sonarqube"
        assert first.file == "src/app.js"

        assert second.category is IssueCategory.QUALITY
        assert second.severity is Severity.LOW
        assert second.line == 1

        assert third.category is IssueCategory.QUALITY
        assert third.severity is Severity.MEDIUM

        assert result.statistics.issues_by_severity[Severity.CRITICAL] == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        handler = RecordingHandler(
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json={"issues": []}),
        )
        provider = _sonar(handler, retryAttempts=3)

        result = await provider.analyze_file("a.py", "x = 1\n")

        assert handler.calls == 3
        assert result.issues == []

    @pytest.mark.asyncio
    async def test_gives_up_after_retry_budget(self):
        handler = RecordingHandler(httpx.Response(500))
        provider = _sonar(handler, retryAttempts=2)

        with pytest.raises(ProviderUnavailableError):
            await provider.analyze_file("a.py", "x = 1\n")
        assert handler.calls == 3

    @pytest.mark.asyncio
    async def test_negative_retry_budget_still_sends_one_request(self):
        handler = RecordingHandler(httpx.Response(503))
        provider = _sonar(handler)

        with pytest.raises(ProviderUnavailableError, match="server error"):
            await provider._request("GET", "/api/server/version", retries=-2)
        assert handler.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "error_type"),
        [
            (401, AuthError),
            (403, AuthError),
            (429, RateLimitedError),
            (400, ProviderRequestError),
            (404, ProviderRequestError),
        ],
    )
    async def test_client_errors_are_not_retried(self, status_code, error_type):
        handler = RecordingHandler(httpx.Response(status_code, text="nope"))
        provider = _sonar(handler, retryAttempts=3)

        with pytest.raises(error_type):
            await provider.analyze_file("a.py", "x = 1\n")
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_timeout_raises_provider_timeout(self):
        request = httpx.Request("POST", "https://sonar.example.com")
        handler = RecordingHandler(httpx.ReadTimeout("slow", request=request))
        provider = _sonar(handler, retryAttempts=1)

        with pytest.raises(ProviderTimeoutError):
            await provider.analyze_file("a.py", "x = 1\n")
        assert handler.calls == 2

    @pytest.mark.asyncio
    async def test_non_json_body_is_unavailable(self):
        handler = RecordingHandler(httpx.Response(200, text="<html>maintenance</html>"))
        provider = _sonar(handler)

        with pytest.raises(ProviderUnavailableError):
            await provider.analyze_file("a.py", "x = 1\n")

    @pytest.mark.asyncio
    async def test_unexpected_payload_shape_is_unavailable(self):
        handler = RecordingHandler(httpx.Response(200, json={"issues": "none"}))
        provider = _sonar(handler)

        with pytest.raises(ProviderUnavailableError):
            await provider.analyze_file("a.py", "x = 1\n")

    @pytest.mark.asyncio
    async def test_custom_headers_are_sent(self):
        handler = RecordingHandler(httpx.Response(200, json={"issues": []}))
        provider = _sonar(handler, customHeaders={"X-Team": "core"})

        await provider.analyze_file("a.py", "x = 1\n")

        assert handler.requests[0].headers["X-Team"] == "core"

    @pytest.mark.asyncio
    async def test_options_filter_results(self):
        handler = RecordingHandler(httpx.Response(200, json=SONAR_PAYLOAD))
        provider = _sonar(handler)

        result = await provider.analyze_file(
            "src/app.js",
            "x",
            AnalysisOptions(
                review_types=[IssueCategory.SECURITY, IssueCategory.QUALITY],
                exclude_rules=["javascript:S117"],
                severity_filter=[Severity.CRITICAL],
            ),
        )

        assert [i.rule_id for i in result.issues] == ["javascript:S2068"]

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_before_any_request(self):
        handler = RecordingHandler(httpx.Response(200, json={"status": "UP"}))
        provider = SonarQubeProvider(transport=httpx.MockTransport(handler))

        with pytest.raises(ConfigInvalidError) as exc_info:
            await provider.initialize(
                ProviderConfig(endpoint="https://sonar.example.com")
            )

        assert exc_info.value.context["missing"] == ["apiKey"]
        assert handler.calls == 0

    @pytest.mark.asyncio
    async def test_initialize_checks_health(self):
        handler = RecordingHandler(httpx.Response(200, json={"status": "UP"}))
        provider = SonarQubeProvider(transport=httpx.MockTransport(handler))

        await provider.initialize(
            ProviderConfig(endpoint="https://sonar.example.com", api_key="squ_test_token")
        )

        assert handler.calls == 1
        assert handler.requests[0].url.path == "/api/system/status"

    @pytest.mark.asyncio
    async def test_initialize_fails_when_unhealthy(self):
        handler = RecordingHandler(httpx.Response(500))
        provider = SonarQubeProvider(transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderUnavailableError):
            await provider.initialize(
                ProviderConfig(
                    endpoint="https://sonar.example.com", api_key="squ_test_token"
                )
            )
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_health_check_never_raises(self):
        request = httpx.Request("GET", "https://sonar.example.com")
        handler = RecordingHandler(httpx.ConnectError("refused", request=request))
        provider = _sonar(handler, retryAttempts=3)

        status = await provider.health_check()

        assert status.is_healthy is False
        assert "unreachable" in status.error_message
        assert status.response_time_ms >= 0
        assert handler.calls == 1

    @pytest.mark.asyncio
    async def test_analyze_without_configuration(self):
        provider = SonarQubeProvider()

        with pytest.raises(NotConfiguredError):
            await provider.analyze_file("a.py", "x")

    @pytest.mark.asyncio
    async def test_local_rate_limit(self):
        handler = RecordingHandler(httpx.Response(200, json={"issues": []}))
        provider = _sonar(handler, rateLimits={"requestsPerMinute": 1})

        await provider.analyze_file("a.py", "x")
        with pytest.raises(RateLimitedError):
            await provider.analyze_file("b.py", "x")
        assert handler.calls == 1

    def test_template_capabilities(self):
        provider = SonarQubeProvider()

        assert "javascript" in provider.get_supported_languages()
        assert CodeReviewFeature.SECURITY_SCAN in provider.get_supported_features()


def _codeclimate(handler, **config: Any) -> CodeClimateProvider:
    provider = CodeClimateProvider(
        transport=httpx.MockTransport(handler), retry_backoff=0
    )
    provider.configure(
        ProviderConfig.model_validate(
            {"apiKey": "cc_token_12345", "retryAttempts": 0, **config}
        )
    )
    return provider


class TestCodeClimate:
    @pytest.mark.asyncio
    async def test_analyze_file_maps_json_api_document(self):
        payload = {
            "data": [
                {
                    "id": "i1",
                    "attributes": {
                        "categories": ["Bug Risk"],
                        "severity": "major",
                        "location": {
                            "start_line": 7,
                            "start_column": 3,
                            "end_line": 8,
                            "end_column": 1,
                        },
                        "description": "Possible null dereference",
                        "remediation_points": 50000,
                        "check_name": "null-check",
                    },
                },
                {
                    "attributes": {
                        "categories": ["Clarity"],
                        "severity": "info",
                        "description": "Unclear naming",
                        "confidence": 0.8,
                    }
                },
            ]
        }
        handler = RecordingHandler(httpx.Response(200, json=payload))
        provider = _codeclimate(handler, repoId="r1")

        result = await provider.analyze_file("lib/util.rb", "def x; end\n")

        request = handler.requests[0]
        assert str(request.url) == "https://api.codeclimate.com/v1/repos/analysis"
        assert request.headers["Authorization"] == "Token cc_token_12345"
        assert request.headers["Content-Type"] == "application/vnd.api+json"
        assert handler.body() == {
            "data": {
                "type": "analysis",
                "attributes": {
                    "file_path": "lib/util.rb",
                    "content": "def x; end\n",
                    "repo_id": "r1",
                },
            }
        }

        first, second = result.issues
        assert first.category is IssueCategory.BUG
        assert first.severity is Severity.HIGH
        assert (first.line, first.column, first.end_line, first.end_column) == (7, 3, 8, 1)
        assert first.suggestion == "Estimated effort: 50000 points"
        assert first.confidence == 0.5
        assert first.rule_id == "null-check"
        assert first.source == "codeclimate"

        assert second.category is IssueCategory.QUALITY
        assert second.severity is Severity.LOW
        assert second.line == 1
        assert second.suggestion is None
        assert second.confidence == 0.8

    @pytest.mark.asyncio
    async def test_non_list_data_has_no_issues(self):
        handler = RecordingHandler(httpx.Response(200, json={"data": {"id": "x"}}))
        provider = _codeclimate(handler)

        result = await provider.analyze_file("a.py", "x")

        assert result.issues == []
        assert not result.is_failure

    @pytest.mark.asyncio
    async def test_health_check_uses_user_endpoint(self):
        handler = RecordingHandler(httpx.Response(200, json={"data": {}}))
        provider = _codeclimate(handler, endpoint="https://cc.internal.example")

        status = await provider.health_check()

        assert status.is_healthy is True
        assert str(handler.requests[0].url) == "https://cc.internal.example/v1/user"


def _semgrep(handler, **config: Any) -> SemgrepProvider:
    provider = SemgrepProvider(transport=httpx.MockTransport(handler), retry_backoff=0)
    provider.configure(
        ProviderConfig.model_validate(
            {"apiKey": "sg_token_12345", "retryAttempts": 0, **config}
        )
    )
    return provider


class TestSemgrep:
    @pytest.mark.asyncio
    async def test_analyze_file_maps_results_and_fixes(self):
        payload = {
            "results": [
                {
                    "check_id": "python.lang.security.audit.eval-detected",
                    "path": "app.py",
                    "start": {"line": 4, "col": 5},
                    "end": {"line": 4, "col": 20},
                    "extra": {
                        "message": "Detected use of eval",
                        "severity": "ERROR",
                        "fix": "ast.literal_eval(data)",
                        "metadata": {"category": "security", "confidence": "HIGH"},
                    },
                },
                {
                    "check_id": "custom.rule",
                    "start": {"line": 9, "col": 1},
                    "extra": {
                        "message": "",
                        "severity": "INFO",
                        "metadata": {"category": "unknown-category"},
                    },
                },
            ]
        }
        handler = RecordingHandler(httpx.Response(200, json=payload))
        provider = _semgrep(handler)

        result = await provider.analyze_file("app.py", "eval(data)\n")

        request = handler.requests[0]
        assert str(request.url) == "https://semgrep.dev/api/v1/scan"
        assert request.headers["Authorization"] == "Bearer sg_token_12345"
        assert handler.body()["rules"] == "auto"
        assert handler.body()["language"] == "python"

        first, second = result.issues
        assert first.category is IssueCategory.SECURITY
        assert first.severity is Severity.HIGH
        assert first.confidence == 0.9
        assert (first.line, first.column, first.end_line, first.end_column) == (4, 5, 4, 20)
        assert len(first.fixes) == 1
        fix = first.fixes[0]
        assert fix.kind == "replace"
        assert fix.start == Position(4, 5)
        assert fix.end == Position(4, 20)
        assert fix.new_text == "ast.literal_eval(data)"

        assert second.message == "custom.rule"
        assert second.category is IssueCategory.QUALITY
        assert second.severity is Severity.LOW
        assert second.confidence is None
        assert second.end_line is None
        assert second.fixes == []

    @pytest.mark.asyncio
    async def test_configured_rules_are_sent(self):
        handler = RecordingHandler(httpx.Response(200, json={"results": []}))
        provider = _semgrep(handler, rules="p/security-audit")

        await provider.analyze_file("app.py", "x = 1\n")

        assert handler.body()["rules"] == "p/security-audit"

    @pytest.mark.asyncio
    async def test_analyze_batch_reports_partial_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            path = json.loads(request.content)["files"][0]["path"]
            if path == "bad.py":
                return httpx.Response(400, text="unsupported")
            return httpx.Response(200, json={"results": []})

        provider = SemgrepProvider(transport=httpx.MockTransport(handler))
        provider.configure(ProviderConfig(api_key="sg_token_12345", retry_attempts=0))

        batch = await provider.analyze_batch(
            [FileInput("good.py", "x = 1\n"), FileInput("bad.py", "y = 2\n")]
        )

        assert batch.provider_id == "semgrep"
        assert batch.total_files == 2
        assert batch.processed_files == 1
        assert [r.file for r in batch.results] == ["good.py"]
        assert len(batch.failed_files) == 1
        assert batch.failed_files[0].file_path == "bad.py"
        assert batch.failed_files[0].error_code == "ProviderRequestError"
        assert batch.overall_statistics.total_lines == 1


class TestSlidingWindowRateLimiter:
    def test_minute_window(self):
        now = [1000.0]
        limiter = SlidingWindowRateLimiter(
            RateLimits(requests_per_minute=2), clock=lambda: now[0]
        )

        limiter.acquire()
        limiter.acquire()
        with pytest.raises(RateLimitedError):
            limiter.acquire()

        now[0] += 61
        limiter.acquire()

    def test_day_window(self):
        now = [0.0]
        limiter = SlidingWindowRateLimiter(
            RateLimits(requests_per_day=1), clock=lambda: now[0]
        )

        limiter.acquire()
        now[0] += 3600
        with pytest.raises(RateLimitedError):
            limiter.acquire()

        now[0] += 86400
        limiter.acquire()

    def test_no_limits(self):
        limiter = SlidingWindowRateLimiter(RateLimits())
        for _ in range(100):
            limiter.acquire()
