"""Provider interface and the shared HTTP adapter base."""

from __future__ import annotations

import asyncio
import time
import uuid
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from ....config.defaults import (
    DEFAULT_PROVIDER_TIMEOUT_MS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    get_language_from_extension,
)
from ....core.exceptions import (
    AuthError,
    ConfigInvalidError,
    NotConfiguredError,
    ProviderError,
    ProviderRequestError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    RateLimitedError,
)
from ...metrics import aggregate_statistics, build_statistics
from ..models import (
    AnalysisOptions,
    BatchResult,
    CodeReviewFeature,
    FileError,
    FileInput,
    Issue,
    ProviderHealthStatus,
    ProviderResult,
    utc_now_iso,
)
from .config import ProviderConfig, RateLimits
from .templates import ProviderTemplate


class SlidingWindowRateLimiter:
    """Client-side request budget over rolling minute and day windows."""

    MINUTE = 60.0
    DAY = 86400.0

    def __init__(
        self,
        limits: RateLimits,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limits = limits
        self._clock = clock
        self._minute: deque[float] = deque()
        self._day: deque[float] = deque()

    def acquire(self) -> None:
        """Record one request.

        Raises:
            RateLimitedError: If either window is already full
        """
        now = self._clock()
        self._evict(self._minute, now - self.MINUTE)
        self._evict(self._day, now - self.DAY)

        per_minute = self.limits.requests_per_minute
        per_day = self.limits.requests_per_day
        if per_minute is not None and len(self._minute) >= per_minute:
            raise RateLimitedError(
                f"Local rate limit of {per_minute} requests per minute reached"
            )
        if per_day is not None and len(self._day) >= per_day:
            raise RateLimitedError(
                f"Local rate limit of {per_day} requests per day reached"
            )

        self._minute.append(now)
        self._day.append(now)

    @staticmethod
    def _evict(window: deque[float], cutoff: float) -> None:
        while window and window[0] <= cutoff:
            window.popleft()


class ReviewProvider(ABC):
    """A third-party analysis provider.

    Lifecycle: ``configure``/``initialize`` once, then any number of
    ``analyze_file``/``analyze_batch`` calls. The config object handed in is
    never mutated.
    """

    provider_id: str = ""
    provider_name: str = ""
    version: str = "1.0.0"

    def __init__(self, template: ProviderTemplate) -> None:
        self.template = template
        self.config: ProviderConfig | None = None

    @property
    def timeout_seconds(self) -> float:
        """Deadline for one call, including its retries."""
        if self.config is None:
            return DEFAULT_PROVIDER_TIMEOUT_MS / 1000.0
        return self.config.timeout_seconds

    def configure(self, config: ProviderConfig) -> None:
        """Validate required settings and attach the config.

        Raises:
            ConfigInvalidError: If a required setting is missing or empty
        """
        missing = [
            name for name in self.template.required_config if not config.get_field(name)
        ]
        if missing:
            raise ConfigInvalidError(
                f"Missing required configuration for {self.provider_id}: "
                f"{', '.join(missing)}",
                context={"provider_id": self.provider_id, "missing": missing},
            )
        self.config = config

    async def initialize(self, config: ProviderConfig) -> None:
        """Configure the provider and confirm it is reachable.

        Raises:
            ConfigInvalidError: If required settings are missing (no request is made)
            ProviderUnavailableError: If the health check fails
        """
        self.configure(config)
        health = await self.health_check()
        if not health.is_healthy:
            raise ProviderUnavailableError(
                f"Provider initialization failed: {health.error_message}",
                context={"provider_id": self.provider_id},
            )
        logger.info(f"Initialized provider {self.provider_id}")

    def get_supported_languages(self) -> frozenset[str]:
        return self.template.supported_languages

    def get_supported_features(self) -> frozenset[CodeReviewFeature]:
        return self.template.supported_features

    @abstractmethod
    async def analyze_file(
        self, file_path: str, content: str, options: AnalysisOptions | None = None
    ) -> ProviderResult:
        """Analyze one file.

        Raises:
            ProviderError: Any adapter-level failure
        """

    @abstractmethod
    async def health_check(self) -> ProviderHealthStatus:
        """Check provider health. Never raises."""

    async def analyze_batch(
        self, files: list[FileInput], options: AnalysisOptions | None = None
    ) -> BatchResult:
        """Analyze several files; per-file provider errors become ``FileError`` entries."""
        results: list[ProviderResult] = []
        failed: list[FileError] = []

        for file in files:
            try:
                results.append(
                    await self.analyze_file(file.file_path, file.content, options)
                )
            except ProviderError as e:
                logger.warning(
                    f"{self.provider_id} failed on {file.file_path}: {e}"
                )
                failed.append(
                    FileError(
                        file_path=file.file_path,
                        error=str(e),
                        error_code=type(e).__name__,
                    )
                )

        return BatchResult(
            provider_id=self.provider_id,
            batch_id=uuid.uuid4().hex,
            timestamp=utc_now_iso(),
            total_files=len(files),
            processed_files=len(results),
            failed_files=failed,
            results=results,
            overall_statistics=aggregate_statistics(r.statistics for r in results),
        )


class HttpReviewProvider(ReviewProvider):
    """Base for providers reached over an HTTP API.

    Subclasses supply the endpoint layout, auth header and payload mapping;
    this class owns timeouts, retries, rate limiting and error translation.
    """

    DEFAULT_ENDPOINT: str | None = None
    HEALTH_PATH: str = ""
    CONTENT_TYPE = "application/json"

    def __init__(
        self,
        template: ProviderTemplate,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF_SECONDS,
    ) -> None:
        """Initialize the adapter.

        Args:
            template: Provider template
            transport: Optional httpx transport (``httpx.MockTransport`` in tests)
            retry_backoff: Base delay in seconds, doubled after each failed attempt
        """
        super().__init__(template)
        self._transport = transport
        self.retry_backoff = retry_backoff
        self._rate_limiter: SlidingWindowRateLimiter | None = None

    def configure(self, config: ProviderConfig) -> None:
        super().configure(config)
        self._rate_limiter = (
            SlidingWindowRateLimiter(config.rate_limits) if config.rate_limits else None
        )

    @property
    def base_url(self) -> str:
        endpoint = (self.config.endpoint if self.config else None) or self.DEFAULT_ENDPOINT
        if not endpoint:
            raise ConfigInvalidError(f"No endpoint configured for {self.provider_id}")
        return endpoint.rstrip("/")

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Vendor-specific authentication header(s)."""

    @abstractmethod
    async def _analyze(
        self, file: FileInput, options: AnalysisOptions
    ) -> tuple[list[Issue], Any]:
        """Call the vendor and map its payload; returns (issues, raw_response)."""

    def _require_config(self) -> ProviderConfig:
        if self.config is None:
            raise NotConfiguredError(f"Provider {self.provider_id} is not configured")
        return self.config

    def _headers(self) -> dict[str, str]:
        config = self._require_config()
        headers = {"Accept": "application/json", "Content-Type": self.CONTENT_TYPE}
        headers.update(config.custom_headers)
        headers.update(self.auth_headers())
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        retries: int | None = None,
    ) -> Any:
        """Send a request with retries and return the decoded JSON body.

        Network errors, timeouts and 5xx responses are retried with
        exponential backoff. 4xx responses are never retried.

        Raises:
            AuthError: HTTP 401/403
            RateLimitedError: HTTP 429 or local budget exhausted
            ProviderRequestError: Other 4xx
            ProviderTimeoutError: Timed out on every attempt
            ProviderUnavailableError: Network error or 5xx on every attempt
        """
        config = self._require_config()
        url = f"{self.base_url}{path}"
        attempts = 1 + max(0, config.retry_attempts if retries is None else retries)
        last_error: ProviderError | None = None

        for attempt in range(attempts):
            if attempt:
                delay = self.retry_backoff * (2 ** (attempt - 1))
                logger.debug(
                    f"{self.provider_id}: retry {attempt}/{attempts - 1} in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

            if self._rate_limiter is not None:
                self._rate_limiter.acquire()

            try:
                async with httpx.AsyncClient(
                    timeout=config.timeout_seconds, transport=self._transport
                ) as client:
                    response = await client.request(
                        method, url, headers=self._headers(), json=json, params=params
                    )
            except httpx.TimeoutException as e:
                last_error = ProviderTimeoutError(
                    f"{self.provider_name} API timeout after {config.timeout_seconds}s"
                )
                last_error.__cause__ = e
                continue
            except httpx.TransportError as e:
                last_error = ProviderUnavailableError(
                    f"{self.provider_name} API unreachable: {e}"
                )
                last_error.__cause__ = e
                continue

            status_code = response.status_code
            if status_code in (401, 403):
                raise AuthError(
                    f"{self.provider_name} rejected the API key (HTTP {status_code})",
                    context={"status_code": status_code},
                )
            if status_code == 429:
                raise RateLimitedError(
                    f"{self.provider_name} API rate limit exceeded",
                    context={"status_code": status_code},
                )
            if status_code >= 500:
                last_error = ProviderUnavailableError(
                    f"{self.provider_name} API server error (HTTP {status_code})",
                    context={"status_code": status_code},
                )
                continue
            if status_code >= 400:
                raise ProviderRequestError(
                    f"{self.provider_name} API error (HTTP {status_code}): "
                    f"{response.text[:200]}",
                    context={"status_code": status_code},
                )

            try:
                return response.json()
            except ValueError as e:
                raise ProviderUnavailableError(
                    f"{self.provider_name} returned a non-JSON response"
                ) from e

        logger.warning(f"{self.provider_id}: giving up after {attempts} attempt(s)")
        if last_error is None:
            last_error = ProviderUnavailableError(
                f"{self.provider_name} API request was not attempted"
            )
        raise last_error

    async def analyze_file(
        self, file_path: str, content: str, options: AnalysisOptions | None = None
    ) -> ProviderResult:
        self._require_config()
        options = options or AnalysisOptions()
        file = FileInput(
            file_path=file_path,
            content=content,
            language=get_language_from_extension(Path(file_path).suffix),
        )

        start_time = time.perf_counter()
        issues, raw = await self._analyze(file, options)
        issues = _apply_options(issues, options)
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            f"{self.provider_id} found {len(issues)} issues in {file_path} "
            f"({elapsed_ms:.0f}ms)"
        )
        return ProviderResult(
            provider_id=self.provider_id,
            provider_version=self.version,
            analysis_id=uuid.uuid4().hex,
            timestamp=utc_now_iso(),
            processing_time_ms=elapsed_ms,
            issues=issues,
            statistics=build_statistics(content, issues),
            file=file_path,
            raw_response=raw,
        )

    async def health_check(self) -> ProviderHealthStatus:
        start_time = time.perf_counter()
        try:
            await self._request("GET", self.HEALTH_PATH, retries=0)
        except Exception as e:
            return ProviderHealthStatus(
                is_healthy=False,
                response_time_ms=(time.perf_counter() - start_time) * 1000,
                last_checked=utc_now_iso(),
                error_message=str(e),
            )
        return ProviderHealthStatus(
            is_healthy=True,
            response_time_ms=(time.perf_counter() - start_time) * 1000,
            last_checked=utc_now_iso(),
        )


def _apply_options(issues: list[Issue], options: AnalysisOptions) -> list[Issue]:
    if options.exclude_rules:
        excluded = set(options.exclude_rules)
        issues = [i for i in issues if i.rule_id not in excluded]
    if options.review_types:
        issues = [i for i in issues if i.category in options.review_types]
    if options.severity_filter:
        issues = [i for i in issues if i.severity in options.severity_filter]
    return issues
