"""Review orchestration engine."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from loguru import logger

from ...config.defaults import DEFAULT_REVIEW_EXTENSIONS, get_language_from_extension
from ...core.exceptions import (
    CodeReviewError,
    CompletionCapabilityUnavailableError,
    FileUnreadableError,
    TargetNotFoundError,
)
from ...core.file_discovery import FileDiscovery, read_source_file
from ...core.llm_client import CompletionCapability
from ..metrics import (
    build_statistics,
    compute_complexity,
    maintainability_index,
    non_blank_lines,
)
from ..reporters.markdown import render_markdown
from .ai_analyzer import AIAnalyzer
from .heuristics import HeuristicScanner
from .models import (
    AnalysisOptions,
    AnalysisStatistics,
    AnalysisType,
    Issue,
    ProviderResult,
    ReviewMetrics,
    ReviewOptions,
    ReviewResult,
    ReviewSummary,
    SkippedFile,
    filter_issues,
    utc_now_iso,
)
from .providers.base import ReviewProvider
from .registry import ProviderRegistry


class ReviewEventListener(Protocol):
    """Receives run lifecycle events."""

    def on_start(self, target: str) -> None: ...

    def on_complete(self, summary: ReviewSummary) -> None: ...

    def on_error(self, message: str) -> None: ...


@dataclass
class _ProviderSlot:
    """A provider selected for this run, or the reason it could not be built."""

    provider_id: str
    provider: ReviewProvider | None = None
    error: str | None = None


@dataclass
class _FileReview:
    issues: list[Issue]
    provider_results: list[ProviderResult]
    statistics: AnalysisStatistics
    loc: int
    complexity: int


@dataclass
class _RunState:
    issues: list[Issue] = field(default_factory=list)
    provider_results: list[ProviderResult] = field(default_factory=list)
    file_statistics: dict[str, AnalysisStatistics] = field(default_factory=dict)
    skipped_files: list[SkippedFile] = field(default_factory=list)
    loc: int = 0
    complexity: int = 0


class ReviewEngine:
    """Orchestrates heuristic, AI and third-party analysis of a file or directory.

    Pipeline per file:
    1. Heuristic scan (always)
    2. AI analysis (always) and enabled third-party providers, concurrently
    3. Merge in canonical order: heuristic, AI, providers in registration order
    4. Per-file statistics

    Filters are applied to the merged list last; the summary always reflects
    the filtered issues. The engine keeps no state between runs.
    """

    def __init__(
        self,
        completion: CompletionCapability | None,
        registry: ProviderRegistry | None = None,
        scanner: HeuristicScanner | None = None,
        listeners: list[ReviewEventListener] | None = None,
    ) -> None:
        """Initialize review engine.

        Args:
            completion: Completion capability for AI analysis (required to run)
            registry: Provider registry (no third-party analysis when None)
            scanner: Heuristic scanner (default rule set when None)
            listeners: Lifecycle event listeners
        """
        self.completion = completion
        self.registry = registry
        self.scanner = scanner or HeuristicScanner()
        self.ai_analyzer = AIAnalyzer(completion) if completion is not None else None
        self.listeners: list[ReviewEventListener] = list(listeners or [])

    def add_listener(self, listener: ReviewEventListener) -> None:
        self.listeners.append(listener)

    async def review(
        self, target: str | Path, options: ReviewOptions | None = None
    ) -> ReviewResult:
        """Run a review.

        Args:
            target: File or directory to review
            options: Review options

        Returns:
            ReviewResult with merged issues, metrics and provider results

        Raises:
            TargetNotFoundError: If the target is missing or unreadable
            CompletionCapabilityUnavailableError: If no completion capability is set
        """
        options = options or ReviewOptions()
        target_str = str(target)
        start_time = time.perf_counter()

        self._emit_start(target_str)
        logger.info(f"Starting review of {target_str}")

        try:
            result = await self._run(Path(target), target_str, options)
        except CodeReviewError as e:
            logger.error(f"Review of {target_str} failed: {e}")
            self._emit_error(str(e))
            raise

        result.duration_seconds = time.perf_counter() - start_time
        logger.info(
            f"Review of {target_str} complete: {result.files_analyzed} file(s), "
            f"{result.summary.total_issues} issue(s) in {result.duration_seconds:.2f}s"
        )
        self._emit_complete(result.summary)
        return result

    async def review_report(
        self, target: str | Path, options: ReviewOptions | None = None
    ) -> str:
        """Run a review and render it as a markdown report."""
        options = options or ReviewOptions()
        result = await self.review(target, options)
        return render_markdown(result, detailed=options.detailed)

    async def _run(
        self, path: Path, target_str: str, options: ReviewOptions
    ) -> ReviewResult:
        if self.ai_analyzer is None:
            raise CompletionCapabilityUnavailableError(
                "No completion capability configured; AI analysis cannot run"
            )
        if not path.exists():
            raise TargetNotFoundError(
                f"Review target not found: {target_str}", context={"target": target_str}
            )

        analysis_type = options.analysis_type or (
            AnalysisType.DIRECTORY if path.is_dir() else AnalysisType.FILE
        )
        if analysis_type is AnalysisType.FILE and not path.is_file():
            raise TargetNotFoundError(f"Not a file: {target_str}")
        if analysis_type is AnalysisType.DIRECTORY and not path.is_dir():
            raise TargetNotFoundError(f"Not a directory: {target_str}")

        slots = self._select_providers(options) if options.enable_third_party else []
        state = _RunState()

        if analysis_type is AnalysisType.FILE:
            try:
                content = read_source_file(path)
            except FileUnreadableError as e:
                raise TargetNotFoundError(str(e), context=e.context) from e
            review = await self._review_file(
                target_str, content, slots, options.analysis_options
            )
            self._merge_file(state, target_str, review)
            files_analyzed = 1
            merged_count = len(state.issues)
            metrics = ReviewMetrics(
                lines_of_code=state.loc,
                complexity=state.complexity,
                maintainability_index=maintainability_index(state.loc, state.complexity),
            )
        else:
            extensions = set(options.include_extensions or DEFAULT_REVIEW_EXTENSIONS)
            files = FileDiscovery(path, extensions).find_files()
            logger.info(f"Found {len(files)} file(s) to review in {target_str}")

            files_analyzed = 0
            for file_path in files:
                display_path = str(file_path)
                try:
                    content = read_source_file(file_path)
                except FileUnreadableError as e:
                    logger.warning(f"Skipping {display_path}: {e}")
                    state.skipped_files.append(SkippedFile(display_path, str(e)))
                    continue

                logger.debug(f"Reviewing {display_path}")
                review = await self._review_file(
                    display_path, content, slots, options.analysis_options
                )
                self._merge_file(state, display_path, review)
                files_analyzed += 1

            merged_count = len(state.issues)
            metrics = ReviewMetrics(
                lines_of_code=state.loc,
                complexity=state.complexity,
                maintainability_index=maintainability_index(
                    state.loc, state.complexity, issue_count=merged_count
                ),
            )

        issues = filter_issues(
            state.issues, options.severity_filter, options.category_filter
        )
        if len(issues) != merged_count:
            logger.debug(f"Filters kept {len(issues)} of {merged_count} issues")

        return ReviewResult(
            summary=ReviewSummary.from_issues(issues),
            issues=issues,
            metrics=metrics,
            provider_results=state.provider_results,
            target=target_str,
            analysis_type=analysis_type,
            files_analyzed=files_analyzed,
            skipped_files=state.skipped_files,
            file_statistics=state.file_statistics,
        )

    def _select_providers(self, options: ReviewOptions) -> list[_ProviderSlot]:
        """Build this run's provider instances in registration order."""
        if self.registry is None:
            logger.warning("Third-party analysis requested but no provider registry set")
            return []

        registered = self.registry.registered_ids()
        if options.provider_ids is not None:
            for provider_id in options.provider_ids:
                if provider_id not in registered:
                    logger.warning(f"Ignoring unknown provider '{provider_id}'")
            requested = set(options.provider_ids)
            selected = [pid for pid in registered if pid in requested]
        else:
            selected = self.registry.enabled_providers()

        slots = []
        for provider_id in selected:
            try:
                slots.append(
                    _ProviderSlot(provider_id, self.registry.create_provider(provider_id))
                )
            except CodeReviewError as e:
                logger.warning(f"Provider {provider_id} unavailable for this run: {e}")
                slots.append(_ProviderSlot(provider_id, error=str(e)))
        return slots

    async def _review_file(
        self,
        file_path: str,
        content: str,
        slots: list[_ProviderSlot],
        analysis_options: AnalysisOptions,
    ) -> _FileReview:
        language = get_language_from_extension(Path(file_path).suffix)

        heuristic_issues = self.scanner.scan(content, language, file_path)
        ai_issues, *provider_results = await asyncio.gather(
            self.ai_analyzer.analyze(content, language, file_path),
            *(
                self._run_provider(slot, file_path, content, analysis_options)
                for slot in slots
            ),
        )

        issues = list(heuristic_issues) + list(ai_issues)
        for result in provider_results:
            issues.extend(result.issues)

        return _FileReview(
            issues=issues,
            provider_results=list(provider_results),
            statistics=build_statistics(content, issues),
            loc=non_blank_lines(content),
            complexity=compute_complexity(content),
        )

    async def _run_provider(
        self,
        slot: _ProviderSlot,
        file_path: str,
        content: str,
        analysis_options: AnalysisOptions,
    ) -> ProviderResult:
        provider = slot.provider
        if provider is None:
            return _failed_result(slot.provider_id, "unknown", file_path, slot.error or "")

        timeout = provider.timeout_seconds
        try:
            return await asyncio.wait_for(
                provider.analyze_file(file_path, content, analysis_options),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            error = f"Provider {slot.provider_id} timed out after {timeout:g}s"
        except Exception as e:
            # Isolate provider failures so one vendor cannot fail the run
            error = str(e) or type(e).__name__

        logger.warning(f"Provider {slot.provider_id} failed on {file_path}: {error}")
        return _failed_result(slot.provider_id, provider.version, file_path, error)

    @staticmethod
    def _merge_file(state: _RunState, file_path: str, review: _FileReview) -> None:
        state.issues.extend(review.issues)
        state.provider_results.extend(review.provider_results)
        state.file_statistics[file_path] = review.statistics
        state.loc += review.loc
        state.complexity += review.complexity

    def _emit_start(self, target: str) -> None:
        for listener in self.listeners:
            listener.on_start(target)

    def _emit_complete(self, summary: ReviewSummary) -> None:
        for listener in self.listeners:
            listener.on_complete(summary)

    def _emit_error(self, message: str) -> None:
        for listener in self.listeners:
            listener.on_error(message)


def _failed_result(
    provider_id: str, version: str, file_path: str, error: str
) -> ProviderResult:
    return ProviderResult(
        provider_id=provider_id,
        provider_version=version,
        analysis_id=uuid.uuid4().hex,
        timestamp=utc_now_iso(),
        processing_time_ms=0.0,
        file=file_path,
        is_failure=True,
        error=error,
    )
