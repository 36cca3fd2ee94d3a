"""LLM-backed file analyzer."""

import json
import math
import re
from typing import Any

from loguru import logger

from ...core.exceptions import CompletionError
from ...core.llm_client import CompletionCapability
from .models import Issue
from .prompts import format_file_content, get_file_review_prompt
from .taxonomy import coerce_category, coerce_severity

AI_SOURCE = "ai"


class AIAnalyzer:
    """Asks a completion capability to review one file and normalizes its answer.

    The analyzer never raises on bad model output or a failed completion: it
    logs a warning and returns no issues, so one flaky completion never fails
    a review run.
    """

    def __init__(self, completion: CompletionCapability) -> None:
        """Initialize AI analyzer.

        Args:
            completion: Object exposing ``async complete(system_prompt, user_content)``
        """
        self.completion = completion

    async def analyze(self, content: str, language: str, file_path: str) -> list[Issue]:
        """Analyze file content with the LLM.

        Args:
            content: File content
            language: Language name used in the prompt
            file_path: Path recorded on each issue

        Returns:
            Normalized issues (empty on any failure)
        """
        system_prompt = get_file_review_prompt(language)
        user_content = format_file_content(content, language, file_path)

        try:
            response = await self.completion.complete(system_prompt, user_content)
        except CompletionError as e:
            logger.warning(f"AI analysis failed for {file_path}: {e}")
            return []
        except Exception as e:
            # The completion capability is injected; isolate whatever it raises
            logger.warning(
                f"AI analysis failed for {file_path}: {type(e).__name__}: {e}"
            )
            return []

        if not isinstance(response, str):
            logger.warning(f"AI analysis of {file_path} returned no text")
            return []

        issues = self.parse_response(response, file_path)
        logger.debug(f"AI analysis of {file_path}: {len(issues)} issues")
        return issues

    def parse_response(self, llm_response: str, file_path: str) -> list[Issue]:
        """Parse issues from an LLM response.

        Handles JSON wrapped in markdown code fences, surrounding prose and
        trailing commas. Accepts ``{"issues": [...]}`` or a bare list.

        Args:
            llm_response: Raw LLM response text
            file_path: Path recorded on each issue

        Returns:
            List of issues (empty when the response cannot be parsed)
        """
        json_str = self._extract_json(llm_response or "")
        if not json_str:
            logger.warning(f"No JSON content found in LLM response for {file_path}")
            return []

        try:
            data = json.loads(self._clean_json_string(json_str))
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse JSON from LLM response: {e}")
            logger.debug(f"LLM response: {llm_response[:500]}")
            return []

        if isinstance(data, dict):
            items = data.get("issues")
        elif isinstance(data, list):
            items = data
        else:
            items = None

        if not isinstance(items, list):
            logger.warning(f"LLM response for {file_path} has no issue list")
            return []

        issues = []
        for item in items:
            try:
                issue = self._to_issue(item, file_path)
            except Exception as e:
                logger.warning(f"Skipping malformed AI finding for {file_path}: {e}")
                continue
            if issue is not None:
                issues.append(issue)
        return issues

    def _to_issue(self, item: Any, file_path: str) -> Issue | None:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object AI finding: {item!r}")
            return None

        message = item.get("message")
        if not isinstance(message, str) or not message.strip():
            logger.warning(f"Skipping AI finding without message: {item}")
            return None

        return Issue(
            category=coerce_category(item.get("category", item.get("type"))),
            severity=coerce_severity(item.get("severity")),
            file=file_path,
            line=_coerce_line(item.get("line")),
            message=message.strip(),
            description=_optional_str(item.get("description")),
            suggestion=_optional_str(item.get("suggestion")),
            rule_id=_optional_str(item.get("rule_id")),
            confidence=_coerce_confidence(item.get("confidence")),
            source=AI_SOURCE,
        )

    def _extract_json(self, llm_response: str) -> str:
        # Fenced block first (```json or bare ```), then the outermost JSON-like span
        fence = re.search(r"```(?:json)?\s*\n(.*?)(?:\n```|\Z)", llm_response, re.DOTALL)
        if fence:
            return fence.group(1).strip()

        json_match = re.search(r"(\[.*\]|\{.*\})", llm_response, re.DOTALL)
        if json_match:
            return json_match.group(1).strip()

        return llm_response.strip()

    def _clean_json_string(self, json_str: str) -> str:
        """Clean common JSON formatting issues from LLM responses.

        Args:
            json_str: Raw JSON string from LLM

        Returns:
            Cleaned JSON string
        """
        json_str = json_str.strip()

        # Remove any trailing comma before closing brackets (common LLM mistake)
        json_str = re.sub(r",(\s*[}\]])", r"\1", json_str)

        def escape_newlines_in_strings(match: re.Match[str]) -> str:
            return re.sub(r"(?<!\\)\n", r"\\n", match.group(0))

        # Unescaped newlines inside string values
        json_str = re.sub(r'"(?:[^"\\]|\\.)*"', escape_newlines_in_strings, json_str)

        return json_str


def _coerce_line(value: Any) -> int:
    try:
        line = int(value)
    except (TypeError, ValueError, OverflowError):
        # NaN raises ValueError, infinities raise OverflowError
        return 1
    return max(1, line)


def _coerce_confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return min(1.0, max(0.0, float(value)))


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None
