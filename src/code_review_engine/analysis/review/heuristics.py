"""Pattern-based heuristic scanner.

Line-oriented regex rules that run locally with no network access. The scanner
is stateless: identical input always yields identical output, ordered by line
and then by rule registration order within a line.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from .models import Issue, IssueCategory, Severity

HEURISTIC_SOURCE = "heuristic"

SECRET_PATTERN = re.compile(
    r"(api[_-]?key|secret|token|password|passwd|private[_-]?key|access[_-]?key)\w*"
    r"[\"']?\s*[:=]\s*[\"'`][^\"'`\s]{8,}[\"'`]",
    re.IGNORECASE,
)
PRIVATE_KEY_PATTERN = re.compile(r"-----BEGIN [A-Z0-9 ]*PRIVATE KEY-----")
EVAL_PATTERN = re.compile(r"(?<![.\w])(eval|exec)\s*\(|\bnew\s+Function\s*\(")
SQL_IN_STRING_PATTERN = re.compile(
    r"[\"'`][^\"'`]*\b(SELECT\s|INSERT\s+INTO|UPDATE\s+\w+\s+SET|DELETE\s+FROM)",
    re.IGNORECASE,
)
SQL_INTERPOLATION_PATTERN = re.compile(
    r"[\"'`]\s*\+\s*\w|\+\s*[\"'`]|\$\{|\bf[\"']|[\"']\s*%\s*[\w(]|\.format\s*\("
)
XSS_PATTERN = re.compile(
    r"\.(inner|outer)HTML\s*\+?=(?!=)|dangerouslySetInnerHTML|document\.write(ln)?\s*\("
)
INSECURE_HTTP_PATTERN = re.compile(
    r"\bhttp://([A-Za-z0-9.\-]+)(?::\d+)?(?:[/?#][^\s'\"<>]*)?", re.IGNORECASE
)
SYNC_IO_PATTERN = re.compile(r"\b\w+Sync\s*\(")
LOOP_HEADER_PATTERN = re.compile(r"^\s*(for|while)\b")
DOM_QUERY_PATTERN = re.compile(
    r"\bdocument\.(querySelector|querySelectorAll|getElementById|"
    r"getElementsByClassName|getElementsByTagName|getElementsByName)\s*\("
)
TODO_PATTERN = re.compile(r"\b(TODO|FIXME|XXX|HACK)\b")
DEBUG_OUTPUT_PATTERN = re.compile(
    r"\bconsole\.(log|debug)\s*\(|\bSystem\.out\.println\s*\("
)
PYTHON_PRINT_PATTERN = re.compile(r"^\s*print\s*\(")
CONFLICT_MARKER_PATTERN = re.compile(r"^(<{7}(\s|$)|={7}$|>{7}(\s|$))")
LOOSE_EQUALITY_PATTERN = re.compile(r"(?<![=!<>])(==|!=)(?!=)")
LEADING_WHITESPACE_PATTERN = re.compile(r"^[ \t]*")

LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0"}
JS_LANGUAGES = {"javascript", "typescript"}
MAX_LINE_LENGTH = 140
MAX_FILE_LINES = 800


@dataclass(frozen=True)
class HeuristicRule:
    """Metadata shared by every finding a rule produces."""

    rule_id: str
    category: IssueCategory
    severity: Severity
    message: str
    suggestion: str


RULES: dict[str, HeuristicRule] = {
    rule.rule_id: rule
    for rule in (
        HeuristicRule(
            "security/hardcoded-secret",
            IssueCategory.SECURITY,
            Severity.CRITICAL,
            "Potential hardcoded credential assigned in source",
            "Load secrets from environment variables or a secret manager.",
        ),
        HeuristicRule(
            "security/private-key",
            IssueCategory.SECURITY,
            Severity.CRITICAL,
            "Private key material embedded in source",
            "Remove the key from the repository and rotate it.",
        ),
        HeuristicRule(
            "security/dynamic-eval",
            IssueCategory.SECURITY,
            Severity.CRITICAL,
            "Dynamic code evaluation",
            "Avoid eval()/exec()/new Function(); parse data explicitly instead.",
        ),
        HeuristicRule(
            "security/sql-injection",
            IssueCategory.SECURITY,
            Severity.HIGH,
            "SQL statement built from string concatenation or interpolation",
            "Use parameterized queries or prepared statements.",
        ),
        HeuristicRule(
            "security/xss-inner-html",
            IssueCategory.SECURITY,
            Severity.HIGH,
            "Unescaped HTML injection sink",
            "Use textContent or a sanitizer before inserting HTML.",
        ),
        HeuristicRule(
            "security/insecure-http",
            IssueCategory.SECURITY,
            Severity.MEDIUM,
            "Cleartext HTTP URL to an external host",
            "Use HTTPS for external endpoints.",
        ),
        HeuristicRule(
            "performance/sync-io",
            IssueCategory.PERFORMANCE,
            Severity.MEDIUM,
            "Synchronous I/O call blocks the event loop",
            "Use the asynchronous (promise-based) API instead.",
        ),
        HeuristicRule(
            "performance/dom-query-in-loop",
            IssueCategory.PERFORMANCE,
            Severity.LOW,
            "DOM query inside a loop",
            "Query the element once before the loop and reuse it.",
        ),
        HeuristicRule(
            "quality/todo-comment",
            IssueCategory.QUALITY,
            Severity.INFO,
            "Work item marker in source",
            "Track the work item and resolve it before release.",
        ),
        HeuristicRule(
            "quality/console-log",
            IssueCategory.QUALITY,
            Severity.LOW,
            "Debug output statement",
            "Remove debug output or use a logger.",
        ),
        HeuristicRule(
            "bug/merge-conflict-marker",
            IssueCategory.BUG,
            Severity.HIGH,
            "Unresolved merge conflict marker",
            "Resolve the merge conflict and remove the marker.",
        ),
        HeuristicRule(
            "bug/loose-equality",
            IssueCategory.BUG,
            Severity.LOW,
            "Loose equality comparison",
            "Use === or !== to avoid type coercion.",
        ),
        HeuristicRule(
            "maintainability/long-file",
            IssueCategory.MAINTAINABILITY,
            Severity.INFO,
            f"File exceeds {MAX_FILE_LINES} lines",
            "Split the file into smaller modules.",
        ),
        HeuristicRule(
            "style/long-line",
            IssueCategory.STYLE,
            Severity.LOW,
            f"Line exceeds {MAX_LINE_LENGTH} characters",
            "Wrap the line or extract parts into variables.",
        ),
        HeuristicRule(
            "style/trailing-whitespace",
            IssueCategory.STYLE,
            Severity.INFO,
            "Trailing whitespace",
            "Remove whitespace at the end of the line.",
        ),
        HeuristicRule(
            "style/mixed-indentation",
            IssueCategory.STYLE,
            Severity.LOW,
            "Line indented with both tabs and spaces",
            "Indent consistently with either tabs or spaces.",
        ),
    )
}

# Columns a rule reports on one line (None when the finding has no column)
Columns = list[int | None]


@dataclass(frozen=True)
class ScanContext:
    """Whole-file facts available to every line check."""

    lines: list[str]
    language: str
    loop_body_lines: frozenset[int]


LineCheck = Callable[[int, str, ScanContext], Columns]


def _is_comment_line(line: str) -> bool:
    return line.lstrip().startswith(("//", "#", "/*", "*"))


def _match_column(match: re.Match[str] | None) -> Columns:
    return [match.start() + 1] if match else []


def _loop_body_lines(lines: list[str]) -> frozenset[int]:
    """Line numbers of ``for``/``while`` headers and the lines indented under them."""
    inside: set[int] = set()
    loop_indent: int | None = None
    for idx, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        indent = len(line) - len(line.lstrip())
        is_header = bool(LOOP_HEADER_PATTERN.match(line))

        # Body lines are indented deeper than the loop header
        if loop_indent is not None and indent <= loop_indent and not is_header:
            loop_indent = None
        if is_header and (loop_indent is None or indent <= loop_indent):
            loop_indent = indent

        if loop_indent is not None:
            inside.add(idx)
    return frozenset(inside)


class HeuristicScanner:
    """Runs the ordered heuristic rule set over a file's content.

    Every rule is a per-line check. A check that raises on a line is logged
    and skipped for that line only.
    """

    def __init__(self) -> None:
        self._checks: list[tuple[str, LineCheck]] = [
            ("security/hardcoded-secret", self._check_secrets),
            ("security/private-key", self._check_private_keys),
            ("security/dynamic-eval", self._check_dynamic_eval),
            ("security/sql-injection", self._check_sql_injection),
            ("security/xss-inner-html", self._check_xss_sinks),
            ("security/insecure-http", self._check_insecure_http_urls),
            ("performance/sync-io", self._check_sync_io),
            ("performance/dom-query-in-loop", self._check_dom_query_in_loop),
            ("quality/todo-comment", self._check_todo_comments),
            ("quality/console-log", self._check_debug_output),
            ("bug/merge-conflict-marker", self._check_conflict_markers),
            ("bug/loose-equality", self._check_loose_equality),
            ("maintainability/long-file", self._check_long_file),
            ("style/long-line", self._check_long_lines),
            ("style/trailing-whitespace", self._check_trailing_whitespace),
            ("style/mixed-indentation", self._check_mixed_indentation),
        ]

    @property
    def rule_ids(self) -> list[str]:
        return [rule_id for rule_id, _ in self._checks]

    def scan(self, content: str, language: str, file_path: str) -> list[Issue]:
        """Scan file content with every rule.

        Args:
            content: File content
            language: Language name (e.g., "javascript", "python")
            file_path: Path recorded on each issue

        Returns:
            Issues in file order, then rule-registration order within a line
        """
        lines = content.splitlines()
        context = ScanContext(
            lines=lines,
            language=(language or "text").lower(),
            loop_body_lines=_loop_body_lines(lines),
        )
        issues: list[Issue] = []

        for idx, line in enumerate(lines, start=1):
            for rule_id, check in self._checks:
                try:
                    columns = check(idx, line, context)
                except Exception as e:
                    logger.warning(
                        f"Heuristic rule {rule_id} skipped line {idx} of {file_path}: {e}"
                    )
                    continue
                rule = RULES[rule_id]
                for column in columns:
                    issues.append(
                        Issue(
                            category=rule.category,
                            severity=rule.severity,
                            file=file_path,
                            line=idx,
                            column=column,
                            message=rule.message,
                            suggestion=rule.suggestion,
                            rule_id=rule.rule_id,
                            source=HEURISTIC_SOURCE,
                        )
                    )

        logger.debug(f"Heuristic scan of {file_path}: {len(issues)} issues")
        return issues

    def _check_secrets(self, idx: int, line: str, context: ScanContext) -> Columns:
        return _match_column(SECRET_PATTERN.search(line))

    def _check_private_keys(self, idx: int, line: str, context: ScanContext) -> Columns:
        return _match_column(PRIVATE_KEY_PATTERN.search(line))

    def _check_dynamic_eval(self, idx: int, line: str, context: ScanContext) -> Columns:
        if _is_comment_line(line):
            return []
        return _match_column(EVAL_PATTERN.search(line))

    def _check_sql_injection(self, idx: int, line: str, context: ScanContext) -> Columns:
        match = SQL_IN_STRING_PATTERN.search(line)
        if match and SQL_INTERPOLATION_PATTERN.search(line):
            return [match.start() + 1]
        return []

    def _check_xss_sinks(self, idx: int, line: str, context: ScanContext) -> Columns:
        return _match_column(XSS_PATTERN.search(line))

    def _check_insecure_http_urls(
        self, idx: int, line: str, context: ScanContext
    ) -> Columns:
        return [
            match.start() + 1
            for match in INSECURE_HTTP_PATTERN.finditer(line)
            if match.group(1).lower() not in LOCAL_HOSTS
        ]

    def _check_sync_io(self, idx: int, line: str, context: ScanContext) -> Columns:
        return _match_column(SYNC_IO_PATTERN.search(line))

    def _check_dom_query_in_loop(
        self, idx: int, line: str, context: ScanContext
    ) -> Columns:
        if idx not in context.loop_body_lines:
            return []
        return _match_column(DOM_QUERY_PATTERN.search(line))

    def _check_todo_comments(self, idx: int, line: str, context: ScanContext) -> Columns:
        return _match_column(TODO_PATTERN.search(line))

    def _check_debug_output(self, idx: int, line: str, context: ScanContext) -> Columns:
        if _is_comment_line(line):
            return []
        match = DEBUG_OUTPUT_PATTERN.search(line)
        if match is None and context.language == "python":
            match = PYTHON_PRINT_PATTERN.search(line)
        return _match_column(match)

    def _check_conflict_markers(
        self, idx: int, line: str, context: ScanContext
    ) -> Columns:
        return [1] if CONFLICT_MARKER_PATTERN.match(line) else []

    def _check_loose_equality(self, idx: int, line: str, context: ScanContext) -> Columns:
        if context.language not in JS_LANGUAGES or _is_comment_line(line):
            return []
        return _match_column(LOOSE_EQUALITY_PATTERN.search(line))

    def _check_long_file(self, idx: int, line: str, context: ScanContext) -> Columns:
        # Reported once, on the first line
        if idx == 1 and len(context.lines) > MAX_FILE_LINES:
            return [None]
        return []

    def _check_long_lines(self, idx: int, line: str, context: ScanContext) -> Columns:
        return [MAX_LINE_LENGTH + 1] if len(line) > MAX_LINE_LENGTH else []

    def _check_trailing_whitespace(
        self, idx: int, line: str, context: ScanContext
    ) -> Columns:
        stripped = line.rstrip()
        return [len(stripped) + 1] if stripped != line else []

    def _check_mixed_indentation(
        self, idx: int, line: str, context: ScanContext
    ) -> Columns:
        leading = LEADING_WHITESPACE_PATTERN.match(line).group(0)
        return [1] if "\t" in leading and " " in leading else []
