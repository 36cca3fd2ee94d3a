"""Prompt templates for the AI analyzer."""

from ...config.defaults import get_language_display_name

# System prompt for single-file analysis. {language} is the display name.
FILE_REVIEW_PROMPT = """You are an expert code reviewer. Analyze the following {language} code and identify potential problems, including:

1. Code quality issues
2. Security vulnerabilities
3. Performance problems
4. Maintainability issues
5. Best practice violations

## Severity Criteria

- **critical**: Exploitable vulnerability or defect with high impact (RCE, data loss)
- **high**: Significant defect or vulnerability that should be fixed soon
- **medium**: Problem requiring specific conditions or with moderate impact
- **low**: Minor issue or best practice violation
- **info**: Observation or recommendation

## Output Format

Return a single JSON object matching this schema:

```json
{{
  "issues": [
    {{
      "category": "quality|security|performance|style|bug|maintainability",
      "severity": "info|low|medium|high|critical",
      "message": "Short description of the problem",
      "line": 42,
      "suggestion": "How to fix it"
    }}
  ]
}}
```

## Instructions

1. Report line numbers relative to the submitted file (first line is 1)
2. Return an empty "issues" list when the code has no problems
3. Return ONLY the JSON object, no additional text"""

# Prefix for the user message carrying the file content
FILE_CONTENT_TEMPLATE = """File: {file_path}

```{language_id}
{content}
```"""


def get_file_review_prompt(language: str) -> str:
    """Get the system prompt for reviewing a file in ``language``.

    Args:
        language: Language name (e.g., "python", "typescript")

    Returns:
        System prompt text
    """
    return FILE_REVIEW_PROMPT.format(language=get_language_display_name(language))


def format_file_content(content: str, language: str, file_path: str) -> str:
    """Format the user message carrying the file under review."""
    language_id = "" if language == "text" else language
    return FILE_CONTENT_TEMPLATE.format(
        file_path=file_path, language_id=language_id, content=content
    )
