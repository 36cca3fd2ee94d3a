"""Default configurations for the code review engine."""

import os
from pathlib import Path

# File extensions reviewed during a directory walk
DEFAULT_REVIEW_EXTENSIONS = [
    ".js",  # JavaScript
    ".ts",  # TypeScript
    ".jsx",  # React JSX
    ".tsx",  # React TSX
    ".py",  # Python
    ".java",  # Java
    ".cpp",  # C++
    ".c",  # C
    ".go",  # Go
    ".rs",  # Rust
]

# Language mappings used for prompts and provider requests
LANGUAGE_MAPPINGS: dict[str, str] = {
    ".py": "python",
    ".pyw": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".java": "java",
    ".cpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".php": "php",
    ".rb": "ruby",
    ".swift": "swift",
    ".kt": "kotlin",
    ".scala": "scala",
}

# Display names for the AI prompt
LANGUAGE_DISPLAY_NAMES: dict[str, str] = {
    "python": "Python",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "java": "Java",
    "cpp": "C++",
    "c": "C",
    "csharp": "C#",
    "go": "Go",
    "rust": "Rust",
    "php": "PHP",
    "ruby": "Ruby",
    "swift": "Swift",
    "kotlin": "Kotlin",
    "scala": "Scala",
    "text": "source",
}

# Directories never descended into during a directory walk
DEFAULT_EXCLUDED_DIRS = frozenset(
    {
        # Version control
        ".git",
        ".hg",
        ".svn",
        # JavaScript/Node.js
        "node_modules",
        # Build outputs
        "build",
        "dist",
        # IDEs and editors
        ".idea",
        ".vscode",
    }
)

# Provider call defaults
DEFAULT_PROVIDER_TIMEOUT_MS = 30000
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5

# Provider config validation ranges
MIN_TIMEOUT_MS = 1000
MAX_TIMEOUT_MS = 300000
MIN_RETRY_ATTEMPTS = 0
MAX_RETRY_ATTEMPTS = 10
MIN_API_KEY_LENGTH = 10

# Empirical metric constants. Kept for behavioral compatibility with
# earlier releases; they are not a principled metric.
COMPLEXITY_KEYWORDS = frozenset(
    {"if", "else", "while", "for", "case", "catch", "&&", "||", "?"}
)
MI_BASE = 171.0
MI_LOC_COEFFICIENT = 5.2
MI_COMPLEXITY_COEFFICIENT = 0.23
MI_ISSUE_PENALTY = 2

# Settings store keys (external wire format)
CONFIGURED_PROVIDERS_KEY = "configuredProviders"
ENABLED_PROVIDERS_KEY = "enabledProviders"

SETTINGS_ENV_VAR = "CODE_REVIEW_SETTINGS"


def get_default_settings_path() -> Path:
    """Get the settings file path (env override, else per-user default)."""
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".code-review-engine" / "settings.json"


def get_language_from_extension(extension: str) -> str:
    """Get the language name from file extension."""
    return LANGUAGE_MAPPINGS.get(extension.lower(), "text")


def get_language_display_name(language: str) -> str:
    """Get a human-readable language name for prompts and reports."""
    return LANGUAGE_DISPLAY_NAMES.get(language, language.capitalize())
