"""File discovery and reading for review targets."""

import os
from pathlib import Path

from loguru import logger

from ..config.defaults import DEFAULT_EXCLUDED_DIRS, DEFAULT_REVIEW_EXTENSIONS
from .exceptions import FileUnreadableError

# Files above this size are skipped during a directory walk
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024


class FileDiscovery:
    """Finds reviewable files under a directory.

    The walk is recursive and lexical: directories and files are visited in
    sorted name order so repeated runs over the same tree yield the same file
    order.
    """

    def __init__(
        self,
        root: Path,
        file_extensions: set[str] | None = None,
        excluded_dirs: frozenset[str] | set[str] | None = None,
    ) -> None:
        """Initialize file discovery.

        Args:
            root: Directory to walk
            file_extensions: Extensions to include (e.g., {'.py', '.js'})
            excluded_dirs: Directory names never descended into
        """
        self.root = root
        self.file_extensions = {
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in (file_extensions or DEFAULT_REVIEW_EXTENSIONS)
        }
        self.excluded_dirs = (
            frozenset(excluded_dirs)
            if excluded_dirs is not None
            else DEFAULT_EXCLUDED_DIRS
        )

    def find_files(self) -> list[Path]:
        """Walk the root and return matching files in lexical order."""
        found: list[Path] = []
        dir_count = 0

        for root, dirs, files in os.walk(self.root):
            root_path = Path(root)
            dir_count += 1

            # Prune in place so os.walk never enters excluded directories
            dirs[:] = sorted(d for d in dirs if d not in self.excluded_dirs)

            for filename in sorted(files):
                file_path = root_path / filename
                if self.should_review_file(file_path):
                    found.append(file_path)

        logger.debug(
            f"File scan complete: {dir_count} directories, {len(found)} reviewable files"
        )
        return found

    def should_review_file(self, file_path: Path) -> bool:
        """Check if a file matches the extension filter and size limit."""
        if file_path.suffix.lower() not in self.file_extensions:
            return False

        try:
            file_size = file_path.stat().st_size
        except OSError:
            return False

        if file_size > MAX_FILE_SIZE_BYTES:
            logger.warning(f"Skipping large file: {file_path} ({file_size} bytes)")
            return False

        return True


def read_source_file(file_path: Path) -> str:
    """Read a source file as UTF-8 text.

    Args:
        file_path: File to read

    Returns:
        File content

    Raises:
        FileUnreadableError: If the file cannot be read or decoded
    """
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileUnreadableError(
            f"Cannot read {file_path}: {e}", context={"file_path": str(file_path)}
        ) from e
