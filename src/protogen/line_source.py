# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Line source contracts and implementations."""

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class LineSourceError(RuntimeError):
    """Represent a failure to provide source lines."""


class LineSource(Protocol):
    """Provide original source lines for files referenced by tags."""

    def lines_from(self, path: str, start_line: int) -> list[str]:
        """Return the lines of ``path`` from ``start_line`` to the end of file.

        Args:
            path: File name as reported by ctags.
            start_line: First line to return (1-based, inclusive).

        Returns:
            Source lines without line terminators.

        Raises:
            LineSourceError: If the file is unavailable or the line is out of range.
        """


def _slice_from(lines: list[str], path: str, start_line: int) -> list[str]:
    if start_line < 1 or start_line > len(lines):
        raise LineSourceError(
            f"Line {start_line} is out of range for {path} ({len(lines)} lines)"
        )
    return lines[start_line - 1 :]


class FileLineSource:
    """Read source lines from disk, caching each file for the instance lifetime."""

    def __init__(self, root_path: Path | None = None) -> None:
        """Initialize the source.

        Args:
            root_path: Base directory for relative file names; the current
                working directory when omitted.
        """
        self._root_path = root_path
        self._cache: dict[str, list[str]] = {}

    def lines_from(self, path: str, start_line: int) -> list[str]:
        return _slice_from(self._read(path), path, start_line)

    def _read(self, path: str) -> list[str]:
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        file_path = Path(path)
        if self._root_path is not None and not file_path.is_absolute():
            file_path = self._root_path / file_path
        try:
            lines = file_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to read source file (path={file_path} error={exc})")
            raise LineSourceError(f"Cannot read {file_path}: {exc}") from exc
        self._cache[path] = lines
        return lines


class MemoryLineSource:
    """Serve source lines from text that is already in memory."""

    def __init__(self, sources: dict[str, str]) -> None:
        """Initialize the source.

        Args:
            sources: Source text keyed by the file name ctags reports.
        """
        self._lines = {path: text.splitlines() for path, text in sources.items()}

    def lines_from(self, path: str, start_line: int) -> list[str]:
        lines = self._lines.get(path)
        if lines is None:
            raise LineSourceError(f"No source text for {path}")
        return _slice_from(lines, path, start_line)
