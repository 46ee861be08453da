# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Detection of ``extern "C"`` scopes in source files."""

import logging

from protogen.line_source import LineSource, LineSourceError
from protogen.normalizer import remove_spaces_and_tabs, strip_comments
from protogen.tag import KEYWORD_EXTERN_C

logger = logging.getLogger(__name__)

_EXTERN_C_DECL = remove_spaces_and_tabs(KEYWORD_EXTERN_C)


def find_c_linkage_lines(lines: list[str]) -> set[int]:
    """Return the 1-based line numbers that lie inside ``extern "C"`` scopes.

    Three layouts are recognized::

        extern "C" void foo();

        extern "C" {
            void foo();
        }

        extern "C"
        {
            void foo();
        }

    A line holding only ``extern "C"`` keeps the scope open until the next
    non-empty line, which is expected to open the brace.

    Args:
        lines: Complete source of one file.

    Returns:
        Line numbers of every line in such a scope, the opening line included.
    """
    linkage_lines: set[int] = set()
    in_scope = False
    entering_scope = False
    depth = 0
    # Brace depth ignores braces inside string and character literals.
    code_lines = strip_comments(lines)
    brace_lines = strip_comments(lines, blank_literals=True)
    for line_no, (line, brace_line) in enumerate(zip(code_lines, brace_lines), start=1):
        text = remove_spaces_and_tabs(line)
        if not text:
            continue
        entering_scope = False
        if _EXTERN_C_DECL in text:
            in_scope = True
            entering_scope = text == _EXTERN_C_DECL
        if in_scope:
            linkage_lines.add(line_no)
        depth += brace_line.count("{") - brace_line.count("}")
        if depth == 0 and not entering_scope:
            in_scope = False
    return linkage_lines


class CLinkageIndex:
    """Lazily compute and cache ``extern "C"`` lines per source file."""

    def __init__(self, line_source: LineSource) -> None:
        self._line_source = line_source
        self._lines_by_file: dict[str, set[int]] = {}

    def lines_for(self, path: str) -> set[int]:
        """Return the ``extern "C"`` lines of ``path``; empty if it cannot be read."""
        if path not in self._lines_by_file:
            try:
                lines = self._line_source.lines_from(path, 1)
            except LineSourceError as exc:
                logger.debug(f"No source for linkage scan (path={path} error={exc})")
                lines = []
            self._lines_by_file[path] = find_c_linkage_lines(lines)
        return self._lines_by_file[path]

    def contains(self, path: str, line: int) -> bool:
        return line in self.lines_for(path)
