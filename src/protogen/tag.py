# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Tag records parsed from ctags output."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

KIND_PROTOTYPE = "prototype"
KIND_FUNCTION = "function"
KNOWN_TAG_KINDS: frozenset[str] = frozenset({KIND_PROTOTYPE, KIND_FUNCTION})

KEYWORD_TEMPLATE = "template"
KEYWORD_STATIC = "static"
KEYWORD_EXTERN_C = 'extern "C"'

PATTERN_START = "/^"
PATTERN_END = "$/;"


class TagParseError(RuntimeError):
    """Represent a ctags row that cannot be turned into a tag."""


@dataclass
class Tag:
    """Represent one symbol occurrence reported by ctags.

    Attributes:
        function_name: Symbol name.
        filename: Originating file, with escaped backslashes undone.
        kind: Tag kind as reported by ctags (``function``, ``prototype``, ...).
        line: Declaration line (1-based); ``0`` when missing or malformed.
        typeref: Raw ``typeref`` field.
        signature: Parameter list text, including parentheses.
        class_name: Enclosing class; empty for free functions.
        struct: Enclosing struct; empty for free functions.
        namespace: Enclosing namespace; empty for free functions.
        code: Source line taken from the ctags pattern field.
        prototype: Derived declaration text, terminated by ``;``.
        prototype_modifiers: Derived modifiers such as ``static``.
        skip: Whether the tag is excluded from the output. Only ever set
            through ``mark_skipped``.
        skip_reason: Name of the pass that excluded the tag first.
    """

    function_name: str
    filename: str
    kind: str = ""
    line: int = 0
    typeref: str = ""
    signature: str = ""
    class_name: str = ""
    struct: str = ""
    namespace: str = ""
    code: str = ""
    prototype: str = ""
    prototype_modifiers: str = ""
    skip: bool = False
    skip_reason: str | None = None

    def mark_skipped(self, reason: str) -> None:
        """Exclude this tag from the output for the rest of the run.

        Args:
            reason: Short name of the pass excluding the tag.
        """
        if self.skip:
            return
        self.skip = True
        self.skip_reason = reason
        logger.debug(
            f"Skipping tag (function_name={self.function_name} line={self.line} reason={reason})"
        )

    def is_known(self) -> bool:
        return self.kind in KNOWN_TAG_KINDS

    def is_handled(self) -> bool:
        """Return True for free functions outside any class, struct or namespace."""
        return not (self.class_name or self.struct or self.namespace)


def parse_tag(row: str) -> Tag:
    """Parse one ctags output row.

    Args:
        row: Tab-separated ctags row: name, file, then ``key:value`` fields
            and a ``/^code$/;"`` pattern.

    Returns:
        Parsed tag with its prototype text derived.

    Raises:
        TagParseError: If the row has fewer than two tab-separated fields.
    """
    parts = row.split("\t")
    if len(parts) < 2:
        raise TagParseError(f"Expected at least 2 tab-separated fields, got {len(parts)}")

    # ctags keeps the escaping of the gcc line markers it reads file names from.
    tag = Tag(function_name=parts[0], filename=parts[1].replace("\\\\", "\\"))

    returntype = ""
    for part in parts[2:]:
        if ":" not in part:
            continue
        field, value = part.split(":", 1)
        value = value.strip()
        if field == "kind":
            tag.kind = value
        elif field == "line":
            tag.line = _parse_line_number(value)
        elif field == "typeref":
            tag.typeref = value
        elif field == "signature":
            tag.signature = value
        elif field == "returntype":
            returntype = value
        elif field == "class":
            tag.class_name = value
        elif field == "struct":
            tag.struct = value
        elif field == "namespace":
            tag.namespace = value

    tag.prototype = f"{returntype} {tag.function_name}{tag.signature};"
    tag.code = extract_code(row)
    return tag


def extract_code(row: str) -> str:
    """Return the text between ``/^`` and the following ``$/;``, or ``""``."""
    start = row.find(PATTERN_START)
    if start == -1:
        return ""
    start += len(PATTERN_START)
    end = row.find(PATTERN_END, start)
    if end == -1:
        return ""
    return row[start:end]


def split_rows(ctags_output: str) -> list[str]:
    """Split raw ctags output into stripped, non-empty rows."""
    rows = (row.strip() for row in ctags_output.split("\n"))
    return [row for row in rows if row]


def _parse_line_number(value: str) -> int:
    try:
        line = int(value)
    except ValueError:
        logger.debug(f"Malformed line field; defaulting to 0 (value={value!r})")
        return 0
    return max(line, 0)
