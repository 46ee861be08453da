# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Prototype generation from ctags output."""

import logging
import re
from pathlib import Path
from typing import Callable

from protogen.line_source import LineSource, LineSourceError
from protogen.linkage import CLinkageIndex
from protogen.model import ParseResult, Prototype, TagError
from protogen.normalizer import (
    cut_after_matching_paren,
    remove_spaces_and_tabs,
    remove_trailing_semicolon,
    strip_comments,
)
from protogen.tag import (
    KEYWORD_EXTERN_C,
    KEYWORD_STATIC,
    KEYWORD_TEMPLATE,
    KIND_FUNCTION,
    KIND_PROTOTYPE,
    Tag,
    TagParseError,
    parse_tag,
    split_rows,
)

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_LINES = 10

_TEMPLATE_WORD = re.compile(rf"\b{KEYWORD_TEMPLATE}\b")

Stage = tuple[str, Callable[[list[Tag]], None]]


class TemplateReconstructionError(RuntimeError):
    """Represent a failure to rebuild a template declaration from source."""


class Parser:
    """Turn ctags output into the prototypes a sketch needs.

    A parser holds configuration only. Each ``parse`` call works on its own
    tag list, so one instance can serve several runs.
    """

    def __init__(
        self, line_source: LineSource, lookahead_lines: int = DEFAULT_LOOKAHEAD_LINES
    ) -> None:
        """Initialize the parser.

        Args:
            line_source: Source of original file lines, used for multi-line
                declarations and ``extern "C"`` detection.
            lookahead_lines: How many lines after a definition to search for
                the closing parenthesis of its parameter list.

        Raises:
            ValueError: If ``lookahead_lines`` is smaller than 1.
        """
        if lookahead_lines < 1:
            raise ValueError("lookahead_lines must be >= 1.")
        self._line_source = line_source
        self._lookahead_lines = lookahead_lines

    def parse(self, ctags_output: str, main_file: str | Path) -> ParseResult:
        """Generate prototypes and the line to insert them at.

        Args:
            ctags_output: Raw ctags output, one tag per line.
            main_file: Path of the sketch's main file, as ctags reports it.

        Returns:
            Prototypes in encounter order, the insertion line and any
            recoverable per-tag errors.
        """
        errors: list[TagError] = []
        tags = self._parse_tags(ctags_output, errors)
        linkage = CLinkageIndex(self._line_source)

        # Order matters: every stage relies on the prototype text left by the previous ones.
        stages: list[Stage] = [
            ("unknown_kind", lambda t: _skip_tags_where(t, _tag_is_unknown, "unknown_kind")),
            (
                "unhandled_scope",
                lambda t: _skip_tags_where(t, _tag_is_unhandled, "unhandled_scope"),
            ),
            ("add_prototypes", lambda t: self._add_prototypes(t, errors)),
            ("already_declared", _remove_defined_prototypes),
            ("duplicates", _skip_duplicates),
            (
                "code_mismatch",
                lambda t: _skip_tags_where(
                    t, self._prototype_and_code_dont_match, "code_mismatch"
                ),
            ),
            ("c_linkage", lambda t: _fix_c_linkage(t, linkage)),
        ]
        for name, apply in stages:
            apply(tags)
            logger.debug(
                f"Stage completed (stage={name} remaining={sum(1 for t in tags if not t.skip)})"
            )

        prototypes = _to_prototypes(tags)
        insertion_line = _find_insertion_line(tags, Path(main_file))
        logger.info(
            f"Prototype generation completed (main_file={main_file} tags={len(tags)} "
            f"prototypes={len(prototypes)} insertion_line={insertion_line} errors={len(errors)})"
        )
        return ParseResult(
            prototypes=prototypes, insertion_line=insertion_line, errors=errors
        )

    def _parse_tags(self, ctags_output: str, errors: list[TagError]) -> list[Tag]:
        tags: list[Tag] = []
        for row in split_rows(ctags_output):
            try:
                tags.append(parse_tag(row))
            except TagParseError as exc:
                logger.warning(f"Skipping malformed ctags row (row={row!r} error={exc})")
                errors.append(
                    TagError(function_name=row.split("\t", 1)[0], line=0, message=str(exc))
                )
        return tags

    def _add_prototypes(self, tags: list[Tag], errors: list[TagError]) -> None:
        for tag in tags:
            if tag.skip:
                continue
            try:
                self._add_prototype(tag)
            except TemplateReconstructionError as exc:
                logger.warning(f"Skipping template tag (error={exc})")
                errors.append(
                    TagError(function_name=tag.function_name, line=tag.line, message=str(exc))
                )
                tag.mark_skipped("template_reconstruction")

    def _add_prototype(self, tag: Tag) -> None:
        """Finalize the prototype text and modifiers of one tag.

        Raises:
            TemplateReconstructionError: If a template declaration cannot be rebuilt.
        """
        if tag.prototype.startswith(KEYWORD_TEMPLATE):
            if tag.code.startswith(KEYWORD_TEMPLATE):
                code = tag.code
                brace = code.find("{")
                if brace != -1:
                    code = code[:brace]
                else:
                    code = code[: code.rfind(")") + 1]
            else:
                code = self._find_template_multiline(tag)
            if not code.strip():
                raise TemplateReconstructionError(
                    _reconstruction_failed(tag, "declaration text is empty")
                )
            tag.prototype = code + ";"
            return

        # extern "C" is a property of the enclosing block, handled by _fix_c_linkage.
        tag.prototype_modifiers = KEYWORD_STATIC if f"{KEYWORD_STATIC} " in tag.code else ""

    def _find_template_multiline(self, tag: Tag) -> str:
        """Rebuild a template declaration whose ``template <...>`` line precedes the tag."""
        try:
            source = self._line_source.lines_from(tag.filename, 1)
        except LineSourceError as exc:
            raise TemplateReconstructionError(_reconstruction_failed(tag, str(exc))) from exc
        if tag.line < 1 or tag.line > len(source):
            raise TemplateReconstructionError(
                _reconstruction_failed(tag, f"line is outside {tag.filename}")
            )

        preceding = strip_comments(source[: tag.line - 1])
        code = tag.code
        index = len(preceding)
        while not _TEMPLATE_WORD.search(code):
            if index == 0:
                raise TemplateReconstructionError(
                    _reconstruction_failed(tag, "no template keyword before the definition")
                )
            index -= 1
            code = f"{preceding[index].strip()} {code}"
        declaration = cut_after_matching_paren(code)
        if declaration is None:
            raise TemplateReconstructionError(
                _reconstruction_failed(tag, "parameter list is not closed")
            )
        return declaration

    def _prototype_and_code_dont_match(self, tag: Tag) -> bool:
        if not tag.code:
            return True

        code = tag.code
        if ")" not in code:
            code = self._join_following_lines(tag)
        code = remove_spaces_and_tabs(code)
        prototype = remove_trailing_semicolon(remove_spaces_and_tabs(tag.prototype))
        if prototype in code:
            return False

        # Definitions split before the name, such as "void\nfoo() {", are
        # reported on the line of the name; pull the missing text from above.
        code = cut_after_matching_paren(code) or code
        missing = prototype.find(code)
        if missing <= 0:
            return True
        code, first_line = self._prepend_preceding_lines(tag, code, len(code) + missing)
        if prototype in code:
            tag.line = first_line
            return False
        return True

    def _join_following_lines(self, tag: Tag) -> str:
        try:
            following = self._line_source.lines_from(tag.filename, tag.line)
        except LineSourceError as exc:
            logger.debug(
                f"Cannot read lines after tag (function_name={tag.function_name} error={exc})"
            )
            return tag.code
        window = strip_comments(following[: self._lookahead_lines + 1])
        code = window[0]
        for text in window[1:]:
            if ")" in code:
                break
            code += text
        return code

    def _prepend_preceding_lines(
        self, tag: Tag, code: str, expected_length: int
    ) -> tuple[str, int]:
        if tag.line <= 1:
            return code, tag.line
        try:
            preceding = self._line_source.lines_from(tag.filename, 1)[: tag.line - 1]
        except LineSourceError as exc:
            logger.debug(
                f"Cannot read lines before tag (function_name={tag.function_name} error={exc})"
            )
            return code, tag.line
        preceding = strip_comments(preceding)
        line = len(preceding) + 1
        while line > 1 and len(code) < expected_length:
            line -= 1
            code = remove_spaces_and_tabs(preceding[line - 1]) + code
        return code, line


def _reconstruction_failed(tag: Tag, reason: str) -> str:
    return (
        f"reconstruction failed for symbol {tag.function_name} at line {tag.line}: {reason}"
    )


def _tag_is_unknown(tag: Tag) -> bool:
    return not tag.is_known()


def _tag_is_unhandled(tag: Tag) -> bool:
    return not tag.is_handled()


def _skip_tags_where(tags: list[Tag], predicate: Callable[[Tag], bool], reason: str) -> None:
    for tag in tags:
        if not tag.skip and predicate(tag):
            tag.mark_skipped(reason)


def _remove_defined_prototypes(tags: list[Tag]) -> None:
    """Skip tags whose prototype is already declared in source.

    Every ``prototype`` tag registers its text, skipped or not; the declaring
    tags themselves are skipped too since they need no synthesized copy.
    """
    declared = {tag.prototype for tag in tags if tag.kind == KIND_PROTOTYPE}
    for tag in tags:
        if tag.prototype in declared:
            tag.mark_skipped("already_declared")


def _skip_duplicates(tags: list[Tag]) -> None:
    """Keep only the first surviving tag of each prototype text."""
    seen: set[str] = set()
    for tag in tags:
        if tag.skip:
            continue
        if tag.prototype in seen:
            tag.mark_skipped("duplicate")
        else:
            seen.add(tag.prototype)


def _fix_c_linkage(tags: list[Tag], linkage: CLinkageIndex) -> None:
    for tag in tags:
        if tag.skip or KEYWORD_EXTERN_C in tag.prototype_modifiers:
            continue
        if linkage.contains(tag.filename, tag.line):
            tag.prototype_modifiers = f"{KEYWORD_EXTERN_C} {tag.prototype_modifiers}".strip()


def _to_prototypes(tags: list[Tag]) -> list[Prototype]:
    return [
        Prototype(
            function_name=tag.function_name,
            file=tag.filename,
            prototype=tag.prototype,
            modifiers=tag.prototype_modifiers,
            line=tag.line,
        )
        for tag in tags
        if not tag.skip
    ]


def _find_insertion_line(tags: list[Tag], main_file: Path) -> int | None:
    """Return the first main-file line that needs the prototypes in scope.

    Candidates are the surviving tags of the main file and any main-file tag
    that takes the address of a surviving function. Tags without a line
    number are ignored.
    """
    in_main_file = [
        tag for tag in tags if tag.line >= 1 and Path(tag.filename) == main_file
    ]
    functions = [tag for tag in tags if not tag.skip and tag.kind == KIND_FUNCTION]
    candidates = [tag.line for tag in in_main_file if not tag.skip]
    candidates.extend(
        tag.line for tag in in_main_file if _uses_function_pointer(tag, functions)
    )
    return min(candidates, default=None)


def _uses_function_pointer(tag: Tag, functions: list[Tag]) -> bool:
    code = tag.code.strip()
    for function in functions:
        if function.line == tag.line:
            continue
        name = re.escape(function.function_name)
        if re.search(rf"&\s*{name}\b", code) or f"({function.function_name})" in code:
            return True
    return False
