"""Source text normalization helpers for prototype matching."""

import logging

logger = logging.getLogger(__name__)


def remove_spaces_and_tabs(text: str) -> str:
    return text.replace(" ", "").replace("\t", "")


def remove_trailing_semicolon(text: str) -> str:
    return text[:-1] if text.endswith(";") else text


def cut_after_matching_paren(text: str) -> str | None:
    """Drop everything after the ``)`` that closes the first ``(``.

    Nested parentheses, as in ``void (*cb)(int)`` parameters or ``T()``
    default arguments, stay inside the kept text.

    Returns:
        The cut text, or ``None`` when there is no balanced parameter list.
    """
    start = text.find("(")
    if start == -1:
        return None
    depth = 0
    for index in range(start, len(text)):
        if text[index] == "(":
            depth += 1
        elif text[index] == ")":
            depth -= 1
            if depth == 0:
                return text[: index + 1]
    return None


def strip_comments(lines: list[str], blank_literals: bool = False) -> list[str]:
    """Remove C and C++ comments while keeping one output line per input line.

    Block comments may span lines; string and character literals are
    respected so ``"http://"`` is not treated as a comment.

    Args:
        lines: Consecutive source lines, starting outside any comment.
        blank_literals: Also replace the contents of string and character
            literals with spaces, keeping their quotes.

    Returns:
        Lines with comment text removed.
    """
    stripped: list[str] = []
    in_block = False
    for line in lines:
        text, in_block = _strip_line(line, in_block, blank_literals)
        stripped.append(text)
    return stripped


def _strip_line(line: str, in_block: bool, blank_literals: bool) -> tuple[str, bool]:
    out: list[str] = []
    quote: str | None = None
    escaped = False
    index = 0
    while index < len(line):
        ch = line[index]
        if in_block:
            if line.startswith("*/", index):
                in_block = False
                index += 2
            else:
                index += 1
            continue
        if quote is not None:
            closing = not escaped and ch == quote
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif closing:
                quote = None
            out.append(ch if closing or not blank_literals else " ")
            index += 1
            continue
        if ch in ('"', "'"):
            quote = ch
            out.append(ch)
            index += 1
            continue
        if line.startswith("//", index):
            break
        if line.startswith("/*", index):
            in_block = True
            out.append(" ")
            index += 2
            continue
        out.append(ch)
        index += 1
    return "".join(out), in_block
