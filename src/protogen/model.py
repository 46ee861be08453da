# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Result models for prototype generation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Prototype:
    """Represent one forward declaration to insert into a sketch.

    Attributes:
        function_name: Declared function name.
        file: Source file the function is defined in.
        prototype: Declaration text, terminated by ``;``.
        modifiers: Modifiers to emit before the declaration (``static``,
            ``extern "C"``); may be empty.
        line: Definition line, used only to order and report prototypes.
    """

    function_name: str
    file: str
    prototype: str
    modifiers: str
    line: int

    def __str__(self) -> str:
        return f"{self.modifiers} {self.prototype} @ {self.line}"


@dataclass(frozen=True)
class TagError:
    """Represent a recoverable problem with one ctags row or tag."""

    function_name: str
    line: int
    message: str


@dataclass(frozen=True)
class ParseResult:
    """Represent the outcome of one parser run.

    Attributes:
        prototypes: Prototypes to insert, in ctags encounter order.
        insertion_line: Line before which prototypes go; ``None`` when no
            prototype needs to be inserted in the main file.
        errors: Recoverable per-tag problems encountered during the run.
    """

    prototypes: list[Prototype]
    insertion_line: int | None
    errors: list[TagError]
