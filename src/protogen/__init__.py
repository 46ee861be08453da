# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Public import surface for sketch prototype generation."""

from protogen.line_source import (
    FileLineSource,
    LineSource,
    LineSourceError,
    MemoryLineSource,
)
from protogen.model import ParseResult, Prototype, TagError
from protogen.parser import Parser, TemplateReconstructionError
from protogen.tag import Tag, TagParseError, parse_tag

__all__ = [
    "FileLineSource",
    "LineSource",
    "LineSourceError",
    "MemoryLineSource",
    "ParseResult",
    "Parser",
    "Prototype",
    "Tag",
    "TagError",
    "TagParseError",
    "TemplateReconstructionError",
    "parse_tag",
]
