# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
from pathlib import Path

import pytest

from protogen.line_source import FileLineSource, LineSourceError, MemoryLineSource
from protogen.linkage import CLinkageIndex, find_c_linkage_lines
from protogen.normalizer import (
    cut_after_matching_paren,
    remove_spaces_and_tabs,
    remove_trailing_semicolon,
    strip_comments,
)


def test_src_001_strip_comments_handles_line_and_block_comments() -> None:
    lines = [
        "int a; // trailing",
        "/* start",
        "   still comment */ int b;",
        "int c; /* inline */ int d;",
    ]

    assert strip_comments(lines) == [
        "int a; ",
        " ",
        " int b;",
        "int c;   int d;",
    ]


def test_src_002_strip_comments_keeps_comment_markers_inside_literals() -> None:
    lines = ['const char* url = "http://example.com"; // note', "char c = '/';"]

    assert strip_comments(lines) == [
        'const char* url = "http://example.com"; ',
        "char c = '/';",
    ]


def test_src_003_text_helpers() -> None:
    assert remove_spaces_and_tabs("void\tfoo (int a) ;") == "voidfoo(inta);"
    assert remove_trailing_semicolon("void foo();") == "void foo()"
    assert remove_trailing_semicolon("void foo()") == "void foo()"
    assert cut_after_matching_paren("foo(int a) const {") == "foo(int a)"
    assert cut_after_matching_paren("each(T v, void (*cb)(T)) {") == "each(T v, void (*cb)(T))"
    assert cut_after_matching_paren("foo(int a,") is None
    assert cut_after_matching_paren("foo") is None


def test_src_004_find_c_linkage_lines_for_single_line_declaration() -> None:
    lines = [
        'extern "C" void isr();',
        "void loop() {",
        "}",
    ]

    assert find_c_linkage_lines(lines) == {1}


def test_src_005_find_c_linkage_lines_tracks_nested_braces() -> None:
    lines = [
        "#include <Arduino.h>",
        'extern "C" {',
        "  void a() {",
        "    if (x) {",
        "    }",
        "  }",
        "}",
        "void b() {",
        "}",
    ]

    assert find_c_linkage_lines(lines) == {2, 3, 4, 5, 6, 7}


def test_src_006_find_c_linkage_lines_ignores_commented_out_scope() -> None:
    lines = [
        '// extern "C" {',
        "void a() {",
        "}",
        '/* extern "C" */',
        "void b() {",
        "}",
    ]

    assert find_c_linkage_lines(lines) == set()


def test_src_007_linkage_index_treats_unreadable_source_as_plain_linkage() -> None:
    index = CLinkageIndex(MemoryLineSource({"a.ino": 'extern "C" {\nvoid f() {\n}\n}'}))

    assert index.contains("a.ino", 2) is True
    assert index.contains("a.ino", 9) is False
    assert index.lines_for("missing.ino") == set()


def test_src_008_file_line_source_reads_from_requested_line(tmp_path: Path) -> None:
    source = tmp_path / "sketch.ino"
    source.write_text("one\ntwo\nthree\n", encoding="utf-8")
    line_source = FileLineSource()

    assert line_source.lines_from(str(source), 1) == ["one", "two", "three"]
    assert line_source.lines_from(str(source), 3) == ["three"]


def test_src_009_file_line_source_resolves_relative_names_against_root(
    tmp_path: Path,
) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "util.cpp").write_text("void util() {\n}\n", encoding="utf-8")
    line_source = FileLineSource(root_path=tmp_path)

    assert line_source.lines_from("src/util.cpp", 2) == ["}"]


def test_src_010_file_line_source_caches_file_contents(tmp_path: Path) -> None:
    source = tmp_path / "sketch.ino"
    source.write_text("first\n", encoding="utf-8")
    line_source = FileLineSource()
    line_source.lines_from(str(source), 1)

    source.write_text("changed\n", encoding="utf-8")

    assert line_source.lines_from(str(source), 1) == ["first"]


@pytest.mark.parametrize("start_line", [0, 4])
def test_src_011_file_line_source_rejects_out_of_range_lines(
    tmp_path: Path, start_line: int
) -> None:
    source = tmp_path / "sketch.ino"
    source.write_text("a\nb\nc\n", encoding="utf-8")

    with pytest.raises(LineSourceError):
        FileLineSource().lines_from(str(source), start_line)


def test_src_012_file_line_source_reports_missing_files(tmp_path: Path) -> None:
    with pytest.raises(LineSourceError):
        FileLineSource().lines_from(str(tmp_path / "nope.ino"), 1)


def test_src_013_memory_line_source_serves_known_paths_only() -> None:
    line_source = MemoryLineSource({"a.ino": "x\ny"})

    assert line_source.lines_from("a.ino", 2) == ["y"]
    with pytest.raises(LineSourceError):
        line_source.lines_from("b.ino", 1)


def test_src_014_strip_comments_can_blank_literal_contents() -> None:
    lines = ['Serial.print("{"); // }', "char c = '}';", 'puts("a\\"{");']

    assert strip_comments(lines, blank_literals=True) == [
        'Serial.print(" "); ',
        "char c = ' ';",
        'puts("    ");',
    ]


def test_src_015_find_c_linkage_lines_ignores_braces_in_literals() -> None:
    lines = [
        "void setup() {",
        '  Serial.print("{");',
        "}",
        'extern "C" {',
        "void cb() {",
        "}",
        "}",
        "void loop() {",
        "  Serial.print('}');",
        "}",
    ]

    assert find_c_linkage_lines(lines) == {4, 5, 6, 7}
