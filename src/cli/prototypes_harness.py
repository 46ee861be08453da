# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""CLI harness for generating sketch prototypes from saved ctags output."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table
from rich.text import Text

from protogen import FileLineSource, ParseResult, Parser
from protogen.parser import DEFAULT_LOOKAHEAD_LINES

logger = logging.getLogger(__name__)

TABLE_COLUMN_RATIOS: dict[str, int] = {
    "function_name": 2,
    "modifiers": 2,
    "prototype": 5,
    "line": 1,
}


def configure_logging(level: int = logging.INFO) -> None:
    """Configure application logging with Rich handler.

    Args:
        level: Logging severity threshold.
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured argument parser instance.
    """
    parser = argparse.ArgumentParser(prog="protogen")
    parser.add_argument(
        "--ctags-output", required=True, help="File holding raw ctags output."
    )
    parser.add_argument(
        "--main-file",
        required=True,
        help="Main sketch file path, exactly as ctags reports it.",
    )
    parser.add_argument(
        "--source-root",
        required=False,
        help="Directory that relative file names in the ctags output refer to.",
    )
    parser.add_argument(
        "--lookahead-lines",
        type=int,
        default=DEFAULT_LOOKAHEAD_LINES,
        help="Lines to scan for the end of a multi-line parameter list.",
    )
    parser.add_argument(
        "--format",
        choices=("table", "json"),
        default="table",
        help="Output format.",
    )
    parser.add_argument(
        "--output",
        required=False,
        help="Optional output file path for raw JSON when --format json is used.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log every skipped tag."
    )
    return parser


def run(argv: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run the prototype generation command.

    Args:
        argv: CLI arguments.
        stdout: Standard output stream.
        stderr: Standard error stream.

    Returns:
        Exit code.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit:
        logger.warning(f"Argument parsing failed (argv={argv})")
        return 2
    if args.verbose:
        logging.getLogger("protogen").setLevel(logging.DEBUG)

    ctags_path = Path(args.ctags_output)
    try:
        ctags_output = ctags_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning(f"Failed to read ctags output (path={ctags_path} error={exc})")
        stderr.write(f"Cannot read ctags output: {ctags_path}\n")
        return 2

    source_root = Path(args.source_root) if args.source_root else None
    if source_root is not None and not source_root.is_dir():
        logger.warning(f"Source root is not a directory (path={source_root})")
        stderr.write(f"Source root is not a directory: {source_root}\n")
        return 2

    try:
        prototype_parser = Parser(
            line_source=FileLineSource(root_path=source_root),
            lookahead_lines=args.lookahead_lines,
        )
    except ValueError as exc:
        logger.warning(f"Invalid parser option (error={exc})")
        stderr.write(f"{exc}\n")
        return 2

    result = prototype_parser.parse(ctags_output, main_file=args.main_file)
    _write_errors(result=result, stderr=stderr)
    if args.format == "json":
        if args.output:
            try:
                _write_json_file(result=result, output_path=Path(args.output))
            except OSError as exc:
                logger.warning(
                    f"Failed to write JSON output file (output_path={args.output} error={exc})"
                )
                stderr.write(f"Failed to write JSON output file: {args.output}\n")
                return 2
        else:
            _write_json(result=result, stdout=stdout)
    else:
        _write_table(result=result, main_file=args.main_file, stdout=stdout)
    return 0


def _payload(result: ParseResult) -> dict[str, object]:
    return {
        "insertion_line": result.insertion_line,
        "prototypes": [asdict(prototype) for prototype in result.prototypes],
        "errors": [asdict(error) for error in result.errors],
    }


def _write_errors(result: ParseResult, stderr: TextIO) -> None:
    for error in result.errors:
        stderr.write(f"tag_error: {error.function_name}:{error.line}: {error.message}\n")


def _write_json(result: ParseResult, stdout: TextIO) -> None:
    """Write the parse result in JSON format.

    Args:
        result: Parser output.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    console.print(
        json.dumps(_payload(result), indent=2, sort_keys=True),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )


def _write_json_file(result: ParseResult, output_path: Path) -> None:
    """Write raw JSON payload to an output file.

    Raises:
        OSError: If directory creation or file writing fails.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(_payload(result), indent=2, sort_keys=True), encoding="utf-8"
    )


def _write_table(result: ParseResult, main_file: str, stdout: TextIO) -> None:
    """Write prototypes as a table headed by the insertion point.

    Args:
        result: Parser output.
        main_file: Main sketch file the insertion line refers to.
        stdout: Standard output stream.
    """
    console = Console(file=stdout, force_terminal=False, color_system="truecolor")
    if result.insertion_line is None:
        heading = f"{main_file}: no prototypes to insert"
    else:
        heading = f"{main_file}: insert before line {result.insertion_line}"
    console.rule(Text(heading), style=Style(color="cyan"), characters="-")
    table = Table(show_header=True, show_lines=True, expand=True)
    table.add_column(
        "function_name", ratio=TABLE_COLUMN_RATIOS["function_name"], overflow="fold"
    )
    table.add_column(
        "modifiers", ratio=TABLE_COLUMN_RATIOS["modifiers"], overflow="fold"
    )
    table.add_column(
        "prototype", ratio=TABLE_COLUMN_RATIOS["prototype"], overflow="fold"
    )
    table.add_column(
        "line", ratio=TABLE_COLUMN_RATIOS["line"], justify="right", overflow="fold"
    )
    for prototype in result.prototypes:
        table.add_row(
            Text(prototype.function_name),
            Text(prototype.modifiers),
            Text(prototype.prototype),
            str(prototype.line),
        )
    console.print(table)


def main() -> None:
    """Run the CLI application and exit."""
    configure_logging()
    exit_code = run(sys.argv[1:], stdout=sys.stdout, stderr=sys.stderr)
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
