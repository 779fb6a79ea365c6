"""Top-level orchestration for running Sia source."""

from __future__ import annotations

from pathlib import Path
from typing import Any, TextIO

from sia.ast import Program
from sia.errors import CLIError, TopLevelReturnError
from sia.evaluator import Evaluator, Returning
from sia.formatter import format_program
from sia.lexer import Lexer
from sia.parser import parse
from sia.serialization import ast_to_dict
from sia.tokens import Token


SOURCE_SUFFIX = ".sia"


def tokenize(source: str, *, filename: str = "<input>") -> list[Token]:
    """Tokenize source text into a full token list."""
    return Lexer(source, filename=filename).tokenize()


def parse_source(source: str, *, filename: str = "<input>") -> Program:
    """Parse source text into a Program AST."""
    return parse(source, filename=filename)


def run_program(program: Program, evaluator: Evaluator) -> Evaluator:
    """Evaluate a parsed program, rejecting a return that escapes it."""
    result = evaluator.evaluate(program)
    if isinstance(result, Returning):
        raise TopLevelReturnError(span=result.span)
    return evaluator


def run_source(
    source: str,
    *,
    filename: str = "<input>",
    evaluator: Evaluator | None = None,
    output: TextIO | None = None,
) -> Evaluator:
    """Parse and execute source text.

    Passing an existing evaluator continues its session; otherwise a fresh
    one writing to output (stdout by default) is created. The evaluator is
    returned so callers can inspect variables and functions afterwards.
    """
    program = parse_source(source, filename=filename)
    return run_program(program, evaluator or Evaluator(output=output))


def read_source_file(input_path: str | Path) -> str:
    """Read a script file, enforcing the .sia extension."""
    path = Path(input_path)
    if path.suffix != SOURCE_SUFFIX:
        raise CLIError(
            code="CLI002",
            message=f"File '{path}' must have the {SOURCE_SUFFIX} extension.",
            hint=f"Rename the script to end with {SOURCE_SUFFIX}.",
        )
    try:
        return path.read_text(encoding="utf-8")
    except OSError as err:
        raise CLIError(
            code="CLI003",
            message=f"Could not open file '{path}': {err.strerror or err}.",
            hint="Check the path and file permissions.",
        ) from err


def run_file(
    input_path: str | Path,
    *,
    evaluator: Evaluator | None = None,
    output: TextIO | None = None,
) -> Evaluator:
    """Read and execute a .sia script."""
    source = read_source_file(input_path)
    return run_source(source, filename=str(input_path), evaluator=evaluator, output=output)


def explain_source(source: str, *, filename: str = "<input>", include_spans: bool = True) -> dict[str, Any]:
    """Return a JSON-compatible dump of the parsed AST."""
    program = parse_source(source, filename=filename)
    return {"ast": ast_to_dict(program, include_spans=include_spans)}


def format_source(source: str, *, filename: str = "<input>") -> str:
    """Return the canonical formatting of source text."""
    return format_program(parse_source(source, filename=filename))
