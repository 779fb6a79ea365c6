"""Command-line interface for the Sia interpreter."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from sia.errors import Diagnostic, SiaError, format_diagnostic
from sia.main import explain_source, format_source, parse_source, read_source_file, run_source
from sia.repl import start_repl


def build_parser() -> argparse.ArgumentParser:
    """Build argparse command tree for the Sia CLI."""
    parser = argparse.ArgumentParser(prog="sia", description="Sia scripting language interpreter")
    parser.add_argument("--debug", action="store_true", help="Log interpreter internals to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute a .sia script")
    run_parser.add_argument("input", nargs="?", help="Input .sia file")
    run_parser.add_argument("--code", help="Inline Sia source string")

    subparsers.add_parser("repl", help="Start the interactive shell")

    check_parser = subparsers.add_parser("check", help="Parse source without executing it")
    check_parser.add_argument("input", nargs="?", help="Input .sia file")
    check_parser.add_argument("--code", help="Inline Sia source string")

    explain_parser = subparsers.add_parser("explain", help="Print the AST as JSON")
    explain_parser.add_argument("input", nargs="?", help="Input .sia file")
    explain_parser.add_argument("--code", help="Inline Sia source string")
    explain_parser.add_argument("--no-spans", action="store_true", help="Omit source positions")

    fmt_parser = subparsers.add_parser("fmt", help="Print canonically formatted source")
    fmt_parser.add_argument("input", nargs="?", help="Input .sia file")
    fmt_parser.add_argument("--code", help="Inline Sia source string")

    return parser


def run(argv: list[str] | None = None) -> int:
    """Run CLI and return shell exit code."""
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")

    try:
        if args.command == "run":
            source, filename = _resolve_source(args.input, args.code)
            run_source(source, filename=filename)
            return 0

        if args.command == "repl":
            return start_repl()

        if args.command == "check":
            source, filename = _resolve_source(args.input, args.code)
            parse_source(source, filename=filename)
            print("OK")
            return 0

        if args.command == "explain":
            source, filename = _resolve_source(args.input, args.code)
            payload = explain_source(source, filename=filename, include_spans=not args.no_spans)
            print(json.dumps(payload, indent=2, sort_keys=True))
            return 0

        if args.command == "fmt":
            source, filename = _resolve_source(args.input, args.code)
            print(format_source(source, filename=filename), end="")
            return 0

        raise argparse.ArgumentTypeError(f"Unsupported command '{args.command}'.")

    except SiaError as err:
        diag = err.to_diagnostic()
        print(format_diagnostic(diag), file=sys.stderr)
        return 1
    except argparse.ArgumentTypeError as err:
        diag = Diagnostic(code="CLI001", message=str(err), span=None, hint="Run sia --help for usage.")
        print(format_diagnostic(diag), file=sys.stderr)
        return 2
    except RecursionError:
        diag = Diagnostic(
            code="CLI998",
            message="Call stack exhausted.",
            span=None,
            hint="Check for unbounded recursion.",
        )
        print(format_diagnostic(diag), file=sys.stderr)
        return 3
    except Exception as err:  # pragma: no cover
        diag = Diagnostic(code="CLI999", message=f"Internal error: {err}", span=None, hint="Run with --debug")
        print(format_diagnostic(diag), file=sys.stderr)
        return 3


def _resolve_source(input_path: str | None, inline_code: str | None) -> tuple[str, str]:
    if input_path and inline_code:
        raise argparse.ArgumentTypeError("Use either input file path or --code, not both.")
    if input_path:
        return read_source_file(input_path), input_path
    if inline_code is not None:
        return inline_code, "<inline>"
    raise argparse.ArgumentTypeError("No source provided. Pass input file path or --code.")


if __name__ == "__main__":
    raise SystemExit(run())
