"""Interactive read-evaluate loop for Sia."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from sia.errors import SiaError, format_diagnostic
from sia.evaluator import Evaluator
from sia.main import run_source


logger = logging.getLogger(__name__)

BANNER = "Sia 0.1"
PROMPT = ">> "
CONTINUATION_PROMPT = ".. "
QUIT_COMMANDS = frozenset({"quit", "exit"})
CLEAR_SCREEN = "\033[2J\033[H"


def open_depth(source: str) -> int:
    """Number of blocks still open at the end of buffered input.

    Braces inside string literals and comments are ignored. An unterminated
    block comment counts as one open level so the input keeps buffering.
    """
    depth = 0
    i = 0
    in_string = False
    in_line_comment = False
    in_block_comment = False
    while i < len(source):
        ch = source[i]
        pair = source[i : i + 2]
        if in_line_comment:
            in_line_comment = ch != "\n"
        elif in_block_comment:
            if pair == "*/":
                in_block_comment = False
                i += 1
        elif in_string:
            if ch == "\\":
                i += 1
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif pair == "//":
            in_line_comment = True
            i += 1
        elif pair == "/*":
            in_block_comment = True
            i += 1
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        i += 1
    return depth + 1 if in_block_comment else depth


class Repl:
    """Line-oriented shell keeping one evaluator alive across inputs."""

    def __init__(
        self,
        evaluator: Evaluator | None = None,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.evaluator = evaluator or Evaluator(output=self.stdout)
        self._entries = 0

    def run(self) -> int:
        """Run until quit or end of input; returns the exit code."""
        self.stdout.write(BANNER + "\n")
        buffer: list[str] = []

        while True:
            self.stdout.write(CONTINUATION_PROMPT if buffer else PROMPT)
            self.stdout.flush()
            line = self.stdin.readline()
            if not line:
                self.stdout.write("\n")
                if buffer:
                    # Incomplete input still gets a diagnostic.
                    self.execute("\n".join(buffer) + "\n")
                return 0

            stripped = line.strip()
            if not buffer:
                if stripped in QUIT_COMMANDS:
                    return 0
                if stripped == "clear":
                    self.stdout.write(CLEAR_SCREEN)
                    continue
                if not stripped:
                    continue

            buffer.append(line.rstrip("\n"))
            source = "\n".join(buffer) + "\n"
            if open_depth(source) > 0:
                continue

            buffer = []
            self.execute(source)

    def execute(self, source: str) -> bool:
        """Evaluate one complete input; returns False when it raised an error."""
        self._entries += 1
        filename = f"<repl:{self._entries}>"
        try:
            run_source(source, filename=filename, evaluator=self.evaluator)
        except SiaError as err:
            self.stderr.write(format_diagnostic(err.to_diagnostic()) + "\n")
            logger.debug("REPL input %s failed with %s", filename, err.code)
            return False
        return True


def start_repl(stdin: TextIO | None = None, stdout: TextIO | None = None, stderr: TextIO | None = None) -> int:
    """Start an interactive session on the given streams."""
    return Repl(stdin=stdin, stdout=stdout, stderr=stderr).run()
