"""
Read-compile-run loop.

Feeds a source buffer to a parser one top-level unit at a time, hands each
unit to the JIT and reports the outcome. Text that fails to lex or parse
is reported and skipped up to the next `;`. A unit that parses but fails
to compile is reported and dropped on its own. The rest of the buffer
still runs.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from rich.console import Console

from ..lexer.lexer import Lexer
from ..lexer.errors import KaleidoscopeError, LexerError
from ..parser.parser import Parser
from ..parser.errors import ParseError
from ..parser.ast_nodes import SExpressionFormatter, TopLevel
from ..backend.llvm_backend import CodegenError
from .jit_compiler import KaleidoscopeJIT, EvaluationResult, UnitKind

logger = logging.getLogger(__name__)

PROMPT = "ready> "
CONTINUATION_PROMPT = "  ...> "


@dataclass
class RunSummary:
    """Counts for one run of the driver"""
    units: int = 0
    errors: int = 0

    @property
    def ok(self) -> bool:
        return self.errors == 0


class Driver:
    """
    Interactive driver around a single JIT instance.

    Every buffer gets its own lexer and parser; compiled functions live in
    the JIT and stay callable from later buffers.
    """

    def __init__(self, jit: Optional[KaleidoscopeJIT] = None, console: Optional[Console] = None,
                 dump_ir: bool = False, dump_ast: bool = False,
                 binop_precedence: Optional[Mapping[str, int]] = None):
        self.jit = jit or KaleidoscopeJIT()
        self.console = console or Console()
        self.dump_ir = dump_ir
        self.dump_ast = dump_ast
        self.binop_precedence = binop_precedence
        self._formatter = SExpressionFormatter()

    def run_source(self, source: str, filename: str = "<stdin>") -> RunSummary:
        """
        Parse, compile and run every unit of a buffer.

        Returns:
            How many units ran and how many failed
        """
        summary = RunSummary()
        parser = Parser(Lexer(source, filename), self.binop_precedence)

        while True:
            try:
                unit = parser.parse_next()
            except (LexerError, ParseError) as e:
                summary.errors += 1
                self.report_error(e)
                parser.synchronize()
                continue

            if unit is None:
                break

            # The unit parsed completely, so the parser is already at the next one
            try:
                self.handle_unit(unit)
            except CodegenError as e:
                summary.errors += 1
                self.report_error(e)
                continue

            summary.units += 1

        return summary

    def repl(self, lines: Iterable[str], filename: str = "<stdin>") -> RunSummary:
        """
        Run input line by line, prompting before each one.

        Lines are collected until they form complete units, so a definition
        may span several lines. Whatever is pending when input ends is run
        as is.

        Args:
            lines: Source lines, e.g. a text stream
        """
        summary = RunSummary()
        pending = ""

        self._prompt(PROMPT)
        for line in lines:
            pending += line
            if self._needs_more_input(pending):
                self._prompt(CONTINUATION_PROMPT)
                continue

            self._add(summary, self.run_source(pending, filename))
            pending = ""
            self._prompt(PROMPT)

        if pending.strip():
            self.console.print()
            self._add(summary, self.run_source(pending, filename))
        self.console.print()
        return summary

    def _needs_more_input(self, source: str) -> bool:
        """True if `source` only fails because it stops in the middle of a unit."""
        parser = Parser(Lexer(source), self.binop_precedence)
        try:
            parser.parse()
        except ParseError as e:
            return e.token is not None and e.token.is_eof
        except LexerError:
            return False
        return False

    @staticmethod
    def _add(summary: RunSummary, result: RunSummary):
        summary.units += result.units
        summary.errors += result.errors

    def handle_unit(self, unit: TopLevel) -> EvaluationResult:
        """Compile one unit and report what happened."""
        if self.dump_ast:
            self.console.print(self._formatter.format(unit), markup=False, highlight=False)

        result = self.jit.evaluate(unit)

        if result.kind == UnitKind.DEFINITION:
            self.console.print("Parsed a definition")
        elif result.kind == UnitKind.EXTERN:
            self.console.print("Parsed an extern")
        else:
            self.console.print(f"Evaluated to {result.value!r}", highlight=False)

        if self.dump_ir:
            self.console.print(result.ir, markup=False, highlight=False)

        return result

    def report_error(self, error: KaleidoscopeError):
        logger.info("unit failed: %s", error.message)
        self.console.print(str(error.diagnostic), style="bold red", markup=False, highlight=False, end="")

    def _prompt(self, prompt: str):
        self.console.print(prompt, end="", markup=False, highlight=False)
