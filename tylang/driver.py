"""
tylang driver.

Reads top-level units one at a time, classifies them by their first token and
pushes each one through parse, lowering and, for bare expressions, execution:

    ;            ignored
    def ...      lowered into the open module, which is then committed
    extern ...   declared in the open module and the prototype table
    anything     wrapped in an anonymous function, committed as a one-shot
                 module, run, reported and removed again

Problems are printed as diagnostics and the loop moves on to the next unit.
The only fatal condition is an input file that cannot be opened.
"""

import argparse
import io
import sys
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, TextIO

from . import __version__
from .lexer import Lexer, TokenType, Diagnostic, CompilerError
from .parser import (
    Parser, ParseError, DEFAULT_BINOP_PRECEDENCE, FunctionDefinition,
    ANONYMOUS_FUNCTION_NAME,
)
from .analyzer import PrototypeTable
from .ir import IRGenerator
from .backend import LLVMBackend
from .jit import ExecutionEngine, OptimizationLevel


DEFAULT_PROMPT = "READY> "


@dataclass
class SessionConfig:
    """Settings for one compilation session."""
    optimization_level: OptimizationLevel = OptimizationLevel.O2
    dump_ir: bool = False
    prompt: Optional[str] = DEFAULT_PROMPT
    stream: Optional[TextIO] = None  # diagnostics and results, stderr if None

    @property
    def output(self) -> TextIO:
        return self.stream if self.stream is not None else sys.stderr


class UnitKind(Enum):
    DEFINITION = "definition"
    EXTERN = "extern"
    EXPRESSION = "expression"


@dataclass
class UnitResult:
    """Outcome of one top-level unit."""
    kind: UnitKind
    name: Optional[str] = None
    value: Optional[float] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class CompilationSession:
    """
    Owns everything that lives as long as the read-eval loop: the prototype
    table, the IR generator with its open module, the backend and the JIT.
    """

    def __init__(self, config: Optional[SessionConfig] = None):
        self.config = config or SessionConfig()
        self.table = PrototypeTable()
        self.backend = LLVMBackend(self.config.optimization_level)
        self.engine = ExecutionEngine(self.config.optimization_level)
        self.generator = IRGenerator(self.table, self.backend.new_module)
        self.binop_precedence = dict(DEFAULT_BINOP_PRECEDENCE)
        self._anonymous_count = 0

    # ------------------------------------------------------------------
    # Read-eval loop
    # ------------------------------------------------------------------

    def run(self, lexer: Lexer, interactive: bool = True) -> List[UnitResult]:
        """
        Process every unit until end of input.

        Args:
            lexer: Token source to read from
            interactive: Print the prompt before each unit

        Returns:
            One UnitResult per unit, in input order
        """
        parser = Parser(lexer, self.binop_precedence)
        results: List[UnitResult] = []

        while True:
            if interactive:
                self._prompt()

            token = lexer.current
            if token.type == TokenType.EOF:
                break
            if token.is_char(';'):
                lexer.advance()
                continue

            if token.type == TokenType.DEF:
                results.append(self.handle_definition(parser))
            elif token.type == TokenType.EXTERN:
                results.append(self.handle_extern(parser))
            else:
                results.append(self.handle_top_level_expression(parser))

        return results

    def evaluate(self, source: str, filename: str = "<string>") -> List[UnitResult]:
        """Run every unit in ``source`` without prompting."""
        return self.run(Lexer(io.StringIO(source), filename), interactive=False)

    # ------------------------------------------------------------------
    # Unit handlers
    # ------------------------------------------------------------------

    def handle_definition(self, parser: Parser) -> UnitResult:
        try:
            definition = parser.parse_definition()
        except ParseError as e:
            return self._recover(parser, UnitKind.DEFINITION, e)

        self._emit("Parsed a function definition.")
        result = UnitResult(UnitKind.DEFINITION, definition.name)
        previous = self.table.lookup(definition.name)
        try:
            function = self.generator.lower_function(definition)
        except CompilerError as e:
            self._report(result, e)
            return result

        self._dump_ir(function)
        try:
            self._commit()
        except CompilerError as e:
            # The body never reached the engine, so the name may be defined again
            self.table.revert(definition.name, previous)
            self._report(result, e)
        return result

    def handle_extern(self, parser: Parser) -> UnitResult:
        try:
            prototype = parser.parse_extern()
        except ParseError as e:
            return self._recover(parser, UnitKind.EXTERN, e)

        self._emit("Parsed an extern")
        result = UnitResult(UnitKind.EXTERN, prototype.name)
        try:
            function = self.generator.lower_extern(prototype)
            self._dump_ir(function)
        except CompilerError as e:
            self._report(result, e)
        return result

    def handle_top_level_expression(self, parser: Parser) -> UnitResult:
        try:
            definition = parser.parse_top_level_expr()
        except ParseError as e:
            return self._recover(parser, UnitKind.EXPRESSION, e)

        self._emit("Parsed a top-level expr")
        definition = self._name_anonymous(definition)
        result = UnitResult(UnitKind.EXPRESSION, definition.name)
        try:
            function = self.generator.lower_function(definition)
            self._dump_ir(function)
            handle = self._commit()
            try:
                result.value = self.engine.run_function(definition.name)
            finally:
                self.engine.remove_module(handle)
            self._emit(f"Evaluated to {result.value:f}")
        except CompilerError as e:
            self._report(result, e)
        finally:
            self.table.forget(definition.name)
        return result

    # ------------------------------------------------------------------
    # Host interop
    # ------------------------------------------------------------------

    def register_host_function(self, name: str, function: Callable[..., float], arity: int) -> None:
        """Expose a Python callable to tylang code; declare it with 'extern'."""
        self.engine.register_host_function(name, function, arity)

    def close(self) -> None:
        self.engine.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _name_anonymous(self, definition: FunctionDefinition) -> FunctionDefinition:
        # Symbol names must never repeat within one MCJIT engine
        self._anonymous_count += 1
        name = f"{ANONYMOUS_FUNCTION_NAME}{self._anonymous_count}"
        return replace(definition, prototype=replace(definition.prototype, name=name))

    def _commit(self):
        module = self.generator.take_module()
        return self.engine.add_module(self.backend.compile_module(module))

    def _recover(self, parser: Parser, kind: UnitKind, error: ParseError) -> UnitResult:
        result = UnitResult(kind)
        self._report(result, error)
        parser.lexer.advance()  # skip one token and resync at the next unit
        return result

    def _report(self, result: UnitResult, error: CompilerError) -> None:
        result.diagnostics.append(error.diagnostic)
        self.config.output.write(str(error))

    def _emit(self, message: str) -> None:
        print(message, file=self.config.output)

    def _dump_ir(self, function) -> None:
        if self.config.dump_ir:
            print(str(function), file=self.config.output)

    def _prompt(self) -> None:
        if self.config.prompt:
            self.config.output.write(self.config.prompt)
            self.config.output.flush()


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tylang",
        description="Compile and run tylang source with the LLVM JIT.",
    )
    parser.add_argument("file", nargs="?", help="source file to run (default: standard input)")
    parser.add_argument("-O", dest="optimization", type=int, choices=[0, 1, 2, 3], default=2,
                        help="optimization level (default: 2)")
    parser.add_argument("--emit-ir", action="store_true",
                        help="print the LLVM IR of every function as it is lowered")
    parser.add_argument("--no-prompt", action="store_true",
                        help=f"do not print the '{DEFAULT_PROMPT.strip()}' prompt")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    config = SessionConfig(
        optimization_level=OptimizationLevel(args.optimization),
        dump_ir=args.emit_ir,
        prompt=None if args.no_prompt else DEFAULT_PROMPT,
    )

    if args.file is None:
        session = CompilationSession(config)
        session.run(Lexer(sys.stdin, "<stdin>"))
        return 0

    try:
        source = open(args.file, "r", encoding="utf-8")
    except OSError as e:
        print(f"error: cannot open '{args.file}': {e.strerror}", file=sys.stderr)
        return 1

    with source:
        session = CompilationSession(config)
        session.run(Lexer(source, args.file))
    return 0


if __name__ == "__main__":
    sys.exit(main())
