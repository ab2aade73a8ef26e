"""
Test suite for AST to LLVM IR lowering.

Tests cover:
- Instruction selection for every operator
- Calls, forward declarations and arity checks
- The prototype table protocol (redefinition, signature conflicts)
- Cleanup of functions whose body fails to lower
"""

import io
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from llvmlite import ir

from tylang.lexer.lexer import Lexer
from tylang.parser.parser import Parser
from tylang.parser.ast_nodes import (
    BinaryOp, FunctionDefinition, NumberLiteral, Prototype, VariableRef,
)
from tylang.analyzer.symbol_table import FunctionState, PrototypeTable
from tylang.analyzer.errors import (
    ArityMismatchError, InvalidOperatorError, LowerError, RedefinitionError,
    SignatureMismatchError, UnknownFunctionError, UnknownVariableError,
)
from tylang.ir.ir_generator import IRGenerator


def _parser(source: str) -> Parser:
    return Parser(Lexer(io.StringIO(source), "<test>"))


class TestIRGenerator(unittest.TestCase):
    """Test cases for the IR generator."""

    def setUp(self):
        """Set up test fixtures."""
        self.table = PrototypeTable()
        self.generator = IRGenerator(self.table)

    def _define(self, source: str) -> ir.Function:
        return self.generator.lower_function(_parser(source).parse_definition())

    def _extern(self, source: str) -> ir.Function:
        return self.generator.lower_extern(_parser(source).parse_extern())

    def _opnames(self, function: ir.Function):
        return [instr.opname for instr in function.blocks[0].instructions]

    def test_function_signature(self):
        function = self._define("def f(a b c) a")

        self.assertEqual(function.name, "f")
        self.assertEqual(len(function.args), 3)
        self.assertIsInstance(function.function_type.return_type, ir.DoubleType)
        self.assertTrue(all(isinstance(t, ir.DoubleType) for t in function.function_type.args))
        self.assertEqual(function.blocks[0].name, "entry")

    def test_arithmetic_operators(self):
        self.assertEqual(self._opnames(self._define("def add(a b) a + b")), ["fadd", "ret"])
        self.assertEqual(self._opnames(self._define("def sub(a b) a - b")), ["fsub", "ret"])
        self.assertEqual(self._opnames(self._define("def mul(a b) a * b")), ["fmul", "ret"])

    def test_comparison_produces_double(self):
        function = self._define("def lt(a b) a < b")
        instructions = function.blocks[0].instructions

        self.assertEqual(self._opnames(function), ["fcmp", "uitofp", "ret"])
        self.assertIn("fcmp ult", str(instructions[0]))
        self.assertIsInstance(instructions[1].type, ir.DoubleType)

    def test_number_literal(self):
        function = self._define("def five() 5")
        ret = function.blocks[0].instructions[-1]

        self.assertIsInstance(ret.operands[0], ir.Constant)
        self.assertEqual(ret.operands[0].constant, 5.0)

    def test_duplicate_parameter_first_wins(self):
        function = self._define("def first(x x) x")
        ret = function.blocks[0].instructions[-1]

        self.assertIs(ret.operands[0], function.args[0])

    def test_invalid_operator(self):
        definition = FunctionDefinition(
            Prototype("div", ("a", "b")),
            BinaryOp('/', VariableRef("a"), VariableRef("b"))
        )

        with self.assertRaises(InvalidOperatorError):
            self.generator.lower_function(definition)
        self.assertNotIn("div", self.generator.module.globals)

    def test_unknown_variable(self):
        with self.assertRaises(UnknownVariableError) as ctx:
            self._define("def f(x) y")

        self.assertEqual(ctx.exception.code, "S010")
        self.assertNotIn("f", self.generator.module.globals)
        self.assertNotIn("f", self.table)

    def test_unknown_function(self):
        with self.assertRaises(UnknownFunctionError):
            self._define("def f(x) g(x)")

        self.assertNotIn("f", self.generator.module.globals)

    def test_arity_mismatch_emits_no_call(self):
        self._extern("extern g(a b)")

        with self.assertRaises(ArityMismatchError):
            self._define("def f(x) g(x)")

        self.assertNotIn("f", self.generator.module.globals)
        # The unrelated declaration survives the cleanup
        self.assertIn("g", self.generator.module.globals)
        self.assertNotIn("call", str(self.generator.module))

    def test_forward_reference_through_extern(self):
        self._extern("extern g(x)")
        function = self._define("def f(x) g(x) + 1")

        self.assertEqual(self._opnames(function), ["call", "fadd", "ret"])
        self.assertTrue(self.generator.module.globals["g"].is_declaration)

    def test_arguments_lowered_left_to_right(self):
        self._extern("extern g(a b)")
        function = self._define("def f(x y) g(x * 2, y - 1)")

        self.assertEqual(self._opnames(function), ["fmul", "fsub", "call", "ret"])

    def test_call_into_committed_module_redeclares(self):
        self._define("def f(x) x")
        committed = self.generator.take_module()

        function = self._define("def h(x) f(x) * 2")

        self.assertIsNot(committed, self.generator.module)
        self.assertTrue(self.generator.module.globals["f"].is_declaration)
        self.assertFalse(committed.globals["f"].is_declaration)
        self.assertEqual(self._opnames(function), ["call", "fmul", "ret"])

    def test_recursion_is_lowered(self):
        function = self._define("def loop(x) loop(x)")

        self.assertEqual(self._opnames(function), ["call", "ret"])

    def test_redefinition_keeps_first_body(self):
        first = self._define("def f(x) x + 1")

        with self.assertRaises(RedefinitionError):
            self._define("def f(x) x * 2")

        self.assertIs(self.generator.module.globals["f"], first)
        self.assertEqual(self._opnames(first), ["fadd", "ret"])
        self.assertTrue(self.table.is_defined("f"))

    def test_redefinition_across_modules(self):
        self._define("def f(x) x")
        self.generator.take_module()

        with self.assertRaises(RedefinitionError):
            self._define("def f(x) x * 2")
        self.assertNotIn("f", self.generator.module.globals)

    def test_signature_mismatch(self):
        self._extern("extern f(a)")

        with self.assertRaises(SignatureMismatchError):
            self._define("def f(a b) a")
        with self.assertRaises(SignatureMismatchError):
            self._extern("extern f(a b)")

        self.assertEqual(self.table.lookup("f").arity, 1)

    def test_definition_after_extern(self):
        self._extern("extern f(a)")
        function = self._define("def f(x) x * x")

        self.assertFalse(function.is_declaration)
        self.assertIs(self.generator.module.globals["f"], function)
        self.assertTrue(self.table.is_defined("f"))

    def test_failed_definition_reverts_to_declaration(self):
        self._extern("extern f(a)")

        with self.assertRaises(LowerError):
            self._define("def f(x) y")

        entry = self.table.lookup("f")
        self.assertEqual(entry.state, FunctionState.DECLARED)
        self.assertNotIn("f", self.generator.module.globals)

        # The declaration from the table is enough to call it again
        caller = self._define("def g(x) f(x)")
        self.assertEqual(self._opnames(caller), ["call", "ret"])

    def test_extern_reuses_existing_declaration(self):
        first = self._extern("extern g(x)")
        second = self._extern("extern g(y)")

        self.assertIs(first, second)
        self.assertEqual(len(self.table), 1)

    def test_named_values_do_not_outlive_function(self):
        self._define("def f(x) x")

        self.assertEqual(self.generator.context.named_values, {})
        with self.assertRaises(UnknownVariableError):
            self._define("def g(y) x")

    def test_module_factory_is_used(self):
        created = []

        def factory(name):
            module = ir.Module(name=name)
            created.append(module)
            return module

        generator = IRGenerator(module_factory=factory)
        generator.take_module()

        self.assertEqual(len(created), 2)
        self.assertIs(generator.module, created[-1])

    def test_number_constant_lowering(self):
        value = IRGenerator()._lower_number(NumberLiteral(2.5))

        self.assertEqual(value.constant, 2.5)


if __name__ == '__main__':
    unittest.main()
