"""
IR Generator for tylang.

Lowers AST nodes into LLVM IR with llvmlite's instruction builder. Every
value is a double, so a prototype with N parameters becomes
``double (double, ..., double)``.

The generator always has exactly one open module. Definitions and
declarations are added to it until the session commits it to the JIT with
take_module(), at which point a fresh module is opened.
"""

from typing import Callable, Dict, List, Optional
from dataclasses import dataclass, field

from llvmlite import ir

from ..parser.ast_nodes import (
    BinaryOp, Call, Expression, FunctionDefinition, NumberLiteral, Prototype,
    VariableRef,
)
from ..analyzer.symbol_table import PrototypeTable
from ..analyzer.errors import (
    create_arity_mismatch_error, create_invalid_operator_error,
    create_signature_mismatch_error, create_unknown_function_error,
    create_unknown_variable_error,
)


DOUBLE = ir.DoubleType()


@dataclass
class IRGenContext:
    """State that only exists while a single function body is lowered."""
    current_function: Optional[ir.Function] = None
    builder: Optional[ir.IRBuilder] = None
    named_values: Dict[str, ir.Value] = field(default_factory=dict)

    def reset(self) -> None:
        self.current_function = None
        self.builder = None
        self.named_values.clear()


def default_module_factory(name: str) -> ir.Module:
    return ir.Module(name=name)


class IRGenerator:
    """
    Generates LLVM IR for tylang functions.

    Lowering either completes or leaves no trace of the failed function in
    the open module; the prototype table is rolled back alongside.
    """

    def __init__(self, table: Optional[PrototypeTable] = None,
                 module_factory: Optional[Callable[[str], ir.Module]] = None):
        """
        Initialize the IR generator.

        Args:
            table: Session prototype table, a private one if omitted
            module_factory: Creates empty modules, e.g. LLVMBackend.new_module
        """
        self.table = table if table is not None else PrototypeTable()
        self.module_factory = module_factory or default_module_factory
        self.context = IRGenContext()
        self._module_count = 0
        self.module = self._new_module()

    # ------------------------------------------------------------------
    # Module management
    # ------------------------------------------------------------------

    def _new_module(self) -> ir.Module:
        self._module_count += 1
        return self.module_factory(f"tylang_module_{self._module_count}")

    def take_module(self) -> ir.Module:
        """Hand over the open module and start a fresh one."""
        module = self.module
        self.module = self._new_module()
        return module

    def _discard_function(self, name: str) -> None:
        """
        Remove ``name`` from the open module.

        llvmlite modules cannot drop a global, so the module is rebuilt with
        every other function redeclared.
        """
        old_module = self.module
        self.module = self.module_factory(old_module.name)
        for value in old_module.globals.values():
            if not isinstance(value, ir.Function) or value.name == name:
                continue
            function = ir.Function(self.module, value.function_type, value.name)
            for new_arg, old_arg in zip(function.args, value.args):
                new_arg.name = old_arg.name

    # ------------------------------------------------------------------
    # Functions and prototypes
    # ------------------------------------------------------------------

    def get_function(self, name: str) -> Optional[ir.Function]:
        """
        Find ``name`` in the open module, or declare it there from the
        prototype table. Returns None if the session has never heard of it.
        """
        existing = self.module.globals.get(name)
        if isinstance(existing, ir.Function):
            return existing

        prototype = self.table.lookup_prototype(name)
        if prototype is not None:
            return self.lower_prototype(prototype)

        return None

    def lower_prototype(self, prototype: Prototype) -> ir.Function:
        """Declare ``double name(double, ...)`` in the open module."""
        existing = self.module.globals.get(prototype.name)
        if isinstance(existing, ir.Function):
            if len(existing.args) != prototype.arity:
                raise create_signature_mismatch_error(
                    prototype.name, len(existing.args), prototype.arity, prototype.location
                )
            return existing

        function_type = ir.FunctionType(DOUBLE, [DOUBLE] * prototype.arity)
        function = ir.Function(self.module, function_type, name=prototype.name)
        for arg, parameter in zip(function.args, prototype.parameters):
            arg.name = parameter
        return function

    def lower_extern(self, prototype: Prototype) -> ir.Function:
        """Record an 'extern' in the table and declare it in the open module."""
        self.table.declare(prototype)
        return self.lower_prototype(prototype)

    def lower_function(self, definition: FunctionDefinition) -> ir.Function:
        """
        Lower a complete function definition into the open module.

        Raises:
            LowerError: The function is removed from the module and the table
                entry reverts to what it was before
        """
        prototype = definition.prototype
        previous = self.table.begin_definition(prototype)

        try:
            function = self.lower_prototype(prototype)
            # An earlier 'extern' may have named the parameters differently
            for arg, parameter in zip(function.args, prototype.parameters):
                if arg.name != parameter:
                    arg.name = parameter

            block = function.append_basic_block(name="entry")
            self.context.current_function = function
            self.context.builder = ir.IRBuilder(block)

            # First occurrence wins for repeated parameter names
            self.context.named_values.clear()
            for arg, parameter in zip(function.args, prototype.parameters):
                self.context.named_values.setdefault(parameter, arg)

            return_value = self.lower_expression(definition.body)
            self.context.builder.ret(return_value)
        except Exception:
            self._discard_function(prototype.name)
            self.table.revert(prototype.name, previous)
            raise
        finally:
            self.context.reset()

        self.table.finish_definition(prototype.name)
        return function

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def lower_expression(self, expr: Expression) -> ir.Value:
        """Lower an expression inside the current function body."""
        if isinstance(expr, NumberLiteral):
            return self._lower_number(expr)
        elif isinstance(expr, VariableRef):
            return self._lower_variable(expr)
        elif isinstance(expr, BinaryOp):
            return self._lower_binary_op(expr)
        elif isinstance(expr, Call):
            return self._lower_call(expr)
        raise TypeError(f"cannot lower {type(expr).__name__}")

    def _lower_number(self, literal: NumberLiteral) -> ir.Value:
        return ir.Constant(DOUBLE, float(literal.value))

    def _lower_variable(self, variable: VariableRef) -> ir.Value:
        value = self.context.named_values.get(variable.name)
        if value is None:
            raise create_unknown_variable_error(
                variable.name, variable.location, list(self.context.named_values)
            )
        return value

    def _lower_binary_op(self, binary_op: BinaryOp) -> ir.Value:
        left = self.lower_expression(binary_op.left)
        right = self.lower_expression(binary_op.right)
        builder = self.context.builder

        if binary_op.operator == '+':
            return builder.fadd(left, right, name="addtmp")
        elif binary_op.operator == '-':
            return builder.fsub(left, right, name="subtmp")
        elif binary_op.operator == '*':
            return builder.fmul(left, right, name="multmp")
        elif binary_op.operator == '<':
            comparison = builder.fcmp_unordered('<', left, right, name="cmptmp")
            # Booleans are represented as 0.0 or 1.0
            return builder.uitofp(comparison, DOUBLE, name="booltmp")

        raise create_invalid_operator_error(binary_op.operator, binary_op.location)

    def _lower_call(self, call: Call) -> ir.Value:
        callee = self.get_function(call.callee)
        if callee is None:
            raise create_unknown_function_error(call.callee, call.location)

        if len(callee.args) != len(call.arguments):
            raise create_arity_mismatch_error(
                call.callee, len(callee.args), len(call.arguments), call.location
            )

        arguments: List[ir.Value] = [self.lower_expression(arg) for arg in call.arguments]
        return self.context.builder.call(callee, arguments, name="calltmp")
