"""
Abstract Syntax Tree node definitions for tylang.

The expression language is closed: an expression is exactly one of
NumberLiteral, VariableRef, BinaryOp or Call. Nodes are frozen dataclasses,
so a tree can be shared with the lowering stage without anyone mutating it,
and every child is owned by exactly one parent.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


# Reserved name for wrapped top-level expressions. Identifiers are made of
# letters and digits only, so no user definition can ever collide with it.
ANONYMOUS_FUNCTION_NAME = "__anon_expr"


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    """Numeric literal such as ``1.0``."""
    value: float
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class VariableRef:
    """Reference to a function parameter such as ``x``."""
    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class BinaryOp:
    """Binary operator application; both operands are always present."""
    operator: str
    left: 'Expression'
    right: 'Expression'
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class Call:
    """Function call such as ``foo(1, x)``."""
    callee: str
    arguments: Tuple['Expression', ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)


Expression = Union[NumberLiteral, VariableRef, BinaryOp, Call]


# ============================================================================
# Functions
# ============================================================================

@dataclass(frozen=True)
class Prototype:
    """
    A function signature: its name and parameter names.

    Every parameter and the result are float64, so the arity is the whole
    type. Parameter names are not required to be unique.
    """
    name: str
    parameters: Tuple[str, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False, repr=False)

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def is_anonymous(self) -> bool:
        return self.name.startswith(ANONYMOUS_FUNCTION_NAME)

    def __str__(self) -> str:
        return f"{self.name}({' '.join(self.parameters)})"


@dataclass(frozen=True)
class FunctionDefinition:
    """A prototype together with the expression that computes its result."""
    prototype: Prototype
    body: Expression

    @property
    def name(self) -> str:
        return self.prototype.name


def format_expression(expr: Expression) -> str:
    """Render an expression fully parenthesized, e.g. ``(1 + (2 * 3))``."""
    if isinstance(expr, NumberLiteral):
        return f"{expr.value:g}"
    if isinstance(expr, VariableRef):
        return expr.name
    if isinstance(expr, BinaryOp):
        return f"({format_expression(expr.left)} {expr.operator} {format_expression(expr.right)})"
    if isinstance(expr, Call):
        args = ", ".join(format_expression(arg) for arg in expr.arguments)
        return f"{expr.callee}({args})"
    raise TypeError(f"not an expression node: {expr!r}")
