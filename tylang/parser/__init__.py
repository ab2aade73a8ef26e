"""
tylang Parser Package

Recursive-descent parser with precedence climbing for binary operators.
Produces immutable AST nodes; reports syntax errors as ParseError.
"""

from .ast_nodes import *
from .parser import Parser, Precedence, DEFAULT_BINOP_PRECEDENCE, parse_expression_string
from .errors import ParseError

__all__ = [
    # Core parser
    "Parser", "Precedence", "DEFAULT_BINOP_PRECEDENCE", "parse_expression_string",

    # AST nodes
    "Expression", "NumberLiteral", "VariableRef", "BinaryOp", "Call",
    "Prototype", "FunctionDefinition", "ANONYMOUS_FUNCTION_NAME",
    "format_expression",

    # Error handling
    "ParseError",
]
