"""
tylang Analyzer Package

Session-wide knowledge about functions (the prototype table) and the errors
raised while lowering the AST.
"""

from .symbol_table import FunctionState, FunctionEntry, PrototypeTable
from .errors import (
    LowerError, UnknownVariableError, UnknownFunctionError, ArityMismatchError,
    InvalidOperatorError, RedefinitionError, SignatureMismatchError,
    SEMANTIC_ERROR_CODES,
)

__all__ = [
    "FunctionState", "FunctionEntry", "PrototypeTable",
    "LowerError", "UnknownVariableError", "UnknownFunctionError",
    "ArityMismatchError", "InvalidOperatorError", "RedefinitionError",
    "SignatureMismatchError", "SEMANTIC_ERROR_CODES",
]
