"""
Lowering error handling for tylang.

Everything the IR generator can reject is a LowerError: unknown names, wrong
argument counts, operators without an instruction, and definitions that
clash with something the session already knows.
"""

from typing import Optional, List

from ..lexer.tokens import SourceLocation
from ..lexer.errors import CompilerError


class LowerError(CompilerError):
    """
    Exception raised when an AST node cannot be lowered to IR.

    Contains detailed diagnostic information for error reporting.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None,
        related_locations: Optional[List[SourceLocation]] = None
    ):
        super().__init__(message, location, code, help_text, suggestions)
        self.related_locations = related_locations or []

    def __str__(self) -> str:
        result = str(self.diagnostic)

        if self.related_locations:
            result += "Related locations:\n"
            for loc in self.related_locations:
                result += f"  --> {loc}\n"

        return result


class UnknownVariableError(LowerError):
    pass


class UnknownFunctionError(LowerError):
    pass


class ArityMismatchError(LowerError):
    pass


class InvalidOperatorError(LowerError):
    pass


class RedefinitionError(LowerError):
    pass


class SignatureMismatchError(LowerError):
    pass


# Lowering error codes for categorization
SEMANTIC_ERROR_CODES = {
    "S010": "Unknown variable name",
    "S011": "Unknown function referenced",
    "S012": "Incorrect number of arguments",
    "S013": "Invalid binary operator",
    "S014": "Function cannot be redefined",
    "S015": "Conflicting function signature",
}


def create_unknown_variable_error(name: str, location: Optional[SourceLocation],
                                  known: Optional[List[str]] = None) -> UnknownVariableError:
    """Create an error for a name that is not a parameter of the current function."""
    help_text = None
    if known:
        help_text = f"Parameters in scope: {', '.join(known)}"
    return UnknownVariableError(
        message=f"Unknown variable name '{name}'",
        location=location,
        code="S010",
        help_text=help_text,
    )


def create_unknown_function_error(name: str, location: Optional[SourceLocation]) -> UnknownFunctionError:
    """Create an error for a call to a function nobody declared."""
    return UnknownFunctionError(
        message=f"Unknown function referenced '{name}'",
        location=location,
        code="S011",
        suggestions=[f"Declare it first with 'extern {name}(...)'",
                     f"Define it with 'def {name}(...) ...'"],
    )


def create_arity_mismatch_error(name: str, expected: int, found: int,
                                location: Optional[SourceLocation]) -> ArityMismatchError:
    """Create an error for a call with the wrong number of arguments."""
    return ArityMismatchError(
        message=f"Incorrect number of arguments to '{name}': expected {expected}, found {found}",
        location=location,
        code="S012",
    )


def create_invalid_operator_error(operator: str, location: Optional[SourceLocation]) -> InvalidOperatorError:
    """Create an error for an operator with no matching instruction."""
    return InvalidOperatorError(
        message=f"invalid binary operator '{operator}'",
        location=location,
        code="S013",
        help_text="Supported operators are '+', '-', '*' and '<'.",
    )


def create_redefinition_error(name: str, location: Optional[SourceLocation],
                              previous: Optional[SourceLocation] = None) -> RedefinitionError:
    """Create an error for a second body for the same function."""
    return RedefinitionError(
        message=f"Function '{name}' cannot be redefined",
        location=location,
        code="S014",
        related_locations=[previous] if previous is not None else None,
    )


def create_signature_mismatch_error(name: str, expected: int, found: int,
                                    location: Optional[SourceLocation],
                                    previous: Optional[SourceLocation] = None) -> SignatureMismatchError:
    """Create an error for a declaration whose arity contradicts an earlier one."""
    return SignatureMismatchError(
        message=(f"Conflicting signature for '{name}': previously declared with "
                 f"{expected} parameter(s), now {found}"),
        location=location,
        code="S015",
        related_locations=[previous] if previous is not None else None,
    )
