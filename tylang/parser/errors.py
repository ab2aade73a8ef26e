"""
Error handling for the tylang parser.

Every syntax error is raised as a ParseError carrying a Diagnostic. The
parser never recovers by itself: the driver reports the error, drops one
token and starts over at the next top-level unit.
"""

from typing import Optional, List

from ..lexer.tokens import Token, SourceLocation
from ..lexer.errors import CompilerError


class ParseError(CompilerError):
    """
    Exception raised when the parser meets a token a production cannot accept.
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation],
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message, location, code, help_text, suggestions)
        self.token = token


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P003": "Malformed argument list",
    "P004": "Unclosed delimiter",
    "P005": "Invalid expression",
    "P008": "Malformed function signature",
}


# Helper functions for creating common parser errors

def create_unexpected_token_error(expected: str, found: Token) -> ParseError:
    """Create an error for a token that does not fit the production."""
    return ParseError(
        message=f"Expected {expected}, found {found.describe()}",
        location=found.location,
        token=found,
        code="P001",
    )


def create_unclosed_delimiter_error(delimiter: str, open_location: Optional[SourceLocation],
                                    found: Token) -> ParseError:
    """Create an error for a parenthesis that was never closed."""
    closing = {"(": ")"}.get(delimiter, delimiter)
    help_text = None
    if open_location is not None:
        help_text = f"The opening '{delimiter}' at {open_location} was never closed."

    return ParseError(
        message=f"expected '{closing}', found {found.describe()}",
        location=found.location,
        token=found,
        code="P004",
        help_text=help_text,
        suggestions=[f"Add a closing '{closing}'"]
    )


def create_argument_list_error(found: Token, trailing_comma: bool = False) -> ParseError:
    """Create an error for anything but ')' or ',' after a call argument."""
    detail = "a trailing ','" if trailing_comma else found.describe()
    return ParseError(
        message=f"Expected ')' or ',' in argument list, found {detail}",
        location=found.location,
        token=found,
        code="P003",
        help_text="Call arguments are separated by ',' and a trailing ',' is not allowed.",
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    return ParseError(
        message=f"Unknown token when expecting an expression: {found.describe()}",
        location=found.location,
        token=found,
        code="P005",
        help_text="An expression starts with a number, an identifier or '('.",
    )


def create_prototype_error(expected: str, found: Token) -> ParseError:
    """Create an error for a malformed 'def'/'extern' signature."""
    return ParseError(
        message=f"Expected {expected} in prototype, found {found.describe()}",
        location=found.location,
        token=found,
        code="P008",
        help_text="A prototype looks like: name(param1 param2 ...)",
    )
