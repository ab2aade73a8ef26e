"""
Token definitions for the tylang lexer.

The language has a tiny vocabulary:
- Keywords (``def`` and ``extern``)
- Identifiers and numeric literals
- Single-character punctuation (operators, parentheses, comma, semicolon)
- End of input

Operators are not classified here: every character the lexer does not
recognize becomes a CHAR token and the parser decides what it means.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any


class TokenType(Enum):
    """Enumeration of all token types in tylang."""

    EOF = auto()                    # End of input (returned forever once reached)

    # Keywords
    DEF = auto()                    # def
    EXTERN = auto()                 # extern

    # Primary
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 42, 3.14, .5

    # Any other single character: + - * < ( ) , ; ...
    CHAR = auto()


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Used for error reporting and diagnostics.
    """
    filename: str
    line: int
    column: int
    offset: int  # Character offset from start of input

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    Represents a lexical token.

    Contains the token type, lexeme (raw text), semantic value and source
    location. The value is the identifier name for IDENTIFIER, a float for
    NUMBER, the character itself for CHAR and None otherwise.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # Parsed/semantic value
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "EOF"
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a keyword."""
        return self.type in (TokenType.DEF, TokenType.EXTERN)

    def is_char(self, char: str) -> bool:
        """Check if this token is the punctuation character ``char``."""
        return self.type == TokenType.CHAR and self.value == char

    def describe(self) -> str:
        """Human readable form used in diagnostics."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.CHAR:
            return f"'{self.lexeme}'"
        return f"{self.type.name.lower()} '{self.lexeme}'"


KEYWORDS = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
}

# Marker that begins a line comment
COMMENT_CHAR = "#"
