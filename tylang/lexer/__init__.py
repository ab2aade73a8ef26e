"""
tylang Lexer Package

Turns a character stream into classified tokens with one token of
lookahead. The lexer has no error states; any character it does not
recognize is handed to the parser as a single-character token.
"""

from .tokens import Token, TokenType, SourceLocation
from .lexer import Lexer, tokenize_string, tokenize_file
from .errors import Diagnostic, CompilerError

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "tokenize_string",
    "tokenize_file",
    "Diagnostic",
    "CompilerError",
]
