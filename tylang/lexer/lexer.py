"""
tylang Lexer - turns a character stream into tokens, one at a time

The lexer pulls characters lazily from any text stream (a file, stdin,
io.StringIO) so the interactive loop can start compiling the first unit
before the rest of the input exists. It keeps exactly one token of
lookahead: ``current`` is the token the parser is looking at and
``advance()`` replaces it.
"""

import io
import re
from typing import List, Optional, TextIO

from .tokens import Token, TokenType, SourceLocation, KEYWORDS, COMMENT_CHAR


# Longest prefix that reads as a float, the way strtod sees "1.2.3" as 1.2
_NUMBER_PREFIX = re.compile(r'\d*(?:\.\d*)?')


class Lexer:
    """
    tylang lexical analyzer.

    Classification rules, in priority order: skip whitespace, identifiers and
    keywords, numbers, ``#`` line comments, end of input, and finally any other
    character as a single CHAR token. The lexer never fails.
    """

    def __init__(self, stream: TextIO, filename: str = "<stdin>"):
        """
        Initialize the lexer with an input stream.

        Args:
            stream: Text stream to read characters from
            filename: Name of the source for diagnostics
        """
        self.stream = stream
        self.filename = filename

        # Position of the next character to be read
        self.offset = 0
        self.line = 1
        self.column = 1

        # One character of lookahead, primed with a blank so the first
        # advance() reads the stream; '' once the stream is exhausted
        self._last_char = " "
        self._last_location = SourceLocation(filename, 1, 1, 0)

        self._current: Optional[Token] = None

    # ------------------------------------------------------------------
    # Token stream interface
    # ------------------------------------------------------------------

    @property
    def current(self) -> Token:
        """The current token, fetching the first one on demand."""
        if self._current is None:
            self.advance()
        return self._current

    @property
    def current_text(self) -> str:
        """Name of the current token; only valid for identifiers."""
        token = self.current
        if token.type != TokenType.IDENTIFIER:
            raise ValueError(f"current token is {token}, not an identifier")
        return token.value

    @property
    def current_value(self) -> float:
        """Numeric value of the current token; only valid for numbers."""
        token = self.current
        if token.type != TokenType.NUMBER:
            raise ValueError(f"current token is {token}, not a number")
        return token.value

    def advance(self) -> Token:
        """Read the next token from the stream and make it current."""
        self._current = self._next_token()
        return self._current

    def tokenize(self) -> List[Token]:
        """
        Tokenize the rest of the input.

        Returns:
            List of tokens ending with a single EOF token
        """
        tokens = [self.advance()]
        while tokens[-1].type != TokenType.EOF:
            tokens.append(self.advance())
        return tokens

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def _next_token(self) -> Token:
        """Get the next token from the source."""
        while True:
            # Skip any whitespace
            while self._last_char and self._last_char.isspace():
                self._read_char()

            if not self._last_char:
                return Token(TokenType.EOF, "", None, self._here())

            start = self._last_location
            char = self._last_char

            # Identifier: [a-zA-Z][a-zA-Z0-9]*
            if _is_letter(char):
                return self._tokenize_identifier_or_keyword(start)

            # Number: [0-9.]+
            if _is_digit(char) or char == '.':
                return self._tokenize_number(start)

            # Comment until end of line, then start over
            if char == COMMENT_CHAR:
                while self._last_char and self._last_char not in '\r\n':
                    self._read_char()
                continue

            self._read_char()
            return Token(TokenType.CHAR, char, char, start)

    def _tokenize_identifier_or_keyword(self, start: SourceLocation) -> Token:
        """Tokenize an identifier or keyword."""
        chars = [self._last_char]
        while _is_letter(self._read_char()) or _is_digit(self._last_char):
            chars.append(self._last_char)

        lexeme = ''.join(chars)
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        value = lexeme if token_type == TokenType.IDENTIFIER else None
        return Token(token_type, lexeme, value, start)

    def _tokenize_number(self, start: SourceLocation) -> Token:
        """
        Tokenize a numeric literal.

        Digits and dots are consumed greedily without validation; the value is
        the longest prefix that reads as a float, so "1.2.3" is 1.2 and a
        lone "." is 0.0.
        """
        chars = [self._last_char]
        while _is_digit(self._read_char()) or self._last_char == '.':
            chars.append(self._last_char)

        lexeme = ''.join(chars)
        return Token(TokenType.NUMBER, lexeme, parse_number(lexeme), start)

    def _read_char(self) -> str:
        """Consume one character from the stream into the lookahead slot."""
        self._last_location = SourceLocation(self.filename, self.line, self.column, self.offset)
        char = self.stream.read(1)
        if char:
            self.offset += 1
            if char == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1

        self._last_char = char
        return char

    def _here(self) -> SourceLocation:
        return self._last_location


def parse_number(lexeme: str) -> float:
    """Value of a numeric lexeme: its longest float prefix, 0.0 if none."""
    prefix = _NUMBER_PREFIX.match(lexeme).group(0)
    if not any(c.isdigit() for c in prefix):
        return 0.0
    return float(prefix)


def _is_letter(char: str) -> bool:
    return bool(char) and char.isascii() and char.isalpha()


def _is_digit(char: str) -> bool:
    return bool(char) and char in '0123456789'


def tokenize_string(source: str, filename: str = "<string>") -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens ending with EOF
    """
    return Lexer(io.StringIO(source), filename).tokenize()


def tokenize_file(filepath: str) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        OSError: If file cannot be read
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        return Lexer(f, filepath).tokenize()
