"""
Test suite for the tylang lexer.

Tests cover:
- Keywords, identifiers and single-character tokens
- Number scanning, including malformed literals
- Comments and whitespace
- End-of-input behaviour and source locations
"""

import io
import tempfile
import unittest
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from tylang.lexer.lexer import Lexer, parse_number, tokenize_file, tokenize_string
from tylang.lexer.tokens import TokenType


class TestLexer(unittest.TestCase):
    """Test cases for the lexer."""

    def _types(self, source: str):
        return [token.type for token in tokenize_string(source)]

    def test_keywords_and_identifiers(self):
        tokens = tokenize_string("def extern foo x1 define")

        self.assertEqual(
            [token.type for token in tokens],
            [TokenType.DEF, TokenType.EXTERN, TokenType.IDENTIFIER,
             TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.EOF]
        )
        self.assertEqual(tokens[2].value, "foo")
        self.assertEqual(tokens[3].value, "x1")
        self.assertEqual(tokens[4].value, "define")
        self.assertTrue(tokens[0].is_keyword)
        self.assertFalse(tokens[2].is_keyword)

    def test_identifier_stops_at_non_alphanumeric(self):
        tokens = tokenize_string("foo_bar")

        self.assertEqual(tokens[0].value, "foo")
        self.assertTrue(tokens[1].is_char("_"))
        self.assertEqual(tokens[2].value, "bar")

    def test_numbers(self):
        tokens = tokenize_string("42 3.14 .5 7.")
        values = [token.value for token in tokens if token.type == TokenType.NUMBER]

        self.assertEqual(values, [42.0, 3.14, 0.5, 7.0])

    def test_malformed_number_uses_longest_prefix(self):
        tokens = tokenize_string("1.2.3")

        self.assertEqual(len(tokens), 2)
        self.assertEqual(tokens[0].type, TokenType.NUMBER)
        self.assertEqual(tokens[0].lexeme, "1.2.3")
        self.assertEqual(tokens[0].value, 1.2)

    def test_parse_number(self):
        self.assertEqual(parse_number("."), 0.0)
        self.assertEqual(parse_number(".."), 0.0)
        self.assertEqual(parse_number("10.25"), 10.25)
        self.assertEqual(parse_number("..5"), 0.0)

    def test_single_character_tokens(self):
        tokens = tokenize_string("(a+b)*c<d-e, f;")
        chars = [token.value for token in tokens if token.type == TokenType.CHAR]

        self.assertEqual(chars, ["(", "+", ")", "*", "<", "-", ",", ";"])

    def test_comments_are_skipped(self):
        source = "# a comment\nfoo # trailing\n# last line without newline"

        self.assertEqual(self._types(source), [TokenType.IDENTIFIER, TokenType.EOF])

    def test_eof_is_idempotent(self):
        lexer = Lexer(io.StringIO("x"))

        self.assertEqual(lexer.advance().type, TokenType.IDENTIFIER)
        for _ in range(3):
            self.assertEqual(lexer.advance().type, TokenType.EOF)

    def test_empty_input(self):
        self.assertEqual(self._types(""), [TokenType.EOF])
        self.assertEqual(self._types("   \n\t "), [TokenType.EOF])

    def test_current_fetches_first_token_lazily(self):
        lexer = Lexer(io.StringIO("def"))

        self.assertEqual(lexer.current.type, TokenType.DEF)
        self.assertEqual(lexer.current.type, TokenType.DEF)

    def test_current_text_and_value(self):
        lexer = Lexer(io.StringIO("foo 2.5"))

        self.assertEqual(lexer.current_text, "foo")
        with self.assertRaises(ValueError):
            _ = lexer.current_value

        lexer.advance()
        self.assertEqual(lexer.current_value, 2.5)
        with self.assertRaises(ValueError):
            _ = lexer.current_text

    def test_source_locations(self):
        tokens = tokenize_string("def f(x)\n  x + 1", filename="test.ty")

        self.assertEqual((tokens[0].location.line, tokens[0].location.column), (1, 1))
        self.assertEqual((tokens[1].location.line, tokens[1].location.column), (1, 5))
        self.assertEqual((tokens[5].location.line, tokens[5].location.column), (2, 3))
        self.assertEqual(str(tokens[5].location), "test.ty:2:3")

    def test_reads_lazily(self):
        class CountingStream(io.StringIO):
            reads = 0

            def read(self, size=-1):
                CountingStream.reads += 1
                return super().read(size)

        lexer = Lexer(CountingStream("a b c d e f"))
        lexer.advance()

        self.assertLess(CountingStream.reads, 5)

    def test_tokenize_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".ty", delete=False) as f:
            f.write("extern sin(x)\n")
            path = f.name
        try:
            tokens = tokenize_file(path)
        finally:
            os.unlink(path)

        self.assertEqual(tokens[0].type, TokenType.EXTERN)
        self.assertEqual(tokens[1].location.filename, path)
        self.assertEqual(len(tokens), 6)


if __name__ == '__main__':
    unittest.main()
