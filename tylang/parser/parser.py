"""
tylang Parser

Recursive descent for the statement-level grammar and operator-precedence
climbing for binary expressions. The parser reads tokens straight from a
Lexer and never looks at raw characters.

    expression    := primary (binop primary)*
    primary       := number | identifier ['(' argList ')'] | '(' expression ')'
    argList       := [expression (',' expression)*]
    prototype     := identifier '(' identifier* ')'
    definition    := 'def' prototype expression
    externDecl    := 'extern' prototype
    topLevelExpr  := expression
"""

import io
from typing import Dict, List, Optional
from enum import IntEnum

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType
from .ast_nodes import (
    ANONYMOUS_FUNCTION_NAME, BinaryOp, Call, Expression, FunctionDefinition,
    NumberLiteral, Prototype, VariableRef,
)
from .errors import (
    create_argument_list_error, create_invalid_expression_error,
    create_prototype_error, create_unclosed_delimiter_error,
    create_unexpected_token_error,
)


class Precedence(IntEnum):
    """Binding strength of the binary operators; higher binds tighter."""
    NONE = -1
    COMPARISON = 10     # <
    ADDITION = 20       # +
    SUBTRACTION = 30    # -
    MULTIPLICATION = 40 # *


# '-' outranks '+'; both stay left-associative at their own level,
# so "1 + 2 - 3" groups as "1 + (2 - 3)".
DEFAULT_BINOP_PRECEDENCE: Dict[str, int] = {
    '<': Precedence.COMPARISON,
    '+': Precedence.ADDITION,
    '-': Precedence.SUBTRACTION,
    '*': Precedence.MULTIPLICATION,
}


class Parser:
    """
    tylang parser.

    Builds AST nodes from the lexer's token stream. Every failure raises a
    ParseError and leaves the token stream wherever the error was found;
    resynchronizing is the caller's job.
    """

    def __init__(self, lexer: Lexer, binop_precedence: Optional[Dict[str, int]] = None):
        """
        Initialize parser over a token stream.

        Args:
            lexer: Token source; its current token is the first one parsed
            binop_precedence: Operator table, DEFAULT_BINOP_PRECEDENCE if omitted
        """
        self.lexer = lexer
        if binop_precedence is None:
            binop_precedence = DEFAULT_BINOP_PRECEDENCE
        self.binop_precedence = dict(binop_precedence)

    @property
    def current(self) -> Token:
        return self.lexer.current

    def _advance(self) -> Token:
        """Consume the current token and return the next one."""
        return self.lexer.advance()

    def _expect_keyword(self, keyword: TokenType, spelling: str) -> None:
        """Consume ``keyword``, which must be the current token."""
        if self.current.type != keyword:
            raise create_unexpected_token_error(spelling, self.current)
        self._advance()

    # ------------------------------------------------------------------
    # Top-level constructs
    # ------------------------------------------------------------------

    def parse_definition(self) -> FunctionDefinition:
        """definition := 'def' prototype expression"""
        self._expect_keyword(TokenType.DEF, "'def'")
        prototype = self.parse_prototype()
        body = self.parse_expression()
        return FunctionDefinition(prototype, body)

    def parse_extern(self) -> Prototype:
        """externDecl := 'extern' prototype"""
        self._expect_keyword(TokenType.EXTERN, "'extern'")
        return self.parse_prototype()

    def parse_top_level_expr(self) -> FunctionDefinition:
        """Parse a bare expression and wrap it in a nullary anonymous function."""
        location = self.current.location
        body = self.parse_expression()
        return FunctionDefinition(Prototype(ANONYMOUS_FUNCTION_NAME, (), location), body)

    def parse_prototype(self) -> Prototype:
        """prototype := identifier '(' identifier* ')'"""
        name_token = self.current
        if name_token.type != TokenType.IDENTIFIER:
            raise create_prototype_error("function name", name_token)
        self._advance()

        if not self.current.is_char('('):
            raise create_prototype_error("'('", self.current)

        parameters: List[str] = []
        while self._advance().type == TokenType.IDENTIFIER:
            parameters.append(self.current.value)

        if not self.current.is_char(')'):
            raise create_prototype_error("')'", self.current)
        self._advance()  # eat ')'

        return Prototype(name_token.value, tuple(parameters), name_token.location)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """expression := primary binopRHS"""
        left = self._parse_primary()
        return self._parse_binop_rhs(0, left)

    def _parse_binop_rhs(self, min_precedence: int, left: Expression) -> Expression:
        """
        Precedence climbing.

        Folds operators into ``left`` while they bind at least as tightly as
        ``min_precedence``. When the operator after a right-hand side binds
        tighter than the one just consumed, the right-hand side absorbs it
        first; equal precedence folds left, which makes every operator
        left-associative.
        """
        while True:
            precedence = self._current_precedence()
            if precedence < min_precedence:
                return left

            operator_token = self.current
            self._advance()  # eat the operator

            right = self._parse_primary()

            next_precedence = self._current_precedence()
            if precedence < next_precedence:
                right = self._parse_binop_rhs(precedence + 1, right)

            left = BinaryOp(operator_token.value, left, right, operator_token.location)

    def _current_precedence(self) -> int:
        """Precedence of the current token, or -1 if it is not a binary operator."""
        token = self.current
        if token.type != TokenType.CHAR:
            return Precedence.NONE
        precedence = self.binop_precedence.get(token.value, Precedence.NONE)
        if precedence <= 0:
            return Precedence.NONE
        return precedence

    def _parse_primary(self) -> Expression:
        """primary := number | identifierExpr | parenExpr"""
        token = self.current
        if token.type == TokenType.IDENTIFIER:
            return self._parse_identifier_expr()
        if token.type == TokenType.NUMBER:
            return self._parse_number_expr()
        if token.is_char('('):
            return self._parse_paren_expr()
        raise create_invalid_expression_error(token)

    def _parse_number_expr(self) -> NumberLiteral:
        token = self.current
        self._advance()
        return NumberLiteral(token.value, token.location)

    def _parse_paren_expr(self) -> Expression:
        """parenExpr := '(' expression ')'"""
        open_token = self.current
        self._advance()  # eat '('

        inner = self.parse_expression()

        if not self.current.is_char(')'):
            raise create_unclosed_delimiter_error('(', open_token.location, self.current)
        self._advance()  # eat ')'

        return inner

    def _parse_identifier_expr(self) -> Expression:
        """identifierExpr := identifier | identifier '(' argList ')'"""
        name_token = self.current
        self._advance()  # eat identifier

        if not self.current.is_char('('):
            return VariableRef(name_token.value, name_token.location)

        self._advance()  # eat '('
        arguments: List[Expression] = []
        if not self.current.is_char(')'):
            while True:
                arguments.append(self.parse_expression())

                if self.current.is_char(')'):
                    break
                if not self.current.is_char(','):
                    raise create_argument_list_error(self.current)
                self._advance()  # eat ','
                if self.current.is_char(')'):
                    raise create_argument_list_error(self.current, trailing_comma=True)

        self._advance()  # eat ')'

        return Call(name_token.value, tuple(arguments), name_token.location)


def parse_expression_string(source: str, filename: str = "<string>",
                            binop_precedence: Optional[Dict[str, int]] = None) -> Expression:
    """
    Convenience function to parse a single expression from a string.

    Raises:
        ParseError: If the text is not a well-formed expression
    """
    parser = Parser(Lexer(io.StringIO(source), filename), binop_precedence)
    return parser.parse_expression()
