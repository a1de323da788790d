"""Recursive-descent parser with precedence climbing for expressions.

Grammar:

    input       := stmt_list EOF
    stmt_list   := statement (";" statement)* [";"]
    statement   := block | conditional | assignment
    block       := "{" (statement [";"])* "}"
    conditional := "if" "(" expr ")" stmt_list "else" stmt_list
    assignment  := IDENT ":=" expr

    expr        := primary (BINOP expr)*          -- precedence climbing
    primary     := NUMBER | IDENT | "abs" "(" expr ")"
                 | "!" primary | "-" primary | "(" expr ")"

A stmt_list or block holding a single statement collapses to it. Prefix
"!" and "-" bind to the next primary only, so `!a + b` is `(!a) + b`.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Mapping

from wpcalc.errors import ErrorKind, ParseError, syntax_error
from wpcalc.expressions import (
    BINARY_OPERATORS, Binary, Constant, Expression, Unary, Variable,
)
from wpcalc.lexer import Token, TokenType, tokenize
from wpcalc.statements import Assignment, IfThenElse, Sequence, Statement

logger = logging.getLogger(__name__)


_PRECEDENCE: Mapping[str, int] = MappingProxyType({
    "||": 1,
    "&&": 2,
    "==": 3, "!=": 3,
    ">": 4, ">=": 4, "<": 4, "<=": 4,
    "+": 5, "-": 5,
    "*": 6, "/": 6,
    "!": 7, "abs": 7,
})

# Identifiers that can never name a variable.
RESERVED: frozenset[str] = frozenset({"if", "else", "abs"})


class Parser:
    """Parser over a token list produced by the lexer."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _error(self, expected: str, tok: Token) -> ParseError:
        kind = (ErrorKind.UNEXPECTED_END_OF_INPUT if tok.type == TokenType.EOF
                else ErrorKind.UNEXPECTED_TOKEN)
        return ParseError(syntax_error(kind, expected, tok.describe(), tok.location))

    def _expect_punct(self, value: str, expected: str) -> Token:
        tok = self._current()
        if not tok.is_punct(value):
            raise self._error(expected, tok)
        return self._advance()

    def at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def expect_end(self) -> None:
        tok = self._current()
        if tok.type != TokenType.EOF:
            raise ParseError(syntax_error(
                ErrorKind.TRAILING_TOKENS,
                expected="end of input",
                found=tok.describe(),
                location=tok.location,
                message=f"Unexpected {tok.describe()} after complete input",
            ))

    # -------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------

    def parse_expression(self, min_precedence: int = 0) -> Expression:
        left = self._parse_primary()

        while True:
            tok = self._current()
            if tok.type != TokenType.OPERATOR or tok.value not in BINARY_OPERATORS:
                break
            precedence = _PRECEDENCE[tok.value]
            if precedence < min_precedence:
                break
            self._advance()
            right = self.parse_expression(precedence + 1)
            left = Binary(tok.value, left, right)

        return left

    def _parse_primary(self) -> Expression:
        tok = self._current()

        if tok.type == TokenType.NUMBER:
            self._advance()
            try:
                return Constant(float(tok.value))
            except ValueError:
                raise ParseError(syntax_error(
                    ErrorKind.INVALID_NUMBER,
                    expected="numeric literal",
                    found=tok.describe(),
                    location=tok.location,
                    message=f"Invalid number format: {tok.value}",
                )) from None

        if tok.type == TokenType.IDENTIFIER:
            if tok.value == "abs":
                self._advance()
                self._expect_punct("(", "'(' after 'abs'")
                inner = self.parse_expression(0)
                self._expect_punct(")", "')' to close 'abs('")
                return Unary("abs", inner)
            if tok.value in RESERVED:
                raise self._error("expression", tok)
            self._advance()
            return Variable(tok.value)

        if tok.is_op("!") or tok.is_op("-"):
            self._advance()
            return Unary(tok.value, self._parse_primary())

        if tok.is_punct("("):
            self._advance()
            inner = self.parse_expression(0)
            self._expect_punct(")", "')'")
            return inner

        raise self._error("expression", tok)

    # -------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------

    def parse_statement_list(self) -> Statement:
        statements = [self._parse_statement()]
        while self._current().is_punct(";"):
            self._advance()
            if not self._starts_statement():
                break
            statements.append(self._parse_statement())
        return statements[0] if len(statements) == 1 else Sequence(statements)

    def _starts_statement(self) -> bool:
        tok = self._current()
        if tok.is_punct("{"):
            return True
        return tok.type == TokenType.IDENTIFIER and tok.value != "else"

    def _parse_statement(self) -> Statement:
        tok = self._current()
        if tok.is_punct("{"):
            return self._parse_block()
        if tok.is_ident("if"):
            return self._parse_conditional()
        return self._parse_assignment()

    def _parse_block(self) -> Statement:
        self._expect_punct("{", "'{'")
        statements: list[Statement] = []
        while not self._current().is_punct("}"):
            if self.at_end():
                raise self._error("'}'", self._current())
            statements.append(self._parse_statement())
            if self._current().is_punct(";"):
                self._advance()
        close = self._advance()
        if not statements:
            raise ParseError(syntax_error(
                ErrorKind.EMPTY_SEQUENCE,
                expected="statement",
                found=close.describe(),
                location=close.location,
                message="A block must contain at least one statement",
            ))
        return statements[0] if len(statements) == 1 else Sequence(statements)

    def _parse_conditional(self) -> IfThenElse:
        self._advance()  # 'if'
        self._expect_punct("(", "'(' after 'if'")
        condition = self.parse_expression(0)
        self._expect_punct(")", "')' after if condition")
        then_branch = self.parse_statement_list()

        tok = self._current()
        if not tok.is_ident("else"):
            raise ParseError(syntax_error(
                ErrorKind.MISSING_ELSE,
                expected="'else'",
                found=tok.describe(),
                location=tok.location,
                message=f"Expected 'else' after then-branch, got {tok.describe()}",
            ))
        self._advance()
        else_branch = self.parse_statement_list()
        return IfThenElse(condition, then_branch, else_branch)

    def _parse_assignment(self) -> Assignment:
        target = self._current()
        if target.type != TokenType.IDENTIFIER or target.value in RESERVED:
            raise self._error("variable name", target)
        self._advance()

        op = self._current()
        if not op.is_op(":="):
            raise self._error("':='", op)
        self._advance()

        value = self.parse_expression(0)
        return Assignment(target.value, value)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _tokens_for(text: str, source_name: str) -> list[Token]:
    if text is None or not text.strip():
        raise ParseError(syntax_error(
            ErrorKind.EMPTY_INPUT,
            expected="input",
            found="empty string",
            message="Input must not be empty",
        ))
    tokens = tokenize(text, source_name)
    logger.debug("tokenized %s into %d tokens", source_name, len(tokens))
    return tokens


def _parse_all(parser: Parser, rule: Callable[[], Any]) -> Any:
    try:
        node = rule()
    except RecursionError:
        tok = parser._current()
        raise ParseError(syntax_error(
            ErrorKind.NESTING_TOO_DEEP,
            expected="shallower nesting",
            found=tok.describe(),
            location=tok.location,
            message=f"Input is nested too deeply to parse (at {tok.describe()})",
        )) from None
    parser.expect_end()
    return node


def parse_expression(text: str, source_name: str = "<input>") -> Expression:
    """Parse a complete expression such as a postcondition."""
    parser = Parser(_tokens_for(text, source_name))
    return _parse_all(parser, lambda: parser.parse_expression(0))


def parse_statement(text: str, source_name: str = "<input>") -> Statement:
    """Parse a complete program: one statement or a `;`-separated sequence."""
    parser = Parser(_tokens_for(text, source_name))
    return _parse_all(parser, parser.parse_statement_list)
