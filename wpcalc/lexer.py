"""Tokenizer with line/column tracking.

Produces Number, Identifier, Operator and Punctuation tokens followed by a
single EOF marker. Two-character operators are matched before their
one-character prefixes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from wpcalc.errors import ErrorKind, ParseError, SourceLocation, syntax_error


class TokenType(Enum):
    NUMBER = auto()
    IDENTIFIER = auto()
    OPERATOR = auto()
    PUNCTUATION = auto()
    EOF = auto()


TWO_CHAR_OPERATORS: tuple[str, ...] = (":=", "&&", "||", "==", "!=", ">=", "<=")

SINGLE_CHAR_OPERATORS: frozenset[str] = frozenset({"+", "-", "*", "/", "!", "<", ">"})

PUNCTUATION: frozenset[str] = frozenset({"(", ")", ";", "{", "}"})


@dataclass
class Token:
    type: TokenType
    value: str
    location: SourceLocation

    def is_punct(self, value: str) -> bool:
        return self.type == TokenType.PUNCTUATION and self.value == value

    def is_op(self, value: str) -> bool:
        return self.type == TokenType.OPERATOR and self.value == value

    def is_ident(self, value: str) -> bool:
        return self.type == TokenType.IDENTIFIER and self.value == value

    def describe(self) -> str:
        if self.type == TokenType.EOF:
            return "end of input"
        return f"'{self.value}'"

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.location})"


class Lexer:
    """Tokenizer for programs and postconditions."""

    def __init__(self, source: str, source_name: str = "<input>"):
        self.source = source
        self.source_name = source_name
        self.pos = 0
        self.line = 1
        self.column = 1

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.source_name)

    def _peek(self) -> Optional[str]:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return None

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos].isspace():
            self._advance()

    def _read_number(self) -> Token:
        loc = self._loc()
        value = ""
        while self.pos < len(self.source) and (self.source[self.pos].isdigit() or self.source[self.pos] == "."):
            value += self._advance()
        return Token(TokenType.NUMBER, value, loc)

    def _read_identifier(self) -> Token:
        loc = self._loc()
        value = ""
        while self.pos < len(self.source) and (self.source[self.pos].isalnum() or self.source[self.pos] == "_"):
            value += self._advance()
        return Token(TokenType.IDENTIFIER, value, loc)

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self.pos < len(self.source):
            self._skip_whitespace()
            if self.pos >= len(self.source):
                break

            ch = self._peek()
            loc = self._loc()

            if ch.isdigit() or ch == ".":
                tokens.append(self._read_number())
            elif ch.isalpha() or ch == "_":
                tokens.append(self._read_identifier())
            elif self.source.startswith(TWO_CHAR_OPERATORS, self.pos):
                op = self._advance() + self._advance()
                tokens.append(Token(TokenType.OPERATOR, op, loc))
            elif ch in SINGLE_CHAR_OPERATORS:
                self._advance()
                tokens.append(Token(TokenType.OPERATOR, ch, loc))
            elif ch in PUNCTUATION:
                self._advance()
                tokens.append(Token(TokenType.PUNCTUATION, ch, loc))
            else:
                raise ParseError(syntax_error(
                    ErrorKind.UNKNOWN_CHARACTER,
                    expected="operator, punctuation, number or identifier",
                    found=repr(ch),
                    location=loc,
                    message=f"Unknown character '{ch}'",
                ))

        tokens.append(Token(TokenType.EOF, "", self._loc()))
        return tokens


def tokenize(source: str, source_name: str = "<input>") -> list[Token]:
    """Convenience function to tokenize program or expression text."""
    return Lexer(source, source_name).tokenize()
