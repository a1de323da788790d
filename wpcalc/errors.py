"""Structured error objects for the wp calculator.

Every failure is machine-readable: a Diagnostic records what went wrong,
where, and (for parse failures) what was expected versus what was found.
Diagnostics travel inside exceptions so callers can catch by category.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    # construction
    INVALID_OPERATOR = "invalid_operator"
    MISSING_OPERAND = "missing_operand"
    MISSING_COMPONENT = "missing_component"
    EMPTY_SEQUENCE = "empty_sequence"
    NULL_ELEMENT = "null_element"
    EMPTY_NAME = "empty_name"
    # parsing
    UNEXPECTED_TOKEN = "unexpected_token"
    UNEXPECTED_END_OF_INPUT = "unexpected_end_of_input"
    UNKNOWN_CHARACTER = "unknown_character"
    MISSING_ELSE = "missing_else"
    TRAILING_TOKENS = "trailing_tokens"
    EMPTY_INPUT = "empty_input"
    INVALID_NUMBER = "invalid_number"
    NESTING_TOO_DEEP = "nesting_too_deep"
    # tracking
    EMPTY_DESCRIPTION = "empty_description"
    # configuration
    CONFIG_ERROR = "config_error"


@dataclass
class SourceLocation:
    line: int
    column: int
    source: str = "<input>"

    def __str__(self) -> str:
        return f"{self.source}:{self.line}:{self.column}"


@dataclass
class Diagnostic:
    kind: ErrorKind
    message: str
    location: Optional[SourceLocation] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.location:
            d["location"] = {
                "source": self.location.source,
                "line": self.location.line,
                "column": self.location.column,
            }
        if self.details:
            d["details"] = self.details
        return d

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        loc = f" at {self.location}" if self.location else ""
        return f"[{self.kind.value}]{loc}: {self.message}"


def construction_error(
    kind: ErrorKind,
    message: str,
    **details: Any,
) -> Diagnostic:
    return Diagnostic(kind=kind, message=message, details=details)


def syntax_error(
    kind: ErrorKind,
    expected: str,
    found: str,
    location: Optional[SourceLocation] = None,
    message: Optional[str] = None,
) -> Diagnostic:
    """Build a parse diagnostic that always records expected vs. found."""
    if message is None:
        message = f"Expected {expected}, got {found}"
    return Diagnostic(
        kind=kind,
        message=message,
        location=location,
        details={"expected": expected, "found": found},
    )


def tracker_error(message: str) -> Diagnostic:
    return Diagnostic(kind=ErrorKind.EMPTY_DESCRIPTION, message=message)


class WPError(Exception):
    """Exception wrapping a single Diagnostic."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(str(diagnostic))

    @property
    def kind(self) -> ErrorKind:
        return self.diagnostic.kind

    def to_dict(self) -> dict[str, Any]:
        return self.diagnostic.to_dict()

    def to_json(self, indent: int = 2) -> str:
        return self.diagnostic.to_json(indent=indent)


class ConstructionError(WPError):
    """Raised when an AST node is built from invalid parts."""


class ParseError(WPError):
    """Raised when source text does not match the grammar."""


class TrackerError(WPError):
    """Raised when a step description is blank."""


class ConfigError(WPError):
    """Raised when a configuration file cannot be loaded."""
