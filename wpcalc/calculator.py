"""One-shot wp calculation: text or trees in, a WPResult report out."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

from wpcalc.expressions import Expression
from wpcalc.parser import parse_expression, parse_statement
from wpcalc.statements import Statement
from wpcalc.tracker import StepTracker


@dataclass
class WPResult:
    """Outcome of one wp calculation."""
    statement: Statement
    postcondition: Expression
    precondition: Expression
    steps: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def variables(self) -> list[str]:
        return sorted(self.precondition.free_variables())

    def to_dict(self) -> dict[str, Any]:
        return {
            "statement": str(self.statement),
            "postcondition": str(self.postcondition),
            "precondition": str(self.precondition),
            "variables": self.variables,
            "steps": list(self.steps),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def calculate(
    program: Union[str, Statement],
    postcondition: Union[str, Expression],
    tracker: Optional[StepTracker] = None,
) -> WPResult:
    """Compute wp(program, postcondition).

    Strings are parsed first; ParseError propagates to the caller. A fresh
    StepTracker is used when none is supplied.
    """
    if isinstance(program, str):
        program = parse_statement(program, source_name="<program>")
    if isinstance(postcondition, str):
        postcondition = parse_expression(postcondition, source_name="<postcondition>")
    if tracker is None:
        tracker = StepTracker()

    precondition = program.calculate_wp(postcondition, tracker)
    return WPResult(
        statement=program,
        postcondition=postcondition,
        precondition=precondition,
        steps=tracker.get_steps(),
    )
