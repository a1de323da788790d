"""Statement AST and the weakest-precondition rules.

    wp(x := e, R)                  = defs(e) && R[x := e]
    wp(S1; ...; Sn, R)             = wp(S1, wp(S2, ... wp(Sn, R)))
    wp(if B then S1 else S2, R)    = (B && wp(S1, R)) || (!(B) && wp(S2, R))

where defs(e) are the definiteness conditions of e (one `d != 0` per
division), folded in collection order with the running result on the right:
[c1, c2] gives c1 && (c2 && R[x := e]).

calculate_wp is total over well-formed trees: it performs no evaluation
and terminates by structural induction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from wpcalc.errors import ConstructionError, ErrorKind, construction_error
from wpcalc.expressions import Expression, E_AND, E_NOT, E_OR
from wpcalc.tracker import StepTracker

logger = logging.getLogger(__name__)


def _require(component: object, role: str, expected: type) -> None:
    if component is None:
        raise ConstructionError(construction_error(
            ErrorKind.MISSING_COMPONENT,
            f"Missing {role}",
            component=role,
        ))
    if not isinstance(component, expected):
        raise ConstructionError(construction_error(
            ErrorKind.MISSING_COMPONENT,
            f"Expected {expected.__name__} as {role}, got {type(component).__name__}",
            component=role,
        ))


def _record(tracker: Optional[StepTracker], line: str) -> None:
    logger.debug("%s", line)
    if tracker is not None:
        tracker.record_step(line)


class Statement:
    """Base of the statement sum type: Assignment, Sequence, IfThenElse."""

    __slots__ = ()

    def calculate_wp(
        self,
        postcondition: Expression,
        tracker: Optional[StepTracker] = None,
    ) -> Expression:
        """Compute wp(self, postcondition), logging each derivation step."""
        match self:
            case Assignment(var_name, value):
                substituted = postcondition.substitute(var_name, value)
                result = substituted
                # fold from the innermost condition outwards
                for cond in reversed(value.definiteness_conditions()):
                    result = E_AND(cond, result)
                _record(tracker, f"wp({self}, {postcondition}) = {result}")
                return result

            case Sequence(statements):
                current = postcondition
                for stmt in reversed(statements):
                    current = stmt.calculate_wp(current, tracker)
                return current

            case IfThenElse(condition, then_branch, else_branch):
                wp_then = then_branch.calculate_wp(postcondition, tracker)
                wp_else = else_branch.calculate_wp(postcondition, tracker)
                result = E_OR(
                    E_AND(condition.clone(), wp_then),
                    E_AND(E_NOT(condition.clone()), wp_else),
                )
                _record(
                    tracker,
                    f"wp(if {condition} then {then_branch} else {else_branch}, "
                    f"{postcondition}) = {result}",
                )
                return result
        raise TypeError(f"Unknown statement node: {self!r}")

    def clone(self) -> Statement:
        match self:
            case Assignment(var_name, value):
                return Assignment(var_name, value.clone())
            case Sequence(statements):
                return Sequence(s.clone() for s in statements)
            case IfThenElse(condition, then_branch, else_branch):
                return IfThenElse(condition.clone(), then_branch.clone(), else_branch.clone())
        raise TypeError(f"Unknown statement node: {self!r}")

    def __str__(self) -> str:
        match self:
            case Assignment(var_name, value):
                return f"{var_name} := {value}"
            case Sequence(statements):
                return "; ".join(str(s) for s in statements)
            case IfThenElse(condition, then_branch, else_branch):
                return f"if ({condition}) then {{ {then_branch} }} else {{ {else_branch} }}"
        raise TypeError(f"Unknown statement node: {self!r}")


@dataclass(frozen=True)
class Assignment(Statement):
    var_name: str
    value: Expression

    def __post_init__(self) -> None:
        _require(self.var_name, "variable name", str)
        if not self.var_name.strip():
            raise ConstructionError(construction_error(
                ErrorKind.EMPTY_NAME, "Assigned variable name must not be empty",
            ))
        object.__setattr__(self, "var_name", self.var_name.strip())
        _require(self.value, "assigned value", Expression)


@dataclass(frozen=True, init=False)
class Sequence(Statement):
    statements: Tuple[Statement, ...]

    def __init__(self, statements: Iterable[Statement]) -> None:
        if statements is None:
            raise ConstructionError(construction_error(
                ErrorKind.MISSING_COMPONENT, "Missing statement list",
                component="statements",
            ))
        items = tuple(statements)
        if not items:
            raise ConstructionError(construction_error(
                ErrorKind.EMPTY_SEQUENCE, "A sequence needs at least one statement",
            ))
        for index, item in enumerate(items):
            if item is None:
                raise ConstructionError(construction_error(
                    ErrorKind.NULL_ELEMENT,
                    f"Sequence element {index} is missing",
                    index=index,
                ))
            _require(item, f"sequence element {index}", Statement)
        object.__setattr__(self, "statements", items)

    def __len__(self) -> int:
        return len(self.statements)


@dataclass(frozen=True)
class IfThenElse(Statement):
    condition: Expression
    then_branch: Statement
    else_branch: Statement

    def __post_init__(self) -> None:
        _require(self.condition, "condition", Expression)
        _require(self.then_branch, "then branch", Statement)
        _require(self.else_branch, "else branch", Statement)
