"""Expression AST for the wp calculus.

Expressions form a closed sum type of four immutable variants:

    Constant(value)              numeric literal, always a float
    Variable(name)               program variable
    Unary(op, operand)           op in {"!", "abs", "-"}
    Binary(op, left, right)      arithmetic, comparison and logical operators

All values are treated as real numbers; truth values are whatever the
comparison and logical operators produce. Nodes are never mutated: every
transformation builds fresh nodes, so no two positions of a derived tree
share an object.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Tuple

from wpcalc.errors import ConstructionError, ErrorKind, construction_error


BINARY_OPERATORS: FrozenSet[str] = frozenset({
    "+", "-", "*", "/",
    "==", "!=", ">", ">=", "<", "<=",
    "&&", "||",
})

UNARY_OPERATORS: FrozenSet[str] = frozenset({"!", "abs", "-"})

LOGICAL_OPERATORS: FrozenSet[str] = frozenset({"&&", "||"})

# Constants closer than this compare equal.
EPSILON = 1e-10


def _format_number(value: float) -> str:
    if math.isfinite(value) and value == int(value):
        return str(int(value))
    return repr(value)


def _require_operand(operand: Any, role: str, op: str) -> None:
    if operand is None:
        raise ConstructionError(construction_error(
            ErrorKind.MISSING_OPERAND,
            f"Operator '{op}' is missing its {role} operand",
            operator=op, operand=role,
        ))
    if not isinstance(operand, Expression):
        raise ConstructionError(construction_error(
            ErrorKind.MISSING_OPERAND,
            f"Operator '{op}' expects an expression as {role} operand, "
            f"got {type(operand).__name__}",
            operator=op, operand=role,
        ))


def _children(node: Expression) -> Tuple[Expression, ...]:
    match node:
        case Constant() | Variable():
            return ()
        case Unary(_, operand):
            return (operand,)
        case Binary(_, left, right):
            return (left, right)
    raise TypeError(f"Unknown expression node: {node!r}")


def _fold(root: Expression, combine: Callable[[Expression, list], Any]) -> Any:
    """Post-order fold driven by an explicit stack.

    `combine(node, child_results)` runs once per node, after all of its
    children. Tree depth is limited by memory, not by the interpreter's
    recursion limit: each `x := x + 1` in a program deepens the
    postcondition by one level.
    """
    results: list = []
    stack: list[tuple[Expression, bool]] = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        children = _children(node)
        if children and not expanded:
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(children))
            continue
        split = len(results) - len(children)
        args = results[split:]
        del results[split:]
        results.append(combine(node, args))
    return results[0]


def _rebuild(node: Expression, args: list) -> Expression:
    match node:
        case Constant(value):
            return Constant(value)
        case Variable(name):
            return Variable(name)
        case Unary(op, _):
            return Unary(op, *args)
        case Binary(op, _, _):
            return Binary(op, *args)
    raise TypeError(f"Unknown expression node: {node!r}")


def _same_tree(a: Expression, b: Expression) -> bool:
    pending = [(a, b)]
    while pending:
        x, y = pending.pop()
        match x, y:
            case (Constant(), Constant()) | (Variable(), Variable()):
                if x != y:
                    return False
            case Unary(op_x, operand_x), Unary(op_y, operand_y):
                if op_x != op_y:
                    return False
                pending.append((operand_x, operand_y))
            case Binary(op_x, left_x, right_x), Binary(op_y, left_y, right_y):
                if op_x != op_y:
                    return False
                pending.append((right_x, right_y))
                pending.append((left_x, left_y))
            case _:
                return False
    return True


def _tree_hash(node: Expression, args: list) -> int:
    match node:
        case Unary(op, _):
            return hash(("unary", op, *args))
        case Binary(op, _, _):
            return hash(("binary", op, *args))
    return hash(node)


class Expression:
    """Base of the expression sum type.

    Every operation below walks the tree with an explicit stack rather
    than Python recursion; the per-node work is a single exhaustive match
    over the four variants.
    """

    __slots__ = ()

    def substitute(self, name: str, replacement: Expression) -> Expression:
        """Return self[name := replacement] as a fresh tree.

        A matching Variable yields a copy of `replacement`; every other node
        yields a copy of itself, never the original object.
        """
        def replace(node: Expression, args: list) -> Expression:
            if isinstance(node, Variable) and node.name == name:
                return replacement.clone()
            return _rebuild(node, args)

        return _fold(self, replace)

    def definiteness_conditions(self) -> Tuple[Expression, ...]:
        """Side conditions needed for this expression to be well-defined.

        Each division contributes `divisor != 0`, ahead of the conditions
        collected from its left and then its right operand.
        """
        def collect(node: Expression, args: list) -> list[Expression]:
            match node:
                case Binary("/", _, right):
                    return [Binary("!=", right.clone(), Constant(0))] + args[0] + args[1]
                case Binary():
                    return args[0] + args[1]
                case Unary():
                    return args[0]
            return []

        return tuple(_fold(self, collect))

    def free_variables(self) -> FrozenSet[str]:
        """Names of all variables occurring in the expression."""
        names: set[str] = set()
        stack: list[Expression] = [self]
        while stack:
            node = stack.pop()
            if isinstance(node, Variable):
                names.add(node.name)
            stack.extend(_children(node))
        return frozenset(names)

    def clone(self) -> Expression:
        """Deep copy: structurally equal, sharing no node with self."""
        return _fold(self, _rebuild)

    def __str__(self) -> str:
        parts: list[str] = []
        stack: list[Any] = [self]
        while stack:
            item = stack.pop()
            match item:
                case str():
                    parts.append(item)
                case Constant(value):
                    parts.append(_format_number(value))
                case Variable(name):
                    parts.append(name)
                case Unary("abs", operand):
                    stack.extend((")", operand, "abs("))
                case Unary(op, operand):
                    stack.extend((")", operand, f"{op}("))
                case Binary(op, left, right) if op in LOGICAL_OPERATORS:
                    stack.extend((")", right, f" {op} ", left, "("))
                case Binary(op, left, right):
                    stack.extend((right, f" {op} ", left))
                case _:
                    raise TypeError(f"Unknown expression node: {item!r}")
        return "".join(parts)


@dataclass(frozen=True, eq=False)
class Constant(Expression):
    value: float

    def __post_init__(self) -> None:
        if self.value is None:
            raise ConstructionError(construction_error(
                ErrorKind.MISSING_OPERAND, "Constant requires a value",
            ))
        object.__setattr__(self, "value", float(self.value))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Constant):
            return NotImplemented
        return abs(self.value - other.value) < EPSILON

    def __hash__(self) -> int:
        # value-free: must agree with epsilon equality
        return hash(("const",))


@dataclass(frozen=True, eq=False)
class Variable(Expression):
    name: str

    def __post_init__(self) -> None:
        if self.name is None or not str(self.name).strip():
            raise ConstructionError(construction_error(
                ErrorKind.EMPTY_NAME, "Variable name must not be empty",
            ))
        object.__setattr__(self, "name", str(self.name).strip())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variable):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(("var", self.name))


@dataclass(frozen=True, eq=False)
class Unary(Expression):
    op: str
    operand: Expression

    def __post_init__(self) -> None:
        if self.op not in UNARY_OPERATORS:
            raise ConstructionError(construction_error(
                ErrorKind.INVALID_OPERATOR,
                f"Invalid unary operator: {self.op!r}",
                operator=self.op, allowed=sorted(UNARY_OPERATORS),
            ))
        _require_operand(self.operand, "operand", self.op)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Unary):
            return NotImplemented
        return _same_tree(self, other)

    def __hash__(self) -> int:
        return _fold(self, _tree_hash)


@dataclass(frozen=True, eq=False)
class Binary(Expression):
    op: str
    left: Expression
    right: Expression

    def __post_init__(self) -> None:
        if self.op not in BINARY_OPERATORS:
            raise ConstructionError(construction_error(
                ErrorKind.INVALID_OPERATOR,
                f"Invalid binary operator: {self.op!r}",
                operator=self.op, allowed=sorted(BINARY_OPERATORS),
            ))
        _require_operand(self.left, "left", self.op)
        _require_operand(self.right, "right", self.op)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Binary):
            return NotImplemented
        return _same_tree(self, other)

    def __hash__(self) -> int:
        return _fold(self, _tree_hash)


# ---------------------------------------------------------------------------
# Expression constructors
# ---------------------------------------------------------------------------

def E_CONST(value: float) -> Constant:
    return Constant(value)

def E_VAR(name: str) -> Variable:
    return Variable(name)

def E_BINOP(op: str, left: Expression, right: Expression) -> Binary:
    return Binary(op, left, right)

def E_AND(left: Expression, right: Expression) -> Binary:
    """Conjunction, built as-is (no simplification)."""
    return Binary("&&", left, right)

def E_OR(left: Expression, right: Expression) -> Binary:
    """Disjunction, built as-is (no simplification)."""
    return Binary("||", left, right)

def E_NOT(operand: Expression) -> Unary:
    return Unary("!", operand)

def E_NEG(operand: Expression) -> Unary:
    return Unary("-", operand)

def E_ABS(operand: Expression) -> Unary:
    return Unary("abs", operand)
