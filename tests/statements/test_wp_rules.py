"""WP Engine Tests: WP-001 through WP-008."""

import logging

import pytest

from wpcalc.errors import ConstructionError, ErrorKind
from wpcalc.expressions import Binary, Constant, Unary, Variable
from wpcalc.parser import parse_expression, parse_statement
from wpcalc.statements import Assignment, IfThenElse, Sequence
from wpcalc.tracker import StepTracker


def C(v):
    return Constant(v)


def V(name):
    return Variable(name)


class TestAssignmentRule:
    """WP-001: wp(x := e, R) = defs(e) && R[x := e]."""

    def test_plain_substitution(self):
        stmt = Assignment("x", C(5))
        post = Binary(">", V("x"), C(10))
        assert stmt.calculate_wp(post) == Binary(">", C(5), C(10))

    def test_division_adds_definiteness_condition(self):
        stmt = Assignment("x", Binary("/", C(10), V("y")))
        result = stmt.calculate_wp(V("x"))
        assert result == Binary("&&",
                                Binary("!=", V("y"), C(0)),
                                Binary("/", C(10), V("y")))

    def test_two_conditions_fold_in_collection_order(self):
        value = Binary("+", Binary("/", V("a"), V("b")), Binary("/", V("c"), V("d")))
        stmt = Assignment("x", value)
        post = Binary(">", V("x"), C(0))
        result = stmt.calculate_wp(post)
        assert result == Binary(
            "&&", Binary("!=", V("b"), C(0)),
            Binary("&&", Binary("!=", V("d"), C(0)), Binary(">", value, C(0))),
        )

    def test_unrelated_postcondition_is_copied(self):
        post = Binary(">", V("y"), C(0))
        result = Assignment("x", C(1)).calculate_wp(post)
        assert result == post
        assert result is not post

    def test_logs_one_step(self):
        tracker = StepTracker()
        Assignment("x", C(5)).calculate_wp(Binary(">", V("x"), C(10)), tracker)
        assert tracker.get_steps() == ("1. wp(x := 5, x > 10) = 5 > 10",)

    def test_no_tracker_is_fine(self):
        assert Assignment("x", V("y")).calculate_wp(V("x")) == V("y")


class TestSequenceRule:
    """WP-002: wp(S1; ...; Sn, R) = wp(S1, wp(S2, ... wp(Sn, R)))."""

    def test_two_assignments(self):
        seq = Sequence([Assignment("x", C(1)), Assignment("y", V("x"))])
        post = Binary(">", V("y"), C(0))
        assert seq.calculate_wp(post) == Binary(">", C(1), C(0))

    def test_order_matters(self):
        seq = Sequence([Assignment("y", V("x")), Assignment("x", C(1))])
        post = Binary(">", V("y"), C(0))
        assert seq.calculate_wp(post) == Binary(">", V("x"), C(0))

    def test_single_element(self):
        seq = Sequence([Assignment("x", C(2))])
        assert seq.calculate_wp(V("x")) == C(2)

    def test_logs_only_children_right_to_left(self):
        tracker = StepTracker()
        seq = Sequence([Assignment("x", C(1)), Assignment("y", V("x"))])
        seq.calculate_wp(Binary(">", V("y"), C(0)), tracker)
        assert tracker.get_steps() == (
            "1. wp(y := x, y > 0) = x > 0",
            "2. wp(x := 1, x > 0) = 1 > 0",
        )

    def test_nested_sequences(self):
        inner = Sequence([Assignment("a", C(1)), Assignment("b", V("a"))])
        outer = Sequence([inner, Assignment("c", V("b"))])
        assert outer.calculate_wp(V("c")) == C(1)


class TestConditionalRule:
    """WP-003: wp(if B then S1 else S2, R) = (B && wp1) || (!(B) && wp2)."""

    def test_exact_nesting(self):
        stmt = IfThenElse(V("x"), Assignment("y", C(1)), Assignment("y", C(0)))
        post = Binary(">", V("y"), C(0))
        expected = Binary(
            "||",
            Binary("&&", V("x"), Binary(">", C(1), C(0))),
            Binary("&&", Unary("!", V("x")), Binary(">", C(0), C(0))),
        )
        assert stmt.calculate_wp(post) == expected

    def test_rendering(self):
        stmt = IfThenElse(V("x"), Assignment("y", C(1)), Assignment("y", C(0)))
        result = stmt.calculate_wp(Binary(">", V("y"), C(0)))
        assert str(result) == "((x && 1 > 0) || (!(x) && 0 > 0))"

    def test_guard_copies_do_not_alias(self):
        guard = Binary(">", V("x"), C(0))
        stmt = IfThenElse(guard, Assignment("y", C(1)), Assignment("y", C(0)))
        result = stmt.calculate_wp(V("y"))
        then_guard = result.left.left
        else_guard = result.right.left.operand
        assert then_guard == guard and else_guard == guard
        assert then_guard is not guard and else_guard is not guard
        assert then_guard is not else_guard

    def test_logs_branches_then_conditional(self):
        tracker = StepTracker()
        stmt = IfThenElse(V("x"), Assignment("y", C(1)), Assignment("y", C(0)))
        stmt.calculate_wp(Binary(">", V("y"), C(0)), tracker)
        assert tracker.get_steps() == (
            "1. wp(y := 1, y > 0) = 1 > 0",
            "2. wp(y := 0, y > 0) = 0 > 0",
            "3. wp(if x then y := 1 else y := 0, y > 0) = ((x && 1 > 0) || (!(x) && 0 > 0))",
        )

    def test_division_inside_branch(self):
        stmt = IfThenElse(V("c"), Assignment("r", Binary("/", C(1), V("d"))), Assignment("r", C(0)))
        result = stmt.calculate_wp(Binary(">=", V("r"), C(0)))
        assert result.left.right == Binary(
            "&&", Binary("!=", V("d"), C(0)), Binary(">=", Binary("/", C(1), V("d")), C(0)),
        )


class TestConstructionErrors:
    """WP-004: statements reject missing or malformed components."""

    def test_assignment_blank_name(self):
        with pytest.raises(ConstructionError) as exc:
            Assignment("  ", C(1))
        assert exc.value.kind == ErrorKind.EMPTY_NAME

    def test_assignment_missing_name(self):
        with pytest.raises(ConstructionError) as exc:
            Assignment(None, C(1))
        assert exc.value.kind == ErrorKind.MISSING_COMPONENT

    def test_assignment_missing_value(self):
        with pytest.raises(ConstructionError) as exc:
            Assignment("x", None)
        assert exc.value.kind == ErrorKind.MISSING_COMPONENT

    def test_empty_sequence(self):
        with pytest.raises(ConstructionError) as exc:
            Sequence([])
        assert exc.value.kind == ErrorKind.EMPTY_SEQUENCE

    def test_sequence_with_missing_element(self):
        with pytest.raises(ConstructionError) as exc:
            Sequence([Assignment("x", C(1)), None])
        assert exc.value.kind == ErrorKind.NULL_ELEMENT
        assert exc.value.diagnostic.details["index"] == 1

    def test_sequence_missing_list(self):
        with pytest.raises(ConstructionError) as exc:
            Sequence(None)
        assert exc.value.kind == ErrorKind.MISSING_COMPONENT

    @pytest.mark.parametrize("missing", ["condition", "then", "else"])
    def test_if_missing_part(self, missing):
        parts = {"condition": V("b"), "then": Assignment("x", C(1)), "else": Assignment("x", C(2))}
        parts[missing] = None
        with pytest.raises(ConstructionError) as exc:
            IfThenElse(parts["condition"], parts["then"], parts["else"])
        assert exc.value.kind == ErrorKind.MISSING_COMPONENT


class TestStatementModel:
    """WP-005: rendering, equality and cloning of statements."""

    def test_assignment_str(self):
        assert str(Assignment("myVar", C(5))) == "myVar := 5"

    def test_sequence_str(self):
        assert str(Sequence([Assignment("x", C(1)), Assignment("y", C(2))])) == "x := 1; y := 2"

    def test_if_str(self):
        stmt = IfThenElse(V("x"), Assignment("y", C(1)), Assignment("y", C(0)))
        assert str(stmt) == "if (x) then { y := 1 } else { y := 0 }"

    def test_equality(self):
        assert Assignment("x", C(1)) == Assignment("x", C(1))
        assert Assignment("x", C(1)) != Assignment("y", C(1))
        assert Sequence([Assignment("x", C(1))]) != Assignment("x", C(1))

    def test_clone(self):
        stmt = IfThenElse(V("b"), Sequence([Assignment("x", C(1)), Assignment("y", V("x"))]),
                          Assignment("x", C(0)))
        copy = stmt.clone()
        assert copy == stmt
        assert copy is not stmt
        assert copy.condition is not stmt.condition
        assert copy.then_branch.statements[0] is not stmt.then_branch.statements[0]


class TestEndToEnd:
    """WP-006: parsed programs through the engine."""

    def test_increment_then_double(self):
        stmt = parse_statement("x := x + 1; y := x * 2")
        result = stmt.calculate_wp(parse_expression("y > 10"))
        assert result == parse_expression("(x + 1) * 2 > 10")

    def test_swap(self):
        stmt = parse_statement("t := x; x := y; y := t")
        post = parse_expression("x == 2 && y == 1")
        assert stmt.calculate_wp(post) == parse_expression("y == 2 && x == 1")

    def test_max(self):
        stmt = parse_statement("if (a > b) m := a else m := b")
        result = stmt.calculate_wp(parse_expression("m >= a && m >= b"))
        assert result == parse_expression(
            "(a > b && (a >= a && a >= b)) || (!(a > b) && (b >= a && b >= b))"
        )

    def test_blocks_and_division(self):
        stmt = parse_statement("{ q := n / d; if (q > 0) { r := q } else { r := 0 - q } }")
        tracker = StepTracker()
        result = stmt.calculate_wp(parse_expression("r >= 0"), tracker)
        assert result.op == "&&"
        assert result.left == parse_expression("d != 0")
        assert len(tracker) == 4


class TestLogging:
    """WP-007: derivations are also emitted on the module logger."""

    def test_debug_records(self, caplog):
        caplog.set_level(logging.DEBUG, logger="wpcalc.statements")
        Assignment("x", C(5)).calculate_wp(Binary(">", V("x"), C(10)))
        assert "wp(x := 5, x > 10) = 5 > 10" in caplog.text


class TestLongPrograms:
    """WP-008: straight-line programs thousands of statements long."""

    def test_thousand_increments(self):
        stmt = parse_statement("; ".join(["x := x + 1"] * 1000))
        tracker = StepTracker()
        result = stmt.calculate_wp(parse_expression("x > 0"), tracker)
        assert str(result) == "x" + " + 1" * 1000 + " > 0"
        assert len(tracker) == 1000
        assert tracker.get_steps()[-1].startswith("1000. wp(x := x + 1, x")

    def test_long_postcondition(self):
        post = parse_expression(" + ".join(["x"] * 1200) + " > 0")
        result = Assignment("x", Binary("/", V("y"), V("z"))).calculate_wp(post)
        assert result.op == "&&"
        assert result.left == parse_expression("z != 0")
        assert result.right.free_variables() == frozenset({"y", "z"})

    def test_thousand_divisions(self):
        stmt = parse_statement("; ".join(["x := x / d"] * 1000))
        result = stmt.calculate_wp(parse_expression("x > 0"))
        assert result.free_variables() == frozenset({"x", "d"})
        assert str(result).count("d != 0") == 1000
