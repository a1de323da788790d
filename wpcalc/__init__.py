"""wpcalc: weakest-precondition calculus for a small imperative language."""

__version__ = "0.1.0"

from wpcalc.errors import (
    ConfigError, ConstructionError, ErrorKind, ParseError, TrackerError, WPError,
)
from wpcalc.expressions import Binary, Constant, Expression, Unary, Variable
from wpcalc.statements import Assignment, IfThenElse, Sequence, Statement
from wpcalc.tracker import StepTracker
from wpcalc.parser import parse_expression, parse_statement
from wpcalc.calculator import WPResult, calculate
