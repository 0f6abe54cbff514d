"""Evaluator for the transformexpr expression language.

Runs a postfix sequence on a single value stack, resolving variables from
the evaluation context and dispatching function calls to built-ins first and
caller-registered custom functions second.
"""

import logging
import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from transformexpr.config import DEFAULT_CONFIG, EvaluatorConfig
from transformexpr.expressions.builtins import BUILTINS
from transformexpr.expressions.errors import (
    EvaluationError,
    ExpressionError,
    UnknownFunctionError,
)
from transformexpr.expressions.functions import CustomFunction, find_custom_function
from transformexpr.expressions.parser import (
    FunctionCall,
    Numeric,
    Operator,
    OperatorKind,
    PostfixNode,
    Variable,
    parse,
)
from transformexpr.expressions.variables import VariableBindings

logger = logging.getLogger(__name__)

Bindings = VariableBindings | Mapping[str, Any] | Iterable[tuple[str, Any]] | None


@dataclass
class EvaluationContext:
    """Context for expression evaluation.

    Attributes:
        variables: Ordered variable bindings, first match wins
        functions: Custom functions, consulted after the built-ins
    """

    variables: VariableBindings = field(default_factory=VariableBindings)
    functions: Sequence[CustomFunction] = ()


class Evaluator:
    """Evaluates postfix sequences against a context.

    Usage:
        ctx = EvaluationContext(variables=VariableBindings({"this": 5.0}))
        evaluator = Evaluator(ctx)
        result = evaluator.evaluate(parse("this + 10"))
    """

    def __init__(self, context: EvaluationContext):
        self.context = context

    def evaluate(self, nodes: Sequence[PostfixNode]) -> np.float32:
        """Evaluate a postfix sequence and return the single resulting value."""
        stack: list[np.float32] = []

        with np.errstate(all="ignore"):
            for node in nodes:
                method_name = f"_eval_{type(node).__name__.lower()}"
                method = getattr(self, method_name, None)

                if method is None:
                    raise EvaluationError(f"Unexpected node type: {type(node).__name__}")

                method(node, stack)

        if len(stack) != 1:
            raise EvaluationError(
                f"Malformed expression: {len(stack)} values left after evaluation"
            )

        return stack[0]

    # -------------------------------------------------------------------------
    # Node type evaluators
    # -------------------------------------------------------------------------

    def _eval_numeric(self, node: Numeric, stack: list[np.float32]) -> None:
        stack.append(np.float32(node.value))

    def _eval_variable(self, node: Variable, stack: list[np.float32]) -> None:
        stack.append(self.context.variables.number(node.name))

    def _eval_functioncall(self, node: FunctionCall, stack: list[np.float32]) -> None:
        arguments = [self.evaluate(argument) for argument in node.arguments]
        stack.append(self._call_function(node.name, arguments))

    def _eval_operator(self, node: Operator, stack: list[np.float32]) -> None:
        if len(stack) < 2:
            raise EvaluationError(f"Operator '{node.kind.value}' needs two operands")

        a = stack.pop()
        b = stack.pop()
        stack.append(self._apply_operator(node.kind, b, a))

    # -------------------------------------------------------------------------
    # Helper methods
    # -------------------------------------------------------------------------

    def _apply_operator(self, kind: OperatorKind, left: np.float32, right: np.float32) -> np.float32:
        if kind == OperatorKind.ADD:
            return np.float32(left + right)
        if kind == OperatorKind.SUBTRACT:
            return np.float32(left - right)
        if kind == OperatorKind.MULTIPLY:
            return np.float32(left * right)
        if kind == OperatorKind.DIVIDE:
            return np.float32(np.divide(left, right))
        if kind == OperatorKind.POWER:
            return np.float32(np.power(np.float64(left), np.float64(right)))
        if kind == OperatorKind.MODULO:
            return np.float32(np.fmod(left, right))

        raise EvaluationError(f"Unknown operator: {kind}")

    def _call_function(self, name: str, arguments: list[np.float32]) -> np.float32:
        """Dispatch to a built-in, then to the first custom function with that name."""
        if BUILTINS.is_registered(name):
            return np.float32(BUILTINS.get(name).call(arguments))

        custom = find_custom_function(self.context.functions, name)
        if custom is None:
            raise UnknownFunctionError(name)

        try:
            result = custom.body([float(a) for a in arguments], self.context.variables)
        except ExpressionError:
            raise
        except Exception as e:
            raise EvaluationError(f"Error calling {name}: {e}") from e

        if not isinstance(result, Real) or isinstance(result, bool):
            raise EvaluationError(
                f"Function '{name}' returned {type(result).__name__}, expected a number"
            )

        try:
            return np.float32(result)
        except OverflowError as e:
            raise EvaluationError(f"Function '{name}' returned a number out of range") from e


# -----------------------------------------------------------------------------
# Convenience functions
# -----------------------------------------------------------------------------


def _as_bindings(variables: Bindings) -> VariableBindings:
    if isinstance(variables, VariableBindings):
        return variables
    return VariableBindings(variables)


def evaluate_strict(
    expression: str,
    variables: Bindings = None,
    functions: Sequence[CustomFunction] = (),
    *,
    config: EvaluatorConfig | None = None,
) -> float:
    """Parse and evaluate an expression, raising on failure.

    Raises:
        ExpressionError: On any syntax, resolution, arity or stack error
    """
    config = config or DEFAULT_CONFIG
    nodes = parse(expression, config)
    ctx = EvaluationContext(
        variables=_as_bindings(variables),
        functions=tuple(functions),
    )
    return float(Evaluator(ctx).evaluate(nodes))


def try_evaluate(
    expression: str,
    variables: Bindings = None,
    functions: Sequence[CustomFunction] = (),
    *,
    config: EvaluatorConfig | None = None,
) -> tuple[bool, float]:
    """Evaluate an expression string, reporting success as a flag.

    This is the main entry point for expression evaluation. It never raises;
    on failure the value is NaN.

    Example:
        ok, value = try_evaluate("clamp(this, 0, 1)", {"this": 5.0})
        # ok = True, value = 1.0
    """
    if expression is None or not expression.strip():
        return False, math.nan

    try:
        return True, evaluate_strict(expression, variables, functions, config=config)
    except (ExpressionError, RecursionError) as e:
        logger.debug("Failed to evaluate %r: %s", expression, e)
        return False, math.nan


def evaluate(
    expression: str,
    variables: Bindings = None,
    functions: Sequence[CustomFunction] = (),
    *,
    config: EvaluatorConfig | None = None,
) -> float:
    """Evaluate an expression string, returning NaN on failure."""
    _, value = try_evaluate(expression, variables, functions, config=config)
    return value
