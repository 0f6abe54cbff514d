"""transformexpr: arithmetic expressions for per-object numeric transforms."""

from transformexpr.config import EvaluatorConfig
from transformexpr.expressions import (
    CustomFunction,
    ExpressionError,
    VariableBindings,
    evaluate,
    try_evaluate,
)

__version__ = "0.1.0"

__all__ = [
    "CustomFunction",
    "EvaluatorConfig",
    "ExpressionError",
    "VariableBindings",
    "evaluate",
    "try_evaluate",
]
