"""Validate, preview and apply transform expressions over a batch of targets."""

from __future__ import annotations

import logging

from transformexpr.config import EvaluatorConfig
from transformexpr.expressions import (
    CustomFunction,
    ExpressionError,
    VariableBindings,
    evaluate,
    evaluate_strict,
    try_evaluate,
)
from transformexpr.layout.functions import (
    ATTRIBUTE_VARIABLE,
    LayoutContext,
    center,
    placeholder_functions,
    space_between,
)
from transformexpr.layout.types import AXES, LayoutError, Target, TransformExpressions, Vector3

logger = logging.getLogger(__name__)


def _test_bindings(targets: list[Target]) -> VariableBindings:
    return VariableBindings(
        [
            ("this", 0.0),
            ("index", 0),
            ("targets", [0] * len(targets)),
            ("objects", list(targets)),
        ]
    )


def validate_expressions(
    expressions: TransformExpressions,
    targets: list[Target] | tuple[Target, ...] = (),
    *,
    config: EvaluatorConfig | None = None,
) -> list[str]:
    """Return the names of fields whose expression fails with test bindings.

    Layout functions are replaced by placeholders returning 0, so only
    syntax and name resolution are checked.
    """
    variables = _test_bindings(list(targets))
    functions = placeholder_functions()

    failures = []
    for name, expression in expressions.fields():
        ok, _ = try_evaluate(expression, variables, functions, config=config)
        if not ok:
            failures.append(name)
    return failures


def preview_transforms(
    expressions: TransformExpressions,
    targets: list[Target] | tuple[Target, ...] = (),
    *,
    config: EvaluatorConfig | None = None,
) -> dict[str, float]:
    """Evaluate every field with test bindings; failed fields are NaN."""
    variables = _test_bindings(list(targets))
    functions = placeholder_functions()
    return {
        name: evaluate(expression, variables, functions, config=config)
        for name, expression in expressions.fields()
    }


def apply_transforms(
    expressions: TransformExpressions,
    targets: list[Target] | tuple[Target, ...],
    *,
    config: EvaluatorConfig | None = None,
) -> list[Target]:
    """Apply the nine expressions to every target in sibling order.

    For each target the position is computed first, then the rotation, then
    the scale. ``space_between`` sees positions already updated earlier in the
    batch; ``center`` sees the batch as it was before applying.

    Returns:
        The updated targets, ordered by sibling index

    Raises:
        LayoutError: If validation fails or a field cannot be evaluated
    """
    failures = validate_expressions(expressions, targets, config=config)
    if failures:
        raise LayoutError(
            f"Failed to compile expression in {', '.join(failures)}", fields=failures
        )

    ordered = sorted(targets, key=lambda t: t.sibling_index)
    context = LayoutContext.for_targets(ordered)
    functions = [space_between(context), center(context)]

    for index, target in enumerate(ordered):
        position = _evaluate_vector(
            "Position", expressions.position, target, target.position, index, functions, config
        )
        context.current[index] = target.with_values(position=position)

        rotation = _evaluate_vector(
            "Rotation", expressions.rotation, target, target.rotation, index, functions, config
        )
        scale = _evaluate_vector(
            "Scale", expressions.scale, target, target.scale, index, functions, config
        )
        context.current[index] = target.with_values(
            position=position, rotation=rotation, scale=scale
        )

    return list(context.current)


def _evaluate_vector(
    label: str,
    expressions: Vector3[str],
    target: Target,
    values: Vector3[float],
    index: int,
    functions: list[CustomFunction],
    config: EvaluatorConfig | None,
) -> Vector3[float]:
    results = []
    for axis in AXES:
        variables = VariableBindings(
            [
                ("this", values.axis(axis)),
                ("index", index),
                (ATTRIBUTE_VARIABLE, axis),
            ]
        )
        try:
            results.append(
                evaluate_strict(expressions.axis(axis), variables, functions, config=config)
            )
        except (ExpressionError, RecursionError) as e:
            field_name = f"{label}.{axis.upper()}"
            logger.warning("Failed to evaluate %s for %s: %s", field_name, target.name, e)
            raise LayoutError(
                f"Failed to evaluate {field_name} for '{target.name}': {e}",
                fields=[field_name],
            ) from e

    return Vector3.of(results)
