"""Layout custom functions: space_between and center.

Both read the batch through an explicit LayoutContext rather than global
scene state. They use the ``__attribute`` binding ("x", "y" or "z") to pick
the axis being computed and fall back to ``this`` for an empty batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from transformexpr.expressions import CustomFunction, VariableBindings
from transformexpr.layout.types import Target

ATTRIBUTE_VARIABLE = "__attribute"


@dataclass
class LayoutContext:
    """Batch state visible to layout functions.

    Attributes:
        snapshot: Targets as they were before the batch started
        current: Targets as updated so far; entry i changes once target i is applied
    """

    snapshot: tuple[Target, ...]
    current: list[Target] = field(default_factory=list)

    @classmethod
    def for_targets(cls, targets: list[Target]) -> LayoutContext:
        return cls(snapshot=tuple(targets), current=list(targets))


def _target_index(value: float, count: int) -> int:
    index = int(value)
    if not 0 <= index < count:
        raise IndexError(f"Target index {index} out of range for {count} target(s)")
    return index


def space_between(context: LayoutContext) -> CustomFunction:
    """space_between(space, index): place a target after its predecessor.

    The first target sits at half its size. Every other target is placed at
    the predecessor's updated position plus both sizes plus the gap.
    """

    def body(arguments: list[float], variables: VariableBindings) -> float:
        space = arguments[0]
        axis = variables.object(ATTRIBUTE_VARIABLE)
        default = float(variables.number("this"))

        targets = context.current
        if not targets:
            return default

        index = _target_index(arguments[1], len(targets))
        if index == 0:
            return targets[0].size.axis(axis) * 0.5

        previous = targets[index - 1]
        return (
            previous.position.axis(axis)
            + previous.size.axis(axis)
            + targets[index].size.axis(axis)
            + space
        )

    return CustomFunction("space_between", body)


def center(context: LayoutContext) -> CustomFunction:
    """center(pivot, index): shift a target so the batch is centred on pivot.

    The batch extent runs from the lowest target's position minus its scaled
    half-size to the highest target's position plus its scaled half-size,
    measured on the original (pre-batch) positions.
    """

    def body(arguments: list[float], variables: VariableBindings) -> float:
        pivot = arguments[0]
        axis = variables.object(ATTRIBUTE_VARIABLE)
        default = float(variables.number("this"))

        targets = context.snapshot
        if not targets:
            return default

        index = _target_index(arguments[1], len(targets))

        lowest = min(targets, key=lambda t: t.position.axis(axis))
        highest = max(targets, key=lambda t: t.position.axis(axis))

        low_extent = lowest.size.axis(axis) * lowest.scale.axis(axis)
        high_extent = highest.size.axis(axis) * highest.scale.axis(axis)

        low = lowest.position.axis(axis) - low_extent / 2
        high = highest.position.axis(axis) + high_extent / 2
        midpoint = low + (high - low) / 2

        return targets[index].position.axis(axis) + (pivot - midpoint)

    return CustomFunction("center", body)


def placeholder_functions() -> list[CustomFunction]:
    """Layout functions that always return 0, for syntax checks."""
    return [
        CustomFunction("space_between", lambda arguments, variables: 0.0),
        CustomFunction("center", lambda arguments, variables: 0.0),
    ]
