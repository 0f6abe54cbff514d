"""Load layout plans from YAML files.

A plan holds the nine transform expressions and the batch of targets:

    expressions:
      position: {x: "space_between(0.5, index)", y: this, z: this}
    targets:
      - name: crate
        position: [0, 0, 0]
        size: [1, 1, 1]
      - name: barrel
        bounds:
          - {min: [0, 0, 0], max: [1, 2, 1]}

Missing expressions default to "this"; a target's sibling index defaults to
its position in the list. ``size`` and ``bounds`` are alternatives.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from transformexpr.layout.types import (
    AXES,
    LayoutError,
    Target,
    TransformExpressions,
    Vector3,
    bounds_size,
)


@dataclass
class LayoutPlan:
    expressions: TransformExpressions = field(default_factory=TransformExpressions)
    targets: list[Target] = field(default_factory=list)


def load_plan(path: Path) -> LayoutPlan:
    """Read and parse a YAML layout plan."""
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise LayoutError(f"Invalid YAML in {path}: {e}") from e

    return parse_plan(data or {})


def parse_plan(data: dict[str, Any]) -> LayoutPlan:
    """Build a LayoutPlan from already-loaded YAML data."""
    if not isinstance(data, dict):
        raise LayoutError("Layout plan must be a mapping")

    expressions_data = data.get("expressions") or {}
    if not isinstance(expressions_data, dict):
        raise LayoutError("expressions must be a mapping")

    expressions = TransformExpressions(
        position=_parse_expressions(expressions_data.get("position"), "position"),
        rotation=_parse_expressions(expressions_data.get("rotation"), "rotation"),
        scale=_parse_expressions(expressions_data.get("scale"), "scale"),
    )

    targets_data = data.get("targets") or []
    if not isinstance(targets_data, list):
        raise LayoutError("targets must be a list")

    targets = [_parse_target(target_data, i) for i, target_data in enumerate(targets_data)]

    return LayoutPlan(expressions=expressions, targets=targets)


def _parse_expressions(data: Any, what: str) -> Vector3[str]:
    data = data or {}
    if not isinstance(data, dict):
        raise LayoutError(f"expressions.{what} must be a mapping of axis to expression")

    return Vector3.of(
        "this" if data.get(axis) is None else str(data[axis]) for axis in AXES
    )


def _parse_vector(value: Any, default: float, what: str) -> Vector3[float]:
    if value is None:
        return Vector3(default, default, default)

    if isinstance(value, dict):
        value = [value.get(axis, default) for axis in AXES]

    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise LayoutError(f"{what} must be a list of three numbers, got {value!r}")

    try:
        return Vector3.of(float(v) for v in value)
    except (TypeError, ValueError, OverflowError) as e:
        raise LayoutError(f"{what} must contain numbers, got {value!r}") from e


def _parse_target(data: dict[str, Any], index: int) -> Target:
    if not isinstance(data, dict):
        raise LayoutError(f"Target #{index} must be a mapping")

    name = str(data.get("name", f"target{index}"))

    if "bounds" in data:
        size = bounds_size(_parse_bounds(data["bounds"] or [], name))
    else:
        size = _parse_vector(data.get("size"), 0.0, f"{name}.size")

    return Target(
        name=name,
        position=_parse_vector(data.get("position"), 0.0, f"{name}.position"),
        rotation=_parse_vector(data.get("rotation"), 0.0, f"{name}.rotation"),
        scale=_parse_vector(data.get("scale"), 1.0, f"{name}.scale"),
        size=size,
        sibling_index=_parse_sibling_index(data.get("sibling_index", index), name),
    )


def _parse_bounds(data: Any, name: str) -> list[tuple[Vector3[float], Vector3[float]]]:
    if not isinstance(data, list):
        raise LayoutError(f"{name}.bounds must be a list of {{min, max}} extents")

    extents = []
    for extent in data:
        if not isinstance(extent, dict):
            raise LayoutError(f"{name}.bounds entries must be mappings, got {extent!r}")
        extents.append(
            (
                _parse_vector(extent.get("min"), 0.0, f"{name}.bounds.min"),
                _parse_vector(extent.get("max"), 0.0, f"{name}.bounds.max"),
            )
        )
    return extents


def _parse_sibling_index(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise LayoutError(f"{name}.sibling_index must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise LayoutError(f"{name}.sibling_index must be an integer, got {value!r}") from e


def target_to_dict(target: Target) -> dict[str, Any]:
    return {
        "name": target.name,
        "position": list(target.position),
        "rotation": list(target.rotation),
        "scale": list(target.scale),
        "size": list(target.size),
        "sibling_index": target.sibling_index,
    }


def dump_targets(targets: list[Target]) -> str:
    """Serialize targets back to YAML."""
    return yaml.safe_dump(
        {"targets": [target_to_dict(t) for t in targets]},
        sort_keys=False,
    )
