"""Batch transform layout driven by per-axis expressions.

This module provides:
- Target / Vector3 / TransformExpressions: plain-data batch description
- validate_expressions / preview_transforms / apply_transforms
- space_between / center: layout custom functions over a LayoutContext
- load_plan / dump_targets: YAML plan files
"""

from transformexpr.layout.functions import LayoutContext, center, space_between
from transformexpr.layout.loader import LayoutPlan, dump_targets, load_plan, parse_plan
from transformexpr.layout.service import (
    apply_transforms,
    preview_transforms,
    validate_expressions,
)
from transformexpr.layout.types import (
    LayoutError,
    Target,
    TransformExpressions,
    Vector3,
    bounds_size,
)

__all__ = [
    "LayoutContext",
    "LayoutError",
    "LayoutPlan",
    "Target",
    "TransformExpressions",
    "Vector3",
    "apply_transforms",
    "bounds_size",
    "center",
    "dump_targets",
    "load_plan",
    "parse_plan",
    "preview_transforms",
    "space_between",
    "validate_expressions",
]
