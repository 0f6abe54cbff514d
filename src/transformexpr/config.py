"""Evaluator configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

MAX_DEPTH_ENV = "TRANSFORMEXPR_MAX_DEPTH"


@dataclass(frozen=True)
class EvaluatorConfig:
    """Options that bound expression parsing and evaluation.

    Attributes:
        max_depth: Maximum nesting depth of function calls. None means
            unbounded; set it when expressions come from untrusted input.
    """

    max_depth: int | None = None

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    @classmethod
    def from_env(cls) -> EvaluatorConfig:
        """Create config from environment variables.

        Resolution order:
        1. TRANSFORMEXPR_MAX_DEPTH env var (integer)
        2. Default: unbounded
        """
        raw = os.environ.get(MAX_DEPTH_ENV, "").strip()
        if not raw:
            return cls()

        try:
            max_depth = int(raw)
        except ValueError:
            raise ValueError(f"{MAX_DEPTH_ENV} must be an integer, got {raw!r}") from None

        return cls(max_depth=max_depth)


DEFAULT_CONFIG = EvaluatorConfig()
