"""Variable bindings supplied to an evaluation.

A binding holds either a number or an opaque host object. Only numbers can
be used as operands; opaque objects exist so that custom functions can
receive non-numeric context such as collections of host objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Any, Iterable, Iterator, Mapping

import numpy as np

from transformexpr.expressions.errors import BindingTypeError, UnknownVariableError


class BoundValue:
    """A number or an opaque object bound to a variable name."""

    is_number: bool = False

    def as_number(self) -> np.float32:
        raise BindingTypeError(f"Expected a number, got {self!r}")

    def as_object(self) -> Any:
        raise BindingTypeError(f"Expected an object, got {self!r}")

    @staticmethod
    def of(value: Any) -> BoundValue:
        """Wrap a raw Python value; real numbers other than bool become numbers."""
        if isinstance(value, BoundValue):
            return value
        if isinstance(value, Real) and not isinstance(value, (bool, np.bool_)):
            return NumberValue(_to_float32(value))
        return ObjectValue(value)


def _to_float32(value: Real) -> np.float32:
    """Convert a real number; floats beyond float32 range become inf."""
    try:
        with np.errstate(over="ignore"):
            return np.float32(value)
    except OverflowError as e:
        raise BindingTypeError("Numeric binding is too large to represent") from e


@dataclass(frozen=True)
class NumberValue(BoundValue):
    value: np.float32

    is_number = True

    def as_number(self) -> np.float32:
        return self.value


@dataclass(frozen=True)
class ObjectValue(BoundValue):
    value: Any

    def as_object(self) -> Any:
        return self.value


class VariableBindings:
    """Ordered name/value pairs looked up by first matching name.

    Usage:
        variables = VariableBindings([("this", 5.0), ("index", 2)])
        variables.number("this")  # 5.0
    """

    def __init__(self, bindings: Iterable[tuple[str, Any]] | Mapping[str, Any] | None = None):
        if bindings is None:
            pairs: Iterable[tuple[str, Any]] = ()
        elif isinstance(bindings, Mapping):
            pairs = bindings.items()
        else:
            pairs = bindings
        self._bindings: list[tuple[str, BoundValue]] = [
            (name, BoundValue.of(value)) for name, value in pairs
        ]

    def lookup(self, name: str) -> BoundValue:
        """Return the first binding for name.

        Raises:
            UnknownVariableError: If no binding has that name
        """
        for bound_name, value in self._bindings:
            if bound_name == name:
                return value
        raise UnknownVariableError(name)

    def number(self, name: str) -> np.float32:
        """Return a numeric binding, failing on opaque values."""
        return self.lookup(name).as_number()

    def object(self, name: str) -> Any:
        """Return an opaque binding, failing on numeric values."""
        return self.lookup(name).as_object()

    def names(self) -> list[str]:
        return [name for name, _ in self._bindings]

    def __contains__(self, name: object) -> bool:
        return any(bound_name == name for bound_name, _ in self._bindings)

    def __iter__(self) -> Iterator[tuple[str, BoundValue]]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"VariableBindings({self._bindings!r})"
