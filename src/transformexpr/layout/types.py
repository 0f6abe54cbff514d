"""Plain-data types for batch transform layout."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")

AXES = ("x", "y", "z")


class LayoutError(Exception):
    """Error while validating or applying transform expressions.

    Attributes:
        fields: Names of the failing fields (e.g. "Position.X"), if known
    """

    def __init__(self, message: str, fields: list[str] | None = None):
        self.fields = fields or []
        super().__init__(message)


@dataclass(frozen=True)
class Vector3(Generic[T]):
    """Three components addressed by axis name."""

    x: T
    y: T
    z: T

    def axis(self, name: str) -> T:
        """Return the component for axis "x", "y" or "z"."""
        if name not in AXES:
            raise ValueError(f"Unknown axis: {name!r}")
        return getattr(self, name)

    def __iter__(self) -> Iterator[T]:
        return iter((self.x, self.y, self.z))

    @classmethod
    def of(cls, values: Iterable[T]) -> Vector3[T]:
        x, y, z = values
        return cls(x, y, z)


def _zero() -> Vector3[float]:
    return Vector3(0.0, 0.0, 0.0)


def _one() -> Vector3[float]:
    return Vector3(1.0, 1.0, 1.0)


def _this() -> Vector3[str]:
    return Vector3("this", "this", "this")


@dataclass(frozen=True)
class Target:
    """A transformable object in a batch.

    Attributes:
        name: Display name used in error messages
        position: Local position
        rotation: Local rotation as Euler angles in degrees
        scale: Local scale
        size: Size of the object's bounding box (see bounds_size)
        sibling_index: Ordering among siblings; batches are processed in this order
    """

    name: str
    position: Vector3[float] = field(default_factory=_zero)
    rotation: Vector3[float] = field(default_factory=_zero)
    scale: Vector3[float] = field(default_factory=_one)
    size: Vector3[float] = field(default_factory=_zero)
    sibling_index: int = 0

    def with_values(self, **changes: Vector3[float]) -> Target:
        return replace(self, **changes)


@dataclass
class TransformExpressions:
    """Nine per-axis expressions. Each defaults to "this" (keep the value)."""

    position: Vector3[str] = field(default_factory=_this)
    rotation: Vector3[str] = field(default_factory=_this)
    scale: Vector3[str] = field(default_factory=_this)

    def fields(self) -> Iterator[tuple[str, str]]:
        """Yield ("Position.X", expression) pairs in display order."""
        for label, vector in (
            ("Position", self.position),
            ("Scale", self.scale),
            ("Rotation", self.rotation),
        ):
            for axis in AXES:
                yield f"{label}.{axis.upper()}", vector.axis(axis)


def bounds_size(extents: Iterable[tuple[Vector3[float], Vector3[float]]]) -> Vector3[float]:
    """Size of the union of (min, max) extents.

    An empty iterable has zero size.
    """
    lows: list[Vector3[float]] = []
    highs: list[Vector3[float]] = []
    for low, high in extents:
        lows.append(low)
        highs.append(high)

    if not lows:
        return _zero()

    return Vector3.of(
        max(h.axis(a) for h in highs) - min(lo.axis(a) for lo in lows)
        for a in AXES
    )
