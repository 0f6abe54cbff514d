"""Built-in functions and constants for the transformexpr expression language.

All functions take and return float32 values. Angles are in radians.
Transcendental functions are computed in double precision and rounded to
float32.

Categories:
- Arithmetic: abs, sign, sqrt, pow, max, min, clamp, saturate, frac
- Rounding: ceil, floor, round
- Trigonometry: sin, cos, tan, asin, acos, atan, atan2, degrees, radians
- Exponential: exp, log, log10
- Interpolation: lerp, smoothstep
- Comparison: approximately

Constants: PI, EPSILON
"""

from typing import Callable

import numpy as np

from transformexpr.expressions.functions import (
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)

PI = np.float32(np.pi)

# Smallest positive (subnormal) float32
EPSILON = np.finfo(np.float32).smallest_subnormal

# degrees() and radians() both scale by this factor
DEGREES_PER_RADIAN = np.float32(180.0 / np.pi)

CONSTANTS: dict[str, np.float32] = {
    "PI": PI,
    "EPSILON": EPSILON,
}

_ZERO = np.float32(0.0)
_ONE = np.float32(1.0)


def register_all_builtins(registry: FunctionRegistry) -> None:
    """Register all built-in functions with a FunctionRegistry."""
    _register_arithmetic_functions(registry)
    _register_rounding_functions(registry)
    _register_trigonometry_functions(registry)
    _register_exponential_functions(registry)
    _register_interpolation_functions(registry)
    _register_comparison_functions(registry)


def _double(func: Callable[..., float]) -> Callable[..., np.float32]:
    """Wrap a numpy ufunc so it runs in float64 and returns float32."""

    def wrapper(*args: np.float32) -> np.float32:
        return np.float32(func(*(np.float64(a) for a in args)))

    wrapper.__name__ = getattr(func, "__name__", "wrapper")
    return wrapper


# -----------------------------------------------------------------------------
# Arithmetic Functions
# -----------------------------------------------------------------------------


def _abs(value: np.float32) -> np.float32:
    return np.float32(np.abs(value))


def _sign(value: np.float32) -> np.float32:
    """Return 1 for values >= 0 (including zero), -1 otherwise."""
    return _ONE if value >= 0 else -_ONE


def _max(*values: np.float32) -> np.float32:
    return np.float32(max(values))


def _min(*values: np.float32) -> np.float32:
    return np.float32(min(values))


def _clamp(value: np.float32, lower: np.float32, upper: np.float32) -> np.float32:
    if value < lower:
        return np.float32(lower)
    if value > upper:
        return np.float32(upper)
    return np.float32(value)


def _saturate(value: np.float32) -> np.float32:
    return _clamp(value, _ZERO, _ONE)


def _frac(value: np.float32) -> np.float32:
    """Fractional part relative to truncation toward zero (frac(-1.25) == -0.25)."""
    return np.float32(value - np.trunc(value))


def _register_arithmetic_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="abs",
            description="Returns absolute value",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("value", "The number")],
            examples=["abs(this - 1)"],
            implementation=_abs,
        )
    )

    registry.register(
        FunctionDefinition(
            name="sign",
            description="Returns 1 for zero or positive values, -1 for negative values",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("value", "The number")],
            examples=["sign(this) * 2"],
            implementation=_sign,
        )
    )

    registry.register(
        FunctionDefinition(
            name="sqrt",
            description="Returns the square root",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("value", "The number")],
            examples=["sqrt(index)"],
            implementation=_double(np.sqrt),
        )
    )

    registry.register(
        FunctionDefinition(
            name="pow",
            description="Raises a number to a power",
            category=FunctionCategory.ARITHMETIC,
            parameters=[
                FunctionParameter("value", "The base"),
                FunctionParameter("power", "The exponent"),
            ],
            examples=["pow(2, index)"],
            implementation=_double(np.power),
        )
    )

    registry.register(
        FunctionDefinition(
            name="max",
            description="Returns the largest argument",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("values", "Numbers to compare", variadic=True)],
            examples=["max(this, 0)", "max(1, 2, index)"],
            implementation=_max,
        )
    )

    registry.register(
        FunctionDefinition(
            name="min",
            description="Returns the smallest argument",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("values", "Numbers to compare", variadic=True)],
            examples=["min(this, 10)"],
            implementation=_min,
        )
    )

    registry.register(
        FunctionDefinition(
            name="clamp",
            description="Restricts a value to the range [min, max]",
            category=FunctionCategory.ARITHMETIC,
            parameters=[
                FunctionParameter("value", "The number"),
                FunctionParameter("min", "Lower bound"),
                FunctionParameter("max", "Upper bound"),
            ],
            examples=["clamp(this, 0, 1)"],
            implementation=_clamp,
        )
    )

    registry.register(
        FunctionDefinition(
            name="saturate",
            description="Restricts a value to the range [0, 1]",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("value", "The number")],
            examples=["saturate(this)"],
            implementation=_saturate,
        )
    )

    registry.register(
        FunctionDefinition(
            name="frac",
            description="Returns the value minus its integer part (truncated toward zero)",
            category=FunctionCategory.ARITHMETIC,
            parameters=[FunctionParameter("value", "The number")],
            examples=["frac(this)"],
            implementation=_frac,
        )
    )


# -----------------------------------------------------------------------------
# Rounding Functions
# -----------------------------------------------------------------------------


def _round(value: np.float32) -> np.float32:
    """Round half away from zero (round(2.5) == 3, round(-2.5) == -3)."""
    wide = np.float64(value)
    return np.float32(np.copysign(np.floor(np.abs(wide) + 0.5), wide))


def _register_rounding_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="ceil",
            description="Rounds up to nearest integer",
            category=FunctionCategory.ROUNDING,
            parameters=[FunctionParameter("value", "The number")],
            examples=["ceil(this)"],
            implementation=_double(np.ceil),
        )
    )

    registry.register(
        FunctionDefinition(
            name="floor",
            description="Rounds down to nearest integer",
            category=FunctionCategory.ROUNDING,
            parameters=[FunctionParameter("value", "The number")],
            examples=["floor(this)"],
            implementation=_double(np.floor),
        )
    )

    registry.register(
        FunctionDefinition(
            name="round",
            description="Rounds to nearest integer, halves away from zero",
            category=FunctionCategory.ROUNDING,
            parameters=[FunctionParameter("value", "The number")],
            examples=["round(this * 4) / 4"],
            implementation=_round,
        )
    )


# -----------------------------------------------------------------------------
# Trigonometry Functions
# -----------------------------------------------------------------------------


def _degrees(value: np.float32) -> np.float32:
    return np.float32(value * DEGREES_PER_RADIAN)


def _radians(value: np.float32) -> np.float32:
    # Same factor as degrees(); kept for compatibility with existing expressions.
    return np.float32(value * DEGREES_PER_RADIAN)


def _register_trigonometry_functions(registry: FunctionRegistry) -> None:
    for name, func, description in (
        ("sin", np.sin, "Returns the sine of an angle"),
        ("cos", np.cos, "Returns the cosine of an angle"),
        ("tan", np.tan, "Returns the tangent of an angle"),
        ("asin", np.arcsin, "Returns the arc-sine of a value"),
        ("acos", np.arccos, "Returns the arc-cosine of a value"),
        ("atan", np.arctan, "Returns the arc-tangent of a value"),
    ):
        registry.register(
            FunctionDefinition(
                name=name,
                description=description,
                category=FunctionCategory.TRIGONOMETRY,
                parameters=[FunctionParameter("value", "The number")],
                examples=[f"{name}(this)"],
                implementation=_double(func),
            )
        )

    registry.register(
        FunctionDefinition(
            name="atan2",
            description="Returns the angle whose tangent is y/x",
            category=FunctionCategory.TRIGONOMETRY,
            parameters=[
                FunctionParameter("y", "The y coordinate"),
                FunctionParameter("x", "The x coordinate"),
            ],
            examples=["atan2(1, index)"],
            implementation=_double(np.arctan2),
        )
    )

    registry.register(
        FunctionDefinition(
            name="degrees",
            description="Multiplies by the degrees-per-radian factor (180/PI)",
            category=FunctionCategory.TRIGONOMETRY,
            parameters=[FunctionParameter("value", "Angle in radians")],
            examples=["degrees(PI / 2)"],
            implementation=_degrees,
        )
    )

    registry.register(
        FunctionDefinition(
            name="radians",
            description="Multiplies by the degrees-per-radian factor (180/PI), same as degrees",
            category=FunctionCategory.TRIGONOMETRY,
            parameters=[FunctionParameter("value", "The number")],
            examples=["radians(this)"],
            implementation=_radians,
        )
    )


# -----------------------------------------------------------------------------
# Exponential Functions
# -----------------------------------------------------------------------------


def _log(value: np.float32, base: np.float32 | None = None) -> np.float32:
    """Natural logarithm, or logarithm in the given base."""
    if base is None:
        return np.float32(np.log(np.float64(value)))
    return np.float32(np.log(np.float64(value)) / np.log(np.float64(base)))


def _register_exponential_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="exp",
            description="Returns e raised to a power",
            category=FunctionCategory.EXPONENTIAL,
            parameters=[FunctionParameter("value", "The exponent")],
            examples=["exp(index)"],
            implementation=_double(np.exp),
        )
    )

    registry.register(
        FunctionDefinition(
            name="log",
            description="Returns the natural logarithm, or the logarithm in a given base",
            category=FunctionCategory.EXPONENTIAL,
            parameters=[
                FunctionParameter("value", "The number"),
                FunctionParameter("base", "Logarithm base", required=False),
            ],
            examples=["log(this)", "log(8, 2)"],
            implementation=_log,
        )
    )

    registry.register(
        FunctionDefinition(
            name="log10",
            description="Returns the base-10 logarithm",
            category=FunctionCategory.EXPONENTIAL,
            parameters=[FunctionParameter("value", "The number")],
            examples=["log10(this)"],
            implementation=_double(np.log10),
        )
    )


# -----------------------------------------------------------------------------
# Interpolation Functions
# -----------------------------------------------------------------------------


def _lerp(start: np.float32, end: np.float32, t: np.float32) -> np.float32:
    """Linear interpolation with t clamped to [0, 1]."""
    return np.float32(start + (end - start) * _saturate(t))


def _smoothstep(start: np.float32, end: np.float32, t: np.float32) -> np.float32:
    """Hermite interpolation between start and end with t clamped to [0, 1]."""
    t = _saturate(t)
    t = np.float32(np.float32(-2.0) * t * t * t + np.float32(3.0) * t * t)
    return np.float32(end * t + start * (_ONE - t))


def _register_interpolation_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="lerp",
            description="Interpolates linearly between a and b by t (t clamped to [0, 1])",
            category=FunctionCategory.INTERPOLATION,
            parameters=[
                FunctionParameter("a", "Start value"),
                FunctionParameter("b", "End value"),
                FunctionParameter("t", "Interpolation factor"),
            ],
            examples=["lerp(0, 10, index / 4)"],
            implementation=_lerp,
        )
    )

    registry.register(
        FunctionDefinition(
            name="smoothstep",
            description="Interpolates between from and to with smoothing at the limits",
            category=FunctionCategory.INTERPOLATION,
            parameters=[
                FunctionParameter("from", "Start value"),
                FunctionParameter("to", "End value"),
                FunctionParameter("t", "Interpolation factor"),
            ],
            examples=["smoothstep(0, 10, index / 4)"],
            implementation=_smoothstep,
        )
    )


# -----------------------------------------------------------------------------
# Comparison Functions
# -----------------------------------------------------------------------------


def _approximately(a: np.float32, b: np.float32) -> np.float32:
    """Return 1 if a and b are equal within float32 tolerance, else 0."""
    tolerance = max(np.float32(1e-6) * max(np.abs(a), np.abs(b)), EPSILON * np.float32(8))
    return _ONE if np.abs(b - a) < tolerance else _ZERO


def _register_comparison_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="approximately",
            description="Returns 1 if two values are nearly equal, otherwise 0",
            category=FunctionCategory.COMPARISON,
            parameters=[
                FunctionParameter("a", "First value"),
                FunctionParameter("b", "Second value"),
            ],
            examples=["approximately(this, 0.1 + 0.2)"],
            implementation=_approximately,
        )
    )


BUILTINS = FunctionRegistry()
register_all_builtins(BUILTINS)
