"""Function registry for the transformexpr expression language.

Built-in functions (e.g. `clamp(this, 0, 1)`, `max(a, b, c)`) are described
by a FunctionDefinition carrying parameter metadata for documentation and
arity checks. Host-supplied callbacks are plain CustomFunction pairs passed
per evaluation call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from transformexpr.expressions.errors import ArityError, UnknownFunctionError

if TYPE_CHECKING:
    from transformexpr.expressions.variables import VariableBindings


class FunctionCategory(Enum):
    """Categories for organizing functions in documentation."""

    ARITHMETIC = "arithmetic"
    ROUNDING = "rounding"
    TRIGONOMETRY = "trigonometry"
    EXPONENTIAL = "exponential"
    INTERPOLATION = "interpolation"
    COMPARISON = "comparison"


@dataclass
class FunctionParameter:
    """Definition of a function parameter.

    Attributes:
        name: Parameter name
        description: Human-readable description
        required: Whether this parameter is required
        variadic: If True, this parameter accepts one or more values
    """

    name: str
    description: str
    required: bool = True
    variadic: bool = False


@dataclass
class FunctionDefinition:
    """Complete definition of a built-in function.

    Attributes:
        name: Function name as used in expressions
        description: Human-readable description
        category: Category for documentation organization
        parameters: List of parameter definitions
        examples: Example expressions using this function
        implementation: Callable taking float32 positional arguments
    """

    name: str
    description: str
    category: FunctionCategory
    parameters: list[FunctionParameter]
    implementation: Callable[..., Any]
    examples: list[str] = field(default_factory=list)

    @property
    def variadic(self) -> bool:
        return any(p.variadic for p in self.parameters)

    @property
    def min_arguments(self) -> int:
        return sum(1 for p in self.parameters if p.required)

    @property
    def max_arguments(self) -> int | None:
        if self.variadic:
            return None
        return len(self.parameters)

    def call(self, arguments: list[Any]) -> Any:
        """Invoke the implementation after checking the argument count.

        Surplus arguments to a fixed-arity function are ignored.
        """
        if len(arguments) < self.min_arguments:
            raise ArityError(
                f"{self.name}() takes at least {self.min_arguments} argument(s), "
                f"got {len(arguments)}"
            )
        if self.max_arguments is not None:
            arguments = arguments[: self.max_arguments]
        return self.implementation(*arguments)

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation output."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "parameters": [
                {
                    "name": p.name,
                    "description": p.description,
                    "required": p.required,
                    "variadic": p.variadic,
                }
                for p in self.parameters
            ],
            "examples": self.examples,
        }


@dataclass(frozen=True)
class CustomFunction:
    """A caller-registered function callable from expressions.

    The body receives the evaluated arguments and the variable bindings of
    the current evaluation, and returns a number.
    """

    name: str
    body: Callable[[list[float], VariableBindings], float]


class FunctionRegistry:
    """Registry of built-in function definitions.

    Example:
        registry = FunctionRegistry()
        registry.register(FunctionDefinition(name="abs", ...))

        func = registry.get("abs")
        result = func.call([np.float32(-2)])  # Returns 2.0
    """

    def __init__(self) -> None:
        self._functions: dict[str, FunctionDefinition] = {}

    def register(self, func_def: FunctionDefinition) -> None:
        """Register a function definition."""
        self._functions[func_def.name] = func_def

    def get(self, name: str) -> FunctionDefinition:
        """Get a function definition by name.

        Raises:
            UnknownFunctionError: If function is not registered
        """
        if name not in self._functions:
            raise UnknownFunctionError(name)
        return self._functions[name]

    def is_registered(self, name: str) -> bool:
        """Check if a function is registered."""
        return name in self._functions

    def list_all(self) -> list[FunctionDefinition]:
        """List all registered functions."""
        return list(self._functions.values())

    def list_by_category(self, category: FunctionCategory) -> list[FunctionDefinition]:
        """List functions in a specific category."""
        return [f for f in self._functions.values() if f.category == category]

    def export_documentation(self, category: FunctionCategory | None = None) -> dict[str, Any]:
        """Export the registry for documentation output.

        Returns:
            Dict with function definitions keyed by name and grouped by category
        """
        functions = self.list_all() if category is None else self.list_by_category(category)

        by_category: dict[str, list[str]] = {}
        for func_def in functions:
            by_category.setdefault(func_def.category.value, []).append(func_def.name)

        return {
            "functions": {f.name: f.to_dict() for f in functions},
            "byCategory": by_category,
        }

    def __len__(self) -> int:
        return len(self._functions)

    def __contains__(self, name: object) -> bool:
        return name in self._functions


def find_custom_function(
    functions: list[CustomFunction] | tuple[CustomFunction, ...], name: str
) -> CustomFunction | None:
    """Return the first custom function with the given name, if any."""
    for function in functions:
        if function.name == name:
            return function
    return None
