"""Exception hierarchy for the transformexpr expression language.

Every failure inside the lexer, parser or evaluator is raised as a subclass
of ExpressionError. The public helpers (try_evaluate, evaluate) collapse all
of them into a single failure result.
"""


class ExpressionError(Exception):
    """Base class for expression failures."""

    def __init__(self, message: str, position: int | None = None):
        self.message = message
        self.position = position
        if position is None:
            super().__init__(message)
        else:
            super().__init__(f"{message} at position {position}")


class LexerError(ExpressionError):
    """Error during lexical analysis."""


class ParseError(ExpressionError):
    """Error while converting tokens to postfix order."""


class EvaluationError(ExpressionError):
    """Error during postfix evaluation."""


class UnknownVariableError(EvaluationError):
    """A variable name has no binding."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown variable: {name}")


class UnknownFunctionError(EvaluationError):
    """A function name is neither built-in nor registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class ArityError(EvaluationError):
    """A function received fewer arguments than it requires."""


class BindingTypeError(EvaluationError):
    """A bound value was accessed as the wrong variant."""
