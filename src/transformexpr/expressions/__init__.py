"""Expression language for per-axis numeric transforms.

This module provides:
- Lexer: Tokenizes expression strings
- Parser: Produces postfix node sequences from tokens
- Evaluator: Evaluates postfix sequences against variables and functions
- FunctionRegistry: Registry of built-in functions
- try_evaluate / evaluate: One-call entry points that never raise
"""

from transformexpr.expressions.builtins import BUILTINS, CONSTANTS
from transformexpr.expressions.errors import (
    ArityError,
    BindingTypeError,
    EvaluationError,
    ExpressionError,
    LexerError,
    ParseError,
    UnknownFunctionError,
    UnknownVariableError,
)
from transformexpr.expressions.evaluator import (
    EvaluationContext,
    Evaluator,
    evaluate,
    evaluate_strict,
    try_evaluate,
)
from transformexpr.expressions.functions import (
    CustomFunction,
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
)
from transformexpr.expressions.lexer import Lexer, Token, TokenType
from transformexpr.expressions.parser import (
    FunctionCall,
    Numeric,
    Operator,
    OperatorKind,
    Parser,
    PostfixNode,
    Variable,
    parse,
)
from transformexpr.expressions.variables import (
    BoundValue,
    NumberValue,
    ObjectValue,
    VariableBindings,
)

__all__ = [
    # Built-ins
    "BUILTINS",
    "CONSTANTS",
    # Errors
    "ArityError",
    "BindingTypeError",
    "EvaluationError",
    "ExpressionError",
    "LexerError",
    "ParseError",
    "UnknownFunctionError",
    "UnknownVariableError",
    # Evaluator
    "EvaluationContext",
    "Evaluator",
    "evaluate",
    "evaluate_strict",
    "try_evaluate",
    # Functions
    "CustomFunction",
    "FunctionCategory",
    "FunctionDefinition",
    "FunctionParameter",
    "FunctionRegistry",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Parser
    "FunctionCall",
    "Numeric",
    "Operator",
    "OperatorKind",
    "Parser",
    "PostfixNode",
    "Variable",
    "parse",
    # Variables
    "BoundValue",
    "NumberValue",
    "ObjectValue",
    "VariableBindings",
]
