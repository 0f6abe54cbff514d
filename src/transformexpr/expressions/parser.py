"""Parser for the transformexpr expression language.

Converts infix tokens into a postfix (Reverse Polish) sequence using the
shunting-yard algorithm. Function-call arguments are parsed recursively, one
postfix sequence per comma-separated argument.

Operator ranks (lower binds tighter):
1. ^
2. * / %
3. + -

An incoming operator first moves every stacked operator of equal or tighter
rank to the output. ``^`` is pushed without moving anything, so ``2^3^2``
groups as ``2^(3^2)``.
"""

from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from transformexpr.config import DEFAULT_CONFIG, EvaluatorConfig
from transformexpr.expressions.builtins import CONSTANTS
from transformexpr.expressions.errors import ParseError
from transformexpr.expressions.lexer import Lexer, Token, TokenType


# -----------------------------------------------------------------------------
# Postfix node types
# -----------------------------------------------------------------------------


class OperatorKind(Enum):
    """Binary operators with their symbol."""

    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    POWER = "^"
    MODULO = "%"

    @property
    def rank(self) -> int:
        return OPERATOR_RANKS[self]


OPERATOR_RANKS = {
    OperatorKind.POWER: 1,
    OperatorKind.MULTIPLY: 2,
    OperatorKind.DIVIDE: 2,
    OperatorKind.MODULO: 2,
    OperatorKind.ADD: 3,
    OperatorKind.SUBTRACT: 3,
}

_OPERATOR_TOKENS = {
    TokenType.PLUS: OperatorKind.ADD,
    TokenType.MINUS: OperatorKind.SUBTRACT,
    TokenType.MULTIPLY: OperatorKind.MULTIPLY,
    TokenType.DIVIDE: OperatorKind.DIVIDE,
    TokenType.POWER: OperatorKind.POWER,
    TokenType.MODULO: OperatorKind.MODULO,
}


@dataclass
class PostfixNode:
    """Base class for postfix nodes."""
    pass


@dataclass
class Numeric(PostfixNode):
    """A numeric literal or resolved constant."""
    value: np.float32


@dataclass
class Variable(PostfixNode):
    """A reference to a caller-supplied variable."""
    name: str


@dataclass
class Operator(PostfixNode):
    """A binary operator applied to the two most recent values."""
    kind: OperatorKind


@dataclass
class FunctionCall(PostfixNode):
    """Function call with one postfix sequence per argument."""
    name: str
    arguments: list[list[PostfixNode]] = field(default_factory=list)


@dataclass
class Separator(PostfixNode):
    """Argument boundary. Only present while splitting argument lists."""
    pass


@dataclass
class OpenParen(PostfixNode):
    """Open-parenthesis marker. Only present on the operator stack."""
    position: int = 0


# -----------------------------------------------------------------------------
# Parser
# -----------------------------------------------------------------------------


class Parser:
    """Shunting-yard parser producing postfix sequences.

    Usage:
        parser = Parser("(2 + 3) * 4")
        nodes = parser.parse()
    """

    def __init__(self, source: str, config: EvaluatorConfig | None = None, depth: int = 0):
        self.source = source
        self.config = config or DEFAULT_CONFIG
        self.depth = depth

    def parse(self) -> list[PostfixNode]:
        """Parse the expression and return the postfix sequence."""
        if not self.source or self.source.isspace():
            raise ParseError("Empty expression", 0)

        output = self._to_postfix()

        for node in output:
            if isinstance(node, Separator):
                raise ParseError("Unexpected ',' outside of a function call")

        return output

    def _to_postfix(self) -> list[PostfixNode]:
        """Run the shunting-yard pass, keeping Separator nodes in the output."""
        output: list[PostfixNode] = []
        stack: list[PostfixNode] = []

        for token in Lexer(self.source):
            if token.type == TokenType.EOF:
                break

            if token.type == TokenType.NUMBER:
                # Literals beyond float32 range become inf
                with np.errstate(over="ignore"):
                    output.append(Numeric(np.float32(token.value)))

            elif token.type == TokenType.CONSTANT:
                output.append(self._resolve_constant(token))

            elif token.type == TokenType.IDENTIFIER:
                output.append(Variable(str(token.value)))

            elif token.type == TokenType.FUNCTION:
                name, raw_arguments = token.value
                output.append(FunctionCall(name, self._parse_arguments(name, raw_arguments, token)))

            elif token.type in _OPERATOR_TOKENS:
                kind = _OPERATOR_TOKENS[token.type]
                if kind != OperatorKind.POWER:
                    self._flush_tighter(kind, stack, output)
                stack.append(Operator(kind))

            elif token.type == TokenType.LPAREN:
                stack.append(OpenParen(token.position))

            elif token.type == TokenType.RPAREN:
                self._close_paren(token, stack, output)

            elif token.type == TokenType.COMMA:
                self._flush_all(stack, output)
                output.append(Separator())

        self._flush_all(stack, output)
        return output

    def _resolve_constant(self, token: Token) -> Numeric:
        name = str(token.value)
        if name not in CONSTANTS:
            raise ParseError(f"'{name}' is not a valid constant", token.position)
        return Numeric(CONSTANTS[name])

    def _flush_tighter(
        self, kind: OperatorKind, stack: list[PostfixNode], output: list[PostfixNode]
    ) -> None:
        """Move stacked operators that bind at least as tightly as kind."""
        while stack:
            top = stack[-1]
            if isinstance(top, Operator) and kind.rank >= top.kind.rank:
                output.append(stack.pop())
            else:
                break

    def _close_paren(
        self, token: Token, stack: list[PostfixNode], output: list[PostfixNode]
    ) -> None:
        while stack:
            node = stack.pop()
            if isinstance(node, OpenParen):
                return
            output.append(node)
        raise ParseError("Unmatched ')'", token.position)

    def _flush_all(self, stack: list[PostfixNode], output: list[PostfixNode]) -> None:
        while stack:
            node = stack.pop()
            if isinstance(node, OpenParen):
                raise ParseError("Unmatched '('", node.position)
            output.append(node)

    def _parse_arguments(
        self, name: str, raw_arguments: str, token: Token
    ) -> list[list[PostfixNode]]:
        """Parse the text between a call's parentheses into argument sequences."""
        depth = self.depth + 1
        max_depth = self.config.max_depth
        if max_depth is not None and depth > max_depth:
            raise ParseError(
                f"Call to '{name}' exceeds maximum nesting depth {max_depth}",
                token.position,
            )

        if not raw_arguments.strip():
            return []

        nested = Parser(raw_arguments, self.config, depth)
        arguments: list[list[PostfixNode]] = [[]]
        for node in nested._to_postfix():
            if isinstance(node, Separator):
                arguments.append([])
            else:
                arguments[-1].append(node)

        return arguments


def parse(source: str, config: EvaluatorConfig | None = None) -> list[PostfixNode]:
    """Convenience function to parse an expression string.

    Args:
        source: The expression string
        config: Optional limits (nesting depth)

    Returns:
        The postfix node sequence
    """
    return Parser(source, config).parse()
