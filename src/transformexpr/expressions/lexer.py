"""Lexer/tokenizer for the transformexpr expression language.

Converts expression strings into a stream of infix tokens for the parser.

Token types:
- Literals: NUMBER
- Names: IDENTIFIER (lowercase variables), CONSTANT (uppercase names),
  FUNCTION (lowercase name immediately followed by an argument list)
- Operators: PLUS, MINUS, MULTIPLY, DIVIDE, POWER, MODULO
- Punctuation: LPAREN, RPAREN, COMMA

A FUNCTION token carries the raw text between its parentheses; the parser
tokenizes that text again as a fresh expression.
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from transformexpr.expressions.errors import LexerError


class TokenType(Enum):
    """Types of tokens in the expression language."""

    # Literals
    NUMBER = auto()

    # Names
    IDENTIFIER = auto()
    CONSTANT = auto()
    FUNCTION = auto()

    # Arithmetic operators
    PLUS = auto()        # +
    MINUS = auto()       # -
    MULTIPLY = auto()    # *
    DIVIDE = auto()      # /
    POWER = auto()       # ^
    MODULO = auto()      # %

    # Punctuation
    LPAREN = auto()      # (
    RPAREN = auto()      # )
    COMMA = auto()       # ,

    # End of input
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A single token from the lexer.

    Attributes:
        type: The token type
        value: Number value, name, or (name, raw arguments) for FUNCTION
        position: Character position in the source string
    """

    type: TokenType
    value: str | float | tuple[str, str] | None
    position: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, pos={self.position})"


# Token patterns, tried in order
TOKEN_PATTERNS = [
    # Whitespace (skip)
    (r"[ \t\r\n]+", None),

    # Operators
    (r"\+", TokenType.PLUS),
    (r"-", TokenType.MINUS),
    (r"\*", TokenType.MULTIPLY),
    (r"/", TokenType.DIVIDE),
    (r"\^", TokenType.POWER),
    (r"%", TokenType.MODULO),

    # Punctuation
    (r"\(", TokenType.LPAREN),
    (r"\)", TokenType.RPAREN),
    (r",", TokenType.COMMA),

    # Numbers: digits and dots, validated after matching
    (r"[0-9][0-9.]*", TokenType.NUMBER),

    # Names
    (r"[a-z][a-z0-9_]*", TokenType.IDENTIFIER),
    (r"[A-Z][A-Z_]*", TokenType.CONSTANT),
]


class Lexer:
    """Tokenizer for the expression language.

    Usage:
        lexer = Lexer("clamp(this, 0, 1) * 2")
        for token in lexer:
            print(token)
    """

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self._compiled_patterns = [
            (re.compile(pattern), token_type)
            for pattern, token_type in TOKEN_PATTERNS
        ]

    def __iter__(self) -> Iterator[Token]:
        """Iterate over all tokens in the source."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                break

    def next_token(self) -> Token:
        """Get the next token from the source."""
        while self.position < len(self.source):
            for pattern, token_type in self._compiled_patterns:
                match = pattern.match(self.source, self.position)
                if match:
                    break
            else:
                raise LexerError(
                    f"Unexpected character '{self.source[self.position]}'",
                    self.position,
                )

            value = match.group()
            start = self.position
            self.position = match.end()

            if token_type is None:
                continue

            if token_type == TokenType.NUMBER:
                return Token(token_type, self._parse_number(value, start), start)

            if token_type == TokenType.IDENTIFIER and self._peek() == "(":
                arguments = self._read_arguments(value)
                return Token(TokenType.FUNCTION, (value, arguments), start)

            return Token(token_type, value, start)

        return Token(TokenType.EOF, None, self.position)

    def _peek(self) -> str:
        if self.position < len(self.source):
            return self.source[self.position]
        return ""

    def _parse_number(self, text: str, start: int) -> float:
        if text.count(".") > 1:
            raise LexerError(f"Malformed number '{text}'", start)
        return float(text)

    def _read_arguments(self, name: str) -> str:
        """Consume a parenthesised argument list and return its inner text."""
        open_position = self.position
        depth = 0
        index = open_position + 1

        while index < len(self.source):
            char = self.source[index]
            if char == "(":
                depth += 1
            elif char == ")":
                if depth == 0:
                    self.position = index + 1
                    return self.source[open_position + 1:index]
                depth -= 1
            index += 1

        raise LexerError(f"Unmatched '(' in call to '{name}'", open_position)

    def tokenize(self) -> list[Token]:
        """Tokenize the entire source and return list of tokens."""
        return list(self)
