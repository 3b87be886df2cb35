"""Token kinds and the immutable Token record."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class TokenType(str, Enum):
    # Operators
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    STAR_STAR = "**"
    SLASH = "/"
    SLASH_SLASH = "//"
    EQUAL = "="
    EQUAL_EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="
    # Keywords
    ASSERT = "assert"
    IF = "if"
    IN = "in"
    NOT = "not"
    ELSE = "else"
    ELIF = "elif"
    WHILE = "while"
    FOR = "for"
    CLASS = "class"
    # Numbers
    INTEGER = "<integer>"
    FLOAT = "<float>"
    COMPLEX = "<complex>"
    # Other
    IDENTIFIER = "<identifier>"
    EOF = "<eof>"

    @property
    def is_operator(self) -> bool:
        return self in OPERATORS

    @property
    def is_keyword(self) -> bool:
        return self in KEYWORDS

    @property
    def is_number(self) -> bool:
        return self in NUMBERS


OPERATORS: frozenset[TokenType] = frozenset(
    {
        TokenType.LEFT_PAREN,
        TokenType.RIGHT_PAREN,
        TokenType.PLUS,
        TokenType.MINUS,
        TokenType.STAR,
        TokenType.STAR_STAR,
        TokenType.SLASH,
        TokenType.SLASH_SLASH,
        TokenType.EQUAL,
        TokenType.EQUAL_EQUAL,
        TokenType.NOT_EQUAL,
        TokenType.LESS,
        TokenType.LESS_EQUAL,
        TokenType.GREATER,
        TokenType.GREATER_EQUAL,
    }
)

KEYWORDS: frozenset[TokenType] = frozenset(
    {
        TokenType.ASSERT,
        TokenType.IF,
        TokenType.IN,
        TokenType.NOT,
        TokenType.ELSE,
        TokenType.ELIF,
        TokenType.WHILE,
        TokenType.FOR,
        TokenType.CLASS,
    }
)

NUMBERS: frozenset[TokenType] = frozenset(
    {TokenType.INTEGER, TokenType.FLOAT, TokenType.COMPLEX}
)


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: TokenType
    start: int
    length: int
    line: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def __str__(self) -> str:
        return f"{self.type.name}@{self.line}:{self.start}+{self.length}"
