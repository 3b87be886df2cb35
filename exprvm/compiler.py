"""Single-pass Pratt compiler — tokens straight to bytecode, no tree.

Every binary operator, ``**`` included, climbs at its own precedence
plus one, so all of them are left-associative: ``2 ** 3 ** 2`` is
``(2 ** 3) ** 2``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum, IntEnum
from typing import Callable, Optional

from . import constants
from .chunk import Op
from .errors import CompileError
from .objects import FunctionObject
from .token_types import Token, TokenType
from .tokenizer import Tokenizer
from .values import Value

logger = logging.getLogger(__name__)


class Precedence(IntEnum):
    NONE = 0
    ASSIGNMENT = 1
    OR = 2
    AND = 3
    EQUALITY = 4
    COMPARISON = 5
    TERM = 6
    FACTOR = 7
    EXPONENT = 8
    UNARY = 9
    CALL = 10
    PRIMARY = 11

    def next(self) -> Precedence:
        if self == Precedence.PRIMARY:
            raise ValueError("no precedence above PRIMARY")
        return Precedence(self + 1)


class FunctionType(Enum):
    SCRIPT = "script"
    FUNCTION = "function"
    METHOD = "method"
    INITIALIZER = "initializer"


@dataclass
class Local:
    name: Token
    depth: int
    captured: bool = False


ParseFn = Callable[["Compiler", bool], None]


@dataclass(frozen=True)
class ParseRule:
    prefix: Optional[ParseFn]
    infix: Optional[ParseFn]
    precedence: Precedence


_BINARY_OPS: dict[TokenType, Op] = {
    TokenType.PLUS: Op.ADD,
    TokenType.MINUS: Op.SUBTRACT,
    TokenType.STAR: Op.MULTIPLY,
    TokenType.SLASH: Op.DIVIDE,
    TokenType.SLASH_SLASH: Op.INT_DIVIDE,
    TokenType.STAR_STAR: Op.EXPONENT,
    TokenType.GREATER: Op.GREATER,
    TokenType.GREATER_EQUAL: Op.GREATER_EQUAL,
    TokenType.LESS: Op.LESS,
    TokenType.LESS_EQUAL: Op.LESS_EQUAL,
    TokenType.EQUAL_EQUAL: Op.VALUE_EQUAL,
    TokenType.NOT_EQUAL: Op.NOT_VALUE_EQUAL,
}

_UNARY_OPS: dict[TokenType, Op] = {
    TokenType.MINUS: Op.NEGATIVE,
    TokenType.NOT: Op.NOT,
}


class Compiler:
    """Compiles one source string into a script function object."""

    def __init__(
        self,
        source: str,
        function_type: FunctionType = FunctionType.SCRIPT,
        name: str = constants.SCRIPT_NAME,
    ):
        self._tokenizer = Tokenizer(source)
        self._tokens: list[Token] = []
        self._scanned = False
        self._index = 0
        self._depth = 0
        self.function = FunctionObject(name=name)
        self.function_type = function_type
        self.scope_depth = 0
        # Slot zero holds the function being called.
        self.locals: list[Local] = [
            Local(name=Token(type=TokenType.IDENTIFIER, start=0, length=0, line=0), depth=0)
        ]

    @property
    def chunk(self):
        return self.function.chunk

    # ── token cursor ─────────────────────────────────────────────

    def _eof(self) -> Token:
        return Token(
            type=TokenType.EOF,
            start=len(self._tokenizer.source),
            length=0,
            line=self._tokenizer.line,
        )

    def _current(self) -> Token:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return self._eof()

    def _previous(self) -> Token:
        return self._tokens[self._index - 1]

    def _at_end(self) -> bool:
        return self._index >= len(self._tokens)

    def _advance(self) -> Token:
        token = self._current()
        if not self._at_end():
            self._index += 1
        return token

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _match(self, token_type: TokenType) -> bool:
        if not self._check(token_type):
            return False
        self._advance()
        return True

    def _consume(self, token_type: TokenType, message: str):
        if not self._match(token_type):
            raise CompileError(message, line=self._current().line)

    def _describe(self, token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of input"
        return repr(self._tokenizer.lexeme(token))

    # ── emission ─────────────────────────────────────────────────

    def _emit_op(self, op: Op, line: int):
        self.chunk.write_op(op, line)

    def _emit_constant(self, value: Value, line: int):
        if len(self.chunk.constants) >= constants.MAX_CONSTANTS:
            raise CompileError(
                f"too many constants in one chunk (limit {constants.MAX_CONSTANTS})",
                line=line,
            )
        index = self.chunk.add_constant(value)
        self._emit_op(Op.CONSTANT, line)
        self.chunk.write_constant_index(index, line)

    # ── Pratt engine ─────────────────────────────────────────────

    def parse_precedence(self, precedence: Precedence):
        if self._depth >= constants.MAX_NESTING:
            raise CompileError(
                f"expression nested more than {constants.MAX_NESTING} levels deep",
                line=self._current().line,
            )
        self._depth += 1
        try:
            self._parse_at(precedence)
        finally:
            self._depth -= 1

    def _parse_at(self, precedence: Precedence):
        token = self._advance()
        prefix = get_rule(token.type).prefix
        if prefix is None:
            raise CompileError(
                f"unexpected token {self._describe(token)} in expression position",
                line=token.line,
            )

        can_assign = precedence <= Precedence.ASSIGNMENT
        prefix(self, can_assign)

        while precedence <= get_rule(self._current().type).precedence:
            token = self._advance()
            infix = get_rule(token.type).infix
            infix(self, can_assign)

        if can_assign and self._check(TokenType.EQUAL):
            raise CompileError("invalid assignment target", line=self._current().line)

    def expression(self):
        self.parse_precedence(Precedence.ASSIGNMENT)

    # ── statements ───────────────────────────────────────────────

    def _declaration(self):
        self._statement()

    def _statement(self):
        if self._match(TokenType.ASSERT):
            self._assert_statement()
        else:
            self._expression_statement()

    def _assert_statement(self):
        line = self._previous().line
        self.expression()
        self._emit_op(Op.ASSERT, line)

    def _expression_statement(self):
        # The value stays on the stack; the last one is the program's result.
        self.expression()

    # ── parse handlers ───────────────────────────────────────────

    def _binary(self, _can_assign: bool):
        token = self._previous()
        rule = get_rule(token.type)
        self.parse_precedence(rule.precedence.next())
        self._emit_op(_BINARY_OPS[token.type], token.line)

    def _unary(self, _can_assign: bool):
        token = self._previous()
        self.parse_precedence(Precedence.UNARY)
        self._emit_op(_UNARY_OPS[token.type], token.line)

    def _grouping(self, _can_assign: bool):
        self.expression()
        self._consume(TokenType.RIGHT_PAREN, "expected ')' after expression")

    def _integer(self, _can_assign: bool):
        token = self._previous()
        text = self._tokenizer.lexeme(token).replace("_", "")
        self._emit_constant(Value.of_int(_parse_integer(text, token.line)), token.line)

    def _float(self, _can_assign: bool):
        token = self._previous()
        text = self._tokenizer.lexeme(token).replace("_", "")
        try:
            number = float(text)
        except ValueError as exc:
            raise CompileError(f"malformed float literal {text!r}", line=token.line) from exc
        self._emit_constant(Value.of_float(number), token.line)

    def _complex(self, _can_assign: bool):
        token = self._previous()
        text = self._tokenizer.lexeme(token).replace("_", "")
        try:
            number = complex(text)
        except ValueError as exc:
            raise CompileError(f"malformed complex literal {text!r}", line=token.line) from exc
        self._emit_constant(Value.of_complex(number), token.line)

    # ── driver ───────────────────────────────────────────────────

    def scan(self) -> list[Token]:
        """Tokenize the source once; compile() reuses the result."""
        if not self._scanned:
            self._tokens = self._tokenizer.tokenize()
            self._scanned = True
        return self._tokens

    def compile(self) -> FunctionObject:
        self.scan()
        self._index = 0
        while not self._at_end():
            self._declaration()
        self._emit_op(Op.RETURN, self._eof().line)
        self.chunk.seal()
        logger.info(
            "Compiled %s: %d bytecode units, %d constants",
            self.function.name,
            len(self.chunk),
            len(self.chunk.constants),
        )
        return self.function


def _parse_integer(text: str, line: int) -> int:
    """Integer lexemes may carry an exponent; the value must still be integral."""
    try:
        number = Decimal(text)
    except InvalidOperation as exc:
        raise CompileError(f"malformed integer literal {text!r}", line=line) from exc
    if not constants.INT_MIN <= number <= constants.INT_MAX:
        raise CompileError(f"integer literal {text!r} out of 32-bit range", line=line)
    if number != number.to_integral_value():
        raise CompileError(f"integer literal {text!r} is not integral", line=line)
    return int(number)


_NO_RULE = ParseRule(None, None, Precedence.NONE)

_RULES: dict[TokenType, ParseRule] = {
    TokenType.LEFT_PAREN: ParseRule(Compiler._grouping, None, Precedence.NONE),
    TokenType.RIGHT_PAREN: _NO_RULE,
    TokenType.PLUS: ParseRule(None, Compiler._binary, Precedence.TERM),
    TokenType.MINUS: ParseRule(Compiler._unary, Compiler._binary, Precedence.TERM),
    TokenType.STAR: ParseRule(None, Compiler._binary, Precedence.FACTOR),
    TokenType.STAR_STAR: ParseRule(None, Compiler._binary, Precedence.EXPONENT),
    TokenType.SLASH: ParseRule(None, Compiler._binary, Precedence.FACTOR),
    TokenType.SLASH_SLASH: ParseRule(None, Compiler._binary, Precedence.FACTOR),
    TokenType.EQUAL: _NO_RULE,
    TokenType.EQUAL_EQUAL: ParseRule(None, Compiler._binary, Precedence.EQUALITY),
    TokenType.NOT_EQUAL: ParseRule(None, Compiler._binary, Precedence.EQUALITY),
    TokenType.LESS: ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.LESS_EQUAL: ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.GREATER: ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.GREATER_EQUAL: ParseRule(None, Compiler._binary, Precedence.COMPARISON),
    TokenType.ASSERT: _NO_RULE,
    TokenType.IF: _NO_RULE,
    TokenType.IN: _NO_RULE,
    TokenType.NOT: ParseRule(Compiler._unary, None, Precedence.NONE),
    TokenType.ELSE: _NO_RULE,
    TokenType.ELIF: _NO_RULE,
    TokenType.WHILE: _NO_RULE,
    TokenType.FOR: _NO_RULE,
    TokenType.CLASS: _NO_RULE,
    TokenType.INTEGER: ParseRule(Compiler._integer, None, Precedence.NONE),
    TokenType.FLOAT: ParseRule(Compiler._float, None, Precedence.NONE),
    TokenType.COMPLEX: ParseRule(Compiler._complex, None, Precedence.NONE),
    TokenType.IDENTIFIER: _NO_RULE,
    TokenType.EOF: _NO_RULE,
}


def get_rule(token_type: TokenType) -> ParseRule:
    return _RULES[token_type]


def compile_source(source: str) -> FunctionObject:
    return Compiler(source).compile()
