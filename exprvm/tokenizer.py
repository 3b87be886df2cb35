"""Single-pass scanner from source text to tokens."""

from __future__ import annotations

import logging

from . import constants
from .errors import LexicalError
from .token_types import Token, TokenType
from .trie import KEYWORD_TRIE, OPERATOR_TRIE, TrieNode, longest_match

logger = logging.getLogger(__name__)


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_alpha(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z"


def _is_digit_run(char: str) -> bool:
    return _is_digit(char) or char == "_"


def _is_identifier_char(char: str) -> bool:
    return _is_alpha(char) or _is_digit(char) or char == "_"


class Tokenizer:
    """Scans source text into a list of tokens.

    Classification order at each position: whitespace and comments,
    digit-initiated numbers, letter/underscore-initiated words, then
    operators via the operator trie. No end-of-input token is appended;
    consumers detect the end by the length of the returned list.
    """

    def __init__(
        self,
        source: str,
        keyword_trie: TrieNode = KEYWORD_TRIE,
        operator_trie: TrieNode = OPERATOR_TRIE,
    ):
        self.source = source
        self._keywords = keyword_trie
        self._operators = operator_trie
        self._pos = 0
        self._line = 1

    @property
    def line(self) -> int:
        """Line the scanner has reached; after tokenize() this is the last line."""
        return self._line

    # ── helpers ──────────────────────────────────────────────────

    def _peek(self, distance: int = 0) -> str:
        index = self._pos + distance
        return self.source[index] if index < len(self.source) else ""

    def _make_token(self, token_type: TokenType, start: int, length: int) -> Token:
        return Token(type=token_type, start=start, length=length, line=self._line)

    def lexeme(self, token: Token) -> str:
        """Return the exact source text of *token*.

        Number tokens span one lookahead character past their lexeme, so
        that character is dropped here.
        """
        if token.type.is_number:
            return self.source[token.start : token.end - 1]
        return self.source[token.start : token.end]

    # ── scanners ─────────────────────────────────────────────────

    def _skip_digit_run(self, pos: int) -> int:
        while pos < len(self.source) and _is_digit_run(self.source[pos]):
            pos += 1
        return pos

    def _scan_number(self) -> Token:
        start = self._pos
        pos = self._skip_digit_run(start)
        found_dot = False
        found_j = False

        if self.source[pos : pos + 1] == ".":
            found_dot = True
            pos = self._skip_digit_run(pos + 1)

        if self.source[pos : pos + 1] in ("e", "E"):
            pos += 1
            if self.source[pos : pos + 1] in ("+", "-"):
                pos += 1
            exponent_start = pos
            pos = self._skip_digit_run(pos)
            # Separators alone do not make an exponent.
            if not any(_is_digit(c) for c in self.source[exponent_start:pos]):
                raise LexicalError(
                    f"malformed numeric literal {self.source[start:pos]!r}",
                    line=self._line,
                    offset=start,
                )

        if self.source[pos : pos + 1] in ("j", "J"):
            found_j = True
            pos += 1

        if found_j:
            token_type = TokenType.COMPLEX
        elif found_dot:
            token_type = TokenType.FLOAT
        else:
            token_type = TokenType.INTEGER

        # The recorded span includes the terminating lookahead character.
        token = self._make_token(token_type, start, pos - start + 1)
        self._pos = pos
        return token

    def _scan_word(self) -> Token:
        start = self._pos
        match = longest_match(self._keywords, self.source, start)
        if match is not None:
            after = self.source[start + match.length : start + match.length + 1]
            if not (after and _is_identifier_char(after)):
                self._pos = start + match.length
                return self._make_token(match.token_type, start, match.length)

        pos = start + 1
        while pos < len(self.source) and _is_identifier_char(self.source[pos]):
            pos += 1
        self._pos = pos
        return self._make_token(TokenType.IDENTIFIER, start, pos - start)

    def _scan_operator(self) -> Token:
        start = self._pos
        match = longest_match(self._operators, self.source, start)
        if match is None:
            raise LexicalError(
                f"unexpected character {self.source[start]!r}",
                line=self._line,
                offset=start,
            )
        self._pos = start + match.length
        return self._make_token(match.token_type, start, match.length)

    def _skip_comment(self):
        while self._pos < len(self.source) and self.source[self._pos] != "\n":
            self._pos += 1

    # ── driver ───────────────────────────────────────────────────

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while self._pos < len(self.source):
            char = self.source[self._pos]
            if char in (" ", "\t", "\r"):
                self._pos += 1
            elif char == "\n":
                self._line += 1
                self._pos += 1
            elif char == constants.COMMENT_CHAR:
                self._skip_comment()
            elif _is_digit(char):
                tokens.append(self._scan_number())
            elif _is_alpha(char) or char == "_":
                tokens.append(self._scan_word())
            else:
                tokens.append(self._scan_operator())
        logger.debug("Tokenized %d characters into %d tokens", len(self.source), len(tokens))
        return tokens


def tokenize(source: str) -> list[Token]:
    return Tokenizer(source).tokenize()
