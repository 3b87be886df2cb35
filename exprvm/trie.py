"""Character tries for longest-match recognition of reserved lexemes.

Two tries are built at import time, one for keywords and one for
operators, and are never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from .token_types import KEYWORDS, OPERATORS, TokenType


@dataclass(frozen=True)
class TrieNode:
    token_type: TokenType | None = None
    children: Mapping[str, TrieNode] = field(default_factory=dict)

    def child(self, char: str) -> TrieNode | None:
        return self.children.get(char)


@dataclass(frozen=True)
class TrieMatch:
    token_type: TokenType
    length: int


def build_trie(token_types: Iterable[TokenType]) -> TrieNode:
    """Build an immutable trie keyed on each token type's lexeme."""
    # Mutable scratch form: [terminal, {char: scratch}]
    root: list = [None, {}]
    for token_type in token_types:
        node = root
        for char in token_type.value:
            node = node[1].setdefault(char, [None, {}])
        node[0] = token_type
    return _freeze(root)


def _freeze(scratch: list) -> TrieNode:
    terminal, children = scratch
    return TrieNode(
        token_type=terminal,
        children=MappingProxyType(
            {char: _freeze(child) for char, child in sorted(children.items())}
        ),
    )


def longest_match(root: TrieNode, text: str, start: int) -> TrieMatch | None:
    """Walk *root* along ``text[start:]`` and return the deepest terminal reached.

    The walk continues while a child exists for the next character; the
    accepted match is the deepest node on that path carrying a token type,
    which may be shorter than the full walk (maximal munch).
    """
    node = root
    best: TrieMatch | None = None
    pos = start
    while pos < len(text):
        node = node.child(text[pos])
        if node is None:
            break
        pos += 1
        if node.token_type is not None:
            best = TrieMatch(token_type=node.token_type, length=pos - start)
    return best


KEYWORD_TRIE: TrieNode = build_trie(sorted(KEYWORDS, key=lambda t: t.value))
OPERATOR_TRIE: TrieNode = build_trie(sorted(OPERATORS, key=lambda t: t.value))
