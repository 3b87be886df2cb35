"""Pure functions for computing statistics over compiled chunks."""

from __future__ import annotations

from collections import Counter

from .chunk import Chunk


def count_opcodes(chunk: Chunk) -> dict[str, int]:
    """Return a frequency map of opcode names in *chunk*.

    Operand units are not counted. Empty dict for an empty chunk.
    """
    return dict(Counter(inst.op.value for inst in chunk.instructions()))
