"""Tests for count_opcodes."""

from exprvm.bytecode_stats import count_opcodes
from exprvm.chunk import Chunk, Op
from exprvm.compiler import compile_source


class TestCountOpcodes:
    def test_empty_chunk_returns_empty_dict(self):
        assert count_opcodes(Chunk()) == {}

    def test_operand_units_not_counted(self):
        chunk = compile_source("1").chunk
        assert count_opcodes(chunk) == {"CONSTANT": 1, "RETURN": 1}

    def test_repeated_opcodes_are_summed(self):
        chunk = compile_source("1 + 2 + 3").chunk
        assert count_opcodes(chunk)[Op.ADD.value] == 2
