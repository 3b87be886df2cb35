"""Bytecode container — instruction stream, line table and constant pool."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Union

from pydantic import BaseModel

from . import constants
from .errors import MalformedBytecodeError
from .values import Value


class Op(str, Enum):
    CONSTANT = "CONSTANT"
    TRUE = "TRUE"
    FALSE = "FALSE"
    # Arithmetic
    ADD = "ADD"
    SUBTRACT = "SUBTRACT"
    MULTIPLY = "MULTIPLY"
    DIVIDE = "DIVIDE"
    INT_DIVIDE = "INT_DIVIDE"
    EXPONENT = "EXPONENT"
    # Comparison
    VALUE_EQUAL = "VALUE_EQUAL"
    NOT_VALUE_EQUAL = "NOT_VALUE_EQUAL"
    GREATER = "GREATER"
    GREATER_EQUAL = "GREATER_EQUAL"
    LESS = "LESS"
    LESS_EQUAL = "LESS_EQUAL"
    # Unary
    NOT = "NOT"
    NEGATIVE = "NEGATIVE"
    # Stack / control
    NOOP = "NOOP"
    POP = "POP"
    RETURN = "RETURN"
    ASSERT = "ASSERT"


# Immediate operand units following each opcode; absent means zero.
OPERAND_WIDTHS: dict[Op, int] = {Op.CONSTANT: 1}


def operand_width(op: Op) -> int:
    return OPERAND_WIDTHS.get(op, 0)


def _check_byte(value: int, what: str):
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{what} {value} does not fit in one byte")


@dataclass(frozen=True)
class ConstantIndex:
    index: int

    def __post_init__(self):
        _check_byte(self.index, "constant index")


@dataclass(frozen=True)
class JumpDistance:
    distance: int

    def __post_init__(self):
        _check_byte(self.distance, "jump distance")


BytecodeUnit = Union[Op, ConstantIndex, JumpDistance]


class Instruction(BaseModel):
    """One decoded instruction, for listings and traces."""

    offset: int
    op: Op
    line: int
    operand: int | None = None
    constant: str | None = None

    def __str__(self) -> str:
        text = f"{self.offset:04d} {self.line:4d} {self.op.value}"
        if self.operand is not None:
            text += f" {self.operand}"
        if self.constant is not None:
            text += f" ({self.constant})"
        return text


@dataclass
class Chunk:
    code: list[BytecodeUnit] = field(default_factory=list)
    lines: list[int] = field(default_factory=list)
    constants: list[Value] = field(default_factory=list)
    sealed: bool = False

    def __len__(self) -> int:
        return len(self.code)

    def _append(self, unit: BytecodeUnit, line: int):
        if self.sealed:
            raise ValueError("cannot write to a sealed chunk")
        self.code.append(unit)
        self.lines.append(line)

    def write_op(self, op: Op, line: int):
        self._append(op, line)

    def write_constant_index(self, index: int, line: int):
        if index >= len(self.constants):
            raise ValueError(
                f"constant index {index} out of range for pool of {len(self.constants)}"
            )
        self._append(ConstantIndex(index), line)

    def write_jump_distance(self, distance: int, line: int):
        self._append(JumpDistance(distance), line)

    def add_constant(self, value: Value) -> int:
        """Append *value* to the pool and return its index. Pool entries are never shared."""
        if self.sealed:
            raise ValueError("cannot write to a sealed chunk")
        if len(self.constants) >= constants.MAX_CONSTANTS:
            raise OverflowError(
                f"constant pool is limited to {constants.MAX_CONSTANTS} entries"
            )
        self.constants.append(value)
        return len(self.constants) - 1

    def seal(self):
        self.sealed = True

    def instructions(self) -> Iterator[Instruction]:
        """Decode the stream into instructions, one per opcode."""
        offset = 0
        while offset < len(self.code):
            unit = self.code[offset]
            if not isinstance(unit, Op):
                raise MalformedBytecodeError(
                    f"operand {unit} found where an opcode was expected at offset {offset}",
                    line=self.lines[offset],
                )
            operand = None
            constant = None
            if unit == Op.CONSTANT:
                index = self.code[offset + 1] if offset + 1 < len(self.code) else None
                if not isinstance(index, ConstantIndex):
                    raise MalformedBytecodeError(
                        f"CONSTANT at offset {offset} lacks an index",
                        line=self.lines[offset],
                    )
                operand = index.index
                constant = repr(self.constants[index.index].payload)
            yield Instruction(
                offset=offset,
                op=unit,
                line=self.lines[offset],
                operand=operand,
                constant=constant,
            )
            offset += 1 + operand_width(unit)

    def disassemble(self, name: str = "") -> str:
        header = [f"== {name} =="] if name else []
        return "\n".join(header + [str(inst) for inst in self.instructions()])
