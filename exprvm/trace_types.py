"""Trace data types for step-by-step execution replay."""

from __future__ import annotations

from dataclasses import dataclass, field

from .chunk import Op
from .run_types import ExecutionStats
from .values import Value


@dataclass(frozen=True)
class TraceStep:
    """A single executed instruction and the operand stack after it ran."""

    step_index: int
    function_name: str
    offset: int
    op: Op
    line: int
    stack: tuple[Value, ...]
    frame_depth: int


@dataclass(frozen=True)
class ExecutionTrace:
    """Complete trace of an execution run."""

    steps: list[TraceStep] = field(default_factory=list)
    stats: ExecutionStats = field(default_factory=ExecutionStats)
    result: Value | None = None
