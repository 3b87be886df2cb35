"""Stack virtual machine — fetch, dispatch, execute over call frames."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .chunk import ConstantIndex, Op, operand_width
from .errors import (
    ArityError,
    AssertionFailedError,
    FrameOverflowError,
    MalformedBytecodeError,
    OperandTypeError,
    StepLimitExceeded,
    VMRuntimeError,
)
from .objects import FunctionObject, Heap
from .run_types import ExecutionStats, VMConfig
from .trace_types import ExecutionTrace, TraceStep
from .values import (
    FALSE,
    TRUE,
    BinaryOperator,
    Value,
    binary_op,
    is_truthy,
    logical_not,
    negate,
)
from .vm_types import CallFrame

logger = logging.getLogger(__name__)

_BINARY_OPS: dict[Op, BinaryOperator] = {
    Op.ADD: BinaryOperator.ADD,
    Op.SUBTRACT: BinaryOperator.SUBTRACT,
    Op.MULTIPLY: BinaryOperator.MULTIPLY,
    Op.DIVIDE: BinaryOperator.DIVIDE,
    Op.INT_DIVIDE: BinaryOperator.INT_DIVIDE,
    Op.EXPONENT: BinaryOperator.EXPONENT,
    Op.VALUE_EQUAL: BinaryOperator.EQUAL,
    Op.NOT_VALUE_EQUAL: BinaryOperator.NOT_EQUAL,
    Op.GREATER: BinaryOperator.GREATER,
    Op.GREATER_EQUAL: BinaryOperator.GREATER_EQUAL,
    Op.LESS: BinaryOperator.LESS,
    Op.LESS_EQUAL: BinaryOperator.LESS_EQUAL,
}

StepHook = Callable[[CallFrame, int, Op, int], None]


class VM:
    """Executes compiled functions.

    A VM owns its operand stack, frame stack, globals, interned names and
    heap for one program execution and is discarded afterwards.
    """

    def __init__(self, config: VMConfig = VMConfig()):
        self.config = config
        self.stack: list[Value] = []
        self.frames: list[CallFrame] = []
        self.globals: dict[str, Value] = {}
        self.strings: dict[str, str] = {}
        self.heap = Heap()
        self._steps = 0
        self._max_stack_depth = 0
        self._max_frame_depth = 0

    # ── state helpers ────────────────────────────────────────────

    def push(self, value: Value):
        self.stack.append(value)
        self._max_stack_depth = max(self._max_stack_depth, len(self.stack))

    def pop(self) -> Value:
        if not self.stack:
            raise MalformedBytecodeError("operand stack underflow")
        return self.stack.pop()

    def peek(self, distance: int = 0) -> Value:
        if distance >= len(self.stack):
            raise MalformedBytecodeError("operand stack underflow")
        return self.stack[-1 - distance]

    def intern(self, name: str) -> str:
        return self.strings.setdefault(name, name)

    def load(self, function: FunctionObject) -> Value:
        """Register *function* on the heap and return a value referring to it."""
        return Value.of_object(self.heap.allocate(function))

    @property
    def stats(self) -> ExecutionStats:
        return ExecutionStats(
            steps=self._steps,
            max_stack_depth=self._max_stack_depth,
            max_frame_depth=self._max_frame_depth,
            heap_objects=len(self.heap),
        )

    # ── calls ────────────────────────────────────────────────────

    def call(self, function: FunctionObject, num_args: int):
        """Push a frame for *function*; the callee and its arguments are already on the stack."""
        if num_args != function.arity:
            raise ArityError(
                f"{function} expected {function.arity} arguments but got {num_args}"
            )
        if len(self.frames) >= self.config.max_frames:
            raise FrameOverflowError("stack overflow")

        self.frames.append(
            CallFrame(function=function, ip=0, slot_base=len(self.stack) - num_args - 1)
        )
        self._max_frame_depth = max(self._max_frame_depth, len(self.frames))

    def interpret(self, function: FunctionObject) -> Optional[Value]:
        """Run a compiled script function from a fresh call."""
        self.push(self.load(function))
        self.call(function, 0)
        return self.run()

    # ── execution loop ───────────────────────────────────────────

    def run(self) -> Optional[Value]:
        """Run until the outermost frame returns; the result is the value it returned."""
        return self._run(None)

    def run_traced(self) -> ExecutionTrace:
        steps: list[TraceStep] = []

        def record(frame: CallFrame, offset: int, op: Op, line: int):
            steps.append(
                TraceStep(
                    step_index=len(steps),
                    function_name=frame.function.name,
                    offset=offset,
                    op=op,
                    line=line,
                    stack=tuple(self.stack),
                    frame_depth=len(self.frames),
                )
            )

        result = self._run(record)
        return ExecutionTrace(steps=steps, stats=self.stats, result=result)

    def _run(self, on_step: StepHook | None) -> Optional[Value]:
        if not self.frames:
            raise VMRuntimeError("no active call frame")

        while True:
            frame = self.frames[-1]
            chunk = frame.function.chunk
            offset = frame.ip
            if offset >= len(chunk.code):
                raise MalformedBytecodeError(
                    f"{frame.function} ran past the end of its chunk"
                )

            unit = chunk.code[offset]
            line = chunk.lines[offset]
            if not isinstance(unit, Op):
                raise MalformedBytecodeError(
                    f"operand {unit} found where an opcode was expected "
                    f"at offset {offset}",
                    line=line,
                )

            max_steps = self.config.max_steps
            if max_steps is not None and self._steps >= max_steps:
                raise StepLimitExceeded(
                    f"step limit of {max_steps} reached", line=line
                )

            if self.config.verbose:
                logger.debug("%s %04d %s stack=%s", frame.function, offset, unit.value,
                             [str(v) for v in self.stack])

            frame.ip = offset + 1 + operand_width(unit)
            try:
                finished, result = self._execute(frame, unit, offset)
            except VMRuntimeError as exc:
                if exc.line is not None:
                    raise
                raise exc.at_line(line) from exc

            self._steps += 1
            if on_step is not None:
                on_step(frame, offset, unit, line)
            if finished:
                logger.info("Execution finished after %d steps", self._steps)
                return result

    def _read_constant(self, frame: CallFrame, offset: int) -> Value:
        chunk = frame.function.chunk
        operand = chunk.code[offset + 1] if offset + 1 < len(chunk.code) else None
        if not isinstance(operand, ConstantIndex):
            raise MalformedBytecodeError(f"CONSTANT at offset {offset} lacks an index")
        if operand.index >= len(chunk.constants):
            raise MalformedBytecodeError(
                f"constant index {operand.index} out of range at offset {offset}"
            )
        return chunk.constants[operand.index]

    def _execute(
        self, frame: CallFrame, op: Op, offset: int
    ) -> tuple[bool, Optional[Value]]:
        """Execute one instruction. Returns (finished, result)."""
        binary = _BINARY_OPS.get(op)
        if binary is not None:
            if not (self.peek(0).is_number and self.peek(1).is_number):
                raise OperandTypeError("both operands must be numbers")
            rhs = self.pop()
            lhs = self.pop()
            self.push(binary_op(binary, lhs, rhs))
            return False, None

        if op == Op.CONSTANT:
            self.push(self._read_constant(frame, offset))
        elif op == Op.TRUE:
            self.push(TRUE)
        elif op == Op.FALSE:
            self.push(FALSE)
        elif op == Op.NEGATIVE:
            self.push(negate(self.pop()))
        elif op == Op.NOT:
            self.push(logical_not(self.pop()))
        elif op == Op.NOOP:
            pass
        elif op == Op.POP:
            self.pop()
        elif op == Op.ASSERT:
            if not is_truthy(self.pop()):
                raise AssertionFailedError("assertion failed")
        elif op == Op.RETURN:
            return self._return(frame)
        else:
            raise MalformedBytecodeError(f"unknown opcode {op}")
        return False, None

    def _return(self, frame: CallFrame) -> tuple[bool, Optional[Value]]:
        self.frames.pop()
        # The callee and its arguments sit below anything the body pushed.
        has_value = len(self.stack) > frame.slot_base + 1 + frame.function.arity
        result = self.pop() if has_value else None
        # Drop the callee, its arguments and anything its statements left behind.
        del self.stack[frame.slot_base :]

        if not self.frames:
            return True, result

        if result is None:
            raise MalformedBytecodeError(f"{frame.function} returned without a value")
        self.push(result)
        return False, None
