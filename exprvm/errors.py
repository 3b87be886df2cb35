"""Error types for every stage of the pipeline.

Each stage raises its own family; the API layer turns them into an
``InterpretResult`` for callers that prefer a value over an exception.
"""

from __future__ import annotations


class ExprVMError(Exception):
    """Base for all errors raised while tokenizing, compiling or running."""

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        super().__init__(self._format())

    def at_line(self, line: int) -> ExprVMError:
        """Return a copy of this error attributed to *line*."""
        return type(self)(self.message, line)

    def _format(self) -> str:
        if self.line is None:
            return self.message
        return f"[line {self.line}] {self.message}"


class LexicalError(ExprVMError):
    def __init__(self, message: str, line: int | None = None, offset: int = 0):
        self.offset = offset
        super().__init__(message, line)


class CompileError(ExprVMError):
    pass


class VMRuntimeError(ExprVMError):
    pass


class OperandTypeError(VMRuntimeError):
    pass


class ArithmeticFault(VMRuntimeError):
    """Division by zero, 32-bit integer overflow, or a float domain/range error."""


class ArityError(VMRuntimeError):
    pass


class FrameOverflowError(VMRuntimeError):
    pass


class MalformedBytecodeError(VMRuntimeError):
    """An operand byte was found where an opcode was expected."""


class AssertionFailedError(VMRuntimeError):
    pass


class StepLimitExceeded(VMRuntimeError):
    pass
