"""VM data types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import ExprVMError
from .objects import FunctionObject
from .values import Value


@dataclass
class CallFrame:
    function: FunctionObject
    ip: int = 0  # next bytecode unit to fetch
    slot_base: int = 0  # stack index of the callee; arguments follow it


class InterpretStatus(Enum):
    OK = "ok"
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"


@dataclass
class InterpretResult:
    """Outcome of one interpretation, for callers that do not want exceptions."""

    status: InterpretStatus
    value: Value | None = None
    error: ExprVMError | None = None

    @property
    def ok(self) -> bool:
        return self.status == InterpretStatus.OK

    @classmethod
    def success(cls, value: Value | None) -> InterpretResult:
        return cls(status=InterpretStatus.OK, value=value)

    @classmethod
    def compile_error(cls, error: ExprVMError) -> InterpretResult:
        return cls(status=InterpretStatus.COMPILE_ERROR, error=error)

    @classmethod
    def runtime_error(cls, error: ExprVMError) -> InterpretResult:
        return cls(status=InterpretStatus.RUNTIME_ERROR, error=error)
