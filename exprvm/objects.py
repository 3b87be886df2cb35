"""Heap objects and the VM's object registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from . import constants
from .chunk import Chunk
from .values import ObjRef


class ObjectType(str, Enum):
    FUNCTION = "function"
    NATIVE = "native"


@dataclass
class HeapObject:
    object_type: ObjectType
    marked: bool = False  # reserved for a tracing collector; nothing sets it yet


@dataclass
class FunctionObject(HeapObject):
    object_type: ObjectType = ObjectType.FUNCTION
    arity: int = 0
    chunk: Chunk = field(default_factory=Chunk)
    name: str = constants.SCRIPT_NAME

    def __str__(self) -> str:
        if self.name == constants.SCRIPT_NAME:
            return self.name
        return f"<fn {self.name}>"


class Heap:
    """Arena of heap objects addressed by stable slot indices.

    The heap owns every object it allocates until it is discarded.
    """

    def __init__(self):
        self._slots: list[HeapObject] = []

    def __len__(self) -> int:
        return len(self._slots)

    def allocate(self, obj: HeapObject) -> ObjRef:
        self._slots.append(obj)
        return ObjRef(len(self._slots) - 1)

    def get(self, ref: ObjRef) -> HeapObject:
        if not 0 <= ref.index < len(self._slots):
            raise LookupError(f"dangling object reference {ref}")
        return self._slots[ref.index]
