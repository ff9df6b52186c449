from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class AccessType(Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class StackSegment:
    # MIPS default memory configuration.
    base_address: int = 0x7FFFFFFC
    limit_address: int = 0x10040000
    initial_pointer: int = 0x7FFFEFFC
    word_size: int = 4

    def contains(self, address: int) -> bool:
        return self.limit_address < address <= self.base_address

    def align_down(self, address: int) -> int:
        return address - (address % self.word_size)


@dataclass(frozen=True)
class MemoryAccess:
    address: int
    value: int
    access: AccessType = AccessType.WRITE
    length: int = 4
    from_program: bool = True


@dataclass(frozen=True)
class RegisterWrite:
    name: str
    value: int
    from_program: bool = True


@dataclass(frozen=True)
class InstructionDecoded:
    mnemonic: str
    operands: Tuple[str | int, ...]
    address: int


@dataclass(frozen=True)
class SimulationReset:
    initial_pointer: Optional[int] = None


@dataclass(frozen=True)
class RowSnapshot:
    index: int
    address: int
    word_value: int
    stored_register: str
    frame_label: str


@dataclass(frozen=True)
class Boundary:
    row: int
    column: int
    pointer: int


@dataclass
class StackRow:
    word_value: int = 0
    stored_register: str = ""
    frame_label: str = ""

    def clear_attribution(self) -> None:
        self.stored_register = ""
        self.frame_label = ""


@dataclass
class PendingAttribution:
    register: Optional[str] = None
    frame_label: Optional[str] = None

    def take(self) -> Tuple[str, str]:
        """Return the slot contents as strings and empty the slot."""
        register = self.register or ""
        frame_label = self.frame_label or ""
        self.register = None
        self.frame_label = None
        return register, frame_label

    def is_empty(self) -> bool:
        return self.register is None and self.frame_label is None


@dataclass
class ReturnEntry:
    call_address: int
    label: Optional[str] = None
    frame_label: Optional[str] = None


@dataclass
class ActiveCallStats:
    calls: dict[str, int] = field(default_factory=dict)

    def add_call(self, label: str) -> int:
        count = self.calls.get(label, 0) + 1
        self.calls[label] = count
        return count

    def remove_call(self, label: str) -> bool:
        if self.calls.get(label, 0) <= 0:
            return False
        self.calls[label] -= 1
        return True

    def get(self, label: str) -> int:
        return self.calls.get(label, 0)

    def reset(self) -> None:
        self.calls.clear()


Event = MemoryAccess | RegisterWrite | InstructionDecoded | SimulationReset
