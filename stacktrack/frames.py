"""Subroutine call tracking from decoded control-flow instructions.

Stores and calls are observed one event before the memory write they cause, so
the tracker parks what it learns in a single pending slot that the next memory
write drains.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Tuple

from stacktrack.errors import StackTrackError, UnmatchedReturn, UnresolvedSymbol
from stacktrack.model import ActiveCallStats, InstructionDecoded, PendingAttribution, ReturnEntry
from stacktrack.symbols import SymbolResolver

logger = logging.getLogger(__name__)

REGISTER_NAMES = [
    "$zero", "$at", "$v0", "$v1", "$a0", "$a1", "$a2", "$a3",
    "$t0", "$t1", "$t2", "$t3", "$t4", "$t5", "$t6", "$t7",
    "$s0", "$s1", "$s2", "$s3", "$s4", "$s5", "$s6", "$s7",
    "$t8", "$t9", "$k0", "$k1", "$gp", "$sp", "$fp", "$ra",
]

STORE_MNEMONICS = {"sw", "sh", "sb", "sc"}
JUMP_MNEMONICS = {"j"}
JUMP_AND_LINK_MNEMONICS = {"jal"}
JUMP_REGISTER_MNEMONICS = {"jr"}


def register_name(operand: str | int) -> str:
    if isinstance(operand, int):
        if 0 <= operand < len(REGISTER_NAMES):
            return REGISTER_NAMES[operand]
        raise StackTrackError(f"Unknown register number: {operand}")
    return operand


def _operand(instr: InstructionDecoded, index: int) -> str | int:
    if len(instr.operands) <= index:
        raise StackTrackError(f"Missing operand {index} for {instr.mnemonic} at 0x{instr.address:08X}")
    return instr.operands[index]


def _target(instr: InstructionDecoded) -> int:
    target = _operand(instr, 0)
    if not isinstance(target, int):
        raise StackTrackError(f"Jump target of {instr.mnemonic} at 0x{instr.address:08X} is not an address")
    return target


class CallFrameTracker:
    def __init__(self, resolver: SymbolResolver) -> None:
        self.resolver = resolver
        self.return_addresses: List[ReturnEntry] = []
        self.stats = ActiveCallStats()
        self.pending = PendingAttribution()
        self._handlers: Dict[str, Callable[[InstructionDecoded], None]] = {}
        for mnemonic in STORE_MNEMONICS:
            self._handlers[mnemonic] = self._on_store
        for mnemonic in JUMP_MNEMONICS:
            self._handlers[mnemonic] = self._on_jump
        for mnemonic in JUMP_AND_LINK_MNEMONICS:
            self._handlers[mnemonic] = self._on_jump_and_link
        for mnemonic in JUMP_REGISTER_MNEMONICS:
            self._handlers[mnemonic] = self._on_jump_register

    def on_instruction(self, instr: InstructionDecoded) -> bool:
        """Apply ``instr``; returns False when the mnemonic is not tracked."""
        handler = self._handlers.get(instr.mnemonic.lower())
        if handler is None:
            return False
        handler(instr)
        return True

    def _on_store(self, instr: InstructionDecoded) -> None:
        name = register_name(_operand(instr, 0))
        self.pending.register = name
        logger.debug("Pending store of %s from 0x%08X", name, instr.address)

    def _on_jump(self, instr: InstructionDecoded) -> None:
        target = _target(instr)
        label = self.resolver(target)
        if label is None:
            raise UnresolvedSymbol(target)
        logger.debug("Jumping to %s", label)

    def _on_jump_and_link(self, instr: InstructionDecoded) -> None:
        target = _target(instr)
        label = self.resolver(target)
        entry = ReturnEntry(call_address=instr.address, label=label)
        self.return_addresses.append(entry)
        if label is None:
            raise UnresolvedSymbol(target)
        count = self.stats.add_call(label)
        entry.frame_label = f"{label} ({count})"
        self.pending.frame_label = entry.frame_label
        logger.debug("Calling %s (depth %d)", self.pending.frame_label, len(self.return_addresses))

    def _on_jump_register(self, instr: InstructionDecoded) -> None:
        if not self.return_addresses:
            raise UnmatchedReturn(instr.address)
        entry = self.return_addresses.pop()
        if entry.frame_label is not None and self.pending.frame_label == entry.frame_label:
            # The callee never wrote its frame; the label must not reach the caller.
            self.pending.frame_label = None
        if entry.label is None:
            return
        if not self.stats.remove_call(entry.label):
            logger.warning("Return from %s with no active call recorded", entry.label)
            return
        logger.debug("Returned from %s to 0x%08X", entry.label, entry.call_address)

    def take_pending(self) -> Tuple[str, str]:
        return self.pending.take()

    def active_calls(self) -> Dict[str, int]:
        return dict(self.stats.calls)

    def call_depth(self) -> int:
        return len(self.return_addresses)

    def reset(self) -> None:
        self.return_addresses.clear()
        self.stats.reset()
        self.pending = PendingAttribution()

