"""Stack tracking engine.

``StackTracker`` is the single entry point for simulator events.  It owns the
lock shared by every piece of tracking state, so a reader calling
``snapshot()``, ``boundary()`` or ``view()`` from another thread never sees a
half-applied pointer move or a partially grown window.  One ``changed`` signal
is emitted per event that moved the boundary or touched a row.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from PyQt6.QtCore import QObject, pyqtSignal

from stacktrack.bus import NotificationBus
from stacktrack.config import TrackerConfig
from stacktrack.errors import OutOfSegment, StackTrackError, UnmatchedReturn, UnresolvedSymbol
from stacktrack.frames import CallFrameTracker
from stacktrack.model import (
    AccessType,
    Boundary,
    Event,
    InstructionDecoded,
    MemoryAccess,
    RegisterWrite,
    RowSnapshot,
    SimulationReset,
    StackSegment,
)
from stacktrack.pointer import StackPointerTracker
from stacktrack.rows import StackRowStore
from stacktrack.symbols import SymbolResolver, SymbolTable
from stacktrack.window import AddressWindow

logger = logging.getLogger(__name__)

ERROR_LOG_LEVELS = {
    OutOfSegment: logging.WARNING,
    UnmatchedReturn: logging.WARNING,
    UnresolvedSymbol: logging.INFO,
}


@dataclass
class HandleOutcome:
    changed: bool = False
    error: Optional[StackTrackError] = None


class StackTracker(QObject):
    changed = pyqtSignal()

    def __init__(
        self,
        resolver: Optional[SymbolResolver] = None,
        segment: Optional[StackSegment] = None,
        config: Optional[TrackerConfig] = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.config = config or TrackerConfig()
        self.resolver: SymbolResolver = resolver or SymbolTable()
        self._lock = threading.RLock()
        self._build(segment or StackSegment())

    def _build(self, segment: StackSegment) -> None:
        self.segment = segment
        self.window = AddressWindow(
            segment,
            initial_row_count=self.config.initial_row_count,
            lookahead_rows=self.config.lookahead_rows,
        )
        self.store = StackRowStore(self.window, byte_order=self.config.byte_order)
        self.pointer = StackPointerTracker(
            self.window,
            self.store,
            growth_batch=self.config.growth_batch,
            remaining_rows_threshold=self.config.remaining_rows_threshold,
        )
        self.frames = CallFrameTracker(self.resolver)

    def attach(self, bus: NotificationBus) -> None:
        bus.subscribe(self.handle)

    def detach(self, bus: NotificationBus) -> None:
        bus.unsubscribe(self.handle)

    def handle(self, event: Event) -> HandleOutcome:
        with self._lock:
            try:
                outcome = self._dispatch(event)
            except StackTrackError as exc:
                level = ERROR_LOG_LEVELS.get(type(exc), logging.WARNING)
                logger.log(level, "Dropped %s: %s", type(event).__name__, exc.message)
                outcome = HandleOutcome(error=exc)
        if outcome.changed:
            self.changed.emit()
        return outcome

    def _dispatch(self, event: Event) -> HandleOutcome:
        if isinstance(event, MemoryAccess):
            return self._on_memory_access(event)
        if isinstance(event, RegisterWrite):
            return self._on_register_write(event)
        if isinstance(event, InstructionDecoded):
            # Call bookkeeping only; rows and boundary are untouched until the
            # memory or register write that follows.
            self.frames.on_instruction(event)
            return HandleOutcome()
        if isinstance(event, SimulationReset):
            self._reset(event.initial_pointer)
            return HandleOutcome(changed=True)
        raise TypeError(f"Unsupported event: {event!r}")

    def _on_memory_access(self, event: MemoryAccess) -> HandleOutcome:
        if event.access != AccessType.WRITE or not event.from_program:
            return HandleOutcome()
        # Drained before resolution so a store outside the stack cannot leak
        # its register onto the next stack write.
        register, frame_label = self.frames.take_pending()
        row = self.window.row_for_address(event.address)
        offset = event.address % self.window.word_size
        self.store.merge_bytes(row, offset, event.value, event.length)
        self.store.set_register(row, register)
        self.store.set_frame_label(row, frame_label)
        logger.debug(
            "Stack write 0x%08X = 0x%X -> row %d (%s) [%s]",
            event.address,
            event.value,
            row,
            register,
            frame_label,
        )
        return HandleOutcome(changed=True)

    def _on_register_write(self, event: RegisterWrite) -> HandleOutcome:
        if not event.from_program:
            return HandleOutcome()
        if event.name == self.config.stack_pointer:
            self.pointer.on_write(event.value)
            return HandleOutcome(changed=True)
        if event.name == self.config.return_address:
            logger.debug("%s written: 0x%08X", event.name, event.value)
        return HandleOutcome()

    def _reset(self, initial_pointer: Optional[int]) -> None:
        pointer = self.segment.initial_pointer if initial_pointer is None else initial_pointer
        pointer = self.window.reanchor(pointer, self.config.initial_row_count)
        self.store.reset()
        self.frames.reset()
        self.pointer.reset(pointer)
        logger.debug("Tracker reset at 0x%08X", pointer)

    def reset(self, initial_pointer: Optional[int] = None) -> None:
        with self._lock:
            self._reset(initial_pointer)
        self.changed.emit()

    def reconfigure(self, segment: StackSegment) -> None:
        """Start over for a new memory layout."""
        with self._lock:
            if segment == self.segment:
                return
            logger.info("Stack segment changed, new base address 0x%08X", segment.base_address)
            self._build(segment)
        self.changed.emit()

    def snapshot(self, rows: Optional[Iterable[int]] = None) -> List[RowSnapshot]:
        with self._lock:
            if rows is not None:
                rows = list(rows)
            return self.store.snapshot(rows)

    def boundary(self) -> Boundary:
        with self._lock:
            return self.pointer.boundary()

    def view(self) -> Tuple[List[RowSnapshot], Boundary]:
        """Rows and boundary taken from the same state."""
        with self._lock:
            return self.store.snapshot(), self.pointer.boundary()

    @property
    def row_count(self) -> int:
        with self._lock:
            return self.window.row_count

    @property
    def high_water_mark(self) -> int:
        with self._lock:
            return self.window.high_water_mark

    def active_calls(self) -> Dict[str, int]:
        with self._lock:
            return self.frames.active_calls()

    def return_addresses(self) -> List[int]:
        with self._lock:
            return [entry.call_address for entry in self.frames.return_addresses]
