from __future__ import annotations

import logging

from stacktrack.model import Boundary
from stacktrack.rows import StackRowStore
from stacktrack.window import AddressWindow

logger = logging.getLogger(__name__)


class StackPointerTracker:
    def __init__(
        self,
        window: AddressWindow,
        store: StackRowStore,
        growth_batch: int = 5,
        remaining_rows_threshold: int = 5,
    ) -> None:
        self.window = window
        self.store = store
        self.growth_batch = growth_batch
        self.remaining_rows_threshold = remaining_rows_threshold
        self.pointer = window.segment.initial_pointer

    def boundary(self) -> Boundary:
        # Computed on demand: an overshoot elsewhere may have renumbered rows.
        return Boundary(
            row=self.window.index_of(self.pointer),
            column=self.window.word_size - 1 - (self.pointer % self.window.word_size),
            pointer=self.pointer,
        )

    def on_write(self, value: int) -> Boundary:
        """Move the boundary to ``value`` and drop attribution of popped words.

        Raises OutOfSegment before touching any state when ``value`` is not a
        stack address.
        """
        row = self.window.row_for_address(value)
        old_row = self.window.index_of(self.pointer)
        self.pointer = value

        if row < old_row:
            last = min(old_row, self.window.row_count - 1)
            self.store.bulk_clear(range(max(row + 1, 0), last + 1))
            logger.debug("Pop to 0x%08X cleared rows %d..%d", value, row + 1, last)

        if row + self.remaining_rows_threshold > self.window.row_count:
            self.window.grow(self.growth_batch)

        boundary = self.boundary()
        logger.debug("Stack pointer 0x%08X -> row %d column %d", value, boundary.row, boundary.column)
        return boundary

    def reset(self, pointer: int) -> None:
        self.pointer = pointer
