"""Mapping between stack addresses and table rows.

Row 0 is always the word at the high-water mark, the highest address the stack
pointer has reached since the last reset.  Row numbers increase toward lower
addresses, which is the direction the stack grows in.  The window only ever
grows; rows are added at the bottom when the stack deepens and at the top when
the pointer overshoots above the high-water mark.
"""

from __future__ import annotations

import logging

from stacktrack.errors import OutOfSegment, WindowCapacityExceeded
from stacktrack.model import StackSegment

logger = logging.getLogger(__name__)


class AddressWindow:
    def __init__(self, segment: StackSegment, initial_row_count: int = 36, lookahead_rows: int = 10) -> None:
        self.segment = segment
        self.lookahead_rows = lookahead_rows
        self.high_water_mark = segment.align_down(segment.initial_pointer)
        self.row_count = 0
        self.grow(initial_row_count)

    @property
    def word_size(self) -> int:
        return self.segment.word_size

    def max_rows(self) -> int:
        return (self.high_water_mark - self.segment.limit_address) // self.word_size

    def _check_capacity(self, requested: int) -> None:
        available = self.max_rows() - self.row_count
        if requested > available:
            raise WindowCapacityExceeded(requested, max(0, available))

    def grow(self, count: int) -> int:
        """Add up to ``count`` rows at the bottom and return how many were added."""
        if count <= 0:
            return 0
        try:
            self._check_capacity(count)
        except WindowCapacityExceeded as exc:
            logger.info("%s; truncating", exc.message)
            count = exc.available
        if count == 0:
            return 0
        self.row_count += count
        logger.debug("Window grown by %d rows to %d", count, self.row_count)
        return count

    def _raise_high_water_mark(self, count: int) -> int:
        ceiling = self.segment.align_down(self.segment.base_address)
        new_mark = self.high_water_mark + count * self.word_size
        if new_mark > ceiling:
            count -= (new_mark - ceiling) // self.word_size
        if count <= 0:
            return 0
        self.high_water_mark += count * self.word_size
        # The segment gained exactly as much room as the rows added at the top.
        self.row_count += count
        logger.debug(
            "High-water mark raised by %d rows to 0x%08X", count, self.high_water_mark
        )
        return count

    def index_of(self, address: int) -> int:
        return (self.high_water_mark - self.segment.align_down(address)) // self.word_size

    def row_for_address(self, address: int) -> int:
        if not self.segment.contains(address):
            raise OutOfSegment(address)
        index = self.index_of(address)
        if index < 0:
            self._raise_high_water_mark(-index)
            index = self.index_of(address)
        if index >= self.max_rows():
            # Only the partial word straddling the segment limit can land here.
            raise OutOfSegment(address)
        if index >= self.row_count:
            self.grow(index - self.row_count + self.lookahead_rows)
        return index

    def column_for_address(self, address: int) -> int:
        if not self.segment.contains(address):
            raise OutOfSegment(address)
        return self.word_size - 1 - (address % self.word_size)

    def address_for_row(self, row: int) -> int:
        return self.high_water_mark - row * self.word_size

    def covers(self, address: int) -> bool:
        if not self.segment.contains(address):
            return False
        return 0 <= self.index_of(address) < self.row_count

    def reanchor(self, pointer: int, row_count: int) -> int:
        """Restart the window at ``pointer`` and return the pointer actually used."""
        if not self.segment.contains(pointer):
            logger.warning(
                "Reset pointer 0x%08X is outside the stack segment, using 0x%08X",
                pointer,
                self.segment.initial_pointer,
            )
            pointer = self.segment.initial_pointer
        self.high_water_mark = self.segment.align_down(pointer)
        self.row_count = 0
        self.grow(row_count)
        return pointer
