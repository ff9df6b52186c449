from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from stacktrack.model import RowSnapshot, StackRow
from stacktrack.window import AddressWindow


class StackRowStore:
    """Per-row state, addressed by row index but stored by absolute address.

    Keying by address means rows keep their contents when the window renumbers
    after the high-water mark moves up.
    """

    def __init__(self, window: AddressWindow, byte_order: str = "little") -> None:
        self.window = window
        self.byte_order = byte_order
        self._rows: Dict[int, StackRow] = {}
        self._word_mask = (1 << (8 * window.word_size)) - 1

    def _row(self, row: int) -> StackRow:
        address = self.window.address_for_row(row)
        entry = self._rows.get(address)
        if entry is None:
            entry = StackRow()
            self._rows[address] = entry
        return entry

    def set_word(self, row: int, value: int) -> None:
        self._row(row).word_value = value & self._word_mask

    def merge_bytes(self, row: int, offset: int, value: int, length: int) -> None:
        word_size = self.window.word_size
        if offset == 0 and length >= word_size:
            self.set_word(row, value)
            return
        # Bytes past the end of the word belong to the next row up.
        kept = min(length, word_size - offset)
        if self.byte_order == "little":
            shift = offset * 8
        else:
            value >>= 8 * (length - kept)
            shift = (word_size - offset - kept) * 8
        length = kept
        mask = ((1 << (8 * length)) - 1) << shift
        entry = self._row(row)
        merged = (entry.word_value & ~mask) | ((value << shift) & mask)
        entry.word_value = merged & self._word_mask

    def set_register(self, row: int, name: str) -> None:
        self._row(row).stored_register = name

    def set_frame_label(self, row: int, label: str) -> None:
        self._row(row).frame_label = label

    def clear(self, row: int) -> None:
        entry = self._rows.get(self.window.address_for_row(row))
        if entry is not None:
            entry.clear_attribution()

    def bulk_clear(self, rows: Iterable[int]) -> None:
        for row in rows:
            self.clear(row)

    def reset(self) -> None:
        self._rows.clear()

    def get(self, row: int) -> RowSnapshot:
        address = self.window.address_for_row(row)
        entry = self._rows.get(address) or StackRow()
        return RowSnapshot(
            index=row,
            address=address,
            word_value=entry.word_value,
            stored_register=entry.stored_register,
            frame_label=entry.frame_label,
        )

    def snapshot(self, rows: Optional[Iterable[int]] = None) -> List[RowSnapshot]:
        if rows is None:
            rows = range(self.window.row_count)
        return [self.get(row) for row in rows]
