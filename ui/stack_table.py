from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import QAbstractTableModel, QModelIndex, QObject, Qt

from stacktrack.model import Boundary, RowSnapshot
from stacktrack.tracker import StackTracker

ROW_STATE_ROLE = Qt.ItemDataRole.UserRole


def format_address(address: int, hex_addresses: bool = True) -> str:
    if hex_addresses:
        return f"0x{address:08x}"
    return str(address)


def format_word(value: int, word_size: int = 4, hex_values: bool = True) -> str:
    if hex_values:
        return f"{value:0{word_size * 2}x}"
    sign_bit = 1 << (word_size * 8 - 1)
    if value & sign_bit:
        value -= sign_bit << 1
    return str(value)


class StackTableModel(QAbstractTableModel):
    headers = ["Address", "Word-length Data", "Stored Reg", "Call Layout"]

    def __init__(
        self,
        tracker: StackTracker,
        hex_addresses: bool = True,
        hex_values: bool = True,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self.tracker = tracker
        self.hex_addresses = hex_addresses
        self.hex_values = hex_values
        self._rows: list[RowSnapshot] = []
        self._boundary: Optional[Boundary] = None
        self.tracker.changed.connect(self.refresh)
        self.refresh()

    def refresh(self) -> None:
        self.beginResetModel()
        self._rows, self._boundary = self.tracker.view()
        self.endResetModel()

    def rowCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self._rows)

    def columnCount(self, parent: QModelIndex = QModelIndex()) -> int:  # type: ignore[override]
        return 0 if parent.isValid() else len(self.headers)

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.ItemDataRole.DisplayRole):
        if role == Qt.ItemDataRole.DisplayRole and orientation == Qt.Orientation.Horizontal:
            return self.headers[section]
        return None

    def flags(self, index: QModelIndex) -> Qt.ItemFlag:  # type: ignore[override]
        if not index.isValid():
            return Qt.ItemFlag.NoItemFlags
        return Qt.ItemFlag.ItemIsEnabled

    def row_state(self, row: int) -> str:
        if self._boundary is None:
            return "live"
        if row == self._boundary.row:
            return "pointer"
        if row > self._boundary.row:
            return "unused"
        return "live"

    def data(self, index: QModelIndex, role: int = Qt.ItemDataRole.DisplayRole):  # type: ignore[override]
        if not index.isValid():
            return None
        snapshot = self._rows[index.row()]
        column = index.column()

        if role == Qt.ItemDataRole.DisplayRole:
            if column == 0:
                return format_address(snapshot.address, self.hex_addresses)
            if column == 1:
                return format_word(snapshot.word_value, self.tracker.segment.word_size, self.hex_values)
            if column == 2:
                return snapshot.stored_register
            if column == 3:
                return snapshot.frame_label
        if role == Qt.ItemDataRole.TextAlignmentRole:
            if column == 1:
                return Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter
            if column in (2, 3):
                return Qt.AlignmentFlag.AlignCenter
        if role == ROW_STATE_ROLE:
            return self.row_state(index.row())
        return None

    def set_hex_addresses(self, enabled: bool) -> None:
        if enabled != self.hex_addresses:
            self.hex_addresses = enabled
            self.refresh()

    def set_hex_values(self, enabled: bool) -> None:
        if enabled != self.hex_values:
            self.hex_values = enabled
            self.refresh()

    def boundary(self) -> Optional[Boundary]:
        return self._boundary
