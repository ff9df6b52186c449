from __future__ import annotations


class StackTrackError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class OutOfSegment(StackTrackError):
    def __init__(self, address: int) -> None:
        super().__init__(f"Address not in the stack segment: 0x{address:08X}")
        self.address = address


class UnmatchedReturn(StackTrackError):
    def __init__(self, address: int) -> None:
        super().__init__(f"Return at 0x{address:08X} without a matching call")
        self.address = address


class UnresolvedSymbol(StackTrackError):
    def __init__(self, target: int) -> None:
        super().__init__(f"No label for jump target 0x{target:08X}")
        self.target = target


class WindowCapacityExceeded(StackTrackError):
    def __init__(self, requested: int, available: int) -> None:
        super().__init__(f"Requested {requested} rows but only {available} fit in the stack segment")
        self.requested = requested
        self.available = available
