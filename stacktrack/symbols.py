from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional

SymbolResolver = Callable[[int], Optional[str]]


class SymbolTable:
    """Text-segment labels, searchable by address."""

    def __init__(self, labels: Optional[Mapping[str, int]] = None) -> None:
        self._by_name: Dict[str, int] = {}
        self._by_address: Dict[int, str] = {}
        for name, address in (labels or {}).items():
            self.add(name, address)

    def add(self, name: str, address: int) -> None:
        previous = self._by_name.get(name)
        if previous is not None and self._by_address.get(previous) == name:
            del self._by_address[previous]
            for other, address_of_other in self._by_name.items():
                if other != name and address_of_other == previous:
                    self._by_address[previous] = other
                    break
        self._by_name[name] = address
        # First label wins when several share an address.
        self._by_address.setdefault(address, name)

    def get_address(self, name: str) -> Optional[int]:
        return self._by_name.get(name)

    def lookup(self, address: int) -> Optional[str]:
        return self._by_address.get(address)

    def __call__(self, address: int) -> Optional[str]:
        return self.lookup(address)

    def __len__(self) -> int:
        return len(self._by_name)
