from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict

ALLOWED_BYTE_ORDERS = {"little", "big"}


class ConfigError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class TrackerConfig:
    initial_row_count: int = 36
    growth_batch: int = 5
    remaining_rows_threshold: int = 5
    lookahead_rows: int = 10
    stack_pointer: str = "$sp"
    return_address: str = "$ra"
    byte_order: str = "little"

    def __post_init__(self) -> None:
        for name in ("initial_row_count", "growth_batch", "remaining_rows_threshold", "lookahead_rows"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        if self.byte_order not in ALLOWED_BYTE_ORDERS:
            raise ConfigError(f"Unsupported byte order: {self.byte_order}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown tracker settings: {', '.join(unknown)}")
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            raw = data[f.name]
            try:
                values[f.name] = int(raw) if f.type == "int" else str(raw)
            except (TypeError, ValueError):
                raise ConfigError(f"Invalid value for {f.name}: {raw!r}") from None
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
