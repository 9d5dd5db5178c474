"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional, Sequence

# Layout of a DAQ log row: two leading columns, one unused column, then one
# fixed-width block per device.
TIMESTAMP_COLUMN = 1
FIRST_DEVICE_COLUMN = 3
DEVICE_STRIDE = 12


class FieldKind(str, Enum):
    """Monitored per-device fields and their offset inside a device block."""

    volts = "volts"
    temp = "temp"
    rssi = "rssi"
    power = "power"

    @property
    def offset(self) -> int:
        return _FIELD_OFFSETS[self]


_FIELD_OFFSETS = {
    FieldKind.volts: 0,
    FieldKind.temp: 2,
    FieldKind.rssi: 6,
    FieldKind.power: 11,
}


def device_name(index: int) -> str:
    """Label used for a 1-based device index."""
    return f"A{index}"


@dataclass(frozen=True, slots=True)
class RecordLayout:
    """Column layout inferred from the width of a header row."""

    device_count: int

    @classmethod
    def from_header(cls, header: Sequence[str]) -> "RecordLayout":
        return cls(device_count=max(0, (len(header) - FIRST_DEVICE_COLUMN) // DEVICE_STRIDE))

    def column(self, device_index: int, kind: FieldKind) -> int:
        """Absolute column for a 1-based device index."""
        if not 1 <= device_index <= self.device_count:
            raise IndexError(f"Device {device_index} outside 1..{self.device_count}.")
        return FIRST_DEVICE_COLUMN + (device_index - 1) * DEVICE_STRIDE + kind.offset

    def slots(self) -> Iterator[tuple[int, FieldKind, int]]:
        """Yield ``(device_index, kind, column)`` for every monitored slot."""
        for device_index in range(1, self.device_count + 1):
            for kind in FieldKind:
                yield device_index, kind, self.column(device_index, kind)


@dataclass(frozen=True, slots=True)
class ReadingSet:
    """The last data row of a dataset file."""

    path: Path
    layout: RecordLayout
    row: tuple[str, ...]

    def cell(self, column: int) -> Optional[str]:
        """Raw cell text, or ``None`` when the row is shorter than ``column``."""
        if column < len(self.row):
            return self.row[column]
        return None
