"""Unit tests for the DAQ record layout."""

from __future__ import annotations

from pathlib import Path

import pytest

from models.records import FieldKind, ReadingSet, RecordLayout, device_name


def test_layout_device_count_from_header_width() -> None:
    assert RecordLayout.from_header(["c"] * 15).device_count == 1
    assert RecordLayout.from_header(["c"] * 39).device_count == 3
    assert RecordLayout.from_header(["c"] * 26).device_count == 1
    assert RecordLayout.from_header(["c"] * 3).device_count == 0
    assert RecordLayout.from_header(["c"]).device_count == 0


def test_layout_columns_follow_fixed_stride() -> None:
    layout = RecordLayout(device_count=2)

    assert layout.column(1, FieldKind.volts) == 3
    assert layout.column(1, FieldKind.temp) == 5
    assert layout.column(1, FieldKind.rssi) == 9
    assert layout.column(1, FieldKind.power) == 14
    assert layout.column(2, FieldKind.volts) == 15
    assert layout.column(2, FieldKind.power) == 26


def test_layout_rejects_device_outside_range() -> None:
    layout = RecordLayout(device_count=1)

    with pytest.raises(IndexError):
        layout.column(2, FieldKind.volts)
    with pytest.raises(IndexError):
        layout.column(0, FieldKind.volts)


def test_layout_slots_cover_every_device_and_field() -> None:
    slots = list(RecordLayout(device_count=3).slots())

    assert len(slots) == 12
    assert {device for device, _, _ in slots} == {1, 2, 3}
    assert sorted(column for _, kind, column in slots if kind is FieldKind.rssi) == [9, 21, 33]


def test_reading_set_cell_beyond_row_is_none() -> None:
    reading = ReadingSet(path=Path("x.csv"), layout=RecordLayout(device_count=1), row=("a", "b"))

    assert reading.cell(1) == "b"
    assert reading.cell(5) is None


def test_device_name_label() -> None:
    assert device_name(1) == "A1"
    assert device_name(12) == "A12"
