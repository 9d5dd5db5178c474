"""Unit tests for cell decoding."""

from __future__ import annotations

import pytest

from models.errors import DecodeError
from services.decoder import decode_field


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.5", 12.5),
        ("-3", -3.0),
        ("150.2", 150.2),
        ("+0.5", 0.5),
        ("1700000000", 1700000000.0),
        ("1e3", 1000.0),
    ],
)
def test_decode_numeric_cells(raw: str, expected: float) -> None:
    assert decode_field(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "0,", "12.5V", " 12.5", "150.2 ", "1_000"])
def test_decode_rejects_empty_and_non_numeric(raw: str) -> None:
    with pytest.raises(DecodeError) as excinfo:
        decode_field(raw)

    assert excinfo.value.raw == raw


def test_decode_missing_cell_is_a_failure() -> None:
    with pytest.raises(DecodeError, match="missing field"):
        decode_field(None)
