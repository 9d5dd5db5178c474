"""Numeric decoding of raw CSV cells."""

from __future__ import annotations

from typing import Optional

from models.errors import DecodeError


def decode_field(raw: Optional[str]) -> float:
    """Convert a cell to a float, raising ``DecodeError`` for empty or non-numeric text.

    ``None`` stands for a cell missing from a short row and is treated like an
    empty one. Cells are taken verbatim: surrounding whitespace and digit
    separators (``1_000``) are rejected rather than tolerated.
    """
    if raw is None:
        raise DecodeError("missing field")
    if not raw:
        raise DecodeError("empty field", raw=raw)
    if raw != raw.strip() or "_" in raw:
        raise DecodeError("invalid numeric value", raw=raw)
    try:
        return float(raw)
    except ValueError as exc:
        raise DecodeError("invalid numeric value", raw=raw) from exc
