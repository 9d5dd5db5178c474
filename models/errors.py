"""Failure taxonomy for a collection cycle."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class CollectorError(Exception):
    """Base class for errors raised while collecting a reading set."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class ScanError(CollectorError):
    """The data directory could not be traversed."""


class StatError(CollectorError):
    """File metadata for the current dataset could not be read."""


class ReadError(CollectorError):
    """The dataset could not be opened or is not well-formed CSV."""


class DecodeError(CollectorError):
    """A single cell is empty or not numeric."""

    def __init__(self, message: str, raw: Optional[str] = None) -> None:
        super().__init__(message)
        self.raw = raw
