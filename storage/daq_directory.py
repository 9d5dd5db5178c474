from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, TextIO

from models.errors import ReadError, ScanError, StatError
from settings import get_settings

logger = logging.getLogger(__name__)

CSV_SUFFIX = ".csv"


def _raise_scan_error(exc: OSError) -> None:
    raise ScanError(
        f"Unable to scan {exc.filename!r}: {exc.strerror or exc}",
        path=Path(exc.filename) if exc.filename else None,
    ) from exc


class DaqDirectory:
    """Read-only view over a tree of append-only DAQ logs."""

    def __init__(self, root_path: Path) -> None:
        self.root_path = root_path

    def newest_csv(self) -> Optional[Path]:
        """Return the most recently modified ``.csv`` file, or ``None`` if there is none.

        Raises ``ScanError`` when any part of the traversal fails. Files with equal
        modification times keep the first one seen.
        """
        newest: Optional[Path] = None
        newest_mtime: Optional[float] = None

        for dirpath, _dirnames, filenames in os.walk(self.root_path, onerror=_raise_scan_error):
            for filename in filenames:
                if os.path.splitext(filename)[1] != CSV_SUFFIX:
                    continue
                path = Path(dirpath) / filename
                try:
                    if not path.is_file():
                        continue
                    mtime = path.stat().st_mtime
                except OSError as exc:
                    raise ScanError(f"Unable to inspect {path}: {exc}", path=path) from exc
                if newest_mtime is None or mtime > newest_mtime:
                    newest = path
                    newest_mtime = mtime

        logger.debug("Located newest dataset", extra={"path": newest, "mtime": newest_mtime})
        return newest

    def modified_at(self, path: Path) -> float:
        try:
            return path.stat().st_mtime
        except OSError as exc:
            raise StatError(f"Unable to stat {path}: {exc}", path=path) from exc

    @contextmanager
    def open_text(
        self, path: Path, encoding: str = "utf-8", newline: Optional[str] = ""
    ) -> Iterator[TextIO]:
        """Yield a streaming text handle for a dataset file."""
        try:
            handle = path.open("r", encoding=encoding, newline=newline)
        except OSError as exc:
            raise ReadError(f"Unable to open {path}: {exc}", path=path) from exc
        with handle:
            yield handle


@lru_cache
def build_default_directory(root_path: Optional[str] = None) -> DaqDirectory:
    settings = get_settings()
    root = settings.data_dir if root_path is None else root_path
    return DaqDirectory(root_path=Path(root))
