"""Extraction of the current reading set from a DAQ log."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Optional

from models.errors import ReadError
from models.records import ReadingSet, RecordLayout
from storage.daq_directory import DaqDirectory

logger = logging.getLogger(__name__)


class SnapshotParser:
    """Reads one dataset file and keeps only its last data row."""

    def __init__(self, directory: DaqDirectory) -> None:
        self.directory = directory

    def parse(self, path: Path) -> Optional[ReadingSet]:
        """Return the last row of ``path`` or ``None`` when the file has no data rows.

        Raises ``ReadError`` when the file cannot be opened, has no header row,
        or is not well-formed CSV. Row widths are not checked against the header.
        """
        with self.directory.open_text(path) as handle:
            reader = csv.reader(handle, strict=True)
            try:
                header = next(reader, None)
                if header is None:
                    raise ReadError(f"CSV file {path} is missing a header row.", path=path)

                layout = RecordLayout.from_header(header)
                last_row: Optional[list[str]] = None
                for row in reader:
                    if not row:
                        continue
                    last_row = row
            except (csv.Error, OSError, UnicodeDecodeError) as exc:
                raise ReadError(
                    f"Unable to read CSV file {path} near line {reader.line_num}: {exc}",
                    path=path,
                ) from exc

        if last_row is None:
            logger.debug(
                "Dataset has no data rows yet",
                extra={"path": path, "device_count": layout.device_count},
            )
            return None

        return ReadingSet(path=path, layout=layout, row=tuple(last_row))
