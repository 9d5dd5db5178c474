"""Background polling of the DAQ directory into the metrics state."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Callable, Optional

from datastore.metrics_state import MetricsState, build_default_state
from models.errors import ReadError, ScanError, StatError
from services.parser import SnapshotParser
from settings import Settings, get_settings
from storage.daq_directory import DaqDirectory, build_default_directory

logger = logging.getLogger(__name__)


class CycleOutcome(str, Enum):
    """Result of a single poll cycle."""

    no_file = "no_file"
    scan_failed = "scan_failed"
    stat_failed = "stat_failed"
    unchanged = "unchanged"
    stale_cleared = "stale_cleared"
    read_failed = "read_failed"
    empty = "empty"
    updated = "updated"


@dataclass(frozen=True)
class CollectorSnapshot:
    """Point-in-time copy of the tracker facts."""

    data_dir: Path
    current_file: Optional[Path]
    last_seen_mtime: Optional[float]
    device_count: Optional[int]
    last_outcome: Optional[CycleOutcome]
    last_cycle_at: Optional[datetime]
    cycle_count: int
    running: bool


class CollectorService:
    """Runs locate, stat, parse and update on a fixed interval."""

    def __init__(
        self,
        directory: DaqDirectory,
        parser: SnapshotParser,
        state: MetricsState,
        poll_interval: float = 10.0,
        stale_after: float = 600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = directory
        self.parser = parser
        self.state = state
        self.poll_interval = poll_interval
        self.stale_after = stale_after
        self._clock = clock
        self._last_seen_mtime: Optional[float] = None
        self._current_file: Optional[Path] = None
        self._device_count: Optional[int] = None
        self._last_outcome: Optional[CycleOutcome] = None
        self._last_cycle_at: Optional[datetime] = None
        self._cycle_count = 0
        self._status_lock = threading.Lock()
        self._stale_logged = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start the polling thread.

        A no-op while a loop is running. If a stopped loop is still stuck in a
        cycle, no second loop is started until it has exited.
        """
        if self._thread is not None and self._thread.is_alive():
            if self._stop_event.is_set():
                logger.warning(
                    "Previous collector loop has not exited yet; not starting another",
                    extra={"path": self.directory.root_path},
                )
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="daq-collector", daemon=True
        )
        self._thread.start()
        logger.info(
            "Collector started",
            extra={"path": self.directory.root_path},
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.warning(
                "Collector loop still busy after stop; it exits when the current cycle returns",
                extra={"path": self.directory.root_path},
            )
            return
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> CycleOutcome:
        """Run one synchronous cycle and record its outcome."""
        outcome = self._poll()
        with self._status_lock:
            self._last_outcome = outcome
            self._last_cycle_at = datetime.now(timezone.utc)
            self._cycle_count += 1
        return outcome

    def status(self) -> CollectorSnapshot:
        with self._status_lock:
            return CollectorSnapshot(
                data_dir=self.directory.root_path,
                current_file=self._current_file,
                last_seen_mtime=self._last_seen_mtime,
                device_count=self._device_count,
                last_outcome=self._last_outcome,
                last_cycle_at=self._last_cycle_at,
                cycle_count=self._cycle_count,
                running=self.running,
            )

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.poll_once()
            except Exception:  # noqa: BLE001 - the loop must outlive a bad cycle
                logger.exception("Unexpected error during collection cycle")
            stop_event.wait(self.poll_interval)

    def _poll(self) -> CycleOutcome:
        try:
            path = self.directory.newest_csv()
        except ScanError as exc:
            logger.warning(
                "Error getting newest CSV file",
                extra={"path": exc.path, "outcome": CycleOutcome.scan_failed.value, "reason": str(exc)},
            )
            return CycleOutcome.scan_failed

        if path is None:
            logger.debug("No CSV file found", extra={"path": self.directory.root_path})
            return CycleOutcome.no_file

        try:
            mtime = self.directory.modified_at(path)
        except StatError as exc:
            logger.warning(
                "Error stating CSV file",
                extra={"path": path, "outcome": CycleOutcome.stat_failed.value, "reason": str(exc)},
            )
            return CycleOutcome.stat_failed

        if path == self._current_file and self._last_seen_mtime == mtime:
            if self._clock() - mtime > self.stale_after:
                self.state.clear_devices()
                extra = {"path": path, "mtime": mtime, "outcome": CycleOutcome.stale_cleared.value}
                if self._stale_logged:
                    logger.debug("Dataset still stale", extra=extra)
                else:
                    logger.warning("No new data; cleared module metrics", extra=extra)
                    self._stale_logged = True
                return CycleOutcome.stale_cleared
            return CycleOutcome.unchanged

        self._stale_logged = False

        with self._status_lock:
            self._last_seen_mtime = mtime
            self._current_file = path

        try:
            reading = self.parser.parse(path)
        except ReadError as exc:
            logger.warning(
                "Unable to read CSV file",
                extra={"path": path, "outcome": CycleOutcome.read_failed.value, "reason": str(exc)},
            )
            return CycleOutcome.read_failed

        if reading is None:
            return CycleOutcome.empty

        summary = self.state.apply(reading)
        with self._status_lock:
            self._device_count = summary.device_count
        logger.info(
            "Updated metrics from dataset",
            extra={
                "path": path,
                "mtime": mtime,
                "device_count": summary.device_count,
                "outcome": CycleOutcome.updated.value,
            },
        )
        return CycleOutcome.updated


def build_collector(settings: Settings) -> CollectorService:
    """Wire a collector with fresh components for ``settings``."""
    directory = DaqDirectory(root_path=Path(settings.data_dir))
    state = MetricsState(
        timestamp_source=settings.timestamp_source,
        timestamp_location=settings.timestamp_location,
        max_fail_count=settings.max_fail_count,
    )
    return CollectorService(
        directory=directory,
        parser=SnapshotParser(directory),
        state=state,
        poll_interval=settings.poll_interval,
        stale_after=settings.stale_after,
    )


@lru_cache
def build_default_collector() -> CollectorService:
    """Factory that wires the collector from environment settings."""
    settings = get_settings()
    directory = build_default_directory()
    return CollectorService(
        directory=directory,
        parser=SnapshotParser(directory),
        state=build_default_state(),
        poll_interval=settings.poll_interval,
        stale_after=settings.stale_after,
    )
