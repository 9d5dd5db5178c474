from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest

from models.errors import DecodeError
from models.records import TIMESTAMP_COLUMN, FieldKind, ReadingSet, device_name
from services.decoder import decode_field
from settings import get_settings

logger = logging.getLogger(__name__)

_GAUGE_SPECS = {
    FieldKind.volts: ("tigo_module_volts", "Module volt value in V"),
    FieldKind.rssi: ("tigo_module_rssi", "Tigo signal strength value"),
    FieldKind.power: ("tigo_module_power", "Module power value in W"),
    FieldKind.temp: ("tigo_module_temp", "Tigo module temperature value in celsius"),
}


@dataclass(frozen=True)
class SlotFailure:
    """Consecutive decode failures recorded for one absolute column."""

    column: int
    device: str
    field: str
    count: int


@dataclass
class UpdateSummary:
    device_count: int = 0
    decoded: int = 0
    failed: int = 0


class MetricsState:
    """Current gauge values plus per-slot failure counters.

    Writes come from the collector thread only; ``render`` may be called from any
    number of request threads. Both sides share one lock, so a scrape sees either
    all of an update or none of it.
    """

    def __init__(
        self,
        timestamp_source: str = "local",
        timestamp_location: str = "cca",
        max_fail_count: int = 35,
        registry: Optional[CollectorRegistry] = None,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self.timestamp_labels = (timestamp_source, timestamp_location)
        self.max_fail_count = max_fail_count
        self._lock = Lock()
        self._device_gauges: Dict[FieldKind, Gauge] = {
            kind: Gauge(name, doc, ["name"], registry=self.registry)
            for kind, (name, doc) in _GAUGE_SPECS.items()
        }
        self._timestamp_gauge = Gauge(
            "tigo_timestamp",
            "Timestamp of the dataset",
            ["source", "location"],
            registry=self.registry,
        )
        self._fail_counts: Dict[int, int] = {}
        self._slot_names: Dict[int, tuple[str, str]] = {}

    def apply(self, reading: ReadingSet) -> UpdateSummary:
        """Decode every monitored slot of ``reading`` and update gauges atomically.

        A slot that fails to decode keeps its previous gauge value. An undecodable
        dataset timestamp is reported as 0 and has no failure counter.
        """
        summary = UpdateSummary(device_count=reading.layout.device_count)
        with self._lock:
            for device_index, kind, column in reading.layout.slots():
                name = device_name(device_index)
                value = self._decode_slot(reading, column, name, kind.value)
                if value is None:
                    summary.failed += 1
                    continue
                self._device_gauges[kind].labels(name=name).set(value)
                summary.decoded += 1

            try:
                timestamp = decode_field(reading.cell(TIMESTAMP_COLUMN))
                summary.decoded += 1
            except DecodeError as exc:
                timestamp = 0.0
                summary.failed += 1
                logger.debug(
                    "Dataset timestamp decode failed",
                    extra={"column": TIMESTAMP_COLUMN, "reason": str(exc)},
                )
            self._timestamp_gauge.labels(*self.timestamp_labels).set(timestamp)
        return summary

    def clear_devices(self) -> None:
        """Drop every device series; the timestamp and failure counters stay."""
        with self._lock:
            for gauge in self._device_gauges.values():
                gauge.clear()

    def fail_count(self, column: int) -> int:
        with self._lock:
            return self._fail_counts.get(column, 0)

    def failures(self) -> list[SlotFailure]:
        with self._lock:
            return [
                SlotFailure(column=column, device=device, field=field, count=self._fail_counts[column])
                for column, (device, field) in sorted(self._slot_names.items())
            ]

    def render(self) -> bytes:
        """Prometheus text exposition of the current state."""
        with self._lock:
            return generate_latest(self.registry)

    def _decode_slot(
        self, reading: ReadingSet, column: int, device: str, field: str
    ) -> Optional[float]:
        self._slot_names[column] = (device, field)
        try:
            value = decode_field(reading.cell(column))
        except DecodeError as exc:
            count = self._fail_counts.get(column, 0) + 1
            self._fail_counts[column] = count
            logger.debug(
                "Field decode failed",
                extra={
                    "device": device,
                    "field": field,
                    "column": column,
                    "fail_count": count,
                    "reason": str(exc),
                },
            )
            if count == self.max_fail_count:
                logger.warning(
                    "Field has reached the failure threshold",
                    extra={"device": device, "field": field, "column": column, "fail_count": count},
                )
            return None
        self._fail_counts[column] = 0
        return value


@lru_cache
def build_default_state() -> MetricsState:
    settings = get_settings()
    return MetricsState(
        timestamp_source=settings.timestamp_source,
        timestamp_location=settings.timestamp_location,
        max_fail_count=settings.max_fail_count,
    )
