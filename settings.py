from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional


_DATA_DIR_ENV = "TIGO_DAQS_DATA_DIR"
_BIND_IP_ENV = "TIGO_BIND_IP"
_BIND_PORT_ENV = "TIGO_BIND_PORT"
_POLL_INTERVAL_ENV = "TIGO_POLL_INTERVAL"
_STALE_AFTER_ENV = "TIGO_STALE_AFTER"
_MAX_FAIL_COUNT_ENV = "TIGO_MAX_FAIL_COUNT"
_TIMESTAMP_SOURCE_ENV = "TIGO_TIMESTAMP_SOURCE"
_TIMESTAMP_LOCATION_ENV = "TIGO_TIMESTAMP_LOCATION"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_DATA_DIR = "/mnt/ffs/data/daqs"
DEFAULT_BIND_IP = "0.0.0.0"
DEFAULT_BIND_PORT = 9980
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_STALE_AFTER = 600.0
DEFAULT_MAX_FAIL_COUNT = 35


@dataclass(frozen=True)
class Settings:
    data_dir: str
    bind_ip: str
    bind_port: int
    poll_interval: float
    stale_after: float
    max_fail_count: int
    timestamp_source: str
    timestamp_location: str
    log_level: str

    def with_overrides(
        self,
        data_dir: Optional[str] = None,
        bind_ip: Optional[str] = None,
        bind_port: Optional[int] = None,
        verbose: bool = False,
    ) -> "Settings":
        """Apply command-line values on top of the environment settings."""
        return replace(
            self,
            data_dir=data_dir or self.data_dir,
            bind_ip=bind_ip or self.bind_ip,
            bind_port=bind_port or self.bind_port,
            log_level="DEBUG" if verbose else self.log_level,
        )


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=_read_str_env(_DATA_DIR_ENV, DEFAULT_DATA_DIR),
        bind_ip=_read_str_env(_BIND_IP_ENV, DEFAULT_BIND_IP),
        bind_port=_read_positive_int(_BIND_PORT_ENV, DEFAULT_BIND_PORT),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, DEFAULT_POLL_INTERVAL),
        stale_after=_read_positive_float(_STALE_AFTER_ENV, DEFAULT_STALE_AFTER),
        max_fail_count=_read_positive_int(_MAX_FAIL_COUNT_ENV, DEFAULT_MAX_FAIL_COUNT),
        timestamp_source=_read_str_env(_TIMESTAMP_SOURCE_ENV, "local"),
        timestamp_location=_read_str_env(_TIMESTAMP_LOCATION_ENV, "cca"),
        log_level=_read_log_level("INFO"),
    )
