"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from services.collector import CycleOutcome


class SlotFailureCount(BaseModel):
    """Consecutive decode failures for one monitored column."""

    column: int = Field(..., ge=0)
    device: str = Field(..., description="Device label such as A1.")
    field: str
    count: int = Field(..., ge=0)


class CollectorStatus(BaseModel):
    """Tracker facts and failure counters for the running collector."""

    data_dir: str
    current_file: Optional[str] = None
    last_seen_mtime: Optional[float] = Field(
        default=None, description="Modification time (epoch seconds) of the last parsed file."
    )
    device_count: Optional[int] = Field(default=None, ge=0)
    last_outcome: Optional[CycleOutcome] = None
    last_cycle_at: Optional[datetime] = None
    cycle_count: int = Field(default=0, ge=0)
    running: bool = False
    failures: List[SlotFailureCount] = Field(default_factory=list)
