from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer

from models.errors import DecodeError
from models.records import TIMESTAMP_COLUMN, FieldKind, ReadingSet, device_name
from services.decoder import decode_field


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_cell(raw: Optional[str]) -> str:
    try:
        return f"{decode_field(raw):g}"
    except DecodeError as exc:
        return f"<{exc}>"


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Collector Status")
    echo_key_values(
        [
            ("data_dir", payload.get("data_dir")),
            ("current_file", payload.get("current_file")),
            ("last_seen_mtime", payload.get("last_seen_mtime")),
            ("device_count", payload.get("device_count")),
            ("last_outcome", payload.get("last_outcome")),
            ("last_cycle_at", payload.get("last_cycle_at")),
            ("cycle_count", payload.get("cycle_count")),
            ("running", payload.get("running")),
        ]
    )

    failing = [item for item in payload.get("failures") or [] if item.get("count")]
    typer.echo()
    echo_heading("Failing Fields")
    if failing:
        for item in failing:
            device = item.get("device")
            typer.echo(
                f"  - {device} {item.get('field')} (column {item.get('column')}): {item.get('count')}"
            )
    else:
        typer.echo("No failing fields.")


def render_reading(reading: ReadingSet) -> None:
    echo_heading("Latest Reading")
    echo_key_values(
        [
            ("file", reading.path),
            ("device_count", reading.layout.device_count),
            ("timestamp", _format_cell(reading.cell(TIMESTAMP_COLUMN))),
        ]
    )
    typer.echo()
    echo_heading("Devices")
    if not reading.layout.device_count:
        typer.echo("No devices in header.")
        return
    for device_index in range(1, reading.layout.device_count + 1):
        values = " ".join(
            f"{kind.value}={_format_cell(reading.cell(reading.layout.column(device_index, kind)))}"
            for kind in FieldKind
        )
        typer.echo(f"  - {device_name(device_index)}: {values}")
