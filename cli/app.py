from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_status
from logging_config import configure_logging
from models.errors import CollectorError
from services.parser import SnapshotParser
from settings import get_settings
from storage.daq_directory import DaqDirectory


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Prometheus exporter for Tigo DAQ CSV logs.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Exporter base URL for status/scrape (defaults to TIGO_EXPORTER_URL env or http://localhost:9980).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds for status/scrape.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("serve")
def serve_command(
    data_dir: Optional[str] = typer.Argument(
        None, help="Directory holding the DAQ CSV logs (defaults to TIGO_DAQS_DATA_DIR or /mnt/ffs/data/daqs)."
    ),
    bind_ip: Optional[str] = typer.Option(None, "--bind-ip", help="Bind IP (default 0.0.0.0)."),
    bind_port: Optional[int] = typer.Option(None, "--bind-port", help="Bind port (default 9980)."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Run the collector and serve /metrics."""
    from app.main import create_app
    from services.collector import build_collector

    settings = get_settings().with_overrides(
        data_dir=data_dir, bind_ip=bind_ip, bind_port=bind_port, verbose=verbose
    )
    configure_logging(settings.log_level, force=True)
    collector = build_collector(settings)
    typer.echo(f"Now listening on {settings.bind_ip}:{settings.bind_port}")
    uvicorn.run(
        create_app(collector=collector),
        host=settings.bind_ip,
        port=settings.bind_port,
        log_config=None,
    )


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show collector state and failing fields of a running exporter."""
    state = _get_state(ctx)
    render_status(state.client.get_status())


@app.command("scrape")
def scrape_command(ctx: typer.Context) -> None:
    """Print the raw metrics exposition of a running exporter."""
    state = _get_state(ctx)
    typer.echo(state.client.get_metrics(), nl=False)


@app.command("inspect")
def inspect_command(
    data_dir: Optional[Path] = typer.Argument(
        None, file_okay=False, help="Directory to inspect (defaults to the configured data dir)."
    ),
) -> None:
    """Parse the newest CSV locally and print the decoded readings."""
    directory = DaqDirectory(root_path=data_dir or Path(get_settings().data_dir))
    try:
        path = directory.newest_csv()
        if path is None:
            typer.secho(f"No CSV files under {directory.root_path}.", fg=typer.colors.YELLOW, err=True)
            raise typer.Exit(code=1)
        reading = SnapshotParser(directory).parse(path)
    except CollectorError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if reading is None:
        typer.echo(f"{path} has no data rows yet.")
        return
    render_reading(reading)
