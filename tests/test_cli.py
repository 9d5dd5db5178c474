from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import httpx
import pytest
import typer
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import CLIConfig


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.status_payload: Dict[str, Any] = {
            "data_dir": "/mnt/ffs/data/daqs",
            "current_file": "/mnt/ffs/data/daqs/2024/daqs.csv",
            "last_seen_mtime": 1700000000.0,
            "device_count": 2,
            "last_outcome": "updated",
            "last_cycle_at": "2024-01-01T00:00:00Z",
            "cycle_count": 12,
            "running": True,
            "failures": [
                {"column": 3, "device": "A1", "field": "volts", "count": 0},
                {"column": 9, "device": "A1", "field": "rssi", "count": 4},
            ],
        }
        self.metrics_text = 'tigo_module_volts{name="A1"} 12.5\n'
        self.closed = False

    def get_status(self) -> Dict[str, Any]:
        return self.status_payload

    def get_metrics(self) -> str:
        return self.metrics_text

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_status_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://exporter:9980/", "status"])

    assert result.exit_code == 0
    assert "Collector Status" in result.stdout
    assert "device_count: 2" in result.stdout
    assert "A1 rssi (column 9): 4" in result.stdout
    assert "A1 volts" not in result.stdout
    assert stub.config.base_url == "http://exporter:9980"
    assert stub.closed is True


def test_scrape_command_prints_exposition(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["scrape"])

    assert result.exit_code == 0
    assert 'tigo_module_volts{name="A1"} 12.5' in result.stdout


def test_inspect_command_renders_latest_row(runner: CliRunner, stub: StubClient, tmp_path: Path) -> None:
    header = ",".join(f"h{i}" for i in range(15))
    row = ["2024-01-01 00:00:00", "1700000000", ""] + [""] * 12
    row[3] = "12.5"
    row[5] = "31"
    row[14] = "150.2"
    csv_path = tmp_path / "daq.csv"
    csv_path.write_text(header + "\n" + ",".join(row) + "\n")

    result = runner.invoke(app, ["inspect", str(tmp_path)])

    assert result.exit_code == 0
    assert "device_count: 1" in result.stdout
    assert "A1: volts=12.5 temp=31 rssi=<empty field> power=150.2" in result.stdout


def test_inspect_command_without_files_fails(runner: CliRunner, stub: StubClient, tmp_path: Path) -> None:
    result = runner.invoke(app, ["inspect", str(tmp_path)])

    assert result.exit_code == 1


def test_inspect_command_header_only(runner: CliRunner, stub: StubClient, tmp_path: Path) -> None:
    (tmp_path / "daq.csv").write_text(",".join(f"h{i}" for i in range(15)) + "\n")

    result = runner.invoke(app, ["inspect", str(tmp_path)])

    assert result.exit_code == 0
    assert "no data rows yet" in result.stdout


def test_serve_command_runs_uvicorn_with_overrides(
    runner: CliRunner, stub: StubClient, monkeypatch, tmp_path: Path
) -> None:
    calls: Dict[str, Any] = {}

    def fake_run(application, host: str, port: int, log_config=None) -> None:
        calls["app"] = application
        calls["host"] = host
        calls["port"] = port

    monkeypatch.setattr("cli.app.uvicorn.run", fake_run)
    monkeypatch.setattr("cli.app.configure_logging", lambda *args, **kwargs: None)

    result = runner.invoke(
        app,
        ["serve", str(tmp_path), "--bind-ip", "127.0.0.1", "--bind-port", "9123", "--verbose"],
    )

    assert result.exit_code == 0, result.output
    assert "Now listening on 127.0.0.1:9123" in result.stdout
    assert calls["host"] == "127.0.0.1"
    assert calls["port"] == 9123
    assert calls["app"].title == "Tigo DAQ Exporter"


def _client_with(handler) -> ApiClient:
    client = ApiClient(CLIConfig(base_url="http://exporter:9980"))
    client._client = httpx.Client(  # type: ignore[attr-defined]
        base_url="http://exporter:9980", transport=httpx.MockTransport(handler)
    )
    return client


def test_api_client_reads_status_and_metrics() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/status":
            return httpx.Response(200, json={"cycle_count": 3})
        return httpx.Response(200, text="tigo_timestamp 1\n")

    client = _client_with(handler)
    try:
        assert client.get_status() == {"cycle_count": 3}
        assert client.get_metrics() == "tigo_timestamp 1\n"
    finally:
        client.close()


def test_api_client_exits_on_error_status() -> None:
    client = _client_with(lambda request: httpx.Response(503, text="unavailable"))
    try:
        with pytest.raises(typer.Exit):
            client.get_status()
    finally:
        client.close()


def test_api_client_exits_when_unreachable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client_with(handler)
    try:
        with pytest.raises(typer.Exit):
            client.get_metrics()
    finally:
        client.close()
