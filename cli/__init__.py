"""Command line for running and querying the Tigo DAQ exporter; the Typer app is ``cli.app.app``."""
