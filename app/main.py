from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.collector import CollectorService, build_default_collector


def create_app(collector: Optional[CollectorService] = None) -> FastAPI:
    """Build the exporter app; without ``collector`` the environment-wired default is used."""
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        active = collector if collector is not None else build_default_collector()
        app.state.collector = active
        active.start()
        try:
            yield
        finally:
            active.stop()
            if collector is None:
                build_default_collector.cache_clear()

    app = FastAPI(
        title="Tigo DAQ Exporter",
        description="Exposes the latest per-module readings from Tigo DAQ logs as Prometheus gauges.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


app = create_app()
