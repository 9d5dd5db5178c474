"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from prometheus_client import CONTENT_TYPE_LATEST

from app.schemas import CollectorStatus, SlotFailureCount
from services.collector import CollectorService, build_default_collector

router = APIRouter()


def get_collector(request: Request) -> CollectorService:
    collector = getattr(request.app.state, "collector", None)
    if collector is None:
        collector = build_default_collector()
    return collector


@router.get(
    "/metrics",
    summary="Prometheus exposition of the latest module readings.",
    response_class=Response,
)
def metrics(collector: CollectorService = Depends(get_collector)) -> Response:
    return Response(content=collector.state.render(), media_type=CONTENT_TYPE_LATEST)


@router.get(
    "/status",
    response_model=CollectorStatus,
    summary="Collector tracker state and per-field failure counters.",
)
def collector_status(collector: CollectorService = Depends(get_collector)) -> CollectorStatus:
    snapshot = collector.status()
    return CollectorStatus(
        data_dir=str(snapshot.data_dir),
        current_file=str(snapshot.current_file) if snapshot.current_file else None,
        last_seen_mtime=snapshot.last_seen_mtime,
        device_count=snapshot.device_count,
        last_outcome=snapshot.last_outcome,
        last_cycle_at=snapshot.last_cycle_at,
        cycle_count=snapshot.cycle_count,
        running=snapshot.running,
        failures=[
            SlotFailureCount(
                column=failure.column,
                device=failure.device,
                field=failure.field,
                count=failure.count,
            )
            for failure in collector.state.failures()
        ],
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "Metrics are served at /metrics."}
