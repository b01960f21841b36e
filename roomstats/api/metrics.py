"""Prometheus-compatible metrics endpoint."""

from fastapi import APIRouter, Request, Response


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=Response)
def export_metrics(request: Request) -> Response:
    """Expose collected metrics for Prometheus scraping."""

    registry = request.app.state.room_stats.registry
    return Response(content=registry.render(), media_type=registry.content_type)
