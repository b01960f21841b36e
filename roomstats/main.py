import logging.config
from typing import Any

from fastapi import FastAPI, Request
from prometheus_client import disable_created_metrics

from roomstats.api.metrics import router as metrics_router
from roomstats.config import Settings, get_settings
from roomstats.monitoring.rooms import RoomStats, init_room_stats


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        }
    },
    "handlers": {
        "default": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "handlers": ["default"],
        "level": "INFO",
    },
}


def configure_logging(level: str) -> None:
    config = dict(LOGGING_CONFIG)
    config["root"] = {**LOGGING_CONFIG["root"], "level": level}
    logging.config.dictConfig(config)


def create_app(
    settings: Settings | None = None,
    room_stats: RoomStats | None = None,
) -> FastAPI:
    """Build the exposition app.

    Without an explicit ``room_stats`` the process-wide facade is initialised
    from ``settings`` and registered with the default collector registry.
    """

    settings = settings or get_settings()
    if room_stats is None:
        room_stats = init_room_stats(
            settings.node_id,
            settings.node_type,
            settings.environment,
            namespace=settings.metrics_namespace,
            error_label=settings.metrics_error_label,
        )

    app = FastAPI(title=settings.app_name, debug=settings.debug)
    app.state.settings = settings
    app.state.room_stats = room_stats

    @app.get("/health", tags=["system"])
    def health_check(request: Request) -> dict[str, Any]:
        """Health check built from the in-process mirrors only."""

        stats: RoomStats = request.app.state.room_stats
        return {
            "status": "ok",
            "environment": stats.env,
            "node_id": stats.node_id,
            "node_type": stats.node_type.value,
            "stats": stats.snapshot().as_dict(),
        }

    app.include_router(metrics_router)
    return app


settings = get_settings()
configure_logging(settings.log_level)
# counters and histograms would otherwise export a _created series per label set
disable_created_metrics()

app = create_app(settings)
