"""Room, participant and track accounting exported for scraping.

Every event updates two things: a series in the collector registry that the
scraper reads, and an :class:`AtomicInt32` mirror that the host process can
read without going through the registry (health probes, admission control).
The two are independent observations of the same event and are not updated
atomically as a pair.
"""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Union

from prometheus_client import REGISTRY, CollectorRegistry

from roomstats.models.enums import (
    ErrorLabelMode,
    NodeType,
    PublishState,
    SubscribeState,
    TrackKind,
)

from .atomic import AtomicInt32
from .registry import MetricsRegistry

logger = logging.getLogger(__name__)

NAMESPACE = "livekit"

# 5s .. 10h
ROOM_DURATION_BUCKETS = (
    5,
    10,
    60,
    5 * 60,
    10 * 60,
    30 * 60,
    60 * 60,
    2 * 60 * 60,
    5 * 60 * 60,
    10 * 60 * 60,
)

StartedAt = Union[datetime, float, int, None]
ErrorLabel = Callable[[Any], str]
Kind = Union[TrackKind, str]


def message_error_label(err: Any) -> str:
    """Use the error message verbatim. Callers must keep messages bounded."""

    # str(KeyError("x")) is "'x'"; the label carries the bare message
    if isinstance(err, KeyError) and len(err.args) == 1:
        return str(err.args[0])
    return str(err)


def type_error_label(err: Any) -> str:
    """Use the exception class name, which keeps label cardinality bounded."""

    if isinstance(err, BaseException):
        return type(err).__name__
    return str(err)


ERROR_LABELS: dict[ErrorLabelMode, ErrorLabel] = {
    ErrorLabelMode.MESSAGE: message_error_label,
    ErrorLabelMode.TYPE: type_error_label,
}


def _coerce_node_type(node_type: NodeType | str) -> NodeType:
    if isinstance(node_type, NodeType):
        return node_type
    return NodeType(str(node_type).strip().upper())


def _resolve_error_label(error_label: ErrorLabelMode | str | ErrorLabel | None) -> ErrorLabel:
    if error_label is None:
        return message_error_label
    if callable(error_label):
        return error_label
    return ERROR_LABELS[ErrorLabelMode(error_label)]


def _elapsed_seconds(started_at: StartedAt) -> float | None:
    """Seconds since ``started_at``, or ``None`` when the start is unset."""

    if started_at is None:
        return None
    if isinstance(started_at, datetime):
        if started_at.replace(tzinfo=None) == datetime.min:
            return None
        return (datetime.now(started_at.tzinfo) - started_at).total_seconds()
    if not started_at:
        return None
    return time.time() - float(started_at)


@dataclass(frozen=True, slots=True)
class RoomStatsSnapshot:
    """Point-in-time copy of the in-process mirrors."""

    room_current: int
    participant_current: int
    track_published_current: int
    track_subscribed_current: int
    track_publish_attempts: int
    track_publish_success: int
    track_subscribe_attempts: int
    track_subscribe_success: int
    track_subscribe_user_error: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


class RoomStats:
    """Telemetry facade for room, participant and track lifecycle events.

    All methods are safe to call concurrently from any thread. Gauges are not
    clamped: unpaired decrements drive both the gauge and its mirror negative.
    """

    def __init__(
        self,
        node_id: str,
        node_type: NodeType | str,
        env: str,
        *,
        collector_registry: CollectorRegistry | None = None,
        namespace: str = NAMESPACE,
        error_label: ErrorLabelMode | str | ErrorLabel | None = None,
    ) -> None:
        self.node_id = node_id
        self.node_type = _coerce_node_type(node_type)
        self.env = env
        self._error_label = _resolve_error_label(error_label)

        self.room_current = AtomicInt32()
        self.participant_current = AtomicInt32()
        self.track_published_current = AtomicInt32()
        self.track_subscribed_current = AtomicInt32()
        self.track_publish_attempts = AtomicInt32()
        self.track_publish_success = AtomicInt32()
        self.track_subscribe_attempts = AtomicInt32()
        self.track_subscribe_success = AtomicInt32()
        # failures caused by the user (permissions, missing track); subtracted
        # from attempts when computing the subscribe success rate
        self.track_subscribe_user_error = AtomicInt32()

        self._registry = MetricsRegistry(
            namespace,
            {"node_id": node_id, "node_type": self.node_type.value, "env": env},
            collector_registry,
        )
        self._prom_room_current = self._registry.gauge(
            "room", "total", "Number of rooms currently hosted on this node."
        )
        self._prom_room_duration = self._registry.histogram(
            "room",
            "duration_seconds",
            "Room lifetime in seconds, observed when the room ends.",
            buckets=ROOM_DURATION_BUCKETS,
        )
        self._prom_participant_current = self._registry.gauge(
            "participant", "total", "Number of participants currently connected."
        )
        self._prom_track_published_current = self._registry.gauge(
            "track",
            "published_total",
            "Number of tracks currently published, by kind.",
            label_names=("kind",),
        )
        self._prom_track_subscribed_current = self._registry.gauge(
            "track",
            "subscribed_total",
            "Number of track subscriptions currently active, by kind.",
            label_names=("kind",),
        )
        self._prom_track_publish_counter = self._registry.counter(
            "track",
            "publish_counter",
            "Cumulative track publish attempts and successes.",
            label_names=("kind", "state"),
        )
        self._prom_track_subscribe_counter = self._registry.counter(
            "track",
            "subscribe_counter",
            "Cumulative track subscribe attempts, successes and failures.",
            label_names=("state", "error"),
        )

        logger.info(
            "Room stats initialised for node %s (%s) in %s",
            node_id,
            self.node_type.value,
            env,
        )

    @property
    def registry(self) -> MetricsRegistry:
        return self._registry

    def room_started(self) -> None:
        self._prom_room_current.inc()
        self.room_current.inc()

    def room_ended(self, started_at: StartedAt) -> None:
        elapsed = _elapsed_seconds(started_at)
        if elapsed is not None:
            self._prom_room_duration.observe(elapsed)
        self._prom_room_current.dec()
        self.room_current.dec()

    def add_participant(self) -> None:
        self._prom_participant_current.inc()
        self.participant_current.inc()

    def sub_participant(self) -> None:
        self._prom_participant_current.dec()
        self.participant_current.dec()

    def add_published_track(self, kind: Kind) -> None:
        self._prom_track_published_current.labels(kind).inc()
        self.track_published_current.inc()

    def sub_published_track(self, kind: Kind) -> None:
        self._prom_track_published_current.labels(kind).dec()
        self.track_published_current.dec()

    def add_publish_attempt(self, kind: Kind) -> None:
        self.track_publish_attempts.inc()
        self._prom_track_publish_counter.labels(kind, PublishState.ATTEMPT).inc()

    def add_publish_success(self, kind: Kind) -> None:
        self.track_publish_success.inc()
        self._prom_track_publish_counter.labels(kind, PublishState.SUCCESS).inc()

    def record_track_subscribe_attempt(self) -> None:
        self.track_subscribe_attempts.inc()
        self._prom_track_subscribe_counter.labels(SubscribeState.ATTEMPT, "").inc()

    def record_track_subscribe_success(self, kind: Kind) -> None:
        # both the current gauge and the cumulative counter move
        self._prom_track_subscribed_current.labels(kind).inc()
        self.track_subscribed_current.inc()

        self._prom_track_subscribe_counter.labels(SubscribeState.SUCCESS, "").inc()
        self.track_subscribe_success.inc()

    def record_track_unsubscribed(self, kind: Kind) -> None:
        # counters are left alone, they feed rate computations
        self._prom_track_subscribed_current.labels(kind).dec()
        self.track_subscribed_current.dec()

    def record_track_subscribe_failure(self, err: Any, is_user_error: bool) -> None:
        self._prom_track_subscribe_counter.labels(
            SubscribeState.FAILURE, self._error_label(err)
        ).inc()

        if is_user_error:
            self.track_subscribe_user_error.inc()

    def snapshot(self) -> RoomStatsSnapshot:
        return RoomStatsSnapshot(
            room_current=self.room_current.load(),
            participant_current=self.participant_current.load(),
            track_published_current=self.track_published_current.load(),
            track_subscribed_current=self.track_subscribed_current.load(),
            track_publish_attempts=self.track_publish_attempts.load(),
            track_publish_success=self.track_publish_success.load(),
            track_subscribe_attempts=self.track_subscribe_attempts.load(),
            track_subscribe_success=self.track_subscribe_success.load(),
            track_subscribe_user_error=self.track_subscribe_user_error.load(),
        )


_room_stats: RoomStats | None = None
_init_lock = Lock()


def init_room_stats(
    node_id: str,
    node_type: NodeType | str,
    env: str,
    *,
    collector_registry: CollectorRegistry | None = None,
    namespace: str = NAMESPACE,
    error_label: ErrorLabelMode | str | ErrorLabel | None = None,
) -> RoomStats:
    """Create the process-wide facade. Must be called exactly once."""

    global _room_stats

    with _init_lock:
        if _room_stats is not None:
            logger.error(
                "Room stats already initialised for node %s; refusing to register series twice",
                _room_stats.node_id,
            )
            raise RuntimeError("room stats already initialised")
        _room_stats = RoomStats(
            node_id,
            node_type,
            env,
            collector_registry=collector_registry if collector_registry is not None else REGISTRY,
            namespace=namespace,
            error_label=error_label,
        )
        return _room_stats


def get_room_stats() -> RoomStats:
    stats = _room_stats
    if stats is None:
        raise RuntimeError("room stats not initialised; call init_room_stats() first")
    return stats


def room_started() -> None:
    get_room_stats().room_started()


def room_ended(started_at: StartedAt) -> None:
    get_room_stats().room_ended(started_at)


def add_participant() -> None:
    get_room_stats().add_participant()


def sub_participant() -> None:
    get_room_stats().sub_participant()


def add_published_track(kind: Kind) -> None:
    get_room_stats().add_published_track(kind)


def sub_published_track(kind: Kind) -> None:
    get_room_stats().sub_published_track(kind)


def add_publish_attempt(kind: Kind) -> None:
    get_room_stats().add_publish_attempt(kind)


def add_publish_success(kind: Kind) -> None:
    get_room_stats().add_publish_success(kind)


def record_track_subscribe_attempt() -> None:
    get_room_stats().record_track_subscribe_attempt()


def record_track_subscribe_success(kind: Kind) -> None:
    get_room_stats().record_track_subscribe_success(kind)


def record_track_unsubscribed(kind: Kind) -> None:
    get_room_stats().record_track_unsubscribed(kind)


def record_track_subscribe_failure(err: Any, is_user_error: bool) -> None:
    get_room_stats().record_track_subscribe_failure(err, is_user_error)
