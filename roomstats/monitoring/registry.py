"""Metrics registry carrying the node identity on every exported series."""

from __future__ import annotations

from enum import Enum
from threading import Lock
from typing import Mapping, Sequence

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)
from prometheus_client.metrics import MetricWrapperBase


def _full_name(namespace: str, subsystem: str, name: str) -> str:
    return "_".join(part for part in (namespace, subsystem, name) if part)


def _label_value(value: object) -> str:
    # str() on a str-based Enum yields "Class.MEMBER", not the member value
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class MetricsRegistry:
    """Builds and registers series that share a namespace and constant labels.

    Every series is declared with the constant label names first, followed by
    its own variable labels. ``labels()`` on a bound series takes only the
    variable values, in declaration order.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(
        self,
        namespace: str,
        const_labels: Mapping[str, str],
        collector_registry: CollectorRegistry | None = None,
    ) -> None:
        self.namespace = namespace
        self.const_labels = dict(const_labels)
        self.collector_registry = (
            collector_registry if collector_registry is not None else CollectorRegistry()
        )
        self._metrics: dict[str, BoundMetric] = {}
        self._lock = Lock()

    def register(self, name: str, metric: MetricWrapperBase, label_names: Sequence[str]) -> "BoundMetric":
        with self._lock:
            if name in self._metrics:
                raise ValueError(f"Metric '{name}' already registered")
            self.collector_registry.register(metric)
            bound = BoundMetric(
                name,
                metric,
                tuple(self.const_labels.values()),
                tuple(label_names),
            )
            self._metrics[name] = bound
            return bound

    def gauge(
        self,
        subsystem: str,
        name: str,
        description: str,
        *,
        label_names: Sequence[str] = (),
    ) -> "BoundMetric":
        metric = Gauge(
            name,
            description,
            labelnames=self._label_names(label_names),
            namespace=self.namespace,
            subsystem=subsystem,
            registry=None,
        )
        return self.register(_full_name(self.namespace, subsystem, name), metric, label_names)

    def counter(
        self,
        subsystem: str,
        name: str,
        description: str,
        *,
        label_names: Sequence[str] = (),
    ) -> "BoundMetric":
        metric = Counter(
            name,
            description,
            labelnames=self._label_names(label_names),
            namespace=self.namespace,
            subsystem=subsystem,
            registry=None,
        )
        return self.register(_full_name(self.namespace, subsystem, name), metric, label_names)

    def histogram(
        self,
        subsystem: str,
        name: str,
        description: str,
        *,
        buckets: Sequence[float],
        label_names: Sequence[str] = (),
    ) -> "BoundMetric":
        metric = Histogram(
            name,
            description,
            labelnames=self._label_names(label_names),
            namespace=self.namespace,
            subsystem=subsystem,
            buckets=tuple(buckets),
            registry=None,
        )
        return self.register(_full_name(self.namespace, subsystem, name), metric, label_names)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._metrics)

    def render(self) -> bytes:
        """Render all registered series using the Prometheus text format."""

        return generate_latest(self.collector_registry)

    def get_sample_value(self, name: str, labels: Mapping[str, str] | None = None) -> float | None:
        """Return one sample value, with the constant labels filled in."""

        merged = dict(self.const_labels)
        if labels:
            merged.update(labels)
        return self.collector_registry.get_sample_value(name, merged)

    def _label_names(self, label_names: Sequence[str]) -> tuple[str, ...]:
        overlap = set(self.const_labels) & set(label_names)
        if overlap:
            raise ValueError(
                f"Variable labels {sorted(overlap)} clash with constant labels"
            )
        return tuple(self.const_labels) + tuple(label_names)


class BoundMetric:
    """A series with its constant label values already applied.

    Use ``metric.labels("audio").inc()`` for series with variable labels, or
    call ``inc``/``dec``/``observe`` directly on series without them.
    """

    def __init__(
        self,
        name: str,
        metric: MetricWrapperBase,
        const_values: tuple[str, ...],
        label_names: tuple[str, ...],
    ) -> None:
        self.name = name
        self.label_names = label_names
        self._metric = metric
        self._const_values = const_values
        self._child = None
        if not label_names:
            self._child = metric.labels(*const_values) if const_values else metric

    def labels(self, *values: object):
        if len(values) != len(self.label_names):
            expected = ", ".join(self.label_names) or "<none>"
            raise ValueError(
                f"Metric '{self.name}' expected {len(self.label_names)} label values "
                f"[{expected}] but received {len(values)}"
            )
        return self._metric.labels(*self._const_values, *(_label_value(value) for value in values))

    def _unlabelled(self):
        if self._child is None:
            raise ValueError(
                f"Metric '{self.name}' requires label values [{', '.join(self.label_names)}]"
            )
        return self._child

    def inc(self, amount: float = 1.0) -> None:
        self._unlabelled().inc(amount)

    def dec(self, amount: float = 1.0) -> None:
        self._unlabelled().dec(amount)

    def observe(self, value: float) -> None:
        self._unlabelled().observe(value)
