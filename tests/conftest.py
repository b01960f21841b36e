"""Shared pytest fixtures for room stats tests."""

from __future__ import annotations

from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from roomstats.config import Settings
from roomstats.main import create_app
from roomstats.monitoring.rooms import RoomStats

SampleReader = Callable[..., float]


@pytest.fixture()
def collector_registry() -> CollectorRegistry:
    """Private collector so every test starts from empty series."""

    return CollectorRegistry()


@pytest.fixture()
def room_stats(collector_registry: CollectorRegistry) -> RoomStats:
    return RoomStats("n1", "SERVER", "test", collector_registry=collector_registry)


@pytest.fixture()
def sample(room_stats: RoomStats) -> SampleReader:
    """Read a sample from the facade's registry; missing series read as zero."""

    def read(name: str, **labels: str) -> float:
        value = room_stats.registry.get_sample_value(name, labels)
        return 0.0 if value is None else value

    return read


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        node_id="n1",
        node_type="SERVER",
        environment="test",
    )


@pytest.fixture()
def client(test_settings: Settings, room_stats: RoomStats) -> Iterator[TestClient]:
    """Yield a TestClient for an app bound to the per-test facade."""

    app = create_app(test_settings, room_stats=room_stats)
    with TestClient(app) as test_client:
        yield test_client
