"""Tests for the process-wide facade and its module-level entry points."""

from __future__ import annotations

import time

import pytest
from prometheus_client import CollectorRegistry

from roomstats.monitoring import rooms


@pytest.fixture()
def uninitialised(monkeypatch) -> None:
    monkeypatch.setattr(rooms, "_room_stats", None)


@pytest.mark.usefixtures("uninitialised")
def test_calls_before_init_fail() -> None:
    with pytest.raises(RuntimeError):
        rooms.room_started()
    with pytest.raises(RuntimeError):
        rooms.get_room_stats()


@pytest.mark.usefixtures("uninitialised")
def test_second_init_fails_without_registering_again(caplog) -> None:
    collector = CollectorRegistry()
    stats = rooms.init_room_stats("n1", "SERVER", "test", collector_registry=collector)
    families_before = sorted(metric.name for metric in collector.collect())

    with pytest.raises(RuntimeError):
        rooms.init_room_stats("n1", "SERVER", "test", collector_registry=collector)
    with pytest.raises(RuntimeError):
        rooms.init_room_stats("n2", "MEDIA", "test", collector_registry=CollectorRegistry())

    assert rooms.get_room_stats() is stats
    assert sorted(metric.name for metric in collector.collect()) == families_before
    assert "already initialised" in caplog.text


@pytest.mark.usefixtures("uninitialised")
def test_module_functions_drive_the_process_facade() -> None:
    collector = CollectorRegistry()
    stats = rooms.init_room_stats("n1", "SERVER", "test", collector_registry=collector)

    rooms.room_started()
    rooms.add_participant()
    rooms.add_published_track("audio")
    rooms.add_publish_attempt("audio")
    rooms.add_publish_success("audio")
    rooms.record_track_subscribe_attempt()
    rooms.record_track_subscribe_success("audio")
    rooms.record_track_subscribe_failure(LookupError("track not found"), True)
    rooms.record_track_unsubscribed("audio")
    rooms.sub_published_track("audio")
    rooms.sub_participant()
    rooms.room_ended(time.time() - 12)

    assert stats.snapshot().as_dict() == {
        "room_current": 0,
        "participant_current": 0,
        "track_published_current": 0,
        "track_subscribed_current": 0,
        "track_publish_attempts": 1,
        "track_publish_success": 1,
        "track_subscribe_attempts": 1,
        "track_subscribe_success": 1,
        "track_subscribe_user_error": 1,
    }
    read = stats.registry.get_sample_value
    assert read("livekit_room_duration_seconds_bucket", {"le": "60.0"}) == 1
    assert read("livekit_room_duration_seconds_bucket", {"le": "10.0"}) == 0
    assert read(
        "livekit_track_subscribe_counter_total",
        {"state": "failure", "error": "track not found"},
    ) == 1
