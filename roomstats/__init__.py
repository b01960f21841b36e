"""Room and track telemetry for a real-time media node."""

from roomstats.monitoring.rooms import RoomStats, get_room_stats, init_room_stats

__all__ = ["RoomStats", "get_room_stats", "init_room_stats"]
