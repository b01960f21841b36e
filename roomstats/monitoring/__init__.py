"""Monitoring helpers and metric registry for the media node."""

from . import atomic, registry, rooms
from .rooms import RoomStats, RoomStatsSnapshot, get_room_stats, init_room_stats

__all__ = [
    "atomic",
    "registry",
    "rooms",
    "RoomStats",
    "RoomStatsSnapshot",
    "get_room_stats",
    "init_room_stats",
]
