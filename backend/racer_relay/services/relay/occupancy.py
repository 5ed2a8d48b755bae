from typing import Dict

from flask import current_app

from racer_relay import socketio
from .registry import RoomRegistry


def occupancy_snapshot(registry: RoomRegistry, total_levels: int) -> Dict[str, int]:
    """Per-level member counts keyed '1'..'N', plus 'total' live connections."""
    counts = {str(level): registry.size_of(level) for level in range(1, total_levels + 1)}
    counts['total'] = registry.total_connections
    return counts


def current_snapshot() -> Dict[str, int]:
    return occupancy_snapshot(
        current_app.extensions['room_registry'],
        int(current_app.config.get('TOTAL_LEVELS', 6)),
    )


def broadcast_counts() -> None:
    # Everyone gets counts, menu players included, for the level-select screen
    counts = current_snapshot()
    namespace = current_app.config.get('SOCKETIO_NAMESPACE', '/')
    socketio.emit('room_counts', counts, namespace=namespace)
    current_app.logger.debug(f"[room-counts] {counts}")
