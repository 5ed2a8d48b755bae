import threading
from collections import defaultdict
from typing import Dict, Optional, Set


def room_name(level: int) -> str:
    return f"level_{level}"


class RoomRegistry:
    """Index of live connections and the level room each one sits in.

    Keeps a forward map (room -> members) and a reverse map (sid -> room) so
    a connection can never be counted in two rooms. Empty rooms are dropped.
    All methods take the same lock; callers on different worker threads may
    use one registry safely.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._members: Dict[int, Set[str]] = defaultdict(set)
        self._room_of: Dict[str, int] = {}
        self._connections: Set[str] = set()

    def connect(self, sid: str) -> None:
        with self._lock:
            self._connections.add(sid)

    def disconnect(self, sid: str) -> Optional[int]:
        """Forget a connection entirely; returns the room it was in, if any."""
        with self._lock:
            self._connections.discard(sid)
            room = self._room_of.pop(sid, None)
            if room is not None:
                self._discard(sid, room)
            return room

    def join(self, sid: str, room: int) -> bool:
        """Place a live connection in `room`; False if the sid already disconnected."""
        with self._lock:
            if sid not in self._connections:
                return False
            current = self._room_of.get(sid)
            if current == room:
                return True
            if current is not None:
                self._discard(sid, current)
            self._members[room].add(sid)
            self._room_of[sid] = room
            return True

    def leave(self, sid: str, room: int) -> None:
        with self._lock:
            if self._room_of.get(sid) != room:
                return
            del self._room_of[sid]
            self._discard(sid, room)

    def size_of(self, room: int) -> int:
        with self._lock:
            members = self._members.get(room)
            return len(members) if members else 0

    def peers(self, sid: str, room: int) -> Set[str]:
        """Members of `room` other than `sid`."""
        with self._lock:
            return {m for m in self._members.get(room, ()) if m != sid}

    @property
    def total_connections(self) -> int:
        with self._lock:
            return len(self._connections)

    def _discard(self, sid: str, room: int) -> None:
        members = self._members.get(room)
        if not members:
            return
        members.discard(sid)
        if not members:
            del self._members[room]
