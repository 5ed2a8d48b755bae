import threading
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class Session:
    sid: str
    current_room: Optional[int] = None


class SessionTable:
    """Per-connection session records, keyed by connection id.

    Lifecycle: `create` on connect, `set_room` only from that connection's own
    join_level events, `destroy` on disconnect.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def create(self, sid: str) -> Session:
        with self._lock:
            session = Session(sid=sid)
            self._sessions[sid] = session
            return session

    def current_room(self, sid: str) -> Optional[int]:
        with self._lock:
            session = self._sessions.get(sid)
            return session.current_room if session else None

    def set_room(self, sid: str, room: Optional[int]) -> None:
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                # join_level can race a disconnect; nothing to update
                return
            session.current_room = room

    def destroy(self, sid: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, sid: str) -> bool:
        with self._lock:
            return sid in self._sessions
