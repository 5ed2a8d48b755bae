import math
from typing import Any, Optional

from flask import current_app, request
from flask_socketio import emit
from sqlalchemy.exc import SQLAlchemyError

from racer_relay import socketio, is_origin_allowed
from racer_relay.models import PLAYER_ID_MAX
from racer_relay.services.leaderboard.store import submit_time, top_times
from racer_relay.services.relay.occupancy import broadcast_counts
from racer_relay.services.relay.registry import RoomRegistry, room_name
from racer_relay.services.relay.sessions import SessionTable

MENU = 'menu'


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _rooms() -> RoomRegistry:
    return current_app.extensions['room_registry']


def _sessions() -> SessionTable:
    return current_app.extensions['session_table']


def _namespace() -> str:
    return current_app.config.get('SOCKETIO_NAMESPACE', '/')


def _unwrap_level(data: Any) -> Any:
    # Clients send either the bare level or {'level': ...}
    if isinstance(data, dict):
        return data.get('level')
    return data


def parse_level(value: Any) -> Optional[int]:
    """Return a level number in 1..TOTAL_LEVELS, or None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal():
            return None
        value = int(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        return None
    total = int(current_app.config.get('TOTAL_LEVELS', 6))
    if 1 <= value <= total:
        return value
    return None


def _emit_to_peers(room: int, event: str, payload: Any, sid: str) -> None:
    namespace = _namespace()
    for peer in _rooms().peers(sid, room):
        socketio.emit(event, payload, to=peer, namespace=namespace)


def handle_connect(auth=None):
    origin = request.headers.get('Origin')
    if not is_origin_allowed(origin, current_app.config['ALLOWED_ORIGINS']):
        current_app.logger.warning(f"[origin-blocked] origin={origin}")
        return False
    sid = _get_sid()
    _sessions().create(sid)
    _rooms().connect(sid)
    current_app.logger.info(f"[connect] sid={sid} origin={origin}")
    broadcast_counts()


def handle_disconnect(reason=None):
    sid = _get_sid()
    # Registry removal first so counts below already exclude this sid
    left_room = _rooms().disconnect(sid)
    session = _sessions().destroy(sid)
    if session is None:
        return
    room = session.current_room if session.current_room is not None else left_room
    current_app.logger.info(f"[disconnect] sid={sid} room={room_name(room) if room is not None else None}")
    if room is not None:
        _emit_to_peers(room, 'phantom_leave', {'id': sid}, sid)
    broadcast_counts()


def handle_join_level(data):
    sid = _get_sid()
    raw = _unwrap_level(data)
    if raw == MENU:
        target = MENU
    else:
        target = parse_level(raw)
        if target is None:
            current_app.logger.warning(f"[join-invalid] sid={sid} level={raw!r}")
            return

    previous = _sessions().current_room(sid)
    if previous is not None:
        _rooms().leave(sid, previous)
        _emit_to_peers(previous, 'phantom_leave', {'id': sid}, sid)
        current_app.logger.info(f"[leave] sid={sid} room={room_name(previous)}")

    if target == MENU:
        _sessions().set_room(sid, None)
        broadcast_counts()
        return

    _sessions().set_room(sid, target)
    if not _rooms().join(sid, target):
        # Disconnect already ran for this sid
        return
    current_app.logger.info(f"[join] sid={sid} room={room_name(target)}")
    broadcast_counts()


def handle_player_update(data):
    sid = _get_sid()
    room = _sessions().current_room(sid)
    if room is None:
        return
    if not isinstance(data, dict):
        current_app.logger.debug(f"[update-invalid] sid={sid}")
        return
    payload = dict(data)
    payload['id'] = sid
    _emit_to_peers(room, 'phantom_update', payload, sid)


def handle_request_leaderboard(data):
    sid = _get_sid()
    level = parse_level(_unwrap_level(data))
    if level is None:
        current_app.logger.warning(f"[leaderboard-invalid] sid={sid} data={data!r}")
        return
    try:
        top = top_times(level)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[store-error] op=query level={level} error={exc}")
        return
    emit(f'leaderboard_data_{level}', top)


def handle_submit_time(data):
    sid = _get_sid()
    if not isinstance(data, dict):
        current_app.logger.warning(f"[submit-invalid] sid={sid} data={data!r}")
        return
    level = parse_level(data.get('level'))
    player_id = data.get('playerId')
    time_sec = data.get('time')
    if (
        level is None
        or not isinstance(player_id, str)
        or not player_id.strip()
        or len(player_id) > PLAYER_ID_MAX
        or isinstance(time_sec, bool)
        or not isinstance(time_sec, (int, float))
        or not math.isfinite(time_sec)
    ):
        current_app.logger.warning(f"[submit-invalid] sid={sid} data={data!r}")
        return

    try:
        accepted = submit_time(
            level,
            player_id,
            str(data.get('name') or ''),
            str(data.get('color') or ''),
            time_sec,
        )
        if not accepted:
            return
        top = top_times(level)
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[store-error] op=submit level={level} player={player_id} error={exc}")
        return

    # The leaderboard is global UI, so every connection gets the update
    socketio.emit(f'leaderboard_data_{level}', top, namespace=_namespace())


def handle_socket_error(exc):
    event = getattr(request, 'event', None) or {}
    current_app.logger.error(
        f"[socket-error] sid={getattr(request, 'sid', None)} event={event.get('message')}",
        exc_info=exc,
    )


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register Socket.IO event handlers on the relay namespace."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('join_level', handle_join_level, namespace=namespace)
    socketio.on_event('player_update', handle_player_update, namespace=namespace)
    socketio.on_event('request_leaderboard', handle_request_leaderboard, namespace=namespace)
    socketio.on_event('submit_time', handle_submit_time, namespace=namespace)
    socketio.on_error_default(handle_socket_error)
