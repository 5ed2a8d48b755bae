import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from racer_relay import db
from racer_relay.models import BestTime, COLOR_MAX, PLAYER_NAME_MAX

# Dialects with INSERT ... ON CONFLICT DO UPDATE ... WHERE
_NATIVE_INSERT = {
    'sqlite': sqlite.insert,
    'postgresql': postgresql.insert,
}


def is_valid_time(value: Any, min_valid_time: float) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value):
        return False
    return value >= min_valid_time


def top_times(level: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Leaderboard view: fastest first, earlier achievers first on ties."""
    if limit is None:
        limit = int(current_app.config.get('LEADERBOARD_SIZE', 10))
    rows = (
        BestTime.query.filter_by(level=level)
        .order_by(BestTime.time.asc(), BestTime.achieved_at.asc(), BestTime.id.asc())
        .limit(limit)
        .all()
    )
    return [row.to_dict() for row in rows]


def submit_time(level: int, player_id: str, name: str, color: str, time_sec: float) -> bool:
    """Record a finishing time if it beats the player's stored best.

    Returns True when a row was inserted or improved. Times under
    MIN_VALID_TIME never reach the database. The write is one conditional
    statement, so concurrent submissions for the same player cannot
    interleave a partial update; losing that race just returns False.
    """
    floor = float(current_app.config.get('MIN_VALID_TIME', 2.0))
    if not is_valid_time(time_sec, floor):
        current_app.logger.info(
            f"[submit-rejected] level={level} player={player_id} time={time_sec} reason=below_floor"
        )
        return False

    values = {
        'level': level,
        'player_id': player_id,
        'player_name': (name or '')[:PLAYER_NAME_MAX],
        'color': (color or '')[:COLOR_MAX],
        'time': float(time_sec),
        'achieved_at': datetime.now(timezone.utc).replace(tzinfo=None),
    }
    dialect = db.engine.dialect.name
    try:
        if dialect in _NATIVE_INSERT:
            accepted = native_upsert(dialect, values)
        else:
            accepted = locked_upsert(values)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"[submit] level={level} player={player_id} time={values['time']} accepted={accepted}"
    )
    return accepted


def native_upsert(dialect: str, values: Dict[str, Any]) -> bool:
    table = BestTime.__table__
    stmt = _NATIVE_INSERT[dialect](table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.level, table.c.player_id],
        set_={
            'player_name': stmt.excluded.player_name,
            'color': stmt.excluded.color,
            'time': stmt.excluded.time,
            'achieved_at': stmt.excluded.achieved_at,
        },
        where=stmt.excluded.time < table.c.time,
    )
    result = db.session.execute(stmt)
    return result.rowcount > 0


def locked_upsert(values: Dict[str, Any], retry: bool = True) -> bool:
    """Row-locked compare-and-update for dialects without conditional upserts."""
    row = (
        BestTime.query.filter_by(level=values['level'], player_id=values['player_id'])
        .with_for_update()
        .first()
    )
    if row is None:
        db.session.add(BestTime(**values))
        try:
            db.session.flush()
        except IntegrityError:
            # Another submission inserted the pair first; compare against it
            db.session.rollback()
            if not retry:
                raise
            return locked_upsert(values, retry=False)
        return True

    if values['time'] >= row.time:
        return False
    row.player_name = values['player_name']
    row.color = values['color']
    row.time = values['time']
    row.achieved_at = values['achieved_at']
    db.session.add(row)
    db.session.flush()
    return True
