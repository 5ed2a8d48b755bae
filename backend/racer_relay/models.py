from racer_relay import db

PLAYER_ID_MAX = 128
PLAYER_NAME_MAX = 64
COLOR_MAX = 32


class BestTime(db.Model):
    """Best finishing time per (level, player).

    One row per pair; `time` only ever decreases. Rows are written through
    `services.leaderboard.store.submit_time`, never directly.
    """
    __tablename__ = 'times'
    __table_args__ = (
        db.UniqueConstraint('level', 'player_id', name='uq_times_level_player'),
    )
    id = db.Column(db.Integer, primary_key=True)
    level = db.Column(db.Integer, nullable=False, index=True)
    player_id = db.Column(db.String(PLAYER_ID_MAX), nullable=False)
    player_name = db.Column(db.String(PLAYER_NAME_MAX), nullable=False, default='')
    color = db.Column(db.String(COLOR_MAX), nullable=False, default='')
    time = db.Column(db.Float, nullable=False)
    achieved_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            'playerName': self.player_name,
            'time': self.time,
        }
