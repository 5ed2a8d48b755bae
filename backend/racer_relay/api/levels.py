from flask import Blueprint, current_app, jsonify

from racer_relay.services.leaderboard.store import top_times
from racer_relay.services.relay.occupancy import current_snapshot

levels = Blueprint('levels', __name__)


@levels.route('/')
def index():
    return jsonify({'message': 'Welcome to the racer relay server!'})


@levels.route('/api/rooms/counts')
def room_counts():
    return jsonify(current_snapshot())


@levels.route('/api/levels/<int:level>/leaderboard')
def leaderboard(level):
    """
    Read-only view of a level's top times, same shape as leaderboard_data_<level>.
    """
    total = int(current_app.config.get('TOTAL_LEVELS', 6))
    if not 1 <= level <= total:
        return jsonify({'error': f'Level must be between 1 and {total}'}), 404
    return jsonify(top_times(level)), 200
