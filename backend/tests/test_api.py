from racer_relay import build_allowed_origins, is_origin_allowed
from racer_relay.models import BestTime
from racer_relay.services.leaderboard.store import submit_time

import pytest


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_room_counts_reflect_sockets(client, connect):
    a = connect()
    connect()
    a.emit('join_level', 6)
    res = client.get('/api/rooms/counts')
    assert res.status_code == 200
    counts = res.get_json()
    assert counts['6'] == 1
    assert counts['total'] == 2


def test_leaderboard_endpoint(client):
    submit_time(2, 'p1', 'Alice', 'red', 9.0)
    submit_time(2, 'p2', 'Bob', 'blue', 7.5)
    res = client.get('/api/levels/2/leaderboard')
    assert res.status_code == 200
    assert res.get_json() == [
        {'playerName': 'Bob', 'time': 7.5},
        {'playerName': 'Alice', 'time': 9.0},
    ]


def test_leaderboard_unknown_level(client):
    res = client.get('/api/levels/7/leaderboard')
    assert res.status_code == 404
    assert 'error' in res.get_json()


def test_cors_header_for_allowed_origin(client):
    res = client.get('/', headers={'Origin': 'http://localhost:5173'})
    assert res.headers.get('Access-Control-Allow-Origin') == 'http://localhost:5173'
    res = client.get('/', headers={'Origin': 'https://evil.example.com'})
    assert 'Access-Control-Allow-Origin' not in res.headers


@pytest.mark.parametrize('origin', [
    'https://gametje.com',
    'http://gametje.com',
    'https://www.gametje.com',
    'https://a.b-c.gametje.com',
    'http://localhost',
    'http://localhost:5173',
    'http://127.0.0.1:3000',
    'http://192.168.1.20:5173',
])
def test_allowed_origins(origin):
    assert is_origin_allowed(origin, build_allowed_origins('gametje.com'))


@pytest.mark.parametrize('origin', [
    None,
    '',
    'null',
    'https://gametje.com.evil.io',
    'https://evilgametje.com',
    'ftp://gametje.com',
    'https://localhost:5173',
    'http://10.0.0.5',
    'http://gametje.com\n',
])
def test_rejected_origins(origin):
    assert not is_origin_allowed(origin, build_allowed_origins('gametje.com'))


def test_db_reset_command(flask_app):
    submit_time(1, 'p1', 'Alice', 'red', 9.0)
    result = flask_app.test_cli_runner().invoke(args=['db-reset'])
    assert result.exit_code == 0
    assert 'reset' in result.output
    assert BestTime.query.count() == 0
