import os
import sys
import pytest

# Ensure the backend root (containing the `racer_relay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from racer_relay import create_app, db, socketio

ORIGIN = 'http://localhost:5173'


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = False
    TOTAL_LEVELS = 6
    MIN_VALID_TIME = 2.0
    LEADERBOARD_SIZE = 10
    PRODUCTION_DOMAIN = 'gametje.com'
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; all are disconnected at teardown."""
    clients = []

    def _connect(origin=ORIGIN):
        headers = {'Origin': origin} if origin else None
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            headers=headers,
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


def sid_of(test_client, namespace='/'):
    return socketio.server.manager.sid_from_eio_sid(test_client.eio_sid, namespace)


def events_named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]
