import os
import re

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.engine import make_url

from config import Config

db = SQLAlchemy()
# Events from one connection run in arrival order on its reader thread
socketio = SocketIO(async_mode=None, async_handlers=False)


def build_allowed_origins(production_domain):
    """Origin patterns accepted at the Socket.IO handshake and by CORS."""
    return [
        # Production: the domain itself and any subdomain, http or https
        re.compile(r'^https?://(?:[a-zA-Z0-9-]+\.)*' + re.escape(production_domain) + r'$'),
        # Local dev on any port
        re.compile(r'^http://localhost(:\d+)?$'),
        re.compile(r'^http://127\.0\.0\.1(:\d+)?$'),
        # Phones on the local network
        re.compile(r'^http://192\.168\.\d{1,3}\.\d{1,3}(:\d+)?$'),
    ]


def is_origin_allowed(origin, patterns) -> bool:
    if not origin:
        return False
    return any(p.fullmatch(origin) for p in patterns)


def origin_checker(patterns):
    # engineio calls this with (origin, environ)
    def _check(origin, environ=None):
        return is_origin_allowed(origin, patterns)
    return _check


def _ensure_sqlite_dir(uri: str) -> None:
    url = make_url(uri)
    if url.get_backend_name() != 'sqlite' or not url.database or url.database == ':memory:':
        return
    directory = os.path.dirname(os.path.abspath(url.database))
    os.makedirs(directory, exist_ok=True)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = build_allowed_origins(flask_app.config.get('PRODUCTION_DOMAIN', 'gametje.com'))
    flask_app.config['ALLOWED_ORIGINS'] = allowed_origins

    _ensure_sqlite_dir(flask_app.config['SQLALCHEMY_DATABASE_URI'])
    db.init_app(flask_app)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    verbose = bool(flask_app.config.get('SOCKETIO_LOGGER'))
    socketio.init_app(
        flask_app,
        cors_allowed_origins=origin_checker(allowed_origins),
        logger=verbose,
        engineio_logger=verbose,
    )

    # Process-local relay state: one registry and one session table per app
    from racer_relay.services.relay.registry import RoomRegistry
    from racer_relay.services.relay.sessions import SessionTable
    flask_app.extensions['room_registry'] = RoomRegistry()
    flask_app.extensions['session_table'] = SessionTable()

    from racer_relay.api.levels import levels
    flask_app.register_blueprint(levels)

    from racer_relay.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/'))

    # Ensure models are imported so create_all sees the times table
    from racer_relay import models  # noqa: F401

    if flask_app.config.get('AUTO_CREATE_TABLES'):
        with flask_app.app_context():
            db.create_all()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the leaderboard table."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            click.echo('Leaderboard has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
