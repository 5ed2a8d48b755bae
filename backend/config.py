import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    DATA_DIR = os.environ.get('DATA_DIR') or os.path.join(os.getcwd(), 'data')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(DATA_DIR, 'leaderboard.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Create the times table on startup if it does not exist
    AUTO_CREATE_TABLES = True
    # Levels 1..TOTAL_LEVELS each map to one room
    TOTAL_LEVELS = int(os.environ.get('TOTAL_LEVELS', '6'))
    # Anti-cheat floor (seconds); faster submissions are dropped
    MIN_VALID_TIME = float(os.environ.get('MIN_VALID_TIME', '2.0'))
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '10'))
    # Exact domain and any of its subdomains are allowed to connect
    PRODUCTION_DOMAIN = os.environ.get('PRODUCTION_DOMAIN', 'gametje.com')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    PORT = int(os.environ.get('PORT', '3333'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Optional: verbose python-socketio/engineio logs
    SOCKETIO_LOGGER = os.environ.get('SOCKETIO_LOGGER', '0') == '1'
