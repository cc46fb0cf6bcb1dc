import os

DB_PATH = os.environ.get('WORKOUT_DB_PATH', 'workout_logs.db')
DATABASE_URL = os.environ.get('DATABASE_URL')

OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')

SECRET_KEY = os.environ.get('FLASK_SECRET_KEY', 'dev-secret-change-me')
PORT = int(os.environ.get('PORT', 5000))

DEBUG_WORKOUT = os.environ.get('DEBUG_WORKOUT') == '1'

DEFAULT_MINUTES = 45


def load_config(overrides=None):
    """Flask config dict built from the environment"""
    config = {
        'DB_PATH': DB_PATH,
        'DATABASE_URL': DATABASE_URL,
        'OPENAI_API_KEY': OPENAI_API_KEY,
        'OPENAI_MODEL': OPENAI_MODEL,
        'SECRET_KEY': SECRET_KEY,
        'DEBUG_WORKOUT': DEBUG_WORKOUT,
        'DEFAULT_MINUTES': DEFAULT_MINUTES,
    }
    if overrides:
        config.update(overrides)
    return config
