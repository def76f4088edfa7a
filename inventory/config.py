"""
Configuration for the inventory application

Values are read from the environment after loading a `.env` file from the
project root with python-dotenv. Use the accessor functions below instead of
reading `os.environ` directly.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DATABASE = 'item_database.db'
DEFAULT_STATE_TIMEOUT_MS = 5000


def _project_root():
    return Path(__file__).resolve().parent.parent


def load_config():
    """
    Load `.env` from the project root. Safe to call more than once; variables
    already set in the environment win.
    """
    load_dotenv(_project_root() / '.env')


def get_optional(key, default=''):
    """Get an environment variable, or `default` if it is missing or blank"""
    load_config()
    value = os.getenv(key, '').strip()
    return value if value else default


def get_optional_int(key, default):
    """Get an environment variable as an int, or `default` if missing or invalid"""
    raw = get_optional(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def get_optional_bool(key, default):
    """Get an environment variable as a bool (1/true/yes/on), or `default`"""
    raw = get_optional(key).lower()
    if not raw:
        return default
    return raw in ('1', 'true', 'yes', 'on')


def database_path():
    """Path of the SQLite file backing the store"""
    return get_optional('INVENTORY_DATABASE', DEFAULT_DATABASE)


def state_timeout_millis():
    """How long an unobserved details screen keeps its live query running"""
    return get_optional_int('INVENTORY_STATE_TIMEOUT_MS', DEFAULT_STATE_TIMEOUT_MS)


def destructive_migration():
    """Whether a schema version mismatch drops and recreates the store"""
    return get_optional_bool('INVENTORY_DESTRUCTIVE_MIGRATION', True)


def secret_key():
    """Flask secret key. A random key is used when none is configured."""
    key = get_optional('INVENTORY_SECRET_KEY')
    return key.encode('utf-8') if key else os.urandom(12)


def log_level():
    return get_optional('INVENTORY_LOG_LEVEL', 'INFO').upper()
