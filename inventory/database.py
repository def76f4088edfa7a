"""
SQLite store holding the inventory

`InventoryDatabase.get_database` hands out one shared handle per process. The
handle owns a single `sqlite3` connection, the item DAO, and the invalidation
tracker that tells live queries when a table they read from has changed.
"""

import logging
import os
import sqlite3
import threading

from . import config
from .exceptions import SchemaMismatchError
from .item_dao import ItemDao

logger = logging.getLogger(__name__)

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'inventory_schema.sql')


class InvalidationTracker:
    """
    Keeps the callbacks interested in each table and calls them after writes
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._observers = {}

    def add_observer(self, table, callback):
        """
        Register `callback` to run after every committed write to `table`

        Returns:
            callable: Removes the observer again
        """
        with self._lock:
            self._observers.setdefault(table, []).append(callback)

        def remove():
            with self._lock:
                observers = self._observers.get(table, [])
                if callback in observers:
                    observers.remove(callback)
        return remove

    def observer_count(self, table):
        with self._lock:
            return len(self._observers.get(table, []))

    def notify(self, *tables):
        for table in tables:
            with self._lock:
                observers = list(self._observers.get(table, []))
            for callback in observers:
                callback()


class InventoryDatabase:
    """
    Handle to the on-device store

    Attributes:
        path (str): SQLite file, or ':memory:'
        invalidation_tracker (InvalidationTracker): Write notifications
    """
    VERSION = 1

    # Set only after the handle is fully built, so readers outside the lock
    # never see a half constructed instance.
    _instance = None
    _lock = threading.Lock()

    def __init__(self, path, destructive_migration=True):
        self.path = path
        self.invalidation_tracker = InvalidationTracker()
        self._connection_lock = threading.RLock()
        self._connection = sqlite3.connect(path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        try:
            self._open(destructive_migration)
        except (sqlite3.Error, SchemaMismatchError):
            self._connection.close()
            raise
        self._item_dao = ItemDao(self)

    @classmethod
    def get_database(cls, context=None):
        """
        Get the process wide store, opening it on first use

        Args:
            context (str | None): Database path used when the store is first
                opened. The configured path is used when None. Ignored once
                the store exists.

        Returns:
            InventoryDatabase: The same instance for every caller
        """
        instance = cls._instance
        if instance is not None:
            return instance
        with cls._lock:
            if cls._instance is None:
                path = context if context is not None else config.database_path()
                cls._instance = cls(path, destructive_migration=config.destructive_migration())
                logger.info('Opened inventory database at %s', path)
            return cls._instance

    @classmethod
    def destroy_instance(cls):
        """Close the shared store and forget it"""
        with cls._lock:
            instance = cls._instance
            cls._instance = None
        if instance is not None:
            instance.close()

    def item_dao(self):
        return self._item_dao

    def _open(self, destructive_migration):
        version = self._connection.execute('PRAGMA user_version').fetchone()[0]
        tables = self._user_tables()
        if version == self.VERSION:
            return
        if version == 0 and not tables:
            self._create_schema()
            logger.info('Created inventory schema version %s', self.VERSION)
            return
        if not destructive_migration:
            raise SchemaMismatchError(version, self.VERSION)

        logger.warning('Schema version %s does not match %s, dropping tables %s',
                       version, self.VERSION, ', '.join(tables))
        for table in tables:
            self._connection.execute(f'DROP TABLE IF EXISTS "{table}"')
        self._connection.commit()
        self._create_schema()

    def _create_schema(self):
        with open(SCHEMA_FILE) as f:
            self._connection.executescript(f.read())
        self._connection.execute(f'PRAGMA user_version = {int(self.VERSION)}')
        self._connection.commit()

    def _user_tables(self):
        rows = self._connection.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'").fetchall()
        return [row['name'] for row in rows]

    def query(self, sql, params=()):
        """
        Run a read query

        Returns:
            list[sqlite3.Row]: All result rows
        """
        with self._connection_lock:
            return self._connection.execute(sql, params).fetchall()

    def execute(self, sql, params=(), tables=()):
        """
        Run a write in its own transaction, then notify observers of `tables`
        when any row changed

        Returns:
            sqlite3.Cursor: Cursor of the write, for `lastrowid` and `rowcount`
        """
        with self._connection_lock:
            with self._connection:
                cursor = self._connection.execute(sql, params)
        if cursor.rowcount > 0:
            self.invalidation_tracker.notify(*tables)
        return cursor

    def close(self):
        with self._connection_lock:
            self._connection.close()
