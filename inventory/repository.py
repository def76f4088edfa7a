"""
Repository the screens use to read and change items, and the container that
builds it
"""

import threading
from abc import ABC, abstractmethod

from .database import InventoryDatabase


class ItemsRepository(ABC):
    """
    Insert, update, delete and retrieve items from a data source
    """

    @abstractmethod
    def get_item_stream(self, item_id):
        """
        Live stream of the item with `item_id`

        Returns:
            Flow: Emits `Item | None` now and after every change
        """

    @abstractmethod
    def insert_item(self, item):
        """Insert an item and return its new id"""

    @abstractmethod
    def update_item(self, item):
        """Update an item"""

    @abstractmethod
    def delete_item(self, item):
        """Delete an item"""

    @abstractmethod
    def count_items(self):
        """Number of stored items"""


class OfflineItemsRepository(ItemsRepository):
    """
    Repository backed by the local store

    Args:
        item_dao (ItemDao): DAO of the shared database
    """
    def __init__(self, item_dao):
        self._item_dao = item_dao

    def get_item_stream(self, item_id):
        return self._item_dao.get_item(item_id)

    def insert_item(self, item):
        return self._item_dao.insert(item)

    def update_item(self, item):
        self._item_dao.update(item)

    def delete_item(self, item):
        self._item_dao.delete(item)

    def count_items(self):
        return self._item_dao.count_items()


class AppDataContainer:
    """
    Builds the application's dependencies on first use

    Args:
        context (str | None): Database path handed to
            `InventoryDatabase.get_database`
    """
    def __init__(self, context=None):
        self._context = context
        self._lock = threading.Lock()
        self._items_repository = None

    @property
    def items_repository(self):
        with self._lock:
            if self._items_repository is None:
                database = InventoryDatabase.get_database(self._context)
                self._items_repository = OfflineItemsRepository(database.item_dao())
            return self._items_repository
