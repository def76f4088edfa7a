"""
Queries against the `items` table
"""

import threading

from .flow import Flow
from .items import Item


class ItemDao:
    """
    Data access for items

    Args:
        database (InventoryDatabase): Store the queries run against
    """
    TABLE = 'items'

    def __init__(self, database):
        self._database = database

    def insert(self, item):
        """
        Insert an item. An item whose id is already taken is ignored.

        Returns:
            int: Id of the new row, or -1 when the insert was ignored
        """
        if item.id:
            cursor = self._database.execute(
                'INSERT OR IGNORE INTO items (id, name, price, quantity) VALUES (?, ?, ?, ?)',
                (item.id, item.name, item.price, item.quantity), tables=(self.TABLE,))
        else:
            cursor = self._database.execute(
                'INSERT OR IGNORE INTO items (name, price, quantity) VALUES (?, ?, ?)',
                (item.name, item.price, item.quantity), tables=(self.TABLE,))
        if cursor.rowcount == 0:
            return -1
        return cursor.lastrowid

    def update(self, item):
        self._database.execute(
            'UPDATE items SET name = ?, price = ?, quantity = ? WHERE id = ?',
            (item.name, item.price, item.quantity, item.id), tables=(self.TABLE,))

    def delete(self, item):
        self._database.execute('DELETE FROM items WHERE id = ?', (item.id,), tables=(self.TABLE,))

    def find_item(self, item_id):
        """
        Read one item

        Returns:
            Item | None: The item, or None when no row has that id
        """
        rows = self._database.query('SELECT id, name, price, quantity FROM items WHERE id = ?', (item_id,))
        if not rows:
            return None
        row = rows[0]
        return Item(id=row['id'], name=row['name'], price=row['price'], quantity=row['quantity'])

    def get_item(self, item_id):
        """
        Live query for one item

        Emits the current row as soon as it is subscribed to, and again after
        every write to the table. Emits None while the row does not exist.
        Each read and its emit happen together under the subscriber's lock, so
        concurrent writers cannot deliver an older row after a newer one.

        Returns:
            Flow: Stream of `Item | None`
        """
        def on_subscribe(emit):
            lock = threading.Lock()

            def refresh():
                with lock:
                    emit(self.find_item(item_id))

            remove = self._database.invalidation_tracker.add_observer(self.TABLE, refresh)
            refresh()
            return remove
        return Flow(on_subscribe)

    def count_items(self):
        return self._database.query('SELECT COUNT(*) AS total FROM items')[0]['total']
