import sqlite3
import threading
import unittest

from inventory.database import InventoryDatabase
from inventory.exceptions import MissingArgumentError
from inventory.item_details import ItemDetailsDestination, ItemDetailsUiState, ItemDetailsViewModel
from inventory.items import Item, ItemDetails
from inventory.repository import ItemsRepository, OfflineItemsRepository
from inventory.view_model import SavedStateHandle, ViewModelScope
from fakes import ManualScope


class FailingRepository(ItemsRepository):
    """Repository whose writes always fail"""
    def __init__(self, delegate):
        self._delegate = delegate

    def get_item_stream(self, item_id):
        return self._delegate.get_item_stream(item_id)

    def insert_item(self, item):
        raise sqlite3.OperationalError('database is locked')

    def update_item(self, item):
        raise sqlite3.OperationalError('database is locked')

    def delete_item(self, item):
        raise sqlite3.OperationalError('database is locked')

    def count_items(self):
        return self._delegate.count_items()


def saved_state(item_id):
    return SavedStateHandle({ItemDetailsDestination.ITEM_ID_ARG: item_id})


class ItemDetailsTestCase(unittest.TestCase):
    def setUp(self):
        self.database = InventoryDatabase(':memory:')
        self.dao = self.database.item_dao()
        self.repository = OfflineItemsRepository(self.dao)
        self.scope = ManualScope()

    def tearDown(self):
        self.scope.cancel()
        self.database.close()

    def view_model(self, item_id):
        return ItemDetailsViewModel(saved_state(item_id), self.repository, scope=self.scope,
                                    stop_timeout_millis=5000)

    def stored_item(self, item_id):
        return self.dao.find_item(item_id)


class TestItemDetailsState(ItemDetailsTestCase):
    def test_missing_item_id_fails_fast(self):
        with self.assertRaises(MissingArgumentError):
            ItemDetailsViewModel(SavedStateHandle(), self.repository, scope=self.scope)

    def test_starts_with_default_state(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        self.assertEqual(view_model.ui_state.value, ItemDetailsUiState())
        self.assertTrue(view_model.ui_state.value.out_of_stock)

    def test_collecting_binds_the_item(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)
        self.assertEqual(view_model.ui_state.value, ItemDetailsUiState(
            out_of_stock=False,
            item_details=ItemDetails(id=1, name='Pear', price='0.99', quantity='3'),
        ))

    def test_missing_row_emits_nothing(self):
        view_model = self.view_model(42)
        received = []
        view_model.ui_state.subscribe(received.append)
        self.assertEqual(received, [ItemDetailsUiState()])

    def test_state_follows_outside_updates(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=1))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)
        self.dao.update(Item(id=1, name='Pear', price=0.99, quantity=0))
        self.assertTrue(view_model.ui_state.value.out_of_stock)
        self.dao.update(Item(id=1, name='Pear', price=0.99, quantity=8))
        self.assertFalse(view_model.ui_state.value.out_of_stock)


class TestItemDetailsCommands(ItemDetailsTestCase):
    def test_reduce_quantity_from_three(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)

        view_model.reduce_quantity_by_one().result()

        self.assertEqual(self.stored_item(1).quantity, 2)
        self.assertFalse(view_model.ui_state.value.out_of_stock)
        self.assertEqual(view_model.ui_state.value.item_details.quantity, '2')

    def test_reduce_quantity_at_zero_is_a_no_op(self):
        self.dao.insert(Item(id=2, name='Plum', price=2.0, quantity=0))
        view_model = self.view_model(2)
        view_model.ui_state.subscribe(lambda state: None)

        view_model.reduce_quantity_by_one().result()

        self.assertEqual(self.stored_item(2).quantity, 0)
        self.assertTrue(view_model.ui_state.value.out_of_stock)

    def test_selling_last_unit_marks_out_of_stock(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=1))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)

        view_model.reduce_quantity_by_one().result()
        view_model.reduce_quantity_by_one().result()

        self.assertEqual(self.stored_item(1).quantity, 0)
        self.assertTrue(view_model.ui_state.value.out_of_stock)

    def test_reduce_keeps_other_fields(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.1, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)
        view_model.reduce_quantity_by_one().result()
        self.assertEqual(self.stored_item(1), Item(id=1, name='Pear', price=0.1, quantity=2))

    def test_delete_leaves_last_state(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        received = []
        view_model.ui_state.subscribe(received.append)
        before = list(received)

        view_model.delete_item().result()

        self.assertIsNone(self.stored_item(1))
        self.assertIsNone(self.repository.get_item_stream(1).first())
        self.assertEqual(received, before)
        self.assertEqual(view_model.ui_state.value.item_details.id, 1)

    def test_commands_after_clear_are_cancelled(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None)
        view_model.clear()

        self.assertTrue(view_model.reduce_quantity_by_one().cancelled())
        self.assertTrue(view_model.delete_item().cancelled())
        self.assertEqual(self.stored_item(1).quantity, 3)
        self.assertEqual(self.database.invalidation_tracker.observer_count('items'), 0)


class TestItemDetailsSubscription(ItemDetailsTestCase):
    def observers(self):
        return self.database.invalidation_tracker.observer_count('items')

    def test_live_query_runs_only_while_collected(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        self.assertEqual(self.observers(), 0)
        subscription = view_model.ui_state.subscribe(lambda state: None)
        self.assertEqual(self.observers(), 1)
        subscription.cancel()
        self.assertEqual(self.observers(), 1)
        self.scope.advance(5)
        self.assertEqual(self.observers(), 0)

    def test_quick_reattach_keeps_live_query(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None).cancel()
        self.scope.advance(4)
        subscription = view_model.ui_state.subscribe(lambda state: None)
        self.scope.advance(10)
        self.assertEqual(self.observers(), 1)
        subscription.cancel()
        self.scope.advance(5)
        self.assertEqual(self.observers(), 0)

    def test_reattach_after_timeout_rebinds_current_row(self):
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))
        view_model = self.view_model(1)
        view_model.ui_state.subscribe(lambda state: None).cancel()
        self.scope.advance(5)
        self.dao.update(Item(id=1, name='Pear', price=0.99, quantity=7))
        self.assertEqual(view_model.ui_state.value.item_details.quantity, '3')

        view_model.ui_state.subscribe(lambda state: None)
        self.assertEqual(view_model.ui_state.value.item_details.quantity, '7')


class TestItemDetailsWithWorkerScope(unittest.TestCase):
    def setUp(self):
        self.database = InventoryDatabase(':memory:')
        self.dao = self.database.item_dao()
        self.dao.insert(Item(id=1, name='Pear', price=0.99, quantity=3))

    def tearDown(self):
        self.database.close()

    def test_commands_run_in_background(self):
        with ItemDetailsViewModel(saved_state(1), OfflineItemsRepository(self.dao),
                                  scope=ViewModelScope('details'), stop_timeout_millis=5000) as view_model:
            subscription = view_model.ui_state.subscribe(lambda state: None)
            view_model.reduce_quantity_by_one().result(timeout=5)
            self.assertEqual(view_model.ui_state.value.item_details.quantity, '2')
            subscription.cancel()
        self.assertEqual(self.dao.find_item(1).quantity, 2)

    def test_failed_command_is_logged_and_kept_on_future(self):
        repository = FailingRepository(OfflineItemsRepository(self.dao))
        finished = threading.Event()
        with ItemDetailsViewModel(saved_state(1), repository, scope=ViewModelScope('details'),
                                  stop_timeout_millis=5000) as view_model:
            view_model.ui_state.subscribe(lambda state: None)
            with self.assertLogs('inventory.view_model', 'ERROR'):
                future = view_model.delete_item()
                future.add_done_callback(lambda done: finished.set())
                self.assertTrue(finished.wait(5))
            self.assertIsInstance(future.exception(), sqlite3.OperationalError)
        self.assertIsNotNone(self.dao.find_item(1))


if __name__ == "__main__":
    unittest.main()
