"""
State holder for the edit item screen
"""

from .flow import MutableStateFlow
from .item_details import ItemDetailsDestination
from .item_entry import validate_input
from .items import ItemUiState
from .view_model import ViewModel

LOAD_TIMEOUT_SECONDS = 5


class ItemEditViewModel(ViewModel):
    """
    Loads an item into the edit form and writes changes back

    `loading` is the future of the initial load. The form holds the default
    empty state until it completes.
    """
    def __init__(self, saved_state_handle, items_repository, scope=None):
        self.item_id = int(saved_state_handle.require(ItemDetailsDestination.ITEM_ID_ARG))
        super().__init__(scope)
        self._items_repository = items_repository
        self.item_ui_state = MutableStateFlow(ItemUiState())
        self.loading = self.view_model_scope.launch(self._load_item)

    def _load_item(self):
        item = self._items_repository.get_item_stream(self.item_id).filter_not_null().first(LOAD_TIMEOUT_SECONDS)
        self.item_ui_state.value = ItemUiState(item_details=item.to_item_details(), is_entry_valid=True)

    def update_ui_state(self, item_details):
        self.item_ui_state.value = ItemUiState(item_details=item_details,
                                               is_entry_valid=validate_input(item_details))

    def update_item(self):
        """
        Write the form back to the store if it is valid

        Returns:
            bool: True when the item was updated
        """
        item_details = self.item_ui_state.value.item_details
        if not validate_input(item_details):
            return False
        self._items_repository.update_item(item_details.to_item())
        return True
