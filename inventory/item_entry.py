"""
State holder for the add item screen
"""

from .flow import MutableStateFlow
from .items import ItemUiState
from .view_model import ViewModel


def validate_input(item_details):
    """
    Check the form describes a storable item

    Args:
        item_details (ItemDetails): Form contents

    Returns:
        bool: True when name, price and quantity are all non-blank and
            neither the price nor the quantity is negative
    """
    if not (item_details.name.strip() and item_details.price.strip() and item_details.quantity.strip()):
        return False
    item = item_details.to_item()
    return item.price >= 0 and item.quantity >= 0


class ItemEntryViewModel(ViewModel):
    """
    Validates and inserts items in the `ItemsRepository`
    """
    def __init__(self, items_repository, scope=None):
        super().__init__(scope)
        self._items_repository = items_repository
        self.item_ui_state = MutableStateFlow(ItemUiState())

    def update_ui_state(self, item_details):
        self.item_ui_state.value = ItemUiState(item_details=item_details,
                                               is_entry_valid=validate_input(item_details))

    def save_item(self):
        """
        Insert the item on the form if it is valid

        Returns:
            int | None: Id of the new item, None when the form is invalid
        """
        item_details = self.item_ui_state.value.item_details
        if not validate_input(item_details):
            return None
        return self._items_repository.insert_item(item_details.to_item())
