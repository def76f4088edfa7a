"""
State holder for the item details screen

The screen shows one item, lets the user sell a unit of it and delete it.
"""

from dataclasses import dataclass, field

from . import config
from .flow import WhileSubscribed
from .items import ItemDetails
from .view_model import ViewModel


class ItemDetailsDestination:
    route = 'item_details'
    ITEM_ID_ARG = 'itemId'
    route_with_args = f'{route}/{{{ITEM_ID_ARG}}}'


@dataclass(frozen=True)
class ItemDetailsUiState:
    """
    UI state of the item details screen

    Attributes:
        out_of_stock (bool): True when the item's quantity is 0 or less
        item_details (ItemDetails): The item as displayed
    """
    out_of_stock: bool = True
    item_details: ItemDetails = field(default_factory=ItemDetails)


def to_item_details_ui_state(item):
    return ItemDetailsUiState(out_of_stock=item.quantity <= 0, item_details=item.to_item_details())


class ItemDetailsViewModel(ViewModel):
    """
    Retrieves, updates and deletes one item through the `ItemsRepository`

    Args:
        saved_state_handle (SavedStateHandle): Must hold the item id under
            `ItemDetailsDestination.ITEM_ID_ARG`
        items_repository (ItemsRepository): Where the item lives
        scope (ViewModelScope | None): Scope for commands and timers
        stop_timeout_millis (int | None): How long the live query outlives its
            last collector. Configured value when None.

    Raises:
        MissingArgumentError: The item id is not in the saved state
    """
    def __init__(self, saved_state_handle, items_repository, scope=None, stop_timeout_millis=None):
        self.item_id = int(saved_state_handle.require(ItemDetailsDestination.ITEM_ID_ARG))
        super().__init__(scope)
        self._items_repository = items_repository
        if stop_timeout_millis is None:
            stop_timeout_millis = config.state_timeout_millis()

        self.ui_state = (
            items_repository.get_item_stream(self.item_id)
            .filter_not_null()
            .map(to_item_details_ui_state)
            .state_in(
                scope=self.view_model_scope,
                started=WhileSubscribed(stop_timeout_millis=stop_timeout_millis),
                initial_value=ItemDetailsUiState(),
            )
        )

    def reduce_quantity_by_one(self):
        """
        Sell one unit. Does nothing when the item is out of stock.

        Returns:
            Future: Completes once the update has been written
        """
        return self.view_model_scope.launch(self._reduce_quantity_by_one)

    def _reduce_quantity_by_one(self):
        current_item = self.ui_state.value.item_details.to_item()
        if current_item.quantity > 0:
            self._items_repository.update_item(current_item.copy(quantity=current_item.quantity - 1))

    def delete_item(self):
        """
        Delete the item

        Returns:
            Future: Completes once the delete has been written
        """
        return self.view_model_scope.launch(self._delete_item)

    def _delete_item(self):
        self._items_repository.delete_item(self.ui_state.value.item_details.to_item())
