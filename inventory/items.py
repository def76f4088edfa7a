"""
Item entity and its screen representations

`Item` is the row stored in the `items` table. `ItemDetails` is the same item
as the forms see it, with every editable field held as text.
"""

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Item:
    """
    An inventory item

    Attributes:
        id (int): Store assigned id, 0 until the item has been inserted
        name (str): Name of the item
        price (float): Price of one unit
        quantity (int): Units in stock
    """
    id: int = 0
    name: str = ''
    price: float = 0.0
    quantity: int = 0

    def copy(self, **changes):
        return replace(self, **changes)

    def formatted_price(self):
        """
        Price formatted as currency

        Returns:
            str: e.g. "$1,234.50"
        """
        return format_price(self.price)

    def to_item_details(self):
        return ItemDetails(
            id=self.id,
            name=self.name,
            price=f'{self.price}',
            quantity=f'{self.quantity}',
        )


@dataclass(frozen=True)
class ItemDetails:
    """
    Item fields as entered or displayed on a screen
    """
    id: int = 0
    name: str = ''
    price: str = ''
    quantity: str = ''

    def to_item(self):
        """
        Convert back to an `Item`. Text that does not parse falls back to 0.

        Returns:
            Item: The item these details describe
        """
        return Item(
            id=self.id,
            name=self.name,
            price=_to_float_or_zero(self.price),
            quantity=_to_int_or_zero(self.quantity),
        )

    def formatted_price(self):
        return format_price(_to_float_or_zero(self.price))


@dataclass(frozen=True)
class ItemUiState:
    """
    State of the entry and edit screens

    Attributes:
        item_details (ItemDetails): Current form contents
        is_entry_valid (bool): True when every field has been filled in
    """
    item_details: ItemDetails = field(default_factory=ItemDetails)
    is_entry_valid: bool = False


def format_price(price):
    if price < 0:
        return f'-${-price:,.2f}'
    return f'${price:,.2f}'


def _to_float_or_zero(text):
    try:
        return float(text)
    except (TypeError, ValueError):
        return 0.0


def _to_int_or_zero(text):
    try:
        return int(text)
    except (TypeError, ValueError):
        return 0
