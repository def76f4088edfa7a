"""
Exceptions raised by the inventory package
"""


class InventoryError(Exception):
    """Base class for inventory errors"""


class MissingArgumentError(InventoryError, KeyError):
    """
    Raised when a screen is opened without a required navigation argument

    Attributes:
        key (str): The saved state key that was missing
    """
    def __init__(self, key):
        super().__init__(key)
        self.key = key

    def __str__(self):
        return f'Required argument "{self.key}" is missing from the saved state'


class SchemaMismatchError(InventoryError):
    """
    Raised when the stored schema version differs from the expected one and
    destructive migration is turned off
    """
    def __init__(self, found, expected):
        super().__init__(f'Database schema version {found} does not match expected version {expected}')
        self.found = found
        self.expected = expected
