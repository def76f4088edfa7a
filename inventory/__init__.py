"""
Inventory package initialization.

This file makes the `inventory` folder a Python package. It exposes the
Flask application instance (`app`), the `init_database` function and the
shared store for use by external tools
"""

from .app import app, init_database
from .database import InventoryDatabase

__all__ = ["app", "init_database", "InventoryDatabase"]
