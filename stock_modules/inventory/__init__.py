"""Inventory Module: stock levels, move history and product removal."""

from stock_modules.inventory.service import InventoryService

__all__ = ["InventoryService"]
