"""ORM models for the stock kernel."""

from stock_kernel.models.document import (
    DOCUMENT_MODELS,
    Adjustment,
    Delivery,
    Receipt,
    Transfer,
    document_model_for,
)
from stock_kernel.models.master import Category, Location, Product, Warehouse
from stock_kernel.models.stock import Stock
from stock_kernel.models.stock_move import StockMove
from stock_kernel.models.sequence import SequenceCounter

__all__ = [
    "Adjustment",
    "Category",
    "DOCUMENT_MODELS",
    "Delivery",
    "Location",
    "Product",
    "Receipt",
    "SequenceCounter",
    "Stock",
    "StockMove",
    "Transfer",
    "Warehouse",
    "document_model_for",
]
