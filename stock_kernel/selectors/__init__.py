"""Selectors for the stock kernel (read side)."""

from stock_kernel.selectors.base import BaseSelector
from stock_kernel.selectors.document_selector import DocumentSelector
from stock_kernel.selectors.stock_selector import StockSelector

__all__ = [
    "BaseSelector",
    "DocumentSelector",
    "StockSelector",
]
