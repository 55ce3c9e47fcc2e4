"""Services for the stock kernel (write side)."""

from stock_kernel.services.document_engine import DocumentEngine
from stock_kernel.services.product_service import (
    ProductInfo,
    ProductRemoval,
    ProductService,
    RemovalOutcome,
)
from stock_kernel.services.reference_service import ReferenceService, format_reference
from stock_kernel.services.sequence_service import SequenceService
from stock_kernel.services.stock_ledger_service import StockLedgerService

__all__ = [
    "DocumentEngine",
    "ProductInfo",
    "ProductRemoval",
    "ProductService",
    "ReferenceService",
    "RemovalOutcome",
    "SequenceService",
    "StockLedgerService",
    "format_reference",
]
