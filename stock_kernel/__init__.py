"""
Stock Kernel

Warehouse stock ledger and document lifecycle:
- Stock on hand per (product, location, warehouse), never negative
- Receipts, deliveries, transfers and adjustments on one state machine
- Atomic completion of multi-line documents
- Sequential per-year document references
"""

__version__ = "0.1.0"
