"""
Documents Module (``stock_modules.documents``).

Thin glue over the kernel document engine: per-kind workflows and a
service that owns the transaction boundary of every lifecycle operation.
Imports from ``stock_kernel`` but never the reverse.
"""

from stock_modules.documents.service import DocumentService
from stock_modules.documents.workflows import build_workflow, build_workflows

__all__ = [
    "DocumentService",
    "build_workflow",
    "build_workflows",
]
