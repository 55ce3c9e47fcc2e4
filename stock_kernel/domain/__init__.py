"""
Pure domain layer.

Value objects, enumerations and DTOs with no dependency on the ORM, the
database or the wall clock (SystemClock aside).
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.document_kinds import (
    ApplyMode,
    DocumentKind,
    DocumentStatus,
    LocationRole,
    LocationType,
    MoveType,
)
from stock_kernel.domain.dtos import (
    DocumentInfo,
    DocumentResult,
    LineItem,
    MoveHistoryEntry,
    StockCheck,
    StockKey,
    StockMoveInfo,
    StockRowInfo,
)
from stock_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "ApplyMode",
    "Clock",
    "DeterministicClock",
    "DocumentInfo",
    "DocumentKind",
    "DocumentResult",
    "DocumentStatus",
    "Guard",
    "LineItem",
    "LocationRole",
    "LocationType",
    "MoveHistoryEntry",
    "MoveType",
    "StockCheck",
    "StockKey",
    "StockMoveInfo",
    "StockRowInfo",
    "SystemClock",
    "Transition",
    "Workflow",
]
