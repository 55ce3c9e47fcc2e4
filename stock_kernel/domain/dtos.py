"""
DTOs -- immutable data passed across the service boundary.

Responsibility:
    Inputs to the document engine (LineItem), its availability report
    (StockCheck), and the read models returned by services and selectors
    (StockMoveInfo, DocumentInfo, DocumentResult, StockRowInfo,
    MoveHistoryEntry).

Architecture position:
    Kernel > Domain -- zero I/O.  ``from_model()`` class methods are
    boundary converters invoked only from services and selectors.

Failure modes:
    - ValueError on LineItem with a negative quantity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from stock_kernel.domain.document_kinds import DocumentKind


def enum_value(value: Any) -> Any:
    """Plain value of a status/type column, whether loaded or freshly set."""
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class LineItem:
    """One requested document line.

    ``location_id`` is the line's stock location: the destination for
    receipts and adjustments, the source for deliveries.  Transfers take
    both ends from the header and ignore it.
    """

    product_id: UUID
    quantity: int
    location_id: UUID | None = None

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValueError(f"Line quantity cannot be negative: {self.quantity}")


@dataclass(frozen=True)
class StockKey:
    """Identity of a stock ledger row."""

    product_id: UUID
    location_id: UUID
    warehouse_id: UUID


@dataclass(frozen=True)
class StockCheck:
    """Availability of one line at its source location."""

    line_no: int
    product_id: UUID
    location_id: UUID | None
    requested: int
    available: int

    @property
    def is_short(self) -> bool:
        return self.available < self.requested

    @property
    def shortfall(self) -> int:
        return max(self.requested - self.available, 0)


@dataclass(frozen=True)
class StockMoveInfo:
    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    move_type: str
    status: str
    source_location_id: UUID | None
    destination_location_id: UUID | None
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, move: Any) -> StockMoveInfo:
        return cls(
            id=move.id,
            line_no=move.line_no,
            product_id=move.product_id,
            quantity=move.quantity,
            move_type=enum_value(move.move_type),
            status=enum_value(move.status),
            source_location_id=move.source_location_id,
            destination_location_id=move.destination_location_id,
            created_at=move.created_at,
        )


@dataclass(frozen=True)
class DocumentInfo:
    """Snapshot of a document and its moves in line order.

    ``attributes`` holds the kind-specific header fields (supplier,
    customer, source_doc, delivery_address, reason, ...).
    """

    id: UUID
    kind: str
    reference: str
    status: str
    warehouse_id: UUID | None
    scheduled_date: date | None
    completed_at: datetime | None
    version: int
    moves: tuple[StockMoveInfo, ...]
    attributes: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    @property
    def is_done(self) -> bool:
        return self.status == "DONE"

    @classmethod
    def from_model(cls, doc: Any, kind: DocumentKind) -> DocumentInfo:
        attributes = {
            name: getattr(doc, name)
            for name in kind.header_fields
            if name not in ("warehouse_id", "scheduled_date")
        }
        return cls(
            id=doc.id,
            kind=kind.name,
            reference=doc.reference,
            status=enum_value(doc.status),
            warehouse_id=doc.warehouse_id,
            scheduled_date=doc.scheduled_date,
            completed_at=doc.completed_at,
            version=doc.version,
            moves=tuple(StockMoveInfo.from_model(m) for m in doc.moves),
            attributes=attributes,
            created_at=doc.created_at,
        )


@dataclass(frozen=True)
class DocumentResult:
    """Outcome of a create, update or validate call.

    ``stock_checks`` is populated for kinds with an availability gate when
    the call evaluated availability.
    """

    document: DocumentInfo
    stock_checks: tuple[StockCheck, ...] = ()
    previous_status: str | None = None

    @property
    def has_shortage(self) -> bool:
        return any(c.is_short for c in self.stock_checks)

    @property
    def transitioned(self) -> bool:
        return (
            self.previous_status is not None
            and self.previous_status != self.document.status
        )


@dataclass(frozen=True)
class StockRowInfo:
    id: UUID
    product_id: UUID
    sku: str
    product_name: str
    location_id: UUID
    location_code: str
    warehouse_id: UUID
    warehouse_code: str
    quantity: int
    reserved: int

    @property
    def available(self) -> int:
        return self.quantity - self.reserved


@dataclass(frozen=True)
class MoveHistoryEntry:
    """A stock move with the document context it belongs to."""

    move: StockMoveInfo
    document_kind: str
    document_id: UUID
    reference: str
    warehouse_id: UUID | None
    contact: str | None
