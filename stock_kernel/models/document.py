"""
Module: stock_kernel.models.document
Responsibility: ORM persistence for the four stock documents -- Receipt,
    Delivery, Transfer and Adjustment -- which share the lifecycle columns
    of ``DocumentMixin`` and own their stock moves.
Architecture position: Kernel > Models.

Invariants enforced:
    - reference is unique per table and allocated once, at creation.
    - status moves forward only (enforced by services/document_engine.py
      against the kind's Workflow).
    - version is an optimistic concurrency counter (version_id_col); a
      stale write raises StaleDataError.
    - Moves are owned by their document (cascade delete-orphan).
    - DONE documents are immutable (db/immutability.py).
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, object_session, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.document_kinds import DocumentStatus
from stock_kernel.models.master import Location, Warehouse, enum_column
from stock_kernel.models.stock_move import StockMove


class DocumentMixin:
    """Lifecycle columns common to every document kind."""

    reference: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    status: Mapped[DocumentStatus] = mapped_column(
        enum_column(DocumentStatus),
        nullable=False,
        default=DocumentStatus.DRAFT,
    )
    scheduled_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    @property
    def is_done(self) -> bool:
        return self.status == DocumentStatus.DONE

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.reference}: {self.status}>"


class Receipt(DocumentMixin, TrackedBase):
    """Inbound goods from a supplier."""

    __tablename__ = "receipts"
    __table_args__ = (Index("idx_receipt_status", "status"),)

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    supplier: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_doc: Mapped[str | None] = mapped_column(String(100), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    warehouse: Mapped[Warehouse] = relationship()
    moves: Mapped[list[StockMove]] = relationship(
        order_by=StockMove.line_no,
        cascade="all, delete-orphan",
    )


class Delivery(DocumentMixin, TrackedBase):
    """Outbound goods to a customer."""

    __tablename__ = "deliveries"
    __table_args__ = (Index("idx_delivery_status", "status"),)

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    customer: Mapped[str | None] = mapped_column(String(200), nullable=True)
    source_doc: Mapped[str | None] = mapped_column(String(100), nullable=True)
    delivery_address: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    warehouse: Mapped[Warehouse] = relationship()
    moves: Mapped[list[StockMove]] = relationship(
        order_by=StockMove.line_no,
        cascade="all, delete-orphan",
    )


class Transfer(DocumentMixin, TrackedBase):
    """Internal movement between two locations, possibly across warehouses."""

    __tablename__ = "transfers"
    __table_args__ = (Index("idx_transfer_status", "status"),)

    source_location_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=False
    )
    destination_location_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=False
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    source_location: Mapped[Location] = relationship(foreign_keys=[source_location_id])
    destination_location: Mapped[Location] = relationship(
        foreign_keys=[destination_location_id]
    )
    moves: Mapped[list[StockMove]] = relationship(
        order_by=StockMove.line_no,
        cascade="all, delete-orphan",
    )

    @property
    def warehouse_id(self) -> UUID | None:
        """Warehouse the goods leave from."""
        session = object_session(self)
        if session is None or self.source_location_id is None:
            return None
        location = session.get(Location, self.source_location_id)
        return location.warehouse_id if location is not None else None


class Adjustment(DocumentMixin, TrackedBase):
    """Inventory count that sets on-hand quantities to counted values."""

    __tablename__ = "adjustments"
    __table_args__ = (Index("idx_adjustment_status", "status"),)

    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    __mapper_args__ = {"version_id_col": version}

    warehouse: Mapped[Warehouse] = relationship()
    moves: Mapped[list[StockMove]] = relationship(
        order_by=StockMove.line_no,
        cascade="all, delete-orphan",
    )


DOCUMENT_MODELS: dict[str, type] = {
    "receipt": Receipt,
    "delivery": Delivery,
    "transfer": Transfer,
    "adjustment": Adjustment,
}


def document_model_for(kind_name: str) -> type:
    """ORM class storing documents of the named kind."""
    try:
        return DOCUMENT_MODELS[kind_name]
    except KeyError:
        raise ValueError(f"No document model for kind {kind_name!r}") from None
