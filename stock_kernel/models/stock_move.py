"""
Module: stock_kernel.models.stock_move
Responsibility: ORM persistence for stock moves -- the planned or completed
    quantity changes carried by documents.
Architecture position: Kernel > Models.

Invariants enforced:
    - Exactly one parent key (receipt/delivery/transfer/adjustment) is set
      (ck_stock_move_single_parent).
    - quantity >= 0; kinds other than adjustment require > 0 at the service
      layer, adjustments carry an absolute target that may be 0.
    - status mirrors the parent document and only reaches DONE when the
      parent completes.  Moves of a DONE document are immutable
      (db/immutability.py).
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.document_kinds import DocumentStatus, MoveType
from stock_kernel.models.master import Product, enum_column

PARENT_KEYS = ("receipt_id", "delivery_id", "transfer_id", "adjustment_id")

_SINGLE_PARENT_SQL = " + ".join(
    f"(CASE WHEN {key} IS NOT NULL THEN 1 ELSE 0 END)" for key in PARENT_KEYS
) + " = 1"


class StockMove(TrackedBase):
    __tablename__ = "stock_moves"

    __table_args__ = (
        CheckConstraint(_SINGLE_PARENT_SQL, name="ck_stock_move_single_parent"),
        CheckConstraint("quantity >= 0", name="ck_stock_move_quantity"),
        Index("idx_stock_move_product", "product_id"),
        Index("idx_stock_move_status", "status"),
        Index("idx_stock_move_created", "created_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(nullable=False)
    move_type: Mapped[MoveType] = mapped_column(enum_column(MoveType), nullable=False)
    status: Mapped[DocumentStatus] = mapped_column(
        enum_column(DocumentStatus),
        nullable=False,
        default=DocumentStatus.DRAFT,
    )
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    source_location_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=True
    )
    destination_location_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=True
    )

    receipt_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("receipts.id"), nullable=True, index=True
    )
    delivery_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("deliveries.id"), nullable=True, index=True
    )
    transfer_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("transfers.id"), nullable=True, index=True
    )
    adjustment_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("adjustments.id"), nullable=True, index=True
    )

    product: Mapped[Product] = relationship()

    def __repr__(self) -> str:
        return f"<StockMove line={self.line_no} product={self.product_id} qty={self.quantity}>"
