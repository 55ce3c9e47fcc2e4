"""
Module: stock_kernel.models.stock
Responsibility: The stock ledger row -- quantity on hand of one product at
    one location of one warehouse.
Architecture position: Kernel > Models.  Written only by
    services/stock_ledger_service.py.

Invariants enforced:
    - At most one row per (product, location, warehouse) (uq_stock_key).
    - quantity >= 0 and reserved >= 0 (check constraints backing the
      ledger's own guard).
    - Rows are never deleted (db/immutability.py).
"""

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.models.master import Location, Product, Warehouse


class Stock(TrackedBase):
    """
    Quantity on hand for a (product, location, warehouse) key.

    ``reserved`` is an earmarked amount subtracted from ``quantity`` when
    availability is checked.  No document lifecycle writes it.
    """

    __tablename__ = "stock"

    __table_args__ = (
        UniqueConstraint("product_id", "location_id", "warehouse_id", name="uq_stock_key"),
        CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_stock_reserved_non_negative"),
        Index("idx_stock_warehouse", "warehouse_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("products.id"), nullable=False
    )
    location_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("locations.id"), nullable=False
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("warehouses.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    reserved: Mapped[int] = mapped_column(nullable=False, default=0)

    product: Mapped[Product] = relationship()
    location: Mapped[Location] = relationship()
    warehouse: Mapped[Warehouse] = relationship()

    @property
    def available(self) -> int:
        return self.quantity - self.reserved

    def __repr__(self) -> str:
        return f"<Stock product={self.product_id} location={self.location_id} qty={self.quantity}>"
