"""
Module: stock_kernel.models.master
Responsibility: ORM persistence for master data -- categories, products,
    warehouses and locations.  The document lifecycle only reads these rows;
    product archiving is the one mutation the kernel performs.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain enumerations only.

Invariants enforced:
    - Product SKU, warehouse code and location code are unique.
    - A location belongs to exactly one warehouse.
    - A product with stock move history is archived (is_active=False), never
      physically removed (see db/immutability.py).
"""

from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stock_kernel.db.base import TrackedBase, UUIDString
from stock_kernel.domain.document_kinds import LocationType


def enum_column(enum_cls):
    """String-backed enum column storing member values."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


class Category(TrackedBase):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


class Product(TrackedBase):
    """
    A stocked item.

    ``min_stock`` is the reorder threshold shown next to on-hand quantity;
    the lifecycle does not act on it.
    """

    __tablename__ = "products"

    __table_args__ = (
        Index("idx_product_active", "is_active"),
    )

    sku: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit_of_measure: Mapped[str] = mapped_column(String(20), nullable=False, default="pcs")
    min_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    category_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("categories.id"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    category: Mapped[Category | None] = relationship()

    def __repr__(self) -> str:
        return f"<Product {self.sku}>"


class Warehouse(TrackedBase):
    __tablename__ = "warehouses"

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    locations: Mapped[list["Location"]] = relationship(back_populates="warehouse")

    def __repr__(self) -> str:
        return f"<Warehouse {self.code}>"


class Location(TrackedBase):
    """A storage area inside a warehouse, or a virtual partner location."""

    __tablename__ = "locations"

    __table_args__ = (
        Index("idx_location_warehouse", "warehouse_id"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location_type: Mapped[LocationType] = mapped_column(
        enum_column(LocationType),
        nullable=False,
        default=LocationType.ZONE,
    )
    warehouse_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("warehouses.id"),
        nullable=False,
    )

    warehouse: Mapped[Warehouse] = relationship(back_populates="locations")

    def __repr__(self) -> str:
        return f"<Location {self.code}>"
