"""
StockSelector -- stock levels and stock move history.

Move history joins every move to the document that owns it so it can be
filtered by reference, counterparty and warehouse regardless of kind.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import or_, select

from stock_kernel.domain.document_kinds import DocumentStatus, MoveType
from stock_kernel.domain.dtos import MoveHistoryEntry, StockMoveInfo, StockRowInfo
from stock_kernel.exceptions import StockMoveNotFoundError
from stock_kernel.models.document import Adjustment, Delivery, Receipt, Transfer
from stock_kernel.models.master import Location, Product, Warehouse
from stock_kernel.models.stock import Stock
from stock_kernel.models.stock_move import StockMove
from stock_kernel.selectors.base import BaseSelector

_KIND_BY_MODEL = {
    Receipt: "receipt",
    Delivery: "delivery",
    Transfer: "transfer",
    Adjustment: "adjustment",
}


def _day_start(day: date | datetime) -> datetime:
    if isinstance(day, datetime):
        return day
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class StockSelector(BaseSelector[Stock]):
    def list_stock(
        self,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
    ) -> list[StockRowInfo]:
        """Ledger rows with product, location and warehouse labels."""
        stmt = (
            select(Stock, Product, Location, Warehouse)
            .join(Product, Stock.product_id == Product.id)
            .join(Location, Stock.location_id == Location.id)
            .join(Warehouse, Stock.warehouse_id == Warehouse.id)
        )
        if warehouse_id is not None:
            stmt = stmt.where(Stock.warehouse_id == warehouse_id)
        if product_id is not None:
            stmt = stmt.where(Stock.product_id == product_id)
        stmt = stmt.order_by(Product.sku, Warehouse.code, Location.code)

        return [
            StockRowInfo(
                id=row.id,
                product_id=product.id,
                sku=product.sku,
                product_name=product.name,
                location_id=location.id,
                location_code=location.code,
                warehouse_id=warehouse.id,
                warehouse_code=warehouse.code,
                quantity=row.quantity,
                reserved=row.reserved,
            )
            for row, product, location, warehouse in self.session.execute(stmt)
        ]

    def _history_query(self):
        return (
            select(StockMove, Receipt, Delivery, Transfer, Adjustment)
            .outerjoin(Receipt, StockMove.receipt_id == Receipt.id)
            .outerjoin(Delivery, StockMove.delivery_id == Delivery.id)
            .outerjoin(Transfer, StockMove.transfer_id == Transfer.id)
            .outerjoin(Adjustment, StockMove.adjustment_id == Adjustment.id)
        )

    def move_history(
        self,
        move_type: MoveType | None = None,
        status: DocumentStatus | None = None,
        product_id: UUID | None = None,
        warehouse_id: UUID | None = None,
        reference: str | None = None,
        contact: str | None = None,
        from_date: date | datetime | None = None,
        to_date: date | datetime | None = None,
        limit: int | None = None,
    ) -> list[MoveHistoryEntry]:
        """
        Stock moves newest first.

        ``contact`` matches a receipt's supplier or a delivery's customer;
        ``reference`` is a substring of the owning document's reference.
        A plain ``to_date`` includes the whole day.
        """
        stmt = self._history_query()

        if move_type is not None:
            stmt = stmt.where(StockMove.move_type == MoveType(move_type))
        if status is not None:
            stmt = stmt.where(StockMove.status == DocumentStatus(status))
        if product_id is not None:
            stmt = stmt.where(StockMove.product_id == product_id)

        if warehouse_id is not None:
            in_warehouse = select(Location.id).where(Location.warehouse_id == warehouse_id)
            stmt = stmt.where(
                or_(
                    Receipt.warehouse_id == warehouse_id,
                    Delivery.warehouse_id == warehouse_id,
                    Adjustment.warehouse_id == warehouse_id,
                    Transfer.source_location_id.in_(in_warehouse),
                    Transfer.destination_location_id.in_(in_warehouse),
                )
            )

        if reference:
            pattern = f"%{reference}%"
            stmt = stmt.where(
                or_(
                    Receipt.reference.ilike(pattern),
                    Delivery.reference.ilike(pattern),
                    Transfer.reference.ilike(pattern),
                    Adjustment.reference.ilike(pattern),
                )
            )

        if contact:
            pattern = f"%{contact}%"
            stmt = stmt.where(
                or_(Receipt.supplier.ilike(pattern), Delivery.customer.ilike(pattern))
            )

        if from_date is not None:
            stmt = stmt.where(StockMove.created_at >= _day_start(from_date))
        if to_date is not None:
            if isinstance(to_date, datetime):
                stmt = stmt.where(StockMove.created_at <= to_date)
            else:
                stmt = stmt.where(StockMove.created_at < _day_start(to_date + timedelta(days=1)))

        stmt = stmt.order_by(StockMove.created_at.desc(), StockMove.line_no)
        if limit is not None:
            stmt = stmt.limit(limit)

        return [self._to_entry(*row) for row in self.session.execute(stmt)]

    def get_move(self, move_id: UUID) -> MoveHistoryEntry:
        row = self.session.execute(
            self._history_query().where(StockMove.id == move_id)
        ).first()
        if row is None:
            raise StockMoveNotFoundError(str(move_id))
        return self._to_entry(*row)

    def _to_entry(self, move, receipt, delivery, transfer, adjustment) -> MoveHistoryEntry:
        doc = receipt or delivery or transfer or adjustment
        contact = None
        if receipt is not None:
            contact = receipt.supplier
        elif delivery is not None:
            contact = delivery.customer
        return MoveHistoryEntry(
            move=StockMoveInfo.from_model(move),
            document_kind=_KIND_BY_MODEL[type(doc)],
            document_id=doc.id,
            reference=doc.reference,
            warehouse_id=doc.warehouse_id,
            contact=contact,
        )
