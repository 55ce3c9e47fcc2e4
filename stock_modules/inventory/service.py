"""
Inventory Module Service (``stock_modules.inventory.service``).

Stock levels, move history and product removal.  Reads delegate to
``StockSelector``; product removal delegates to the kernel
``ProductService`` and commits on success, rolls back on failure.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from stock_kernel.domain.document_kinds import DocumentStatus, MoveType
from stock_kernel.domain.dtos import MoveHistoryEntry, StockRowInfo
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.selectors.stock_selector import StockSelector
from stock_kernel.services.product_service import ProductRemoval, ProductService

logger = get_logger("modules.inventory.service")


class InventoryService:
    """Transaction boundary: remove_product commits; reads never do."""

    def __init__(self, session: Session, actor_id: UUID):
        self._session = session
        self._actor_id = actor_id
        self._selector = StockSelector(session)

    def list_stock(
        self,
        warehouse_id: UUID | None = None,
        product_id: UUID | None = None,
    ) -> list[StockRowInfo]:
        return self._selector.list_stock(warehouse_id=warehouse_id, product_id=product_id)

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
        return self._selector.move_history(
            move_type=move_type,
            status=status,
            product_id=product_id,
            warehouse_id=warehouse_id,
            reference=reference,
            contact=contact,
            from_date=from_date,
            to_date=to_date,
            limit=limit,
        )

    def get_move(self, move_id: UUID) -> MoveHistoryEntry:
        return self._selector.get_move(move_id)

    def remove_product(self, product_id: UUID) -> ProductRemoval:
        """
        Delete a product, or archive it when it has history.

        Raises:
            ProductNotFoundError: Unknown product.
            ProductHasStockError: Some location still holds the product.
        """
        with LogContext.bind(actor_id=str(self._actor_id)):
            try:
                removal = ProductService(self._session, self._actor_id).remove(product_id)
                self._session.commit()
            except Exception:
                self._session.rollback()
                raise
            return removal
