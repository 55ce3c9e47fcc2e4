"""
Service layer for product removal.

A product that ever took part in a stock move keeps its row so history stays
resolvable; removing it archives it (is_active=False) instead.  Products
still holding stock cannot be removed at all.

Returns ProductInfo DTOs instead of ORM entities.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.exceptions import ProductHasStockError, ProductNotFoundError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.master import Product
from stock_kernel.models.stock import Stock
from stock_kernel.models.stock_move import StockMove
from stock_kernel.services.base import BaseService

logger = get_logger("services.product")


class RemovalOutcome(str, Enum):
    DELETED = "DELETED"
    ARCHIVED = "ARCHIVED"


@dataclass(frozen=True)
class ProductInfo:
    """Immutable DTO for product data."""

    id: UUID
    sku: str
    name: str
    unit_of_measure: str
    min_stock: int
    category_id: UUID | None
    is_active: bool


@dataclass(frozen=True)
class ProductRemoval:
    product: ProductInfo
    outcome: RemovalOutcome


class ProductService(BaseService[Product]):
    def __init__(self, session: Session, actor_id: UUID):
        super().__init__(session)
        self._actor_id = actor_id

    def _to_dto(self, product: Product) -> ProductInfo:
        return ProductInfo(
            id=product.id,
            sku=product.sku,
            name=product.name,
            unit_of_measure=product.unit_of_measure,
            min_stock=product.min_stock,
            category_id=product.category_id,
            is_active=product.is_active,
        )

    def _get_by_id(self, product_id: UUID) -> Product:
        product = self.session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def on_hand(self, product_id: UUID) -> int:
        """Total quantity on hand across all locations."""
        total = self.session.execute(
            select(func.coalesce(func.sum(Stock.quantity), 0)).where(
                Stock.product_id == product_id
            )
        ).scalar_one()
        return int(total)

    def remove(self, product_id: UUID) -> ProductRemoval:
        """
        Remove a product, archiving it when history must be kept.

        Raises:
            ProductNotFoundError: If the product doesn't exist.
            ProductHasStockError: If any location still holds the product.
        """
        product = self._get_by_id(product_id)

        on_hand = self.on_hand(product_id)
        if on_hand > 0:
            raise ProductHasStockError(str(product_id), on_hand)

        has_moves = self.session.execute(
            select(StockMove.id).where(StockMove.product_id == product_id).limit(1)
        ).first() is not None
        has_rows = self.session.execute(
            select(Stock.id).where(Stock.product_id == product_id).limit(1)
        ).first() is not None

        if has_moves or has_rows:
            product.is_active = False
            product.updated_by_id = self._actor_id
            self.session.flush()
            outcome = RemovalOutcome.ARCHIVED
        else:
            self.session.delete(product)
            self.session.flush()
            outcome = RemovalOutcome.DELETED

        logger.info(
            "product_removed",
            extra={
                "product_id": str(product_id),
                "sku": product.sku,
                "outcome": outcome.value,
            },
        )
        return ProductRemoval(product=self._to_dto(product), outcome=outcome)
