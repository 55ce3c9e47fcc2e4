"""
StockLedgerService -- quantity on hand per (product, location, warehouse).

Responsibility:
    The only writer of ``Stock`` rows.  Applies increments, decrements and
    absolute counts coming from completing documents, and reports
    availability (quantity - reserved) for availability gates.

Invariants enforced:
    - quantity never goes negative: decrement refuses when the row is
      missing or short, set_absolute refuses negative targets, and the
      table's check constraint backs both.
    - At most one row per key: rows are created lazily through a savepoint;
      a concurrent insert of the same key (IntegrityError) is resolved by
      re-reading the row the other transaction created.
    - ``reserved`` is read, never written.

Failure modes:
    - ValidationError for a non-positive delta or a negative target.
    - InsufficientStockError when a decrement exceeds the quantity on hand.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import StockKey
from stock_kernel.exceptions import InsufficientStockError, ValidationError
from stock_kernel.logging_config import get_logger
from stock_kernel.models.stock import Stock
from stock_kernel.services.base import BaseService

logger = get_logger("services.stock_ledger")


class StockLedgerService(BaseService[Stock]):
    """
    Ledger operations, flushed into the caller's transaction.

    Rows touched by a mutation are read ``FOR UPDATE`` first, so two
    transactions completing documents against the same key queue up on
    the row lock instead of losing an update.
    """

    def __init__(self, session: Session, actor_id: UUID):
        super().__init__(session)
        self._actor_id = actor_id

    def find_row(self, key: StockKey, for_update: bool = False) -> Stock | None:
        """Return the row for ``key`` or None.  ``for_update`` takes a row lock."""
        stmt = select(Stock).where(
            Stock.product_id == key.product_id,
            Stock.location_id == key.location_id,
            Stock.warehouse_id == key.warehouse_id,
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def available(self, key: StockKey) -> int:
        """quantity - reserved, or 0 when no row exists."""
        row = self.find_row(key)
        return row.available if row is not None else 0

    def increment(self, key: StockKey, delta: int) -> Stock:
        if delta <= 0:
            raise ValidationError("quantity", f"increment must be positive, got {delta}")

        row, created = self._find_or_create(key, delta)
        if not created:
            row.quantity += delta
            row.updated_by_id = self._actor_id
            self.session.flush()

        logger.info(
            "stock_incremented",
            extra={**self._key_extra(key), "delta": delta, "quantity": row.quantity},
        )
        return row

    def decrement(self, key: StockKey, delta: int) -> Stock:
        if delta <= 0:
            raise ValidationError("quantity", f"decrement must be positive, got {delta}")

        row = self.find_row(key, for_update=True)
        on_hand = row.quantity if row is not None else 0
        if row is None or on_hand < delta:
            logger.warning(
                "stock_decrement_refused",
                extra={**self._key_extra(key), "requested": delta, "on_hand": on_hand},
            )
            raise InsufficientStockError(
                product_id=str(key.product_id),
                location_id=str(key.location_id),
                requested=delta,
                available=on_hand,
            )

        row.quantity -= delta
        row.updated_by_id = self._actor_id
        self.session.flush()

        logger.info(
            "stock_decremented",
            extra={**self._key_extra(key), "delta": delta, "quantity": row.quantity},
        )
        return row

    def set_absolute(self, key: StockKey, value: int) -> Stock:
        """Overwrite the quantity on hand with a counted value."""
        if value < 0:
            raise ValidationError("quantity", f"counted quantity cannot be negative, got {value}")

        row, created = self._find_or_create(key, value)
        previous = 0 if created else row.quantity
        if not created:
            row.quantity = value
            row.updated_by_id = self._actor_id
            self.session.flush()

        logger.info(
            "stock_set",
            extra={**self._key_extra(key), "previous": previous, "quantity": value},
        )
        return row

    def _find_or_create(self, key: StockKey, initial: int) -> tuple[Stock, bool]:
        row = self.find_row(key, for_update=True)
        if row is not None:
            return row, False

        savepoint = self.session.begin_nested()
        try:
            row = Stock(
                product_id=key.product_id,
                location_id=key.location_id,
                warehouse_id=key.warehouse_id,
                quantity=initial,
                reserved=0,
                created_by_id=self._actor_id,
            )
            self.session.add(row)
            self.session.flush()
            savepoint.commit()
            return row, True
        except IntegrityError:
            logger.debug("stock_row_race_retry", extra=self._key_extra(key))
            savepoint.rollback()
            row = self.find_row(key, for_update=True)
            if row is None:
                raise
            return row, False

    @staticmethod
    def _key_extra(key: StockKey) -> dict[str, str]:
        return {
            "product_id": str(key.product_id),
            "location_id": str(key.location_id),
            "warehouse_id": str(key.warehouse_id),
        }
