"""
ORM-level immutability enforcement.

Service methods already refuse to touch completed documents; these listeners
catch the same mistakes when code bypasses the services and edits ORM objects
directly.  SQLAlchemy fires ``before_update``/``before_delete`` before the SQL
reaches the database, so a violation aborts the flush and nothing is written.

Protected entities:

    Entity                         | Rule
    -------------------------------|----------------------------------------------
    Receipt/Delivery/Transfer/     | Immutable once DONE; a DONE document cannot
    Adjustment                     | be deleted
    StockMove                      | Immutable and undeletable once DONE
    Stock                          | Never deleted (quantities change, rows stay)
    Product                        | Not deleted while stock moves reference it

updated_at/updated_by_id (audit metadata) and the optimistic ``version``
counter may still change on a DONE document.

Usage:
    register_immutability_listeners()      # once at startup
    unregister_immutability_listeners()    # tests that need to bypass
"""

from sqlalchemy import event, inspect, select
from sqlalchemy.orm.attributes import get_history

from stock_kernel.domain.document_kinds import DocumentStatus
from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_MUTABLE_AUDIT_FIELDS = frozenset({"updated_at", "updated_by_id", "version"})


def _is_done(value) -> bool:
    return value == DocumentStatus.DONE or value == DocumentStatus.DONE.value


def _was_done_before(target) -> bool:
    """True when the row was already DONE before the pending change.

    A status moving READY -> DONE is the completion itself and is allowed.
    """
    status_history = get_history(target, "status")
    if status_history.deleted:
        return _is_done(status_history.deleted[0])
    if not status_history.added:
        return _is_done(target.status)
    return False


def _block(entity_type: str, target, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "field": field,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_frozen_fields(entity_type: str, target) -> None:
    for attr in inspect(target).attrs:
        if attr.key in _MUTABLE_AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            _block(
                entity_type,
                target,
                "UPDATE",
                f"Cannot modify field '{attr.key}' on a completed {entity_type.lower()}",
                field=attr.key,
            )


def _check_document_immutability(mapper, connection, target):
    """Completed documents keep every business field as it was at completion."""
    if _was_done_before(target):
        _check_frozen_fields(type(target).__name__, target)


def _check_document_delete(mapper, connection, target):
    if _is_done(target.status):
        _block(
            type(target).__name__,
            target,
            "DELETE",
            "Completed documents cannot be deleted",
        )


def _check_stock_move_immutability(mapper, connection, target):
    if _was_done_before(target):
        _check_frozen_fields("StockMove", target)


def _check_stock_move_delete(mapper, connection, target):
    if _is_done(target.status):
        _block("StockMove", target, "DELETE", "Completed stock moves cannot be deleted")


def _check_stock_delete(mapper, connection, target):
    _block("Stock", target, "DELETE", "Stock ledger rows are never deleted")


def _check_product_delete(mapper, connection, target):
    """Products with move history must be archived, not deleted."""
    from stock_kernel.models.stock_move import StockMove

    referenced = connection.execute(
        select(StockMove.id).where(StockMove.product_id == target.id).limit(1)
    ).first()
    if referenced is not None:
        _block(
            "Product",
            target,
            "DELETE",
            "Products with stock move history cannot be deleted; archive instead",
        )


def _listeners():
    from stock_kernel.models.document import DOCUMENT_MODELS
    from stock_kernel.models.master import Product
    from stock_kernel.models.stock import Stock
    from stock_kernel.models.stock_move import StockMove

    pairs = []
    for model in DOCUMENT_MODELS.values():
        pairs.append((model, "before_update", _check_document_immutability))
        pairs.append((model, "before_delete", _check_document_delete))
    pairs.extend(
        [
            (StockMove, "before_update", _check_stock_move_immutability),
            (StockMove, "before_delete", _check_stock_move_delete),
            (Stock, "before_delete", _check_stock_delete),
            (Product, "before_delete", _check_product_delete),
        ]
    )
    return pairs


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call once, after models are importable and before database work begins.
    Registering twice is a no-op.
    """
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    Only for tests that must violate the rules on purpose.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
