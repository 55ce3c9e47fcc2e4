"""
Typed exception hierarchy for the stock kernel.

Every error raised by the kernel is a subclass of ``StockKernelError`` and
carries a machine-readable ``code`` class attribute plus structured
attributes, so callers catch by type and report by code instead of parsing
messages.

    StockKernelError (base)
    |
    +-- ValidationError
    |   +-- ProductInactiveError
    |
    +-- NotFoundError
    |   +-- DocumentNotFoundError
    |   +-- WarehouseNotFoundError
    |   +-- LocationNotFoundError
    |   +-- ProductNotFoundError
    |   +-- StockMoveNotFoundError
    |
    +-- DocumentStateError
    |   +-- DocumentImmutableError
    |   +-- DocumentAlreadyCompletedError
    |   +-- InvalidTransitionError
    |
    +-- StockError
    |   +-- InsufficientStockError
    |   +-- MissingLocationError
    |   +-- EmptyDocumentError
    |
    +-- ProductError
    |   +-- ProductHasStockError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

Categories exist so that the HTTP layer can map whole families at once:
NotFoundError -> 404, ConcurrencyError -> 409, everything else the kernel
raises deliberately -> 400.
"""

from typing import Any


class StockKernelError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Validation


class ValidationError(StockKernelError):
    """A request payload or document line is malformed."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class ProductInactiveError(ValidationError):
    """Archived products cannot be placed on document lines."""

    code: str = "PRODUCT_INACTIVE"

    def __init__(self, product_id: str, sku: str):
        self.product_id = product_id
        self.sku = sku
        super().__init__("product_id", f"product {sku} is archived")


# Lookups


class NotFoundError(StockKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    entity_type: str = "Entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class DocumentNotFoundError(NotFoundError):
    """Document with given ID was not found."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, kind: str, document_id: str):
        self.kind = kind
        self.entity_type = kind.capitalize()
        super().__init__(document_id)


class WarehouseNotFoundError(NotFoundError):
    code: str = "WAREHOUSE_NOT_FOUND"
    entity_type: str = "Warehouse"


class LocationNotFoundError(NotFoundError):
    code: str = "LOCATION_NOT_FOUND"
    entity_type: str = "Location"


class ProductNotFoundError(NotFoundError):
    code: str = "PRODUCT_NOT_FOUND"
    entity_type: str = "Product"


class StockMoveNotFoundError(NotFoundError):
    code: str = "STOCK_MOVE_NOT_FOUND"
    entity_type: str = "Stock move"


# Document lifecycle


class DocumentStateError(StockKernelError):
    """The document's current status does not permit the operation."""

    code: str = "INVALID_STATE"

    def __init__(self, kind: str, document_id: str, status: str, message: str):
        self.kind = kind
        self.document_id = document_id
        self.status = status
        super().__init__(message)


class DocumentImmutableError(DocumentStateError):
    """Completed documents cannot be updated or deleted."""

    code: str = "DOCUMENT_IMMUTABLE"

    def __init__(self, kind: str, document_id: str, status: str, operation: str):
        self.operation = operation
        super().__init__(
            kind,
            document_id,
            status,
            f"Cannot {operation} completed {kind} {document_id}",
        )


class DocumentAlreadyCompletedError(DocumentStateError):
    """validate() was called on a document that is already DONE."""

    code: str = "DOCUMENT_ALREADY_COMPLETED"

    def __init__(self, kind: str, document_id: str, reference: str):
        self.reference = reference
        super().__init__(
            kind,
            document_id,
            "DONE",
            f"{kind.capitalize()} {reference} is already completed",
        )


class InvalidTransitionError(DocumentStateError):
    """The requested status change is not declared in the kind's workflow."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, kind: str, document_id: str, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            kind,
            document_id,
            from_state,
            f"Invalid {kind} transition: {from_state} -> {to_state}",
        )


# Stock


class StockError(StockKernelError):
    """Base exception for ledger and completion errors."""

    code: str = "STOCK_ERROR"


class InsufficientStockError(StockError):
    """
    Not enough stock to satisfy a decrement or an availability check.

    ``line_no`` is set when the failure belongs to a document line;
    ``stock_checks`` carries the per-line availability report: every line
    when re-checking a WAITING document, the failing line when completion
    runs short.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        location_id: str | None,
        requested: int,
        available: int,
        line_no: int | None = None,
        stock_checks: tuple[Any, ...] = (),
    ):
        self.product_id = product_id
        self.location_id = location_id
        self.requested = requested
        self.available = available
        self.line_no = line_no
        self.stock_checks = stock_checks
        where = f" (line {line_no})" if line_no is not None else ""
        super().__init__(
            f"Insufficient stock for product {product_id}{where}: "
            f"requested {requested}, available {available}"
        )


class MissingLocationError(StockError):
    """A move lacks the location its kind needs at completion."""

    code: str = "MISSING_LOCATION"

    def __init__(self, document_id: str, line_no: int, role: str):
        self.document_id = document_id
        self.line_no = line_no
        self.role = role
        super().__init__(f"Line {line_no} of document {document_id} has no {role} location")


class EmptyDocumentError(StockError):
    """A document with no moves cannot be completed."""

    code: str = "EMPTY_DOCUMENT"

    def __init__(self, kind: str, document_id: str):
        self.kind = kind
        self.document_id = document_id
        super().__init__(f"{kind.capitalize()} {document_id} has no items to complete")


# Products


class ProductError(StockKernelError):
    code: str = "PRODUCT_ERROR"


class ProductHasStockError(ProductError):
    """Products holding stock must be emptied before removal."""

    code: str = "PRODUCT_HAS_STOCK"

    def __init__(self, product_id: str, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            "Cannot delete product with existing stock. Archive it instead."
        )


# Concurrency


class ConcurrencyError(StockKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability


class ImmutabilityError(StockKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete a record the ORM guards against change."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
