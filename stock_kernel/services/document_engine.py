"""
DocumentEngine -- the one state machine behind every stock document.

Responsibility:
    Creates, edits, advances and deletes Receipts, Deliveries, Transfers and
    Adjustments.  The engine is parameterized by a ``DocumentKind``
    descriptor (direction of moves, ledger apply mode, availability gate,
    reference prefix) and the kind's ``Workflow``; there is no per-kind
    subclass.

Lifecycle:
    DRAFT -> (WAITING) -> READY -> DONE

    validate() on DRAFT      gated kinds check availability and land in
                             WAITING when short, otherwise READY.
    validate() on WAITING    re-checks; still short raises
                             InsufficientStockError without changing state.
    validate() on READY      completes: applies every move to the stock
                             ledger in line order inside one savepoint,
                             then marks moves and document DONE.
    validate() on DONE       DocumentAlreadyCompletedError, nothing written.

Invariants enforced:
    - Every status change is a declared Transition of the kind's Workflow;
      there is none back to DRAFT or WAITING, so status only moves forward.
    - DONE documents are never updated or deleted.
    - Completion is all-or-nothing: a failing line rolls back the lines
      already applied, and the document stays READY.
    - validate/update/delete lock the document row (SELECT ... FOR UPDATE)
      before reading its status, so concurrent validations complete a
      document once.

Transaction boundary:
    Flush-only.  ``stock_modules.documents.service.DocumentService`` owns
    commit and rollback.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.clock import Clock
from stock_kernel.domain.document_kinds import (
    ApplyMode,
    DocumentKind,
    DocumentStatus,
    LocationRole,
)
from stock_kernel.domain.dtos import (
    DocumentInfo,
    DocumentResult,
    LineItem,
    StockCheck,
    StockKey,
    enum_value,
)
from stock_kernel.domain.workflow import Transition, Workflow
from stock_kernel.exceptions import (
    DocumentAlreadyCompletedError,
    DocumentImmutableError,
    DocumentNotFoundError,
    DocumentStateError,
    EmptyDocumentError,
    InsufficientStockError,
    InvalidTransitionError,
    LocationNotFoundError,
    MissingLocationError,
    ProductInactiveError,
    ProductNotFoundError,
    ValidationError,
    WarehouseNotFoundError,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.document import document_model_for
from stock_kernel.models.master import Location, Product, Warehouse
from stock_kernel.models.stock_move import StockMove
from stock_kernel.services.base import BaseService
from stock_kernel.services.reference_service import ReferenceService
from stock_kernel.services.stock_ledger_service import StockLedgerService

logger = get_logger("services.document_engine")

_LOCATION_FIELDS = ("source_location_id", "destination_location_id")


class DocumentEngine(BaseService):
    """
    Lifecycle operations for one document kind.

    Contract:
        All methods flush into the caller's transaction and return DTOs.
        Errors are raised as typed ``StockKernelError`` subclasses; the
        caller rolls back.
    """

    def __init__(
        self,
        session: Session,
        kind: DocumentKind,
        workflow: Workflow,
        clock: Clock,
        actor_id: UUID,
    ):
        super().__init__(session)
        self.kind = kind
        self.workflow = workflow
        self._clock = clock
        self._actor_id = actor_id
        self._model = document_model_for(kind.name)
        self._ledger = StockLedgerService(session, actor_id)
        self._references = ReferenceService(session, clock)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, document_id: UUID) -> DocumentInfo:
        return self.to_info(self._load(document_id))

    def to_info(self, doc: Any) -> DocumentInfo:
        return DocumentInfo.from_model(doc, self.kind)

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        header: Mapping[str, Any],
        items: Sequence[LineItem],
    ) -> DocumentResult:
        """
        Persist a new document in DRAFT with one move per item.

        Gated kinds whose lines are short at creation start in WAITING
        instead, and the result carries the per-line stock checks.
        """
        values = self._clean_header(header, current=None)
        warehouse = self._resolve_header_refs(values)
        resolved = self._resolve_items(items, values)

        prefix = self.kind.render_prefix(warehouse.code if warehouse else None)
        reference = self._references.next_reference(prefix)

        doc = self._model(
            reference=reference,
            status=DocumentStatus(self.workflow.initial_state),
            created_by_id=self._actor_id,
            **values,
        )
        self.session.add(doc)
        self._append_moves(doc, resolved)
        self.session.flush()

        checks: tuple[StockCheck, ...] = ()
        if self.kind.availability_gate and doc.moves:
            checks = self._check_availability(doc)
            if any(c.is_short for c in checks):
                self._transition(doc, DocumentStatus.WAITING)
                self.session.flush()

        logger.info(
            "document_created",
            extra={
                "document_kind": self.kind.name,
                "document_id": str(doc.id),
                "reference": reference,
                "status": enum_value(doc.status),
                "line_count": len(doc.moves),
            },
        )
        return DocumentResult(document=self.to_info(doc), stock_checks=checks)

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        document_id: UUID,
        header: Mapping[str, Any] | None = None,
        items: Sequence[LineItem] | None = None,
    ) -> DocumentResult:
        """
        Edit header fields and/or replace all lines of a document not yet DONE.

        Replacement moves take the document's current status.  A gated
        DRAFT document whose new lines are short is promoted to WAITING.
        """
        doc = self._load(document_id, for_update=True)
        previous = enum_value(doc.status)
        if doc.is_done:
            raise DocumentImmutableError(self.kind.name, str(doc.id), previous, "update")

        if header:
            values = self._clean_header(header, current=doc)
            self._resolve_header_refs({**self._current_header(doc), **values})
            for name, value in values.items():
                setattr(doc, name, value)
            if items is None:
                self._rewire_existing_moves(doc, values)

        checks: tuple[StockCheck, ...] = ()
        if items is not None:
            resolved = self._resolve_items(items, self._current_header(doc))
            doc.moves.clear()
            self.session.flush()
            self._append_moves(doc, resolved)
            if self.kind.availability_gate and doc.moves:
                checks = self._check_availability(doc)
                if doc.status == DocumentStatus.DRAFT and any(c.is_short for c in checks):
                    self._transition(doc, DocumentStatus.WAITING)

        doc.updated_by_id = self._actor_id
        self.session.flush()

        logger.info(
            "document_updated",
            extra={
                "document_kind": self.kind.name,
                "document_id": str(doc.id),
                "header_fields": sorted(header or ()),
                "items_replaced": items is not None,
                "status": enum_value(doc.status),
            },
        )
        return DocumentResult(
            document=self.to_info(doc),
            stock_checks=checks,
            previous_status=previous,
        )

    # =========================================================================
    # Validate (advance the state machine)
    # =========================================================================

    def validate(self, document_id: UUID) -> DocumentResult:
        doc = self._load(document_id, for_update=True)
        status = DocumentStatus(doc.status)
        previous = status.value

        if status == DocumentStatus.DONE:
            logger.warning(
                "document_already_completed",
                extra={"document_kind": self.kind.name, "document_id": str(doc.id)},
            )
            raise DocumentAlreadyCompletedError(self.kind.name, str(doc.id), doc.reference)

        checks: tuple[StockCheck, ...] = ()

        if status == DocumentStatus.DRAFT:
            target = DocumentStatus.READY
            if self.kind.availability_gate:
                checks = self._check_availability(doc)
                if any(c.is_short for c in checks):
                    target = DocumentStatus.WAITING
            self._transition(doc, target)

        elif status == DocumentStatus.WAITING and self.kind.availability_gate:
            checks = self._check_availability(doc)
            short = [c for c in checks if c.is_short]
            if short:
                first = short[0]
                raise InsufficientStockError(
                    product_id=str(first.product_id),
                    location_id=str(first.location_id) if first.location_id else None,
                    requested=first.requested,
                    available=first.available,
                    line_no=first.line_no,
                    stock_checks=checks,
                )
            self._transition(doc, DocumentStatus.READY)

        elif status == DocumentStatus.READY:
            self._complete(doc)

        else:
            raise DocumentStateError(
                self.kind.name,
                str(doc.id),
                previous,
                f"Cannot validate {self.kind.name} {doc.reference} in status {previous}",
            )

        doc.updated_by_id = self._actor_id
        self.session.flush()
        return DocumentResult(
            document=self.to_info(doc),
            stock_checks=checks,
            previous_status=previous,
        )

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, document_id: UUID) -> None:
        doc = self._load(document_id, for_update=True)
        if doc.is_done:
            raise DocumentImmutableError(
                self.kind.name, str(doc.id), enum_value(doc.status), "delete"
            )
        reference = doc.reference
        line_count = len(doc.moves)
        self.session.delete(doc)
        self.session.flush()
        logger.info(
            "document_deleted",
            extra={
                "document_kind": self.kind.name,
                "document_id": str(document_id),
                "reference": reference,
                "line_count": line_count,
            },
        )

    # =========================================================================
    # Completion
    # =========================================================================

    def _complete(self, doc: Any) -> None:
        """Apply every move to the ledger, then mark moves and document DONE."""
        if not doc.moves:
            raise EmptyDocumentError(self.kind.name, str(doc.id))

        transition = self._require_transition(doc, DocumentStatus.DONE)
        moves = sorted(doc.moves, key=lambda m: m.line_no)
        document_id, reference = str(doc.id), doc.reference

        try:
            with self.session.begin_nested():
                for move in moves:
                    self._apply_move(doc, move)
                self._set_status(doc, DocumentStatus.DONE, transition)
                doc.completed_at = self._clock.now()
                self.session.flush()
        except Exception:
            logger.warning(
                "completion_rolled_back",
                extra={
                    "document_kind": self.kind.name,
                    "document_id": document_id,
                    "reference": reference,
                },
                exc_info=True,
            )
            raise

        logger.info(
            "document_completed",
            extra={
                "document_kind": self.kind.name,
                "document_id": document_id,
                "reference": reference,
                "line_count": len(moves),
            },
        )

    def _apply_move(self, doc: Any, move: StockMove) -> None:
        mode = self.kind.apply_mode
        source = destination = None

        if self.kind.needs_source:
            if move.source_location_id is None:
                raise MissingLocationError(str(doc.id), move.line_no, "source")
            source = self._stock_key(doc, move.product_id, move.source_location_id)
        if self.kind.needs_destination:
            if move.destination_location_id is None:
                raise MissingLocationError(str(doc.id), move.line_no, "destination")
            destination = self._stock_key(doc, move.product_id, move.destination_location_id)

        try:
            if mode == ApplyMode.INCREMENT:
                self._ledger.increment(destination, move.quantity)
            elif mode == ApplyMode.DECREMENT:
                self._ledger.decrement(source, move.quantity)
            elif mode == ApplyMode.TRANSFER:
                self._ledger.decrement(source, move.quantity)
                self._ledger.increment(destination, move.quantity)
            elif mode == ApplyMode.SET_ABSOLUTE:
                self._ledger.set_absolute(destination, move.quantity)
        except InsufficientStockError as exc:
            raise InsufficientStockError(
                product_id=exc.product_id,
                location_id=exc.location_id,
                requested=exc.requested,
                available=exc.available,
                line_no=move.line_no,
                stock_checks=(
                    StockCheck(
                        line_no=move.line_no,
                        product_id=move.product_id,
                        location_id=move.source_location_id,
                        requested=exc.requested,
                        available=exc.available,
                    ),
                ),
            ) from exc
        except ValidationError as exc:
            raise ValidationError(f"items[{move.line_no}].quantity", exc.reason) from exc

    # =========================================================================
    # Availability
    # =========================================================================

    def _check_availability(self, doc: Any) -> tuple[StockCheck, ...]:
        """Per-line availability at each line's source location."""
        checks = []
        for move in sorted(doc.moves, key=lambda m: m.line_no):
            available = 0
            if move.source_location_id is not None:
                key = self._stock_key(doc, move.product_id, move.source_location_id)
                available = self._ledger.available(key)
            checks.append(
                StockCheck(
                    line_no=move.line_no,
                    product_id=move.product_id,
                    location_id=move.source_location_id,
                    requested=move.quantity,
                    available=available,
                )
            )
        return tuple(checks)

    def _stock_key(self, doc: Any, product_id: UUID, location_id: UUID) -> StockKey:
        """Ledger key for a line: header warehouse, or the location's own."""
        if self.kind.header_warehouse:
            warehouse_id = doc.warehouse_id
        else:
            location = self.session.get(Location, location_id)
            if location is None:
                raise LocationNotFoundError(str(location_id))
            warehouse_id = location.warehouse_id
        return StockKey(product_id, location_id, warehouse_id)

    # =========================================================================
    # Transitions
    # =========================================================================

    def _require_transition(self, doc: Any, to_state: DocumentStatus) -> Transition:
        from_state = enum_value(doc.status)
        transition = self.workflow.find_transition(from_state, to_state.value)
        if transition is None:
            raise InvalidTransitionError(self.kind.name, str(doc.id), from_state, to_state.value)
        return transition

    def _transition(self, doc: Any, to_state: DocumentStatus) -> Transition:
        transition = self._require_transition(doc, to_state)
        self._set_status(doc, to_state, transition)
        return transition

    def _set_status(self, doc: Any, to_state: DocumentStatus, transition: Transition) -> None:
        from_state = enum_value(doc.status)
        doc.status = to_state
        for move in doc.moves:
            move.status = to_state
            move.updated_by_id = self._actor_id
        logger.info(
            "document_transitioned",
            extra={
                "document_kind": self.kind.name,
                "document_id": str(doc.id),
                "from_state": from_state,
                "to_state": to_state.value,
                "action": transition.action,
            },
        )

    # =========================================================================
    # Loading and validation helpers
    # =========================================================================

    def _load(self, document_id: UUID, for_update: bool = False) -> Any:
        stmt = select(self._model).where(self._model.id == document_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        doc = self.session.execute(stmt).scalar_one_or_none()
        if doc is None:
            raise DocumentNotFoundError(self.kind.name, str(document_id))
        return doc

    def _current_header(self, doc: Any) -> dict[str, Any]:
        return {name: getattr(doc, name) for name in self.kind.header_fields}

    def _clean_header(
        self,
        header: Mapping[str, Any],
        current: Any | None,
    ) -> dict[str, Any]:
        """Check field names and coerce values; creation also checks required fields."""
        values: dict[str, Any] = {}
        for name, value in header.items():
            if name not in self.kind.header_fields:
                reason = (
                    "status changes only through validation"
                    if name == "status"
                    else f"not a {self.kind.name} header field"
                )
                raise ValidationError(name, reason)
            if name == "warehouse_id" or name in _LOCATION_FIELDS:
                value = _coerce_uuid(name, value)
            elif name == "scheduled_date":
                value = _coerce_date(name, value)
            values[name] = value

        required = self._required_header_fields()
        for name in required:
            if current is None and values.get(name) is None:
                raise ValidationError(name, "is required")
            if current is not None and name in values and values[name] is None:
                raise ValidationError(name, "cannot be cleared")
        return values

    def _required_header_fields(self) -> tuple[str, ...]:
        if self.kind.header_warehouse:
            return ("warehouse_id",)
        if self.kind.location_role == LocationRole.HEADER:
            return _LOCATION_FIELDS
        return ()

    def _resolve_header_refs(self, values: Mapping[str, Any]) -> Warehouse | None:
        """Check that referenced warehouse/locations exist; return the warehouse."""
        if self.kind.header_warehouse:
            warehouse = self.session.get(Warehouse, values["warehouse_id"])
            if warehouse is None:
                raise WarehouseNotFoundError(str(values["warehouse_id"]))
            return warehouse

        if self.kind.location_role == LocationRole.HEADER:
            source_id = values["source_location_id"]
            destination_id = values["destination_location_id"]
            for location_id in (source_id, destination_id):
                if self.session.get(Location, location_id) is None:
                    raise LocationNotFoundError(str(location_id))
            if source_id == destination_id:
                raise ValidationError(
                    "destination_location_id",
                    "source and destination locations must differ",
                )
        return None

    def _resolve_items(
        self,
        items: Sequence[LineItem],
        header: Mapping[str, Any],
    ) -> list[tuple[LineItem, UUID | None, UUID | None]]:
        """Validate lines and wire each to (source, destination) locations."""
        role = self.kind.location_role
        resolved = []
        for line_no, item in enumerate(items, start=1):
            product = self.session.get(Product, item.product_id)
            if product is None:
                raise ProductNotFoundError(str(item.product_id))
            if not product.is_active:
                raise ProductInactiveError(str(product.id), product.sku)
            if item.quantity < self.kind.min_quantity:
                raise ValidationError(
                    f"items[{line_no}].quantity",
                    f"must be at least {self.kind.min_quantity}, got {item.quantity}",
                )

            if role == LocationRole.HEADER:
                resolved.append(
                    (item, header["source_location_id"], header["destination_location_id"])
                )
                continue

            if item.location_id is not None:
                self._check_line_location(line_no, item.location_id, header)
            if role == LocationRole.SOURCE:
                resolved.append((item, item.location_id, None))
            else:
                resolved.append((item, None, item.location_id))
        return resolved

    def _check_line_location(
        self, line_no: int, location_id: UUID, header: Mapping[str, Any]
    ) -> None:
        location = self.session.get(Location, location_id)
        if location is None:
            raise LocationNotFoundError(str(location_id))
        if self.kind.header_warehouse and location.warehouse_id != header["warehouse_id"]:
            raise ValidationError(
                f"items[{line_no}].location_id",
                f"location {location.code} is not in the document warehouse",
            )

    def _append_moves(
        self,
        doc: Any,
        resolved: list[tuple[LineItem, UUID | None, UUID | None]],
    ) -> None:
        for line_no, (item, source_id, destination_id) in enumerate(resolved, start=1):
            doc.moves.append(
                StockMove(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    move_type=self.kind.move_type,
                    status=DocumentStatus(doc.status),
                    line_no=line_no,
                    source_location_id=source_id,
                    destination_location_id=destination_id,
                    created_by_id=self._actor_id,
                )
            )

    def _rewire_existing_moves(self, doc: Any, values: Mapping[str, Any]) -> None:
        """Keep existing moves consistent with a changed header."""
        if self.kind.location_role == LocationRole.HEADER:
            for move in doc.moves:
                move.source_location_id = doc.source_location_id
                move.destination_location_id = doc.destination_location_id
            return

        if "warehouse_id" in values:
            header = self._current_header(doc)
            for move in doc.moves:
                location_id = move.source_location_id or move.destination_location_id
                if location_id is not None:
                    self._check_line_location(move.line_no, location_id, header)


def _coerce_uuid(field: str, value: Any) -> UUID | None:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise ValidationError(field, f"not a valid id: {value!r}") from None


def _coerce_date(field: str, value: Any) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(field, f"not an ISO date: {value!r}") from None
