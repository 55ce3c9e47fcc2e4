"""
Document Module Service (``stock_modules.documents.service``).

Responsibility
--------------
Orchestrates the document lifecycle for every configured kind by composing
the kernel ``DocumentEngine`` (writes) and ``DocumentSelector`` (reads).
This is a **thin glue layer** -- it contains no lifecycle rules of its own.

Invariants
----------
- Each public write method owns its transaction boundary.  The engine only
  flushes; this service calls ``session.commit()`` on success and
  ``session.rollback()`` on failure.
- A failed completion leaves nothing behind: ledger rows, move statuses
  and the document status are rolled back together.

Failure Modes
-------------
- Kernel errors (``StockKernelError`` subclasses) propagate after rollback.
- ``StaleDataError`` from the document version counter is re-raised as
  ``OptimisticLockError``.
- Any other exception triggers ``session.rollback()`` before re-raise.

Usage::

    service = DocumentService(session, kinds, actor_id=actor_id)
    result = service.create(
        "receipt",
        {"warehouse_id": warehouse_id, "supplier": "Acme"},
        [LineItem(product_id=product_id, quantity=10, location_id=location_id)],
    )
    service.validate("receipt", result.document.id)   # DRAFT -> READY
    service.validate("receipt", result.document.id)   # READY -> DONE
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stock_kernel.domain.clock import Clock, SystemClock
from stock_kernel.domain.document_kinds import DocumentKind, DocumentStatus
from stock_kernel.domain.dtos import DocumentInfo, DocumentResult, LineItem
from stock_kernel.domain.workflow import Workflow
from stock_kernel.exceptions import OptimisticLockError, ValidationError
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.selectors.document_selector import DocumentSelector
from stock_kernel.services.document_engine import DocumentEngine
from stock_modules.documents.workflows import build_workflow

logger = get_logger("modules.documents.service")

T = TypeVar("T")


class DocumentService:
    """
    Lifecycle operations for all document kinds.

    Transaction boundary: this service commits on success, rolls back on
    failure.  Reads never commit.
    """

    def __init__(
        self,
        session: Session,
        kinds: Mapping[str, DocumentKind],
        actor_id: UUID,
        clock: Clock | None = None,
        workflows: Mapping[str, Workflow] | None = None,
    ):
        self._session = session
        self._kinds = dict(kinds)
        self._actor_id = actor_id
        self._clock = clock or SystemClock()
        self._workflows = dict(workflows) if workflows is not None else {
            name: build_workflow(kind) for name, kind in self._kinds.items()
        }

    # =========================================================================
    # Kind lookup
    # =========================================================================

    @property
    def kinds(self) -> dict[str, DocumentKind]:
        return dict(self._kinds)

    def kind(self, kind_name: str) -> DocumentKind:
        try:
            return self._kinds[kind_name]
        except KeyError:
            raise ValidationError("kind", f"unknown document kind '{kind_name}'") from None

    def engine(self, kind_name: str) -> DocumentEngine:
        kind = self.kind(kind_name)
        return DocumentEngine(
            self._session,
            kind,
            self._workflows[kind_name],
            self._clock,
            self._actor_id,
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def create(
        self,
        kind_name: str,
        header: Mapping[str, Any],
        items: Sequence[LineItem],
    ) -> DocumentResult:
        """
        Create a document in DRAFT (or WAITING for short gated kinds).

        Postconditions:
            - The document, its moves and its reference counter are
              committed together.
        """
        engine = self.engine(kind_name)
        return self._run(
            kind_name, None, "create",
            lambda: engine.create(header, items),
        )

    def update(
        self,
        kind_name: str,
        document_id: UUID,
        header: Mapping[str, Any] | None = None,
        items: Sequence[LineItem] | None = None,
    ) -> DocumentResult:
        engine = self.engine(kind_name)
        return self._run(
            kind_name, document_id, "update",
            lambda: engine.update(document_id, header=header, items=items),
        )

    def validate(self, kind_name: str, document_id: UUID) -> DocumentResult:
        """
        Advance a document one step along its lifecycle.

        Raises:
            InsufficientStockError: WAITING still short, or a READY
                document's completion found a line short.  Nothing is
                written in either case.
            DocumentAlreadyCompletedError: The document is already DONE.
        """
        engine = self.engine(kind_name)
        return self._run(
            kind_name, document_id, "validate",
            lambda: engine.validate(document_id),
        )

    def delete(self, kind_name: str, document_id: UUID) -> None:
        engine = self.engine(kind_name)
        self._run(
            kind_name, document_id, "delete",
            lambda: engine.delete(document_id),
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, kind_name: str, document_id: UUID) -> DocumentInfo:
        return DocumentSelector(self._session, self.kind(kind_name)).get(document_id)

    def list_documents(
        self,
        kind_name: str,
        warehouse_id: UUID | None = None,
        status: DocumentStatus | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[DocumentInfo]:
        selector = DocumentSelector(self._session, self.kind(kind_name))
        return selector.list_documents(
            warehouse_id=warehouse_id, status=status, search=search, limit=limit
        )

    # =========================================================================
    # Transaction boundary
    # =========================================================================

    def _run(
        self,
        kind_name: str,
        document_id: UUID | None,
        operation: str,
        work: Callable[[], T],
    ) -> T:
        with LogContext.bind(
            actor_id=str(self._actor_id),
            document_kind=kind_name,
            document_id=str(document_id) if document_id else None,
        ):
            try:
                result = work()
                self._session.commit()
            except StaleDataError as exc:
                self._session.rollback()
                logger.warning(
                    "document_version_conflict",
                    extra={"operation": operation},
                )
                raise OptimisticLockError(
                    kind_name.capitalize(), str(document_id)
                ) from exc
            except Exception:
                self._session.rollback()
                logger.info("document_operation_rolled_back", extra={"operation": operation})
                raise
            return result
