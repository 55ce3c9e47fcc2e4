"""
DocumentSelector -- listing and lookup of documents of one kind.
"""

from uuid import UUID

from sqlalchemy import or_, select

from stock_kernel.domain.document_kinds import DocumentKind, DocumentStatus
from stock_kernel.domain.dtos import DocumentInfo
from stock_kernel.exceptions import DocumentNotFoundError
from stock_kernel.models.document import document_model_for
from stock_kernel.models.master import Location
from stock_kernel.selectors.base import BaseSelector


class DocumentSelector(BaseSelector):
    def __init__(self, session, kind: DocumentKind):
        super().__init__(session)
        self.kind = kind
        self._model = document_model_for(kind.name)

    def get(self, document_id: UUID) -> DocumentInfo:
        doc = self.session.get(self._model, document_id)
        if doc is None:
            raise DocumentNotFoundError(self.kind.name, str(document_id))
        return DocumentInfo.from_model(doc, self.kind)

    def list_documents(
        self,
        warehouse_id: UUID | None = None,
        status: DocumentStatus | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[DocumentInfo]:
        """
        Documents newest first.

        ``warehouse_id`` matches the header warehouse, or for transfers
        either end's warehouse.  ``search`` is a case-insensitive substring
        match over the kind's search fields.
        """
        model = self._model
        stmt = select(model)

        if warehouse_id is not None:
            if self.kind.header_warehouse:
                stmt = stmt.where(model.warehouse_id == warehouse_id)
            else:
                in_warehouse = select(Location.id).where(
                    Location.warehouse_id == warehouse_id
                )
                stmt = stmt.where(
                    or_(
                        model.source_location_id.in_(in_warehouse),
                        model.destination_location_id.in_(in_warehouse),
                    )
                )

        if status is not None:
            stmt = stmt.where(model.status == DocumentStatus(status))

        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(*(getattr(model, name).ilike(pattern) for name in self.kind.search_fields))
            )

        stmt = stmt.order_by(model.created_at.desc(), model.reference.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        return [
            DocumentInfo.from_model(doc, self.kind)
            for doc in self.session.execute(stmt).scalars()
        ]
