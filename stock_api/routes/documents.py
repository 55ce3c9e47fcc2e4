"""
Document routes.

One router per configured kind, all with the same shape:
list, fetch, create, partial update, validate, delete.
"""

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query

from stock_api.dependencies import get_document_service
from stock_api.schemas import (
    DocumentOut,
    MessageOut,
    build_create_model,
    build_update_model,
)
from stock_kernel.domain.document_kinds import DocumentKind, DocumentStatus
from stock_modules.documents.service import DocumentService


def build_document_router(kind: DocumentKind) -> APIRouter:
    router = APIRouter(prefix=f"/{kind.collection}", tags=[kind.collection.capitalize()])
    create_model = build_create_model(kind)
    update_model = build_update_model(kind)
    label = kind.name.capitalize()

    @router.get("", response_model=list[DocumentOut])
    def list_documents(
        warehouse_id: UUID | None = None,
        status: DocumentStatus | None = None,
        search: str | None = None,
        limit: int | None = Query(default=None, ge=1, le=1000),
        service: DocumentService = Depends(get_document_service),
    ):
        documents = service.list_documents(
            kind.name,
            warehouse_id=warehouse_id,
            status=status,
            search=search,
            limit=limit,
        )
        return [DocumentOut.from_info(d) for d in documents]

    @router.get("/{document_id}", response_model=DocumentOut)
    def get_document(
        document_id: UUID,
        service: DocumentService = Depends(get_document_service),
    ):
        return DocumentOut.from_info(service.get(kind.name, document_id))

    @router.post("", response_model=DocumentOut, status_code=201)
    def create_document(
        payload: create_model = Body(...),  # type: ignore[valid-type]
        service: DocumentService = Depends(get_document_service),
    ):
        result = service.create(kind.name, payload.header(), payload.line_items() or [])
        return DocumentOut.from_info(result.document, result.stock_checks)

    @router.put("/{document_id}", response_model=DocumentOut)
    def update_document(
        document_id: UUID,
        payload: update_model = Body(...),  # type: ignore[valid-type]
        service: DocumentService = Depends(get_document_service),
    ):
        result = service.update(
            kind.name,
            document_id,
            header=payload.header() or None,
            items=payload.line_items(),
        )
        return DocumentOut.from_info(result.document, result.stock_checks)

    @router.post("/{document_id}/validate", response_model=DocumentOut)
    def validate_document(
        document_id: UUID,
        service: DocumentService = Depends(get_document_service),
    ):
        result = service.validate(kind.name, document_id)
        return DocumentOut.from_info(result.document, result.stock_checks)

    @router.delete("/{document_id}", response_model=MessageOut)
    def delete_document(
        document_id: UUID,
        service: DocumentService = Depends(get_document_service),
    ):
        service.delete(kind.name, document_id)
        return MessageOut(message=f"{label} deleted successfully")

    return router
