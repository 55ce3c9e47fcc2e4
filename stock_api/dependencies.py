"""FastAPI dependencies: database session, acting user and services."""

from __future__ import annotations

from collections.abc import Generator
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from stock_kernel.exceptions import ValidationError
from stock_modules.documents.service import DocumentService
from stock_modules.inventory.service import InventoryService

ACTOR_HEADER = "X-Actor-Id"


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_actor_id(
    request: Request,
    x_actor_id: str | None = Header(default=None, alias=ACTOR_HEADER),
) -> UUID:
    """The acting user, or the configured default actor."""
    if not x_actor_id:
        return request.app.state.config.default_actor_id
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise ValidationError(ACTOR_HEADER, "must be a UUID") from None


def get_document_service(
    request: Request,
    db: Session = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id),
) -> DocumentService:
    state = request.app.state
    return DocumentService(
        db,
        state.kinds,
        actor_id=actor_id,
        clock=state.clock,
        workflows=state.workflows,
    )


def get_inventory_service(
    db: Session = Depends(get_db),
    actor_id: UUID = Depends(get_actor_id),
) -> InventoryService:
    return InventoryService(db, actor_id)
