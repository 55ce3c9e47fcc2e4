"""
Request and response schemas for the HTTP API.

Document payload models are generated per kind from the kind's header
fields, so each collection accepts exactly the headers its documents carry.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, create_model

from stock_kernel.domain.document_kinds import DocumentKind
from stock_kernel.domain.dtos import DocumentInfo, LineItem, StockCheck

_UUID_FIELDS = frozenset({"warehouse_id", "source_location_id", "destination_location_id"})


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class LineItemIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: UUID
    quantity: int = Field(ge=0)
    location_id: UUID | None = None

    def to_line_item(self) -> LineItem:
        return LineItem(
            product_id=self.product_id,
            quantity=self.quantity,
            location_id=self.location_id,
        )


class _DocumentPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def header(self) -> dict[str, Any]:
        """Header fields the client actually sent."""
        return self.model_dump(exclude_unset=True, exclude={"items"})

    def line_items(self) -> list[LineItem] | None:
        items = getattr(self, "items", None)
        if items is None:
            return None
        return [item.to_line_item() for item in items]


def _header_annotation(field_name: str) -> Any:
    if field_name in _UUID_FIELDS:
        return UUID | None
    if field_name == "scheduled_date":
        return date | None
    return str | None


def build_create_model(kind: DocumentKind) -> type[_DocumentPayload]:
    fields: dict[str, Any] = {
        name: (_header_annotation(name), None) for name in kind.header_fields
    }
    fields["items"] = (list[LineItemIn], Field(default_factory=list))
    return create_model(
        f"{kind.name.capitalize()}Create", __base__=_DocumentPayload, **fields
    )


def build_update_model(kind: DocumentKind) -> type[_DocumentPayload]:
    """All fields optional; ``items`` replaces every line when present."""
    fields: dict[str, Any] = {
        name: (_header_annotation(name), None) for name in kind.header_fields
    }
    fields["items"] = (list[LineItemIn] | None, None)
    return create_model(
        f"{kind.name.capitalize()}Update", __base__=_DocumentPayload, **fields
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class StockMoveOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    line_no: int
    product_id: UUID
    quantity: int
    move_type: str
    status: str
    source_location_id: UUID | None
    destination_location_id: UUID | None
    created_at: datetime | None = None


class StockCheckOut(BaseModel):
    line_no: int
    product_id: UUID
    location_id: UUID | None
    required: int
    available: int
    is_short: bool

    @classmethod
    def from_check(cls, check: StockCheck) -> StockCheckOut:
        return cls(
            line_no=check.line_no,
            product_id=check.product_id,
            location_id=check.location_id,
            required=check.requested,
            available=check.available,
            is_short=check.is_short,
        )


class DocumentOut(BaseModel):
    id: UUID
    kind: str
    reference: str
    status: str
    warehouse_id: UUID | None
    scheduled_date: date | None
    completed_at: datetime | None
    created_at: datetime | None
    version: int
    attributes: dict[str, Any]
    items: list[StockMoveOut]
    stock_checks: list[StockCheckOut] = []

    @classmethod
    def from_info(
        cls,
        info: DocumentInfo,
        stock_checks: tuple[StockCheck, ...] = (),
    ) -> DocumentOut:
        attributes = {
            name: str(value) if isinstance(value, UUID) else value
            for name, value in info.attributes.items()
        }
        return cls(
            id=info.id,
            kind=info.kind,
            reference=info.reference,
            status=info.status,
            warehouse_id=info.warehouse_id,
            scheduled_date=info.scheduled_date,
            completed_at=info.completed_at,
            created_at=info.created_at,
            version=info.version,
            attributes=attributes,
            items=[StockMoveOut.model_validate(m) for m in info.moves],
            stock_checks=[StockCheckOut.from_check(c) for c in stock_checks],
        )


class StockRowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    sku: str
    product_name: str
    location_id: UUID
    location_code: str
    warehouse_id: UUID
    warehouse_code: str
    quantity: int
    reserved: int
    available: int


class MoveHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    move: StockMoveOut
    document_kind: str
    document_id: UUID
    reference: str
    warehouse_id: UUID | None
    contact: str | None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sku: str
    name: str
    unit_of_measure: str
    min_stock: int
    category_id: UUID | None
    is_active: bool


class ProductRemovalOut(BaseModel):
    message: str
    outcome: str
    product: ProductOut


class MessageOut(BaseModel):
    message: str
