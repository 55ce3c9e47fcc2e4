"""Stock levels and stock move history."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from stock_api.dependencies import get_inventory_service
from stock_api.schemas import MoveHistoryOut, StockRowOut
from stock_kernel.domain.document_kinds import DocumentStatus, MoveType
from stock_modules.inventory.service import InventoryService

router = APIRouter(tags=["Stock"])


@router.get("/stock", response_model=list[StockRowOut])
def list_stock(
    warehouse_id: UUID | None = None,
    product_id: UUID | None = None,
    service: InventoryService = Depends(get_inventory_service),
):
    """Ledger rows with product, location and warehouse labels."""
    rows = service.list_stock(warehouse_id=warehouse_id, product_id=product_id)
    return [StockRowOut.model_validate(r) for r in rows]


@router.get("/stock-moves", response_model=list[MoveHistoryOut])
def list_stock_moves(
    move_type: MoveType | None = None,
    status: DocumentStatus | None = None,
    product_id: UUID | None = None,
    warehouse_id: UUID | None = None,
    reference: str | None = None,
    contact: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
    limit: int | None = Query(default=None, ge=1, le=1000),
    service: InventoryService = Depends(get_inventory_service),
):
    entries = service.move_history(
        move_type=move_type,
        status=status,
        product_id=product_id,
        warehouse_id=warehouse_id,
        reference=reference,
        contact=contact,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
    )
    return [MoveHistoryOut.model_validate(e) for e in entries]


@router.get("/stock-moves/{move_id}", response_model=MoveHistoryOut)
def get_stock_move(
    move_id: UUID,
    service: InventoryService = Depends(get_inventory_service),
):
    return MoveHistoryOut.model_validate(service.get_move(move_id))
