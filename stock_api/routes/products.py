"""Product removal."""

from uuid import UUID

from fastapi import APIRouter, Depends

from stock_api.dependencies import get_inventory_service
from stock_api.schemas import ProductOut, ProductRemovalOut
from stock_kernel.services.product_service import RemovalOutcome
from stock_modules.inventory.service import InventoryService

router = APIRouter(prefix="/products", tags=["Products"])

_MESSAGES = {
    RemovalOutcome.DELETED: "Product deleted successfully",
    RemovalOutcome.ARCHIVED: "Product has stock history and was archived",
}


@router.delete("/{product_id}", response_model=ProductRemovalOut)
def remove_product(
    product_id: UUID,
    service: InventoryService = Depends(get_inventory_service),
):
    """Delete a product, or archive it when stock moves reference it."""
    removal = service.remove_product(product_id)
    return ProductRemovalOut(
        message=_MESSAGES[removal.outcome],
        outcome=removal.outcome.value,
        product=ProductOut.model_validate(removal.product),
    )
