"""HTTP routers."""

from stock_api.routes.documents import build_document_router
from stock_api.routes.products import router as products_router
from stock_api.routes.stock import router as stock_router

__all__ = [
    "build_document_router",
    "products_router",
    "stock_router",
]
