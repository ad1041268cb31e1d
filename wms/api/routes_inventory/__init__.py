"""
Inventory API Routes.

RESTful endpoints for warehouse inventory management:
- Products (CRUD, name/SKU lookup)
- Categories (CRUD, summaries, stock totals)
- Suppliers (CRUD, delivery log, relationship lookups)
- Warehouses (CRUD, utilization, usage reconciliation)
- Inventory (stock add/move/diminish, lookups, audit log)
"""
from fastapi import APIRouter

from .categories import router as categories_router
from .products import router as products_router
from .stock import router as stock_router
from .suppliers import router as suppliers_router
from .warehouses import router as warehouses_router

# Create main router and include sub-routers
router = APIRouter()
router.include_router(categories_router)
router.include_router(products_router)
router.include_router(suppliers_router)
router.include_router(warehouses_router)
router.include_router(stock_router)

__all__ = ["router"]
