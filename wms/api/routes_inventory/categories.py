"""Category endpoints."""
import logging

from fastapi import APIRouter, Body

from wms.core.exceptions import EntityNotFoundError
from wms.models import inventory_schemas as schemas

from .dependencies import EntityIdPath, InventoryServiceDep
from .helpers import category_to_out, category_to_summary, require_found

router = APIRouter(tags=["categories"])
logger = logging.getLogger(__name__)


@router.post(
    "/categories",
    response_model=schemas.CategoryOut | list[schemas.CategoryOut],
    status_code=201,
)
def create_categories(
    service: InventoryServiceDep,
    data: schemas.CategoryCreate | list[schemas.CategoryCreate] = Body(...),
):
    """Create one category, or several when the body is an array."""
    if isinstance(data, list):
        return [category_to_out(c) for c in service.create_categories(data)]
    return category_to_out(service.create_category(data))


@router.get("/categories", response_model=list[schemas.CategoryOut])
def list_categories(service: InventoryServiceDep):
    """List all categories."""
    return [category_to_out(c) for c in service.list_categories()]


@router.get("/categories/summaries", response_model=list[schemas.CategorySummaryOut])
def list_category_summaries(service: InventoryServiceDep):
    """List categories with their products and live product count."""
    return [category_to_summary(c) for c in service.list_categories()]


@router.get("/categories/name/{name}", response_model=schemas.CategorySummaryOut)
def get_category_by_name(name: str, service: InventoryServiceDep):
    category = require_found(service.get_category_by_name(name), "Category")
    return category_to_summary(category)


@router.get("/categories/{category_id}", response_model=schemas.CategoryOut)
def get_category(
    category_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Get a category by ID."""
    category = require_found(service.get_category(category_id), "Category", category_id)
    return category_to_out(category)


@router.get("/categories/{category_id}/products", response_model=list[schemas.ProductRef])
def list_category_products(category_id: EntityIdPath, service: InventoryServiceDep):
    return [schemas.ProductRef.model_validate(p) for p in service.list_category_products(category_id)]


@router.get("/categories/{category_id}/stock", response_model=schemas.CategoryStockOut)
def get_category_stock(category_id: EntityIdPath, service: InventoryServiceDep):
    """Total units held across every warehouse for the category."""
    return schemas.CategoryStockOut(category_id=category_id, total_stock=service.category_stock(category_id))


@router.put("/categories/{category_id}/name", response_model=schemas.CategoryOut)
def rename_category(
    category_id: EntityIdPath,
    data: schemas.CategoryRename,
    service: InventoryServiceDep,
):
    """Rename a category."""
    category = require_found(service.rename_category(category_id, data), "Category", category_id)
    return category_to_out(category)


@router.delete("/categories/{category_id}", response_model=schemas.MessageOut)
def delete_category(
    category_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Delete a category that nothing references."""
    if not service.delete_category(category_id):
        raise EntityNotFoundError("Category", category_id)
    return schemas.MessageOut(message="Category deleted successfully")
