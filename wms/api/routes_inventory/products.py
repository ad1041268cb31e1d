"""Product endpoints."""
import logging

from fastapi import APIRouter, Response

from wms.core.exceptions import EntityNotFoundError
from wms.models import inventory_schemas as schemas

from .dependencies import EntityIdPath, InventoryServiceDep
from .helpers import product_to_out, require_found

router = APIRouter(tags=["products"])
logger = logging.getLogger(__name__)


@router.post("/products", response_model=schemas.ProductOut, status_code=201)
def create_product(
    data: schemas.ProductCreate,
    service: InventoryServiceDep,
):
    """Create a new product."""
    product = service.create_product(data)
    return product_to_out(product)


@router.get("/products", response_model=list[schemas.ProductOut])
def list_products(service: InventoryServiceDep):
    """List all products with their category and supplier."""
    return [product_to_out(p) for p in service.list_products()]


@router.get("/products/name/{name}", response_model=list[schemas.ProductNameMatch])
def search_products_by_name(name: str, service: InventoryServiceDep):
    """Case-insensitive substring search on product name."""
    return [schemas.ProductNameMatch.model_validate(p) for p in service.search_products(name)]


@router.get("/products/sku/{sku}", response_model=schemas.ProductOut)
def get_product_by_sku(
    sku: str,
    service: InventoryServiceDep,
):
    """Get a product by SKU."""
    product = require_found(service.get_product_by_sku(sku), "Product")
    return product_to_out(product)


@router.get("/products/{product_id}", response_model=schemas.ProductOut)
def get_product(
    product_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Get a product by ID."""
    product = require_found(service.get_product(product_id), "Product", product_id)
    return product_to_out(product)


@router.put("/products/{product_id}", response_model=schemas.ProductOut)
def update_product(
    product_id: EntityIdPath,
    data: schemas.ProductUpdate,
    service: InventoryServiceDep,
):
    """Replace a product. Its inventory rows pick up the new category and supplier."""
    product = require_found(service.update_product(product_id, data), "Product", product_id)
    return product_to_out(product)


@router.delete("/products/{product_id}", status_code=204)
def delete_product(
    product_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Delete a product that no inventory references."""
    if not service.delete_product(product_id):
        raise EntityNotFoundError("Product", product_id)
    return Response(status_code=204)
