"""Helper functions for inventory routes.

Conversions run inside the route function, while the request's session is
still open, so lazy relationships can load.
"""
from typing import Iterable, TypeVar

from wms.core.exceptions import EntityNotFoundError
from wms.models import inventory_schemas as schemas

T = TypeVar("T")


def require_found(record: T | None, entity: str, entity_id: str | None = None) -> T:
    """Raise a 404 for a missing record."""
    if record is None:
        raise EntityNotFoundError(entity, entity_id)
    return record


def require_any(records: list[T], entity: str) -> list[T]:
    """Raise a 404 when a relationship lookup matched nothing."""
    if not records:
        raise EntityNotFoundError(entity)
    return records


def category_to_out(category) -> schemas.CategoryOut:
    """Convert Category model to CategoryOut schema."""
    return schemas.CategoryOut(
        id=category.id,
        name=category.name,
        product_count=category.product_count,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def category_to_summary(category) -> schemas.CategorySummaryOut:
    return schemas.CategorySummaryOut(
        **category_to_out(category).model_dump(),
        products=[schemas.ProductRef.model_validate(p) for p in category.products],
    )


def product_to_out(product) -> schemas.ProductOut:
    """Convert Product model to ProductOut schema."""
    return schemas.ProductOut(
        id=product.id,
        name=product.name,
        description=product.description,
        price=product.price,
        sku=product.sku,
        category_id=product.category_id,
        supplier_id=product.supplier_id,
        category=schemas.CategoryRef.model_validate(product.category) if product.category else None,
        supplier=schemas.SupplierRef.model_validate(product.supplier) if product.supplier else None,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def supplier_to_out(supplier, with_deliveries: bool = False) -> schemas.SupplierOut:
    if with_deliveries:
        return schemas.SupplierDetailOut.model_validate(supplier)
    return schemas.SupplierOut.model_validate(supplier)


def warehouse_to_out(warehouse) -> schemas.WarehouseOut:
    """Convert Warehouse model to WarehouseOut schema."""
    return schemas.WarehouseOut(
        id=warehouse.id,
        name=warehouse.name,
        location=warehouse.location,
        capacity=warehouse.capacity,
        current_usage=warehouse.current_usage,
        available_capacity=warehouse.available_capacity,
        product_ids=warehouse.product_ids,
        supplier_ids=warehouse.supplier_ids,
        category_ids=warehouse.category_ids,
        created_at=warehouse.created_at,
        updated_at=warehouse.updated_at,
    )


def inventory_to_out(inventory) -> schemas.InventoryOut:
    """Convert Inventory model to InventoryOut schema."""
    return schemas.InventoryOut(
        id=inventory.id,
        product_id=inventory.product_id,
        warehouse_id=inventory.warehouse_id,
        category_id=inventory.category_id,
        supplier_id=inventory.supplier_id,
        stock=inventory.stock,
        unit_price=inventory.unit_price,
        expiry_date=inventory.expiry_date,
        product=schemas.ProductRef.model_validate(inventory.product) if inventory.product else None,
        warehouse=schemas.WarehouseRef.model_validate(inventory.warehouse) if inventory.warehouse else None,
        created_at=inventory.created_at,
        updated_at=inventory.updated_at,
    )


def inventory_to_detail(inventory) -> schemas.InventoryDetailOut:
    return schemas.InventoryDetailOut(
        **inventory_to_out(inventory).model_dump(),
        audit_log=[schemas.AuditEntryOut.model_validate(entry) for entry in inventory.audit_log],
    )


def inventories_to_out(rows: Iterable) -> list[schemas.InventoryOut]:
    return [inventory_to_out(row) for row in rows]
