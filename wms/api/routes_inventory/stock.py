"""Inventory and stock movement endpoints."""
import datetime as dt
import logging

from fastapi import APIRouter, Body, Query

from wms.core.config import settings
from wms.models import inventory_schemas as schemas

from .dependencies import EntityIdPath, InventoryServiceDep
from .helpers import (
    inventories_to_out,
    inventory_to_detail,
    inventory_to_out,
    require_any,
    require_found,
)

router = APIRouter(tags=["inventory"])
logger = logging.getLogger(__name__)


@router.post(
    "/inventory",
    response_model=schemas.InventoryOut | list[schemas.InventoryOut],
    status_code=201,
)
def add_inventory(
    service: InventoryServiceDep,
    data: schemas.InventoryCreate | list[schemas.InventoryCreate] = Body(...),
):
    """
    Add stock of a product to a warehouse.

    An array body is applied all-or-nothing: one item over capacity
    stores none of them.
    """
    if isinstance(data, list):
        return inventories_to_out(service.add_stock_batch(data))
    inventory = service.add_stock(
        product_id=data.product_id,
        warehouse_id=data.warehouse_id,
        quantity=data.stock,
        unit_price=data.unit_price,
        expiry_date=data.expiry_date,
    )
    return inventory_to_out(inventory)


@router.get("/inventory", response_model=list[schemas.InventoryOut])
def list_inventory(service: InventoryServiceDep):
    """List all inventory rows with product and warehouse."""
    return inventories_to_out(service.list_inventory())


@router.get("/inventory/low-stock", response_model=list[schemas.InventoryOut])
def list_low_stock(
    service: InventoryServiceDep,
    threshold: int | None = Query(None, ge=0, description="Rows with stock below this are returned"),
):
    """Rows running low on stock."""
    limit = threshold if threshold is not None else settings.LOW_STOCK_THRESHOLD
    return inventories_to_out(service.low_stock(limit))


@router.get("/inventory/sku/{sku}", response_model=list[schemas.InventoryOut])
def get_inventory_by_sku(sku: str, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_sku(sku), "Inventory"))


@router.get("/inventory/product/{product_id}", response_model=list[schemas.InventoryOut])
def get_inventory_by_product(product_id: EntityIdPath, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_product(product_id), "Inventory"))


@router.get("/inventory/warehouse/{warehouse_id}", response_model=list[schemas.InventoryOut])
def get_inventory_by_warehouse(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_warehouse(warehouse_id), "Inventory"))


@router.get("/inventory/expiry/{expiry_date}", response_model=list[schemas.InventoryOut])
def get_inventory_by_expiry_date(expiry_date: dt.date, service: InventoryServiceDep):
    """Rows expiring on the given ISO date."""
    return inventories_to_out(require_any(service.inventory_by_expiry_date(expiry_date), "Inventory"))


@router.get("/inventory/audit-log/{action}", response_model=list[schemas.InventoryOut])
def get_inventory_by_audit_action(action: str, service: InventoryServiceDep):
    """Rows with at least one audit entry of the given action."""
    return inventories_to_out(require_any(service.inventory_by_audit_action(action), "Inventory"))


@router.get("/inventory/warehouse-capacity/{warehouse_id}", response_model=schemas.WarehouseCapacityOut)
def get_warehouse_capacity(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    return service.warehouse_capacity(warehouse_id)


@router.get("/inventory/warehouse-current-usage/{warehouse_id}", response_model=schemas.WarehouseUsageOut)
def get_warehouse_current_usage(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    return service.warehouse_usage(warehouse_id)


@router.get("/inventory/product-name/{name}", response_model=list[schemas.InventoryOut])
def get_inventory_by_product_name(name: str, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_product_name(name), "Inventory"))


@router.get("/inventory/warehouse-name/{name}", response_model=list[schemas.InventoryOut])
def get_inventory_by_warehouse_name(name: str, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_warehouse_name(name), "Inventory"))


@router.get("/inventory/product-category/{category_id}", response_model=list[schemas.InventoryOut])
def get_inventory_by_category(category_id: EntityIdPath, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_category(category_id), "Inventory"))


@router.get("/inventory/product-supplier/{supplier_id}", response_model=list[schemas.InventoryOut])
def get_inventory_by_supplier(supplier_id: EntityIdPath, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_supplier(supplier_id), "Inventory"))


@router.get("/inventory/product-location/{location}", response_model=list[schemas.InventoryOut])
def get_inventory_by_location(location: str, service: InventoryServiceDep):
    return inventories_to_out(require_any(service.inventory_by_location(location), "Inventory"))


@router.post("/inventory/move", response_model=schemas.MoveResult)
def move_inventory(
    data: schemas.MoveRequest,
    service: InventoryServiceDep,
):
    """Transfer units of a product from one warehouse to another."""
    source, destination = service.transfer_stock(
        product_id=data.product_id,
        from_warehouse_id=data.from_warehouse_id,
        to_warehouse_id=data.to_warehouse_id,
        quantity=data.amount,
    )
    return schemas.MoveResult(
        message="Inventory moved successfully",
        source=inventory_to_out(source),
        destination=inventory_to_out(destination),
    )


@router.post("/inventory/diminish", response_model=schemas.DiminishResult)
def diminish_inventory(
    data: schemas.DiminishRequest,
    service: InventoryServiceDep,
):
    """Remove units from an inventory row for spoilage, damage or loss."""
    inventory = service.diminish_stock(data.inventory_id, data.quantity, data.reason)
    return schemas.DiminishResult(
        message="Inventory diminished successfully",
        inventory=inventory_to_detail(inventory),
    )


@router.get("/inventory/{inventory_id}", response_model=schemas.InventoryDetailOut)
def get_inventory(
    inventory_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Get an inventory row with its audit log."""
    inventory = require_found(service.get_inventory(inventory_id), "Inventory", inventory_id)
    return inventory_to_detail(inventory)


@router.get("/inventory/{inventory_id}/audit-log", response_model=list[schemas.AuditEntryOut])
def get_inventory_audit_log(inventory_id: EntityIdPath, service: InventoryServiceDep):
    return [schemas.AuditEntryOut.model_validate(e) for e in service.inventory_audit_log(inventory_id)]


@router.put("/inventory/{inventory_id}", response_model=schemas.InventoryDetailOut)
def update_inventory(
    inventory_id: EntityIdPath,
    data: schemas.InventoryUpdate,
    service: InventoryServiceDep,
):
    """Update stock, unit price or expiry date of an inventory row."""
    inventory = service.update_inventory(inventory_id, data)
    return inventory_to_detail(inventory)


@router.delete("/inventory/{inventory_id}", response_model=schemas.MessageOut)
def delete_inventory(
    inventory_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Delete an inventory row and release its units from the warehouse."""
    released = service.remove_inventory(inventory_id)
    return schemas.MessageOut(message=f"Inventory deleted successfully ({released} units released)")
