"""Warehouse endpoints."""
import logging

from fastapi import APIRouter, Query

from wms.core.exceptions import EntityNotFoundError
from wms.models import inventory_schemas as schemas

from .dependencies import EntityIdPath, InventoryServiceDep
from .helpers import require_found, warehouse_to_out

router = APIRouter(tags=["warehouses"])
logger = logging.getLogger(__name__)


@router.post("/warehouses", response_model=schemas.WarehouseOut, status_code=201)
def create_warehouse(
    data: schemas.WarehouseCreate,
    service: InventoryServiceDep,
):
    """Create a warehouse with zero usage."""
    return warehouse_to_out(service.create_warehouse(data))


@router.get("/warehouses", response_model=list[schemas.WarehouseOut])
def list_warehouses(service: InventoryServiceDep):
    """List all warehouses with the products, suppliers and categories they hold."""
    return [warehouse_to_out(w) for w in service.list_warehouses()]


@router.get("/warehouses/name/{name}", response_model=list[schemas.WarehouseOut])
def search_warehouses_by_name(name: str, service: InventoryServiceDep):
    return [warehouse_to_out(w) for w in service.search_warehouses_by_name(name)]


@router.get("/warehouses/location/{location}", response_model=list[schemas.WarehouseOut])
def search_warehouses_by_location(location: str, service: InventoryServiceDep):
    return [warehouse_to_out(w) for w in service.search_warehouses_by_location(location)]


@router.get("/warehouses/supplier/{name}", response_model=list[schemas.WarehouseOut])
def get_warehouses_by_supplier(name: str, service: InventoryServiceDep):
    """Warehouses stocking products of the first supplier matching the name."""
    return [warehouse_to_out(w) for w in service.warehouses_for_supplier(name)]


@router.get("/warehouses/product/{name}", response_model=list[schemas.WarehouseOut])
def get_warehouses_by_product(name: str, service: InventoryServiceDep):
    return [warehouse_to_out(w) for w in service.warehouses_for_product(name)]


@router.get("/warehouses/category/{name}", response_model=list[schemas.WarehouseOut])
def get_warehouses_by_category(name: str, service: InventoryServiceDep):
    return [warehouse_to_out(w) for w in service.warehouses_for_category(name)]


@router.get("/warehouses/{warehouse_id}", response_model=schemas.WarehouseOut)
def get_warehouse(
    warehouse_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Get a warehouse by ID."""
    warehouse = require_found(service.get_warehouse(warehouse_id), "Warehouse", warehouse_id)
    return warehouse_to_out(warehouse)


@router.get("/warehouses/{warehouse_id}/utilization", response_model=schemas.WarehouseUtilizationOut)
def get_warehouse_utilization(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    """Capacity, stored usage and live usage of a warehouse."""
    return service.warehouse_utilization(warehouse_id)


@router.post("/warehouses/{warehouse_id}/reconcile", response_model=schemas.ReconcileOut)
def reconcile_warehouse_usage(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    """Reset the usage counter to the live inventory sum."""
    previous, current = service.reconcile_usage(warehouse_id)
    return schemas.ReconcileOut(warehouse_id=warehouse_id, previous_usage=previous, current_usage=current)


@router.put("/warehouses/{warehouse_id}", response_model=schemas.WarehouseOut)
def update_warehouse(
    warehouse_id: EntityIdPath,
    data: schemas.WarehouseUpdate,
    service: InventoryServiceDep,
):
    """Update name, location or capacity."""
    warehouse = require_found(service.update_warehouse(warehouse_id, data), "Warehouse", warehouse_id)
    return warehouse_to_out(warehouse)


@router.delete("/warehouses/{warehouse_id}", response_model=schemas.MessageOut)
def delete_warehouse(
    warehouse_id: EntityIdPath,
    service: InventoryServiceDep,
    force: bool = Query(False, description="Also delete the warehouse's inventory"),
):
    """Delete a warehouse; refused while it holds inventory unless forced."""
    if not service.delete_warehouse(warehouse_id, force=force):
        raise EntityNotFoundError("Warehouse", warehouse_id)
    return schemas.MessageOut(message="Warehouse deleted successfully")
