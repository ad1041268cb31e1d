"""Supplier endpoints."""
import logging

from fastapi import APIRouter, Body

from wms.core.exceptions import EntityNotFoundError
from wms.models import inventory_schemas as schemas

from .dependencies import EntityIdPath, InventoryServiceDep
from .helpers import require_any, require_found, supplier_to_out

router = APIRouter(tags=["suppliers"])
logger = logging.getLogger(__name__)


@router.post(
    "/suppliers",
    response_model=schemas.SupplierOut | list[schemas.SupplierOut],
    status_code=201,
)
def create_suppliers(
    service: InventoryServiceDep,
    data: schemas.SupplierCreate | list[schemas.SupplierCreate] = Body(...),
):
    """Create one supplier, or several when the body is an array."""
    if isinstance(data, list):
        return [supplier_to_out(s) for s in service.create_suppliers(data)]
    return supplier_to_out(service.create_supplier(data))


@router.get("/suppliers", response_model=list[schemas.SupplierOut])
def list_suppliers(service: InventoryServiceDep):
    """List all suppliers."""
    return [supplier_to_out(s) for s in service.list_suppliers()]


@router.get("/suppliers/name/{name}", response_model=list[schemas.SupplierOut])
def search_suppliers(name: str, service: InventoryServiceDep):
    suppliers = require_any(service.search_suppliers(name), "Supplier")
    return [supplier_to_out(s) for s in suppliers]


@router.get("/suppliers/product/{value}", response_model=list[schemas.SupplierOut])
def get_suppliers_by_product(value: str, service: InventoryServiceDep):
    """Suppliers of products whose name contains the given text."""
    return [supplier_to_out(s) for s in service.suppliers_for_product(value)]


@router.get("/suppliers/warehouse/{warehouse_id}", response_model=list[schemas.SupplierOut])
def get_suppliers_by_warehouse(warehouse_id: EntityIdPath, service: InventoryServiceDep):
    """Suppliers of the products stocked in a warehouse."""
    return [supplier_to_out(s) for s in service.suppliers_for_warehouse(warehouse_id)]


@router.get("/suppliers/{supplier_id}", response_model=schemas.SupplierDetailOut)
def get_supplier(
    supplier_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Get a supplier with its delivery log."""
    supplier = require_found(service.get_supplier(supplier_id), "Supplier", supplier_id)
    return supplier_to_out(supplier, with_deliveries=True)


@router.put("/suppliers/{supplier_id}", response_model=schemas.SupplierOut)
def update_supplier(
    supplier_id: EntityIdPath,
    data: schemas.SupplierUpdate,
    service: InventoryServiceDep,
):
    """Update a supplier."""
    supplier = require_found(service.update_supplier(supplier_id, data), "Supplier", supplier_id)
    return supplier_to_out(supplier)


@router.delete("/suppliers/{supplier_id}", response_model=schemas.MessageOut)
def delete_supplier(
    supplier_id: EntityIdPath,
    service: InventoryServiceDep,
):
    """Delete a supplier that no product references."""
    if not service.delete_supplier(supplier_id):
        raise EntityNotFoundError("Supplier", supplier_id)
    return schemas.MessageOut(message="Supplier deleted successfully")


@router.post("/suppliers/{supplier_id}/deliveries", response_model=schemas.DeliveryOut, status_code=201)
def record_delivery(
    supplier_id: EntityIdPath,
    data: schemas.DeliveryCreate,
    service: InventoryServiceDep,
):
    """Log a delivery and receive its units into the warehouse."""
    delivery = service.record_delivery(supplier_id, data)
    return schemas.DeliveryOut.model_validate(delivery)


@router.get("/suppliers/{supplier_id}/deliveries", response_model=list[schemas.DeliveryOut])
def list_deliveries(supplier_id: EntityIdPath, service: InventoryServiceDep):
    return [schemas.DeliveryOut.model_validate(d) for d in service.list_deliveries(supplier_id)]
