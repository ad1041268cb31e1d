"""
Warehouse Service.

Warehouse CRUD and lookups. Usage is never written here except through the
capacity guard on updates and the cascade of a forced delete, both of which
hold the warehouse lock used by stock accounting.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from wms import metrics
from wms.core.exceptions import CapacityBelowUsageError, EntityNotFoundError, ReferencedEntityError
from wms.db.store import Contains, In
from wms.models.inventory_models import Category, Inventory, Product, Supplier, SupplierDelivery, Warehouse
from wms.models.inventory_schemas import WarehouseCreate, WarehouseUpdate, WarehouseUtilizationOut
from wms.services.inventory.base import BaseInventoryService

from .locks import WarehouseLocks, warehouse_locks

logger = logging.getLogger(__name__)

_EXPAND = ("inventory_items",)


class WarehouseService(BaseInventoryService):
    """Service for warehouse operations."""

    def __init__(self, db: Session, locks: WarehouseLocks | None = None):
        super().__init__(db)
        self._locks = locks or warehouse_locks

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def create_warehouse(self, data: WarehouseCreate) -> Warehouse:
        """Create a warehouse; usage starts at zero."""
        warehouse = self._store.insert(Warehouse, **data.model_dump(), current_usage=0)
        self._commit()
        logger.info(f"Created warehouse: {warehouse.name} (id={warehouse.id}, capacity={warehouse.capacity})")
        return warehouse

    def get_warehouse(self, warehouse_id: str) -> Warehouse | None:
        return self._store.find_by_id(Warehouse, warehouse_id, expand=_EXPAND)

    def list_warehouses(self) -> list[Warehouse]:
        return self._store.find_many(Warehouse, expand=_EXPAND, order_by="name")

    def search_by_name(self, name: str) -> list[Warehouse]:
        return self._store.find_many(Warehouse, {"name": Contains(name.strip())}, expand=_EXPAND, order_by="name")

    def search_by_location(self, location: str) -> list[Warehouse]:
        return self._store.find_many(
            Warehouse, {"location": Contains(location.strip())}, expand=_EXPAND, order_by="name"
        )

    def update_warehouse(self, warehouse_id: str, data: WarehouseUpdate) -> Warehouse | None:
        """
        Update name, location or capacity.

        Capacity cannot drop below the units the warehouse already holds.
        """
        warehouse = self._store.find_by_id(Warehouse, warehouse_id)
        if not warehouse:
            return None
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        with self._locks.hold(warehouse_id):
            self._db.refresh(warehouse)
            capacity = changes.get("capacity")
            if capacity is not None and capacity < warehouse.current_usage:
                raise CapacityBelowUsageError(warehouse_id, warehouse.current_usage, capacity)
            for key, value in changes.items():
                setattr(warehouse, key, value)
            self._commit()

        logger.info(f"Updated warehouse: {warehouse.name} (id={warehouse_id})")
        return self.get_warehouse(warehouse_id)

    def delete_warehouse(self, warehouse_id: str, force: bool = False) -> bool:
        """
        Delete a warehouse.

        Refused while inventory rows or deliveries reference it unless
        ``force`` is set, in which case they are deleted with it.
        """
        warehouse = self._store.find_by_id(Warehouse, warehouse_id)
        if not warehouse:
            return False

        with self._locks.hold(warehouse_id):
            references = {
                "inventory": self._store.count(Inventory, {"warehouse_id": warehouse_id}),
                "deliveries": self._store.count(SupplierDelivery, {"warehouse_id": warehouse_id}),
            }
            if any(references.values()) and not force:
                metrics.delete_blocked("warehouse")
                raise ReferencedEntityError("Warehouse", warehouse_id, references)

            for delivery in self._store.find_many(SupplierDelivery, {"warehouse_id": warehouse_id}):
                self._db.delete(delivery)
            self._db.flush()
            # inventory rows and their audit entries go with the warehouse
            self._store.delete_by_id(Warehouse, warehouse_id)
            self._commit()

        if any(references.values()):
            logger.warning(
                f"Force-deleted warehouse {warehouse_id} with {references['inventory']} inventory rows "
                f"and {references['deliveries']} deliveries"
            )
        else:
            logger.info(f"Deleted warehouse: {warehouse.name} (id={warehouse_id})")
        return True

    # ========================================================================
    # Reports
    # ========================================================================

    def utilization(self, warehouse_id: str) -> WarehouseUtilizationOut:
        """Stored usage next to the live inventory sum."""
        warehouse = self._require(Warehouse, warehouse_id, "Warehouse")
        return WarehouseUtilizationOut(
            warehouse_id=warehouse.id,
            capacity=warehouse.capacity,
            current_usage=warehouse.current_usage,
            live_usage=self._store.sum_field(Inventory, "stock", {"warehouse_id": warehouse_id}),
            available_capacity=warehouse.available_capacity,
            utilization_percent=warehouse.utilization_percent,
        )

    # ========================================================================
    # Relationship Lookups
    # ========================================================================

    def warehouses_for_supplier(self, name: str) -> list[Warehouse]:
        """Warehouses holding products of the first supplier whose name matches."""
        supplier = self._store.find_one(Supplier, {"name": Contains(name.strip())})
        if supplier is None:
            raise EntityNotFoundError("Supplier")
        return self._warehouses_with({"supplier_id": supplier.id})

    def warehouses_for_product(self, name: str) -> list[Warehouse]:
        product_ids = self._store.distinct_values(Product, "id", {"name": Contains(name.strip())})
        if not product_ids:
            raise EntityNotFoundError("Product")
        return self._warehouses_with({"product_id": In(product_ids)})

    def warehouses_for_category(self, name: str) -> list[Warehouse]:
        category_ids = self._store.distinct_values(Category, "id", {"name": Contains(name.strip())})
        product_ids = self._store.distinct_values(Product, "id", {"category_id": In(category_ids)})
        if not product_ids:
            raise EntityNotFoundError("Product")
        return self._warehouses_with({"product_id": In(product_ids)})

    def _warehouses_with(self, inventory_filters: dict) -> list[Warehouse]:
        warehouse_ids = self._store.distinct_values(Inventory, "warehouse_id", inventory_filters)
        return self._store.find_many(Warehouse, {"id": In(warehouse_ids)}, expand=_EXPAND, order_by="name")
