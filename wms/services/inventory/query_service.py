"""
Inventory Query Service.

Read-only lookups over inventory rows. Lists come back with the product and
warehouse of each row loaded.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from wms.core.exceptions import EntityNotFoundError
from wms.db.store import Below, Contains, In
from wms.models.inventory_models import Inventory, InventoryAuditEntry, Product, Warehouse
from wms.models.inventory_schemas import WarehouseCapacityOut, WarehouseUsageOut
from wms.services.inventory.base import BaseInventoryService

logger = logging.getLogger(__name__)

_EXPAND = ("product", "warehouse")


class InventoryQueryService(BaseInventoryService):
    """Service for inventory lookups and warehouse stock reports."""

    def get(self, inventory_id: str) -> Inventory | None:
        return self._store.find_by_id(Inventory, inventory_id, expand=_EXPAND + ("audit_log",))

    def list_all(self) -> list[Inventory]:
        return self._find({})

    def low_stock(self, threshold: int) -> list[Inventory]:
        """Rows whose stock is strictly below ``threshold``."""
        return self._find({"stock": Below(threshold)})

    def by_sku(self, sku: str) -> list[Inventory]:
        product = self._store.find_one(Product, {"sku": sku})
        if product is None:
            raise EntityNotFoundError("Product")
        return self._find({"product_id": product.id})

    def by_product(self, product_id: str) -> list[Inventory]:
        return self._find({"product_id": product_id})

    def by_warehouse(self, warehouse_id: str) -> list[Inventory]:
        return self._find({"warehouse_id": warehouse_id})

    def by_expiry_date(self, expiry_date: dt.date) -> list[Inventory]:
        return self._find({"expiry_date": expiry_date})

    def by_audit_action(self, action: str) -> list[Inventory]:
        """Rows with at least one audit entry of the given action."""
        inventory_ids = self._store.distinct_values(InventoryAuditEntry, "inventory_id", {"action": action})
        return self._find({"id": In(inventory_ids)})

    def by_product_name(self, name: str) -> list[Inventory]:
        product_ids = self._store.distinct_values(Product, "id", {"name": Contains(name.strip())})
        return self._find({"product_id": In(product_ids)})

    def by_warehouse_name(self, name: str) -> list[Inventory]:
        warehouse_ids = self._store.distinct_values(Warehouse, "id", {"name": Contains(name.strip())})
        return self._find({"warehouse_id": In(warehouse_ids)})

    def by_location(self, location: str) -> list[Inventory]:
        warehouse_ids = self._store.distinct_values(Warehouse, "id", {"location": Contains(location.strip())})
        return self._find({"warehouse_id": In(warehouse_ids)})

    def by_category(self, category_id: str) -> list[Inventory]:
        return self._find({"category_id": category_id})

    def by_supplier(self, supplier_id: str) -> list[Inventory]:
        return self._find({"supplier_id": supplier_id})

    def audit_log(self, inventory_id: str) -> list[InventoryAuditEntry]:
        inventory = self._require(Inventory, inventory_id, "Inventory", expand=("audit_log",))
        return list(inventory.audit_log)

    # ========================================================================
    # Warehouse Reports
    # ========================================================================

    def warehouse_capacity(self, warehouse_id: str) -> WarehouseCapacityOut:
        warehouse = self._require(Warehouse, warehouse_id, "Warehouse")
        return WarehouseCapacityOut(
            warehouse_id=warehouse.id,
            name=warehouse.name,
            capacity=warehouse.capacity,
            current_usage=warehouse.current_usage,
            available_capacity=warehouse.available_capacity,
        )

    def warehouse_usage(self, warehouse_id: str) -> WarehouseUsageOut:
        warehouse = self._require(Warehouse, warehouse_id, "Warehouse")
        filters = {"warehouse_id": warehouse_id}
        return WarehouseUsageOut(
            warehouse_id=warehouse.id,
            name=warehouse.name,
            current_usage=warehouse.current_usage,
            live_usage=self._store.sum_field(Inventory, "stock", filters),
            inventory_count=self._store.count(Inventory, filters),
        )

    def _find(self, filters: dict[str, Any]) -> list[Inventory]:
        return self._store.find_many(Inventory, filters, expand=_EXPAND, order_by="created_at")
