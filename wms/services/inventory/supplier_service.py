"""
Supplier Service - CRUD operations for suppliers.

Handles supplier management and the lookups that relate suppliers to
products and warehouses.
"""
from __future__ import annotations

import logging
from typing import Sequence

from wms import metrics
from wms.core.exceptions import EntityNotFoundError, InvalidArgumentError, ReferencedEntityError
from wms.db.store import Contains, In
from wms.models.inventory_models import Inventory, Product, Supplier, SupplierDelivery, Warehouse
from wms.models.inventory_schemas import SupplierCreate, SupplierUpdate
from wms.services.inventory.base import BaseInventoryService

logger = logging.getLogger(__name__)


class SupplierService(BaseInventoryService):
    """Service for supplier operations."""

    def create(self, data: SupplierCreate) -> Supplier:
        """Create a new supplier."""
        supplier = self._store.insert(Supplier, **data.model_dump())
        self._commit()
        logger.info(f"Created supplier: {supplier.name} (id={supplier.id})")
        return supplier

    def create_many(self, items: Sequence[SupplierCreate]) -> list[Supplier]:
        if not items:
            raise InvalidArgumentError("Request body cannot be an empty array")
        suppliers = [self._store.insert(Supplier, **item.model_dump()) for item in items]
        self._commit()
        logger.info(f"Created {len(suppliers)} suppliers")
        return suppliers

    def get(self, supplier_id: str) -> Supplier | None:
        """Get a supplier by ID with its delivery log."""
        return self._store.find_by_id(Supplier, supplier_id, expand=("deliveries",))

    def list(self) -> list[Supplier]:
        """List all suppliers."""
        return self._store.find_many(Supplier, order_by="name")

    def search(self, name: str) -> list[Supplier]:
        return self._store.find_many(Supplier, {"name": Contains(name.strip())}, order_by="name")

    def update(self, supplier_id: str, data: SupplierUpdate) -> Supplier | None:
        """Update a supplier."""
        patch = data.model_dump(exclude_unset=True, exclude_none=True)
        supplier = self._store.update_by_id(Supplier, supplier_id, patch)
        if not supplier:
            return None
        self._commit()
        logger.info(f"Updated supplier: {supplier.name} (id={supplier.id})")
        return supplier

    def delete(self, supplier_id: str) -> bool:
        """Delete a supplier; refused while products, inventory or its delivery log reference it."""
        supplier = self._store.find_by_id(Supplier, supplier_id)
        if not supplier:
            return False

        references = {
            "products": self._store.count(Product, {"supplier_id": supplier_id}),
            "inventory": self._store.count(Inventory, {"supplier_id": supplier_id}),
            "deliveries": self._store.count(SupplierDelivery, {"supplier_id": supplier_id}),
        }
        if any(references.values()):
            metrics.delete_blocked("supplier")
            raise ReferencedEntityError("Supplier", supplier_id, references)

        self._store.delete_by_id(Supplier, supplier_id)
        self._commit()
        logger.info(f"Deleted supplier: {supplier.name} (id={supplier_id})")
        return True

    # ========================================================================
    # Relationship Lookups
    # ========================================================================

    def list_deliveries(self, supplier_id: str) -> list[SupplierDelivery]:
        self._require(Supplier, supplier_id, "Supplier")
        return self._store.find_many(SupplierDelivery, {"supplier_id": supplier_id}, order_by="delivered_at")

    def suppliers_for_product(self, value: str) -> list[Supplier]:
        """
        Suppliers of products whose name contains ``value``.

        A supplier counts if it is the product's supplier or has delivered
        the product at least once.
        """
        products = self._store.find_many(Product, {"name": Contains(value.strip())})
        if not products:
            raise EntityNotFoundError("Product")

        product_ids = [product.id for product in products]
        supplier_ids = {product.supplier_id for product in products}
        supplier_ids.update(
            self._store.distinct_values(SupplierDelivery, "supplier_id", {"product_id": In(product_ids)})
        )
        suppliers = self._store.find_many(Supplier, {"id": In(supplier_ids)}, order_by="name")
        if not suppliers:
            raise EntityNotFoundError("Supplier")
        return suppliers

    def suppliers_for_warehouse(self, warehouse_id: str) -> list[Supplier]:
        """Suppliers of the products stocked in a warehouse."""
        self._require(Warehouse, warehouse_id, "Warehouse")
        if not self._store.count(Inventory, {"warehouse_id": warehouse_id}):
            raise EntityNotFoundError("Inventory")

        supplier_ids = self._store.distinct_values(Inventory, "supplier_id", {"warehouse_id": warehouse_id})
        suppliers = self._store.find_many(Supplier, {"id": In(supplier_ids)}, order_by="name")
        if not suppliers:
            raise EntityNotFoundError("Supplier")
        return suppliers
