"""
Inventory Service Module.

The InventoryService class acts as a facade that composes the specialized
services for a unified API. Every change to stock or to a warehouse's usage
counter goes through StockAccountingService.

Usage:
    from wms.services.inventory import InventoryService, build_inventory_service

    service = build_inventory_service(db)

    # Catalog
    category = service.create_category(data)
    product = service.create_product(data)

    # Stock
    inventory = service.add_stock(product_id, warehouse_id, 10)
    source, destination = service.transfer_stock(product_id, from_id, to_id, 5)
    service.diminish_stock(inventory.id, 2, reason="damaged")
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Sequence

from sqlalchemy.orm import Session

from wms.models.inventory_models import (
    Category,
    Inventory,
    InventoryAuditEntry,
    Product,
    Supplier,
    SupplierDelivery,
    Warehouse,
)
from wms.models.inventory_schemas import (
    CategoryCreate,
    CategoryRename,
    DeliveryCreate,
    InventoryCreate,
    InventoryUpdate,
    ProductCreate,
    ProductUpdate,
    SupplierCreate,
    SupplierUpdate,
    WarehouseCapacityOut,
    WarehouseCreate,
    WarehouseUpdate,
    WarehouseUsageOut,
    WarehouseUtilizationOut,
)

from .category_service import CategoryService
from .locks import WarehouseLocks
from .product_service import ProductService
from .query_service import InventoryQueryService
from .stock_service import StockAccountingService
from .supplier_service import SupplierService
from .warehouse_service import WarehouseService


class InventoryService:
    """
    Facade for inventory management operations.

    Composes specialized services to provide a unified API while
    maintaining separation of concerns internally.
    """

    def __init__(self, db: Session, locks: WarehouseLocks | None = None):
        """Initialize all sub-services."""
        self._db = db

        # Initialize specialized services
        self._categories = CategoryService(db)
        self._products = ProductService(db)
        self._suppliers = SupplierService(db)
        self._warehouses = WarehouseService(db, locks)
        self._stock = StockAccountingService(db, locks)
        self._queries = InventoryQueryService(db)

    # ========================================================================
    # Category Operations (delegated to CategoryService)
    # ========================================================================

    def create_category(self, data: CategoryCreate) -> Category:
        """Create a new category."""
        return self._categories.create_category(data)

    def create_categories(self, items: Sequence[CategoryCreate]) -> list[Category]:
        return self._categories.create_categories(items)

    def get_category(self, category_id: str, with_products: bool = False) -> Category | None:
        """Get a category by ID."""
        return self._categories.get_category(category_id, with_products)

    def get_category_by_name(self, name: str) -> Category | None:
        return self._categories.get_category_by_name(name)

    def list_categories(self) -> list[Category]:
        """List all categories."""
        return self._categories.list_categories()

    def list_category_products(self, category_id: str) -> list[Product]:
        return self._categories.list_category_products(category_id)

    def category_stock(self, category_id: str) -> int:
        return self._categories.category_stock(category_id)

    def rename_category(self, category_id: str, data: CategoryRename) -> Category | None:
        return self._categories.rename_category(category_id, data)

    def delete_category(self, category_id: str) -> bool:
        """Delete an unreferenced category."""
        return self._categories.delete_category(category_id)

    # ========================================================================
    # Product Operations (delegated to ProductService)
    # ========================================================================

    def create_product(self, data: ProductCreate) -> Product:
        """Create a new product."""
        return self._products.create_product(data)

    def get_product(self, product_id: str) -> Product | None:
        """Get a product by ID."""
        return self._products.get_product(product_id)

    def get_product_by_sku(self, sku: str) -> Product | None:
        """Get a product by SKU."""
        return self._products.get_product_by_sku(sku)

    def list_products(self) -> list[Product]:
        return self._products.list_products()

    def search_products(self, name: str) -> list[Product]:
        return self._products.search_products(name)

    def update_product(self, product_id: str, data: ProductUpdate) -> Product | None:
        """Update a product."""
        return self._products.update_product(product_id, data)

    def delete_product(self, product_id: str) -> bool:
        return self._products.delete_product(product_id)

    # ========================================================================
    # Supplier Operations (delegated to SupplierService)
    # ========================================================================

    def create_supplier(self, data: SupplierCreate) -> Supplier:
        """Create a new supplier."""
        return self._suppliers.create(data)

    def create_suppliers(self, items: Sequence[SupplierCreate]) -> list[Supplier]:
        return self._suppliers.create_many(items)

    def get_supplier(self, supplier_id: str) -> Supplier | None:
        """Get a supplier by ID."""
        return self._suppliers.get(supplier_id)

    def list_suppliers(self) -> list[Supplier]:
        """List all suppliers."""
        return self._suppliers.list()

    def search_suppliers(self, name: str) -> list[Supplier]:
        return self._suppliers.search(name)

    def update_supplier(self, supplier_id: str, data: SupplierUpdate) -> Supplier | None:
        """Update a supplier."""
        return self._suppliers.update(supplier_id, data)

    def delete_supplier(self, supplier_id: str) -> bool:
        return self._suppliers.delete(supplier_id)

    def list_deliveries(self, supplier_id: str) -> list[SupplierDelivery]:
        return self._suppliers.list_deliveries(supplier_id)

    def suppliers_for_product(self, value: str) -> list[Supplier]:
        return self._suppliers.suppliers_for_product(value)

    def suppliers_for_warehouse(self, warehouse_id: str) -> list[Supplier]:
        return self._suppliers.suppliers_for_warehouse(warehouse_id)

    # ========================================================================
    # Warehouse Operations (delegated to WarehouseService)
    # ========================================================================

    def create_warehouse(self, data: WarehouseCreate) -> Warehouse:
        return self._warehouses.create_warehouse(data)

    def get_warehouse(self, warehouse_id: str) -> Warehouse | None:
        return self._warehouses.get_warehouse(warehouse_id)

    def list_warehouses(self) -> list[Warehouse]:
        return self._warehouses.list_warehouses()

    def search_warehouses_by_name(self, name: str) -> list[Warehouse]:
        return self._warehouses.search_by_name(name)

    def search_warehouses_by_location(self, location: str) -> list[Warehouse]:
        return self._warehouses.search_by_location(location)

    def warehouses_for_supplier(self, name: str) -> list[Warehouse]:
        return self._warehouses.warehouses_for_supplier(name)

    def warehouses_for_product(self, name: str) -> list[Warehouse]:
        return self._warehouses.warehouses_for_product(name)

    def warehouses_for_category(self, name: str) -> list[Warehouse]:
        return self._warehouses.warehouses_for_category(name)

    def update_warehouse(self, warehouse_id: str, data: WarehouseUpdate) -> Warehouse | None:
        return self._warehouses.update_warehouse(warehouse_id, data)

    def delete_warehouse(self, warehouse_id: str, force: bool = False) -> bool:
        """Delete a warehouse; ``force`` also removes its inventory."""
        return self._warehouses.delete_warehouse(warehouse_id, force)

    def warehouse_utilization(self, warehouse_id: str) -> WarehouseUtilizationOut:
        return self._warehouses.utilization(warehouse_id)

    # ========================================================================
    # Stock Operations (delegated to StockAccountingService)
    # ========================================================================

    def add_stock(
        self,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        unit_price: Decimal | None = None,
        expiry_date: dt.date | None = None,
    ) -> Inventory:
        """Add units of a product to a warehouse, capacity permitting."""
        return self._stock.add_stock(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=quantity,
            unit_price=unit_price,
            expiry_date=expiry_date,
        )

    def add_stock_batch(self, items: Sequence[InventoryCreate]) -> list[Inventory]:
        return self._stock.add_stock_batch(items)

    def transfer_stock(
        self,
        product_id: str,
        from_warehouse_id: str,
        to_warehouse_id: str,
        quantity: int,
    ) -> tuple[Inventory, Inventory]:
        """Move units of a product between warehouses."""
        return self._stock.transfer_stock(product_id, from_warehouse_id, to_warehouse_id, quantity)

    def diminish_stock(self, inventory_id: str, quantity: int, reason: str | None = None) -> Inventory:
        return self._stock.diminish_stock(inventory_id, quantity, reason)

    def update_inventory(self, inventory_id: str, data: InventoryUpdate) -> Inventory:
        return self._stock.update_inventory(inventory_id, data)

    def remove_inventory(self, inventory_id: str) -> int:
        return self._stock.remove_inventory(inventory_id)

    def record_delivery(self, supplier_id: str, data: DeliveryCreate) -> SupplierDelivery:
        """Receive a supplier delivery into stock."""
        return self._stock.record_delivery(supplier_id, data)

    def reconcile_usage(self, warehouse_id: str) -> tuple[int, int]:
        return self._stock.reconcile_usage(warehouse_id)

    # ========================================================================
    # Inventory Lookups (delegated to InventoryQueryService)
    # ========================================================================

    def get_inventory(self, inventory_id: str) -> Inventory | None:
        return self._queries.get(inventory_id)

    def list_inventory(self) -> list[Inventory]:
        return self._queries.list_all()

    def low_stock(self, threshold: int) -> list[Inventory]:
        return self._queries.low_stock(threshold)

    def inventory_by_sku(self, sku: str) -> list[Inventory]:
        return self._queries.by_sku(sku)

    def inventory_by_product(self, product_id: str) -> list[Inventory]:
        return self._queries.by_product(product_id)

    def inventory_by_warehouse(self, warehouse_id: str) -> list[Inventory]:
        return self._queries.by_warehouse(warehouse_id)

    def inventory_by_expiry_date(self, expiry_date: dt.date) -> list[Inventory]:
        return self._queries.by_expiry_date(expiry_date)

    def inventory_by_audit_action(self, action: str) -> list[Inventory]:
        return self._queries.by_audit_action(action)

    def inventory_by_product_name(self, name: str) -> list[Inventory]:
        return self._queries.by_product_name(name)

    def inventory_by_warehouse_name(self, name: str) -> list[Inventory]:
        return self._queries.by_warehouse_name(name)

    def inventory_by_location(self, location: str) -> list[Inventory]:
        return self._queries.by_location(location)

    def inventory_by_category(self, category_id: str) -> list[Inventory]:
        return self._queries.by_category(category_id)

    def inventory_by_supplier(self, supplier_id: str) -> list[Inventory]:
        return self._queries.by_supplier(supplier_id)

    def inventory_audit_log(self, inventory_id: str) -> list[InventoryAuditEntry]:
        return self._queries.audit_log(inventory_id)

    def warehouse_capacity(self, warehouse_id: str) -> WarehouseCapacityOut:
        return self._queries.warehouse_capacity(warehouse_id)

    def warehouse_usage(self, warehouse_id: str) -> WarehouseUsageOut:
        return self._queries.warehouse_usage(warehouse_id)


def build_inventory_service(db: Session) -> InventoryService:
    """Factory function to create an InventoryService instance."""
    return InventoryService(db=db)


# Re-export sub-services for direct access if needed
__all__ = [
    "InventoryService",
    "build_inventory_service",
    "CategoryService",
    "ProductService",
    "SupplierService",
    "WarehouseService",
    "StockAccountingService",
    "InventoryQueryService",
]
