"""
Product Service - CRUD operations for products.

Keeps the category/supplier copies on inventory rows in step with the
product they belong to.
"""
from __future__ import annotations

import logging

from wms import metrics
from wms.core.exceptions import DuplicateEntityError, ReferencedEntityError
from wms.db.store import Contains
from wms.models.inventory_models import Category, Inventory, Product, Supplier, SupplierDelivery
from wms.models.inventory_schemas import ProductCreate, ProductUpdate
from wms.services.inventory.base import BaseInventoryService

logger = logging.getLogger(__name__)

_EXPAND = ("category", "supplier")


class ProductService(BaseInventoryService):
    """Service for product operations."""

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def create_product(self, data: ProductCreate) -> Product:
        """Create a new product."""
        self._require(Category, data.category_id, "Category")
        self._require(Supplier, data.supplier_id, "Supplier")
        if data.sku:
            self._validate_unique_sku(data.sku)

        product = self._store.insert(Product, **data.model_dump())
        self._commit()
        logger.info(f"Created product: {product.name} (id={product.id})")
        return self.get_product(product.id)

    def get_product(self, product_id: str) -> Product | None:
        """Get a product by ID with its category and supplier."""
        return self._store.find_by_id(Product, product_id, expand=_EXPAND)

    def get_product_by_sku(self, sku: str) -> Product | None:
        """Get a product by SKU."""
        return self._store.find_one(Product, {"sku": sku}, expand=_EXPAND)

    def list_products(self) -> list[Product]:
        return self._store.find_many(Product, expand=_EXPAND, order_by="name")

    def search_products(self, name: str) -> list[Product]:
        """Case-insensitive substring search on product name."""
        return self._store.find_many(Product, {"name": Contains(name.strip())}, order_by="name")

    def update_product(self, product_id: str, data: ProductUpdate) -> Product | None:
        """
        Replace a product's fields.

        Inventory rows of the product get the new category and supplier.
        """
        product = self._store.find_by_id(Product, product_id)
        if not product:
            return None

        self._require(Category, data.category_id, "Category")
        self._require(Supplier, data.supplier_id, "Supplier")
        if data.sku and data.sku != product.sku:
            self._validate_unique_sku(data.sku, exclude_id=product_id)

        for key, value in data.model_dump().items():
            setattr(product, key, value)
        self._db.flush()

        refreshed = self._store.update_many(
            Inventory,
            {"product_id": product_id},
            {"category_id": data.category_id, "supplier_id": data.supplier_id},
        )
        self._commit()
        logger.info(f"Updated product: {product.name} (id={product.id}), refreshed {refreshed} inventory rows")

        self._db.expire(product)
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> bool:
        """Delete a product; refused while inventory or deliveries reference it."""
        product = self._store.find_by_id(Product, product_id)
        if not product:
            return False

        references = {
            "inventory": self._store.count(Inventory, {"product_id": product_id}),
            "deliveries": self._store.count(SupplierDelivery, {"product_id": product_id}),
        }
        if any(references.values()):
            metrics.delete_blocked("product")
            raise ReferencedEntityError("Product", product_id, references)

        self._store.delete_by_id(Product, product_id)
        self._commit()
        logger.info(f"Deleted product: {product.name} (id={product_id})")
        return True

    # ========================================================================
    # Private Helpers
    # ========================================================================

    def _validate_unique_sku(self, sku: str, exclude_id: str | None = None) -> None:
        """Validate SKU is unique."""
        existing = self._store.find_one(Product, {"sku": sku})
        if existing is not None and existing.id != exclude_id:
            raise DuplicateEntityError("Product", "sku", sku)
