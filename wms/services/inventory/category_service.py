"""
Category Service - CRUD operations for product categories.

Follows SRP: Only handles category-related operations.
"""
from __future__ import annotations

import logging
from typing import Sequence

from wms import metrics
from wms.core.exceptions import DuplicateEntityError, InvalidArgumentError, ReferencedEntityError
from wms.models.inventory_models import Category, Inventory, Product
from wms.models.inventory_schemas import CategoryCreate, CategoryRename
from wms.services.inventory.base import BaseInventoryService

logger = logging.getLogger(__name__)


class CategoryService(BaseInventoryService):
    """
    Service for category operations.

    Category names are unique; the product count of a category is always
    read from its products, never stored.
    """

    def create_category(self, data: CategoryCreate) -> Category:
        """Create a new category."""
        self._ensure_name_free(data.name)
        category = self._store.insert(Category, name=data.name)
        self._commit()
        logger.info(f"Created category: {category.name} (id={category.id})")
        return category

    def create_categories(self, items: Sequence[CategoryCreate]) -> list[Category]:
        """Create several categories at once; nothing is stored if any name clashes."""
        if not items:
            raise InvalidArgumentError("Request body cannot be an empty array")

        seen: set[str] = set()
        for item in items:
            if item.name in seen:
                raise DuplicateEntityError("Category", "name", item.name)
            seen.add(item.name)
            self._ensure_name_free(item.name)

        categories = [self._store.insert(Category, name=item.name) for item in items]
        self._commit()
        logger.info(f"Created {len(categories)} categories")
        return categories

    def get_category(self, category_id: str, with_products: bool = False) -> Category | None:
        """Get a category by ID."""
        expand = ("products",) if with_products else ()
        return self._store.find_by_id(Category, category_id, expand=expand)

    def get_category_by_name(self, name: str) -> Category | None:
        return self._store.find_one(Category, {"name": name}, expand=("products",))

    def list_categories(self) -> list[Category]:
        """List all categories."""
        return self._store.find_many(Category, expand=("products",), order_by="name")

    def list_category_products(self, category_id: str) -> list[Product]:
        category = self._require(Category, category_id, "Category", expand=("products",))
        return list(category.products)

    def category_stock(self, category_id: str) -> int:
        """Total units held across all inventory rows of the category."""
        self._require(Category, category_id, "Category")
        return self._store.sum_field(Inventory, "stock", {"category_id": category_id})

    def rename_category(self, category_id: str, data: CategoryRename) -> Category | None:
        """Rename a category."""
        category = self.get_category(category_id)
        if not category:
            return None
        if category.name != data.name:
            self._ensure_name_free(data.name, exclude_id=category_id)
        old_name = category.name
        category.name = data.name
        self._commit()
        logger.info(f"Renamed category {category_id}: {old_name} -> {category.name}")
        return category

    def delete_category(self, category_id: str) -> bool:
        """
        Delete a category.

        Refused with ReferencedEntityError while products or inventory rows
        still point at it.
        """
        category = self.get_category(category_id)
        if not category:
            return False

        references = {
            "products": self._store.count(Product, {"category_id": category_id}),
            "inventory": self._store.count(Inventory, {"category_id": category_id}),
        }
        if any(references.values()):
            metrics.delete_blocked("category")
            raise ReferencedEntityError("Category", category_id, references)

        self._store.delete_by_id(Category, category_id)
        self._commit()
        logger.info(f"Deleted category: {category.name} (id={category_id})")
        return True

    def _ensure_name_free(self, name: str, exclude_id: str | None = None) -> None:
        existing = self._store.find_one(Category, {"name": name})
        if existing is not None and existing.id != exclude_id:
            raise DuplicateEntityError("Category", "name", name)
