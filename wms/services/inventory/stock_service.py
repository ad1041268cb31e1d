"""
Stock Accounting Service.

Owns every mutation of inventory stock and of a warehouse's usage counter.
The counter is reserved with one conditional UPDATE (``usage + q <= capacity``)
so concurrent writers can never overshoot capacity, and each operation holds
the per-warehouse locks of the warehouses it touches.

Every operation is a single transaction: it either commits whole or is
rolled back before the error propagates.
"""
from __future__ import annotations

import datetime as dt
import logging
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, NoReturn, Sequence

from sqlalchemy.orm import Session

from wms import metrics
from wms.core.exceptions import (
    CapacityExceededError,
    InsufficientStockError,
    InvalidArgumentError,
)
from wms.models.inventory_models import (
    AuditAction,
    Inventory,
    Product,
    Supplier,
    SupplierDelivery,
    Warehouse,
    utcnow,
)
from wms.models.inventory_schemas import DeliveryCreate, InventoryCreate, InventoryUpdate

from .base import BaseInventoryService
from .locks import WarehouseLocks, warehouse_locks

logger = logging.getLogger(__name__)

DEFAULT_DIMINISH_REASON = "Unspecified"


class StockAccountingService(BaseInventoryService):
    """Service for capacity-checked stock mutations."""

    def __init__(self, db: Session, locks: WarehouseLocks | None = None):
        super().__init__(db)
        self._locks = locks or warehouse_locks

    # ========================================================================
    # Add Stock
    # ========================================================================

    def add_stock(
        self,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        unit_price: Decimal | None = None,
        expiry_date: dt.date | None = None,
        action: str = AuditAction.ADDED,
        reason: str | None = None,
    ) -> Inventory:
        """
        Create or increment the inventory row for a product at a warehouse.

        Raises CapacityExceededError (nothing is written) when the warehouse
        cannot take ``quantity`` more units.
        """
        self._check_quantity(quantity, "stock")

        with self._transaction(warehouse_id):
            inventory = self._upsert(
                product_id,
                warehouse_id,
                quantity,
                action=action,
                reason=reason,
                unit_price=unit_price,
                expiry_date=expiry_date,
            )

        metrics.stock_added(quantity)
        logger.info(
            f"Stock added: product={product_id} warehouse={warehouse_id} "
            f"+{quantity} -> {inventory.stock}"
        )
        return inventory

    def add_stock_batch(self, items: Sequence[InventoryCreate]) -> list[Inventory]:
        """
        Apply several additions in one transaction.

        Any failing item rolls back every item of the batch.
        """
        if not items:
            raise InvalidArgumentError("At least one inventory item is required")
        for item in items:
            self._check_quantity(item.stock, "stock")

        with self._transaction(*(item.warehouse_id for item in items)):
            results = [
                self._upsert(
                    item.product_id,
                    item.warehouse_id,
                    item.stock,
                    action=AuditAction.ADDED,
                    unit_price=item.unit_price,
                    expiry_date=item.expiry_date,
                )
                for item in items
            ]

        total = sum(item.stock for item in items)
        metrics.stock_added(total)
        logger.info(f"Stock batch added: {len(items)} items, {total} units")
        return results

    # ========================================================================
    # Transfer
    # ========================================================================

    def transfer_stock(
        self,
        product_id: str,
        from_warehouse_id: str,
        to_warehouse_id: str,
        quantity: int,
    ) -> tuple[Inventory, Inventory]:
        """
        Move units of a product from one warehouse to another.

        Returns the updated (source, destination) inventory rows.
        """
        self._check_quantity(quantity, "amount")
        if from_warehouse_id == to_warehouse_id:
            raise InvalidArgumentError(
                "Source and destination warehouses must differ", field="to_warehouse_id"
            )

        with self._transaction(from_warehouse_id, to_warehouse_id):
            source = self._store.find_one(
                Inventory, {"product_id": product_id, "warehouse_id": from_warehouse_id}
            )
            if source is None or source.stock < quantity:
                self._reject_insufficient(source, quantity)

            destination_warehouse = self._require(Warehouse, to_warehouse_id, "Warehouse")
            self._reserve(destination_warehouse, quantity)

            moved = min(quantity, source.stock)
            source.adjust_stock(-moved)
            source.record(AuditAction.TRANSFER_OUT, quantity)
            self._release(from_warehouse_id, quantity)

            destination = self._upsert(
                product_id,
                to_warehouse_id,
                quantity,
                action=AuditAction.TRANSFER_IN,
                create_action=AuditAction.TRANSFER_IN,
                reserved=True,
            )

        metrics.stock_transferred(quantity)
        logger.info(
            f"Stock transferred: product={product_id} {from_warehouse_id} -> {to_warehouse_id} "
            f"qty={quantity} (source now {source.stock}, destination now {destination.stock})"
        )
        return source, destination

    # ========================================================================
    # Diminish
    # ========================================================================

    def diminish_stock(self, inventory_id: str, quantity: int, reason: str | None = None) -> Inventory:
        """
        Remove units from one inventory row (spoilage, damage, loss).

        There is no partial diminish: asking for more than the row holds
        fails with InsufficientStockError and changes nothing.
        """
        self._check_quantity(quantity, "quantity")
        inventory = self._require(Inventory, inventory_id, "Inventory")

        with self._transaction(inventory.warehouse_id):
            self._db.refresh(inventory)
            if inventory.stock < quantity:
                self._reject_insufficient(inventory, quantity)

            inventory.adjust_stock(-quantity)
            inventory.record(AuditAction.DIMINISHED, quantity, reason or DEFAULT_DIMINISH_REASON)
            self._release(inventory.warehouse_id, quantity)

        metrics.stock_diminished(quantity)
        logger.info(
            f"Stock diminished: inventory={inventory_id} -{quantity} -> {inventory.stock} "
            f"(reason: {reason or DEFAULT_DIMINISH_REASON})"
        )
        return inventory

    # ========================================================================
    # Direct Updates
    # ========================================================================

    def update_inventory(self, inventory_id: str, data: InventoryUpdate) -> Inventory:
        """
        Set stock, unit price or expiry date of an inventory row.

        A stock increase reserves capacity like an addition; a decrease
        releases it.
        """
        inventory = self._require(Inventory, inventory_id, "Inventory")
        changes = data.model_dump(exclude_unset=True)
        new_stock = changes.pop("stock", None)

        with self._transaction(inventory.warehouse_id):
            self._db.refresh(inventory)
            if new_stock is not None and new_stock != inventory.stock:
                delta = new_stock - inventory.stock
                if delta > 0:
                    self._reserve(inventory.warehouse, delta)
                else:
                    self._release(inventory.warehouse_id, -delta)
                inventory.adjust_stock(delta)
                inventory.record(AuditAction.ADJUSTED, delta, "Manual update")
            for key, value in changes.items():
                setattr(inventory, key, value)

        logger.info(f"Updated inventory {inventory_id}: stock={inventory.stock}")
        return inventory

    def remove_inventory(self, inventory_id: str) -> int:
        """Delete an inventory row, returning the units released from its warehouse."""
        inventory = self._require(Inventory, inventory_id, "Inventory")
        warehouse_id = inventory.warehouse_id

        with self._transaction(warehouse_id):
            self._db.refresh(inventory)
            released = inventory.stock
            self._release(warehouse_id, released)
            self._store.delete_by_id(Inventory, inventory_id)

        logger.info(f"Deleted inventory {inventory_id}, released {released} units from {warehouse_id}")
        return released

    # ========================================================================
    # Supplier Deliveries
    # ========================================================================

    def record_delivery(self, supplier_id: str, data: DeliveryCreate) -> SupplierDelivery:
        """Receive a supplier delivery into stock and append it to the delivery log."""
        self._check_quantity(data.quantity, "quantity")
        supplier = self._require(Supplier, supplier_id, "Supplier")

        with self._transaction(data.warehouse_id):
            self._upsert(
                data.product_id,
                data.warehouse_id,
                data.quantity,
                action=AuditAction.DELIVERY,
                reason=f"Delivery from {supplier.name}",
            )
            delivery = self._store.insert(
                SupplierDelivery,
                supplier_id=supplier_id,
                product_id=data.product_id,
                warehouse_id=data.warehouse_id,
                quantity=data.quantity,
                delivered_at=data.date or utcnow(),
            )

        metrics.stock_added(data.quantity)
        logger.info(
            f"Delivery recorded: supplier={supplier_id} product={data.product_id} "
            f"warehouse={data.warehouse_id} qty={data.quantity}"
        )
        return delivery

    # ========================================================================
    # Usage Counter
    # ========================================================================

    def live_usage(self, warehouse_id: str) -> int:
        """Sum of stock across the warehouse's inventory rows."""
        return self._store.sum_field(Inventory, "stock", {"warehouse_id": warehouse_id})

    def reconcile_usage(self, warehouse_id: str) -> tuple[int, int]:
        """Reset the stored usage counter to the live sum; returns (previous, current)."""
        warehouse = self._require(Warehouse, warehouse_id, "Warehouse")

        with self._transaction(warehouse_id):
            self._db.refresh(warehouse)
            previous = warehouse.current_usage
            current = self.live_usage(warehouse_id)
            if current != previous:
                self._store.update_by_id(Warehouse, warehouse_id, {"current_usage": current})

        if current != previous:
            logger.warning(f"Reconciled usage of warehouse {warehouse_id}: {previous} -> {current}")
        return previous, current

    # ========================================================================
    # Private Helpers
    # ========================================================================

    @contextmanager
    def _transaction(self, *warehouse_ids: str) -> Iterator[None]:
        with self._locks.hold(*warehouse_ids):
            try:
                yield
                self._db.commit()
            except Exception:
                self._db.rollback()
                raise

    @staticmethod
    def _check_quantity(quantity: int, field: str) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidArgumentError(f"{field} must be a positive integer", field=field)

    def _reserve(self, warehouse: Warehouse, quantity: int) -> None:
        """Atomically claim capacity or raise CapacityExceededError."""
        if self._store.increment_with_ceiling(Warehouse, warehouse.id, "current_usage", quantity, "capacity"):
            return
        metrics.capacity_rejected()
        logger.warning(
            f"Capacity exceeded for warehouse {warehouse.id}: "
            f"usage={warehouse.current_usage} capacity={warehouse.capacity} requested={quantity}"
        )
        raise CapacityExceededError(warehouse.id, warehouse.current_usage, warehouse.capacity, quantity)

    def _release(self, warehouse_id: str, quantity: int) -> None:
        if quantity:
            self._store.decrement_floored(Warehouse, warehouse_id, "current_usage", quantity)

    @staticmethod
    def _reject_insufficient(inventory: Inventory | None, quantity: int) -> NoReturn:
        available = inventory.stock if inventory is not None else 0
        metrics.insufficient_stock()
        logger.warning(f"Insufficient stock: available={available} requested={quantity}")
        raise InsufficientStockError(available, quantity, inventory.id if inventory is not None else None)

    def _upsert(
        self,
        product_id: str,
        warehouse_id: str,
        quantity: int,
        action: str,
        create_action: str = AuditAction.CREATE,
        reason: str | None = None,
        unit_price: Decimal | None = None,
        expiry_date: dt.date | None = None,
        reserved: bool = False,
    ) -> Inventory:
        """
        Add ``quantity`` to the (product, warehouse) row, creating it if needed.

        Unless ``reserved`` is set the warehouse capacity is claimed first.
        """
        product = self._require(Product, product_id, "Product")
        warehouse = self._require(Warehouse, warehouse_id, "Warehouse")
        if not reserved:
            self._reserve(warehouse, quantity)

        inventory = self._store.find_one(
            Inventory, {"product_id": product_id, "warehouse_id": warehouse_id}
        )
        if inventory is None:
            inventory = self._store.insert(
                Inventory,
                product_id=product_id,
                warehouse_id=warehouse_id,
                category_id=product.category_id,
                supplier_id=product.supplier_id,
                stock=quantity,
                unit_price=unit_price,
                expiry_date=expiry_date,
            )
            inventory.record(create_action, quantity, reason)
        else:
            inventory.adjust_stock(quantity)
            if unit_price is not None:
                inventory.unit_price = unit_price
            if expiry_date is not None:
                inventory.expiry_date = expiry_date
            inventory.record(action, quantity, reason)

        self._db.flush()
        return inventory
