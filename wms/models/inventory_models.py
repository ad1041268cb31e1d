"""
Warehouse inventory models.

Products are grouped into categories and sourced from suppliers; each
Inventory row holds the stock of one product at one warehouse. A
warehouse's ``current_usage`` is the running total of its inventory stock
and is only ever changed by the stock accounting service.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from wms.db.base_class import Base, TimestampMixin, utcnow
from wms.utils.identifiers import generate_id


class AuditAction:
    """Audit log action labels."""
    CREATE = "Create"
    ADDED = "Added"
    ADJUSTED = "Adjusted"
    DELIVERY = "Delivery"
    TRANSFER_OUT = "Transfer Out"
    TRANSFER_IN = "Transfer In"
    DIMINISHED = "Diminished"


class Category(TimestampMixin, Base):
    """Product category; names are unique across the catalog."""
    __tablename__ = "category"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    products: Mapped[list[Product]] = relationship(
        "Product",
        back_populates="category",
        order_by="Product.name",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"

    @property
    def product_count(self) -> int:
        """Live count of products in this category."""
        return len(self.products)


class Supplier(TimestampMixin, Base):
    """
    Vendor that provides products.

    ``rating`` and ``order_count`` are descriptive metadata; nothing in the
    stock flow updates them.
    """
    __tablename__ = "supplier"
    __table_args__ = (
        CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_supplier_rating"),
        CheckConstraint("order_count >= 0", name="ck_supplier_order_count"),
        Index("ix_supplier_name", "name"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_info: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    order_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    products: Mapped[list[Product]] = relationship("Product", back_populates="supplier")
    deliveries: Mapped[list[SupplierDelivery]] = relationship(
        "SupplierDelivery",
        back_populates="supplier",
        order_by="SupplierDelivery.delivered_at",
    )

    def __repr__(self) -> str:
        return f"<Supplier(id={self.id}, name='{self.name}')>"


class Product(TimestampMixin, Base):
    """Sellable item; belongs to one category and one supplier."""
    __tablename__ = "product"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        Index("ix_product_name", "name"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(50), nullable=True, unique=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("category.id"), nullable=False, index=True)
    supplier_id: Mapped[str] = mapped_column(ForeignKey("supplier.id"), nullable=False, index=True)

    category: Mapped[Category] = relationship("Category", back_populates="products")
    supplier: Mapped[Supplier] = relationship("Supplier", back_populates="products")
    inventory_items: Mapped[list[Inventory]] = relationship(
        "Inventory",
        back_populates="product",
        foreign_keys="Inventory.product_id",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}')>"


class Warehouse(TimestampMixin, Base):
    """
    Physical storage location.

    The product, supplier and category lists of a warehouse are derived
    from its inventory rows rather than stored.
    """
    __tablename__ = "warehouse"
    __table_args__ = (
        CheckConstraint("capacity >= 0", name="ck_warehouse_capacity"),
        CheckConstraint("current_usage >= 0", name="ck_warehouse_usage"),
        CheckConstraint("current_usage <= capacity", name="ck_warehouse_usage_within_capacity"),
        Index("ix_warehouse_name", "name"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    current_usage: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    inventory_items: Mapped[list[Inventory]] = relationship(
        "Inventory",
        back_populates="warehouse",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Warehouse(id={self.id}, name='{self.name}', usage={self.current_usage}/{self.capacity})>"

    @property
    def available_capacity(self) -> int:
        return max(self.capacity - self.current_usage, 0)

    @property
    def utilization_percent(self) -> float:
        if not self.capacity:
            return 0.0
        return round(self.current_usage * 100 / self.capacity, 2)

    @property
    def product_ids(self) -> list[str]:
        return sorted({item.product_id for item in self.inventory_items})

    @property
    def supplier_ids(self) -> list[str]:
        return sorted({item.supplier_id for item in self.inventory_items if item.supplier_id})

    @property
    def category_ids(self) -> list[str]:
        return sorted({item.category_id for item in self.inventory_items if item.category_id})


class Inventory(TimestampMixin, Base):
    """
    Stock of one product at one warehouse.

    ``category_id`` and ``supplier_id`` are copied from the product when the
    row is written and refreshed when the product changes.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        UniqueConstraint("product_id", "warehouse_id", name="uq_inventory_product_warehouse"),
        CheckConstraint("stock >= 0", name="ck_inventory_stock"),
        Index("ix_inventory_stock", "stock"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)
    warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouse.id"), nullable=False, index=True)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("category.id"), nullable=True, index=True)
    supplier_id: Mapped[str | None] = mapped_column(ForeignKey("supplier.id"), nullable=True, index=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)
    expiry_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True, index=True)

    product: Mapped[Product] = relationship(
        "Product", back_populates="inventory_items", foreign_keys=[product_id]
    )
    warehouse: Mapped[Warehouse] = relationship("Warehouse", back_populates="inventory_items")
    category: Mapped[Category | None] = relationship("Category", foreign_keys=[category_id])
    supplier: Mapped[Supplier | None] = relationship("Supplier", foreign_keys=[supplier_id])
    audit_log: Mapped[list[InventoryAuditEntry]] = relationship(
        "InventoryAuditEntry",
        back_populates="inventory",
        cascade="all, delete-orphan",
        order_by="InventoryAuditEntry.position",
        collection_class=ordering_list("position"),
    )

    def __repr__(self) -> str:
        return (
            f"<Inventory(id={self.id}, product_id={self.product_id}, "
            f"warehouse_id={self.warehouse_id}, stock={self.stock})>"
        )

    def adjust_stock(self, quantity_change: int) -> None:
        """
        Adjust stock quantity. Positive adds, negative removes.

        Note: This only updates the quantity. The caller is responsible for
        the warehouse usage counter and the audit entry.
        """
        new_quantity = self.stock + quantity_change
        if new_quantity < 0:
            raise ValueError(
                "Insufficient stock. Current: "
                f"{self.stock}, Requested change: {quantity_change}"
            )
        self.stock = new_quantity

    def record(self, action: str, amount: int, reason: str | None = None) -> InventoryAuditEntry:
        """Append an audit entry describing a stock change."""
        entry = InventoryAuditEntry(action=action, amount=amount, reason=reason)
        self.audit_log.append(entry)
        return entry


class InventoryAuditEntry(Base):
    """One recorded mutation of an inventory row's stock."""
    __tablename__ = "inventory_audit_entry"
    __table_args__ = (
        Index("ix_inventory_audit_entry_action", "action"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    inventory_id: Mapped[str] = mapped_column(
        ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    date: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    inventory: Mapped[Inventory] = relationship("Inventory", back_populates="audit_log")

    def __repr__(self) -> str:
        return f"<InventoryAuditEntry(action='{self.action}', amount={self.amount})>"


class SupplierDelivery(Base):
    """Delivery log line: a supplier delivered units of a product to a warehouse."""
    __tablename__ = "supplier_delivery"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_supplier_delivery_quantity"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)
    supplier_id: Mapped[str] = mapped_column(ForeignKey("supplier.id"), nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(ForeignKey("product.id"), nullable=False, index=True)
    warehouse_id: Mapped[str] = mapped_column(ForeignKey("warehouse.id"), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    delivered_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    supplier: Mapped[Supplier] = relationship("Supplier", back_populates="deliveries")

    def __repr__(self) -> str:
        return f"<SupplierDelivery(supplier_id={self.supplier_id}, product_id={self.product_id}, qty={self.quantity})>"
