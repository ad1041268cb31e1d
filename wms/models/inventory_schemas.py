"""
Pydantic schemas for the warehouse inventory API.

Identifiers in request bodies are validated against the store's id format so
malformed ids fail as 400 before reaching the services.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wms.utils.identifiers import ID_PATTERN

EntityId = Annotated[str, Field(pattern=ID_PATTERN)]


class MessageOut(BaseModel):
    message: str


# ============================================================================
# Reference Schemas (expanded foreign keys)
# ============================================================================

class CategoryRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class SupplierRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str | None = None


class ProductRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    sku: str | None = None
    price: float


class WarehouseRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str


# ============================================================================
# Category Schemas
# ============================================================================

class CategoryCreate(BaseModel):
    """Schema for creating a category."""
    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CategoryRename(CategoryCreate):
    """Schema for renaming a category."""


class CategoryOut(BaseModel):
    """Schema for category API response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    product_count: int = 0  # Computed field
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class CategorySummaryOut(CategoryOut):
    """Category with its products."""
    products: list[ProductRef] = []


class CategoryStockOut(BaseModel):
    category_id: str
    total_stock: int


# ============================================================================
# Product Schemas
# ============================================================================

class ProductCreate(BaseModel):
    """Schema for creating a product."""
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(..., ge=0)
    category_id: EntityId
    supplier_id: EntityId
    sku: str | None = Field(None, min_length=1, max_length=50)


class ProductUpdate(ProductCreate):
    """Schema for replacing a product; every create field is required."""


class ProductOut(BaseModel):
    """Schema for product API response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None = None
    price: float
    sku: str | None = None

    category_id: str
    supplier_id: str
    category: CategoryRef | None = None  # Populated from relationship
    supplier: SupplierRef | None = None

    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class ProductNameMatch(BaseModel):
    """Trimmed product view returned by name search."""
    model_config = ConfigDict(from_attributes=True)

    name: str
    description: str | None = None
    price: float


# ============================================================================
# Supplier Schemas
# ============================================================================

class SupplierCreate(BaseModel):
    """Schema for creating a supplier."""
    name: str = Field(..., min_length=1, max_length=200)
    contact_info: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    address: str = Field(..., min_length=1)
    rating: int | None = Field(None, ge=1, le=5)
    order_count: int = Field(default=0, ge=0)


class SupplierUpdate(BaseModel):
    """Schema for updating a supplier."""
    name: str | None = Field(None, min_length=1, max_length=200)
    contact_info: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    address: str | None = Field(None, min_length=1)
    rating: int | None = Field(None, ge=1, le=5)
    order_count: int | None = Field(None, ge=0)


class DeliveryCreate(BaseModel):
    """A supplier delivering stock of a product to a warehouse."""
    product_id: EntityId
    warehouse_id: EntityId
    quantity: int
    date: dt.datetime | None = None


class DeliveryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    supplier_id: str
    product_id: str
    warehouse_id: str
    quantity: int
    date: dt.datetime = Field(validation_alias="delivered_at")


class SupplierOut(BaseModel):
    """Schema for supplier API response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    contact_info: str
    email: str
    address: str
    rating: int | None = None
    order_count: int = 0
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class SupplierDetailOut(SupplierOut):
    deliveries: list[DeliveryOut] = []


# ============================================================================
# Warehouse Schemas
# ============================================================================

class WarehouseCreate(BaseModel):
    """Schema for creating a warehouse. Usage always starts at zero."""
    name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=255)
    capacity: int = Field(..., ge=0)


class WarehouseUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    location: str | None = Field(None, min_length=1, max_length=255)
    capacity: int | None = Field(None, ge=0)


class WarehouseOut(BaseModel):
    """Schema for warehouse API response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location: str
    capacity: int
    current_usage: int = 0

    # Derived from inventory rows
    available_capacity: int = 0
    product_ids: list[str] = []
    supplier_ids: list[str] = []
    category_ids: list[str] = []

    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class WarehouseUtilizationOut(BaseModel):
    warehouse_id: str
    capacity: int
    current_usage: int
    live_usage: int
    available_capacity: int
    utilization_percent: float


class WarehouseCapacityOut(BaseModel):
    warehouse_id: str
    name: str
    capacity: int
    current_usage: int
    available_capacity: int


class WarehouseUsageOut(BaseModel):
    warehouse_id: str
    name: str
    current_usage: int
    live_usage: int
    inventory_count: int


class ReconcileOut(BaseModel):
    warehouse_id: str
    previous_usage: int
    current_usage: int


# ============================================================================
# Inventory Schemas
# ============================================================================

class InventoryCreate(BaseModel):
    """Schema for adding stock of a product to a warehouse."""
    product_id: EntityId
    warehouse_id: EntityId
    stock: int = Field(..., gt=0)
    unit_price: Decimal | None = Field(None, ge=0)
    expiry_date: dt.date | None = None


class InventoryUpdate(BaseModel):
    """Schema for updating an inventory row."""
    stock: int | None = Field(None, ge=0)
    unit_price: Decimal | None = Field(None, ge=0)
    expiry_date: dt.date | None = None


class AuditEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: str
    amount: int
    reason: str | None = None
    date: dt.datetime


class InventoryOut(BaseModel):
    """Schema for inventory API response."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    product_id: str
    warehouse_id: str
    category_id: str | None = None
    supplier_id: str | None = None
    stock: int
    unit_price: float | None = None
    expiry_date: dt.date | None = None

    product: ProductRef | None = None
    warehouse: WarehouseRef | None = None

    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class InventoryDetailOut(InventoryOut):
    audit_log: list[AuditEntryOut] = []


class MoveRequest(BaseModel):
    """Transfer units of a product between two warehouses."""
    product_id: EntityId
    from_warehouse_id: EntityId
    to_warehouse_id: EntityId
    amount: int


class MoveResult(BaseModel):
    message: str
    source: InventoryOut
    destination: InventoryOut


class DiminishRequest(BaseModel):
    """Remove units from one inventory row (spoilage, damage...)."""
    inventory_id: EntityId
    quantity: int
    reason: str | None = Field(None, max_length=500)


class DiminishResult(BaseModel):
    message: str
    inventory: InventoryDetailOut
