"""Warehouse inventory schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "category",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        *_timestamps(),
    )
    op.create_table(
        "supplier",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_info", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.Column("order_count", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("rating IS NULL OR (rating >= 1 AND rating <= 5)", name="ck_supplier_rating"),
        sa.CheckConstraint("order_count >= 0", name="ck_supplier_order_count"),
    )
    op.create_index("ix_supplier_name", "supplier", ["name"])

    op.create_table(
        "product",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(15, 2), nullable=False),
        sa.Column("sku", sa.String(length=50), nullable=True, unique=True),
        sa.Column("category_id", sa.String(length=32), sa.ForeignKey("category.id"), nullable=False),
        sa.Column("supplier_id", sa.String(length=32), sa.ForeignKey("supplier.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="ck_product_price"),
    )
    op.create_index("ix_product_name", "product", ["name"])
    op.create_index("ix_product_category_id", "product", ["category_id"])
    op.create_index("ix_product_supplier_id", "product", ["supplier_id"])

    op.create_table(
        "warehouse",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("current_usage", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.CheckConstraint("capacity >= 0", name="ck_warehouse_capacity"),
        sa.CheckConstraint("current_usage >= 0", name="ck_warehouse_usage"),
        sa.CheckConstraint("current_usage <= capacity", name="ck_warehouse_usage_within_capacity"),
    )
    op.create_index("ix_warehouse_name", "warehouse", ["name"])

    op.create_table(
        "inventory",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("warehouse_id", sa.String(length=32), sa.ForeignKey("warehouse.id"), nullable=False),
        sa.Column("category_id", sa.String(length=32), sa.ForeignKey("category.id"), nullable=True),
        sa.Column("supplier_id", sa.String(length=32), sa.ForeignKey("supplier.id"), nullable=True),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("product_id", "warehouse_id", name="uq_inventory_product_warehouse"),
        sa.CheckConstraint("stock >= 0", name="ck_inventory_stock"),
    )
    for column in ("product_id", "warehouse_id", "category_id", "supplier_id", "expiry_date", "stock"):
        op.create_index(f"ix_inventory_{column}", "inventory", [column])

    op.create_table(
        "inventory_audit_entry",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column(
            "inventory_id",
            sa.String(length=32),
            sa.ForeignKey("inventory.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_inventory_audit_entry_inventory_id", "inventory_audit_entry", ["inventory_id"])
    op.create_index("ix_inventory_audit_entry_action", "inventory_audit_entry", ["action"])

    op.create_table(
        "supplier_delivery",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("supplier_id", sa.String(length=32), sa.ForeignKey("supplier.id"), nullable=False),
        sa.Column("product_id", sa.String(length=32), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("warehouse_id", sa.String(length=32), sa.ForeignKey("warehouse.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_supplier_delivery_quantity"),
    )
    for column in ("supplier_id", "product_id", "warehouse_id"):
        op.create_index(f"ix_supplier_delivery_{column}", "supplier_delivery", [column])


def downgrade() -> None:
    op.drop_table("supplier_delivery")
    op.drop_table("inventory_audit_entry")
    op.drop_table("inventory")
    op.drop_table("warehouse")
    op.drop_table("product")
    op.drop_table("supplier")
    op.drop_table("category")
