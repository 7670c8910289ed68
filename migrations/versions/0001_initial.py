"""stock transfer lifecycle

Revision ID: 0001_initial
Revises:
Create Date: 2026-03-02 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

QUANTITY = sa.Numeric(15, 3)
MONEY = sa.Numeric(15, 4)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "warehouses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("code", name="uq_warehouses_code"),
    )
    op.create_table(
        "shops",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("code", name="uq_shops_code"),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sku", sa.String(length=100), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("default_purchase_price", MONEY, nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("sku", name="uq_products_sku"),
    )
    op.create_table(
        "product_variants",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("sku_variant", sa.String(length=100), nullable=False),
        sa.Column("name_variant", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("sku_variant", name="uq_product_variants_sku_variant"),
    )
    op.create_index("ix_product_variants_product_id", "product_variants", ["product_id"])

    op.create_table(
        "stock_transfers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transfer_number", sa.String(length=50), nullable=False),
        sa.Column("source_warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("source_shop_id", sa.Integer(), sa.ForeignKey("shops.id"), nullable=True),
        sa.Column("destination_warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("destination_shop_id", sa.Integer(), sa.ForeignKey("shops.id"), nullable=True),
        sa.Column("status", sa.String(length=25), nullable=False, server_default="PENDING"),
        sa.Column("request_date", sa.Date(), nullable=False),
        sa.Column("ship_date", sa.Date(), nullable=True),
        sa.Column("receive_date", sa.Date(), nullable=True),
        sa.Column("requested_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("shipped_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("received_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("updated_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("transfer_number", name="uq_stock_transfer_number"),
    )
    op.create_index("ix_stock_transfers_source_warehouse_id", "stock_transfers", ["source_warehouse_id"])
    op.create_index("ix_stock_transfers_source_shop_id", "stock_transfers", ["source_shop_id"])
    op.create_index("ix_stock_transfers_destination_warehouse_id", "stock_transfers", ["destination_warehouse_id"])
    op.create_index("ix_stock_transfers_destination_shop_id", "stock_transfers", ["destination_shop_id"])
    op.create_index("ix_stock_transfers_status_request_date", "stock_transfers", ["status", "request_date"])

    op.create_table(
        "stock_transfer_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("stock_transfer_id", sa.Integer(), sa.ForeignKey("stock_transfers.id"), nullable=False),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("product_variant_id", sa.Integer(), sa.ForeignKey("product_variants.id"), nullable=True),
        sa.Column("quantity_requested", QUANTITY, nullable=False),
        sa.Column("quantity_shipped", QUANTITY, nullable=False, server_default="0"),
        sa.Column("quantity_received", QUANTITY, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("quantity_requested > 0", name="ck_stock_transfer_items_requested_positive"),
        sa.CheckConstraint(
            "quantity_shipped >= 0 AND quantity_shipped <= quantity_requested",
            name="ck_stock_transfer_items_shipped_bounds",
        ),
        sa.CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity_shipped",
            name="ck_stock_transfer_items_received_bounds",
        ),
    )
    op.create_index("ix_stock_transfer_items_stock_transfer_id", "stock_transfer_items", ["stock_transfer_id"])
    op.create_index("ix_stock_transfer_items_product_id", "stock_transfer_items", ["product_id"])

    op.create_table(
        "stock_movements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("product_variant_id", sa.Integer(), sa.ForeignKey("product_variants.id"), nullable=True),
        sa.Column("warehouse_id", sa.Integer(), sa.ForeignKey("warehouses.id"), nullable=True),
        sa.Column("shop_id", sa.Integer(), sa.ForeignKey("shops.id"), nullable=True),
        sa.Column("movement_type", sa.String(length=50), nullable=False),
        sa.Column("quantity", QUANTITY, nullable=False),
        sa.Column("movement_date", sa.DateTime(), nullable=False),
        sa.Column("unit_cost_at_movement", MONEY, nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("reference_document_type", sa.String(length=50), nullable=False),
        sa.Column("reference_document_id", sa.String(length=50), nullable=False),
        sa.Column("reference_item_id", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_stock_movements_product_id", "stock_movements", ["product_id"])
    op.create_index(
        "ix_stock_movements_reference",
        "stock_movements",
        ["reference_document_type", "reference_document_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_stock_movements_reference", table_name="stock_movements")
    op.drop_index("ix_stock_movements_product_id", table_name="stock_movements")
    op.drop_table("stock_movements")
    op.drop_index("ix_stock_transfer_items_product_id", table_name="stock_transfer_items")
    op.drop_index("ix_stock_transfer_items_stock_transfer_id", table_name="stock_transfer_items")
    op.drop_table("stock_transfer_items")
    op.drop_index("ix_stock_transfers_status_request_date", table_name="stock_transfers")
    op.drop_index("ix_stock_transfers_destination_shop_id", table_name="stock_transfers")
    op.drop_index("ix_stock_transfers_destination_warehouse_id", table_name="stock_transfers")
    op.drop_index("ix_stock_transfers_source_shop_id", table_name="stock_transfers")
    op.drop_index("ix_stock_transfers_source_warehouse_id", table_name="stock_transfers")
    op.drop_table("stock_transfers")
    op.drop_index("ix_product_variants_product_id", table_name="product_variants")
    op.drop_table("product_variants")
    op.drop_table("products")
    op.drop_table("shops")
    op.drop_table("warehouses")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
