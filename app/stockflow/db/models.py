from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
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
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StockTransferStatus(str, Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    RECEIVED = "RECEIVED"
    CANCELLED = "CANCELLED"


class LocationKind(str, Enum):
    WAREHOUSE = "warehouse"
    SHOP = "shop"


class StockMovementType(str, Enum):
    STOCK_TRANSFER_OUT = "stock_transfer_out"
    STOCK_TRANSFER_IN = "stock_transfer_in"


QUANTITY = Numeric(15, 3)
MONEY = Numeric(15, 4)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Warehouse(Base):
    __tablename__ = "warehouses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Shop(Base):
    __tablename__ = "shops"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    default_purchase_price: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    variants = relationship("ProductVariant", back_populates="product")


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    sku_variant: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name_variant: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    product = relationship("Product", back_populates="variants")


class StockTransfer(Base):
    __tablename__ = "stock_transfers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transfer_number: Mapped[str] = mapped_column(String(50), nullable=False)
    source_warehouse_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("warehouses.id"), index=True, nullable=True
    )
    source_shop_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("shops.id"), index=True, nullable=True)
    destination_warehouse_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("warehouses.id"), index=True, nullable=True
    )
    destination_shop_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("shops.id"), index=True, nullable=True
    )
    status: Mapped[str] = mapped_column(String(25), nullable=False, default=StockTransferStatus.PENDING.value)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    ship_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    receive_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    requested_by_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    shipped_by_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    received_by_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by_user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    source_warehouse = relationship("Warehouse", foreign_keys=[source_warehouse_id])
    source_shop = relationship("Shop", foreign_keys=[source_shop_id])
    destination_warehouse = relationship("Warehouse", foreign_keys=[destination_warehouse_id])
    destination_shop = relationship("Shop", foreign_keys=[destination_shop_id])
    requested_by_user = relationship("User", foreign_keys=[requested_by_user_id])
    shipped_by_user = relationship("User", foreign_keys=[shipped_by_user_id])
    received_by_user = relationship("User", foreign_keys=[received_by_user_id])

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        UniqueConstraint("transfer_number", name="uq_stock_transfer_number"),
        Index("ix_stock_transfers_status_request_date", "status", "request_date"),
    )


class StockTransferItem(Base):
    __tablename__ = "stock_transfer_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stock_transfer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("stock_transfers.id"), index=True, nullable=False
    )
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    product_variant_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("product_variants.id"), nullable=True
    )
    quantity_requested: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    quantity_shipped: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    quantity_received: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False, default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    product = relationship("Product")
    product_variant = relationship("ProductVariant")

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        CheckConstraint("quantity_requested > 0", name="ck_stock_transfer_items_requested_positive"),
        CheckConstraint(
            "quantity_shipped >= 0 AND quantity_shipped <= quantity_requested",
            name="ck_stock_transfer_items_shipped_bounds",
        ),
        CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity_shipped",
            name="ck_stock_transfer_items_received_bounds",
        ),
    )


class StockMovement(Base):
    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    product_variant_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("product_variants.id"), nullable=True
    )
    warehouse_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("warehouses.id"), nullable=True)
    shop_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("shops.id"), nullable=True)
    movement_type: Mapped[str] = mapped_column(String(50), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(QUANTITY, nullable=False)
    movement_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    unit_cost_at_movement: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    reference_document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_document_id: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_item_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)


Index(
    "ix_stock_movements_reference",
    StockMovement.reference_document_type,
    StockMovement.reference_document_id,
)
