from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


_CREATE_EXAMPLE = {
    "source_warehouse_id": 1,
    "destination_shop_id": 1,
    "request_date": "2026-03-02",
    "notes": "Weekly replenishment",
    "items": [{"product_id": 1, "quantity_requested": "5"}],
}


class StockTransferItemInput(BaseModel):
    product_id: int | None = None
    product_variant_id: int | None = None
    quantity_requested: Decimal | None = None
    notes: str | None = None


class StockTransferCreateRequest(BaseModel):
    source_warehouse_id: int | None = None
    source_shop_id: int | None = None
    destination_warehouse_id: int | None = None
    destination_shop_id: int | None = None
    request_date: date | None = None
    notes: str | None = None
    items: list[StockTransferItemInput] = Field(default_factory=list)

    model_config = {"json_schema_extra": {"example": _CREATE_EXAMPLE}}


class StockTransferUpdateRequest(BaseModel):
    source_warehouse_id: int | None = None
    source_shop_id: int | None = None
    destination_warehouse_id: int | None = None
    destination_shop_id: int | None = None
    request_date: date | None = None
    notes: str | None = None
    items: list[StockTransferItemInput] | None = None


class ShipLineInput(BaseModel):
    stock_transfer_item_id: int
    quantity_shipped: Decimal


class StockTransferShipRequest(BaseModel):
    items: list[ShipLineInput] = Field(default_factory=list)
    ship_date: date | None = None
    notes: str | None = None


class ReceiveLineInput(BaseModel):
    stock_transfer_item_id: int
    quantity_received: Decimal


class StockTransferReceiveRequest(BaseModel):
    items: list[ReceiveLineInput] = Field(default_factory=list)
    receive_date: date | None = None
    notes: str | None = None


class StockTransferItemUpdateRequest(BaseModel):
    quantity_requested: Decimal | None = None
    notes: str | None = None


class LocationSummary(BaseModel):
    kind: Literal["warehouse", "shop"]
    id: int
    code: str | None = None
    name: str | None = None


class UserSummary(BaseModel):
    id: int
    username: str | None = None


class ProductSummary(BaseModel):
    id: int
    sku: str | None = None
    name: str | None = None


class ProductVariantSummary(BaseModel):
    id: int
    sku_variant: str | None = None
    name_variant: str | None = None


class StockTransferItemResponse(BaseModel):
    id: int
    stock_transfer_id: int
    product_id: int
    product_variant_id: int | None
    product: ProductSummary | None = None
    product_variant: ProductVariantSummary | None = None
    quantity_requested: Decimal
    quantity_shipped: Decimal
    quantity_received: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime | None


class StockTransferResponse(BaseModel):
    id: int
    transfer_number: str
    status: str
    source_warehouse_id: int | None
    source_shop_id: int | None
    destination_warehouse_id: int | None
    destination_shop_id: int | None
    source: LocationSummary | None = None
    destination: LocationSummary | None = None
    request_date: date
    ship_date: date | None
    receive_date: date | None
    requested_by_user_id: int
    shipped_by_user_id: int | None
    received_by_user_id: int | None
    updated_by_user_id: int | None
    requested_by: UserSummary | None = None
    shipped_by: UserSummary | None = None
    received_by: UserSummary | None = None
    notes: str | None
    version: int
    created_at: datetime
    updated_at: datetime | None
    items: list[StockTransferItemResponse] | None = None


class StockTransferListResponse(BaseModel):
    rows: list[StockTransferResponse]
    total: int
    limit: int
    offset: int


class StockTransferItemListResponse(BaseModel):
    rows: list[StockTransferItemResponse]
