from __future__ import annotations

from typing import Sequence

from app.stockflow.db.models import LocationKind, StockTransfer, StockTransferItem
from app.stockflow.schemas.transfers import (
    LocationSummary,
    ProductSummary,
    ProductVariantSummary,
    StockTransferItemResponse,
    StockTransferResponse,
    UserSummary,
)


def _location_summary(warehouse, warehouse_id: int | None, shop, shop_id: int | None) -> LocationSummary | None:
    if warehouse_id is not None:
        return LocationSummary(
            kind=LocationKind.WAREHOUSE.value,
            id=warehouse_id,
            code=getattr(warehouse, "code", None),
            name=getattr(warehouse, "name", None),
        )
    if shop_id is not None:
        return LocationSummary(
            kind=LocationKind.SHOP.value,
            id=shop_id,
            code=getattr(shop, "code", None),
            name=getattr(shop, "name", None),
        )
    return None


def _user_summary(user) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary(id=user.id, username=user.username)


def item_response(item: StockTransferItem) -> StockTransferItemResponse:
    product = item.product
    variant = item.product_variant
    return StockTransferItemResponse(
        id=item.id,
        stock_transfer_id=item.stock_transfer_id,
        product_id=item.product_id,
        product_variant_id=item.product_variant_id,
        product=ProductSummary(id=product.id, sku=product.sku, name=product.name) if product else None,
        product_variant=ProductVariantSummary(
            id=variant.id,
            sku_variant=variant.sku_variant,
            name_variant=variant.name_variant,
        )
        if variant
        else None,
        quantity_requested=item.quantity_requested,
        quantity_shipped=item.quantity_shipped,
        quantity_received=item.quantity_received,
        notes=item.notes,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def transfer_response(
    transfer: StockTransfer,
    items: Sequence[StockTransferItem] | None = None,
) -> StockTransferResponse:
    return StockTransferResponse(
        id=transfer.id,
        transfer_number=transfer.transfer_number,
        status=transfer.status,
        source_warehouse_id=transfer.source_warehouse_id,
        source_shop_id=transfer.source_shop_id,
        destination_warehouse_id=transfer.destination_warehouse_id,
        destination_shop_id=transfer.destination_shop_id,
        source=_location_summary(
            transfer.source_warehouse,
            transfer.source_warehouse_id,
            transfer.source_shop,
            transfer.source_shop_id,
        ),
        destination=_location_summary(
            transfer.destination_warehouse,
            transfer.destination_warehouse_id,
            transfer.destination_shop,
            transfer.destination_shop_id,
        ),
        request_date=transfer.request_date,
        ship_date=transfer.ship_date,
        receive_date=transfer.receive_date,
        requested_by_user_id=transfer.requested_by_user_id,
        shipped_by_user_id=transfer.shipped_by_user_id,
        received_by_user_id=transfer.received_by_user_id,
        updated_by_user_id=transfer.updated_by_user_id,
        requested_by=_user_summary(transfer.requested_by_user),
        shipped_by=_user_summary(transfer.shipped_by_user),
        received_by=_user_summary(transfer.received_by_user),
        notes=transfer.notes,
        version=transfer.version,
        created_at=transfer.created_at,
        updated_at=transfer.updated_at,
        items=[item_response(item) for item in items] if items is not None else None,
    )
