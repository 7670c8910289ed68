from fastapi import APIRouter, Depends, Response

from app.stockflow.core.deps import get_transfer_item_service, require_active_user
from app.stockflow.schemas.transfers import (
    StockTransferItemInput,
    StockTransferItemListResponse,
    StockTransferItemResponse,
    StockTransferItemUpdateRequest,
)

router = APIRouter()


@router.get("/stockflow/stock-transfers/{transfer_id}/items", response_model=StockTransferItemListResponse)
def list_stock_transfer_items(
    transfer_id: int,
    _user=Depends(require_active_user),
    service=Depends(get_transfer_item_service),
):
    return service.list_items(transfer_id)


@router.post(
    "/stockflow/stock-transfers/{transfer_id}/items",
    response_model=StockTransferItemResponse,
    status_code=201,
)
def add_stock_transfer_item(
    transfer_id: int,
    payload: StockTransferItemInput,
    current_user=Depends(require_active_user),
    service=Depends(get_transfer_item_service),
):
    return service.add_item(transfer_id, payload, current_user.id)


@router.get(
    "/stockflow/stock-transfers/{transfer_id}/items/{item_id}",
    response_model=StockTransferItemResponse,
)
def get_stock_transfer_item(
    transfer_id: int,
    item_id: int,
    _user=Depends(require_active_user),
    service=Depends(get_transfer_item_service),
):
    return service.get_item(transfer_id, item_id)


@router.patch(
    "/stockflow/stock-transfers/{transfer_id}/items/{item_id}",
    response_model=StockTransferItemResponse,
)
def update_stock_transfer_item(
    transfer_id: int,
    item_id: int,
    payload: StockTransferItemUpdateRequest,
    current_user=Depends(require_active_user),
    service=Depends(get_transfer_item_service),
):
    return service.update_item(transfer_id, item_id, payload, current_user.id)


@router.delete("/stockflow/stock-transfers/{transfer_id}/items/{item_id}", status_code=204)
def remove_stock_transfer_item(
    transfer_id: int,
    item_id: int,
    current_user=Depends(require_active_user),
    service=Depends(get_transfer_item_service),
):
    service.remove_item(transfer_id, item_id, current_user.id)
    return Response(status_code=204)
