from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response

from app.stockflow.core.config import settings
from app.stockflow.core.deps import get_transfer_orchestrator, require_active_user
from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.models import StockTransferStatus
from app.stockflow.repos.transfers import SORT_FIELDS, TransferQueryFilters
from app.stockflow.schemas.transfers import (
    StockTransferCreateRequest,
    StockTransferListResponse,
    StockTransferReceiveRequest,
    StockTransferResponse,
    StockTransferShipRequest,
    StockTransferUpdateRequest,
)

router = APIRouter()


def _parse_sort(sort: str | None) -> tuple[str, str]:
    if not sort:
        return "created_at", "desc"
    field = sort.lstrip("-")
    if field not in SORT_FIELDS:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"cannot sort by {field}", "field": "sort", "allowed": sorted(SORT_FIELDS)},
        )
    return field, "desc" if sort.startswith("-") else "asc"


@router.get("/stockflow/stock-transfers", response_model=StockTransferListResponse)
def list_stock_transfers(
    status: StockTransferStatus | None = None,
    source_warehouse_id: int | None = None,
    source_shop_id: int | None = None,
    destination_warehouse_id: int | None = None,
    destination_shop_id: int | None = None,
    requested_by_user_id: int | None = None,
    shipped_by_user_id: int | None = None,
    received_by_user_id: int | None = None,
    request_date_from: date | None = None,
    request_date_to: date | None = None,
    q: str | None = Query(None, max_length=100),
    limit: int = Query(settings.TRANSFERS_LIST_DEFAULT_PAGE_SIZE, ge=1, le=settings.TRANSFERS_LIST_MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    sort: str | None = None,
    include_items: bool = False,
    _user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    sort_by, sort_order = _parse_sort(sort)
    filters = TransferQueryFilters(
        status=status.value if status else None,
        source_warehouse_id=source_warehouse_id,
        source_shop_id=source_shop_id,
        destination_warehouse_id=destination_warehouse_id,
        destination_shop_id=destination_shop_id,
        requested_by_user_id=requested_by_user_id,
        shipped_by_user_id=shipped_by_user_id,
        received_by_user_id=received_by_user_id,
        request_date_from=request_date_from,
        request_date_to=request_date_to,
        q=q,
        limit=limit,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return orchestrator.find_all(filters, include_items=include_items)


@router.post("/stockflow/stock-transfers", response_model=StockTransferResponse, status_code=201)
def create_stock_transfer(
    payload: StockTransferCreateRequest,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.create(payload, current_user.id)


@router.get("/stockflow/stock-transfers/{transfer_id}", response_model=StockTransferResponse)
def get_stock_transfer(
    transfer_id: int,
    include_items: bool = True,
    _user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.find_by_id(transfer_id, include_items=include_items)


@router.put("/stockflow/stock-transfers/{transfer_id}", response_model=StockTransferResponse)
def update_stock_transfer(
    transfer_id: int,
    payload: StockTransferUpdateRequest,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.update(transfer_id, payload, current_user.id)


@router.patch("/stockflow/stock-transfers/{transfer_id}/ship", response_model=StockTransferResponse)
def ship_stock_transfer(
    transfer_id: int,
    payload: StockTransferShipRequest,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.ship(transfer_id, payload, current_user.id)


@router.patch("/stockflow/stock-transfers/{transfer_id}/receive", response_model=StockTransferResponse)
def receive_stock_transfer(
    transfer_id: int,
    payload: StockTransferReceiveRequest,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.receive(transfer_id, payload, current_user.id)


@router.patch("/stockflow/stock-transfers/{transfer_id}/cancel", response_model=StockTransferResponse)
def cancel_stock_transfer(
    transfer_id: int,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    return orchestrator.cancel(transfer_id, current_user.id)


@router.delete("/stockflow/stock-transfers/{transfer_id}", status_code=204)
def delete_stock_transfer(
    transfer_id: int,
    current_user=Depends(require_active_user),
    orchestrator=Depends(get_transfer_orchestrator),
):
    orchestrator.delete(transfer_id, current_user.id)
    return Response(status_code=204)
