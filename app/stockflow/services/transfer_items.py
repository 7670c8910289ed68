from __future__ import annotations

import logging

from app.stockflow.core.config import settings
from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.core.logging import log_json
from app.stockflow.db.models import StockTransferItem, utcnow
from app.stockflow.repos.transfers import TransferRepository
from app.stockflow.schemas.transfers import (
    StockTransferItemInput,
    StockTransferItemListResponse,
    StockTransferItemResponse,
    StockTransferItemUpdateRequest,
)
from app.stockflow.services import transfer_state
from app.stockflow.services.item_validator import ItemValidator
from app.stockflow.services.quantities import ZERO, to_quantity
from app.stockflow.services.representation import item_response
from app.stockflow.services.transfers import load_transfer
from app.stockflow.services.unit_of_work import TransferUnitOfWork, require_actor

logger = logging.getLogger(__name__)


def _find_item(items: list[StockTransferItem], transfer_id: int, item_id: int) -> StockTransferItem:
    for item in items:
        if item.id == item_id:
            return item
    raise AppError(
        ErrorCatalog.NOT_FOUND,
        details={"message": f"item {item_id} not found in stock transfer {transfer_id}", "id": item_id},
    )


class TransferItemService:
    """Edits individual lines of a PENDING transfer."""

    def __init__(self, session_factory, *, max_attempts: int | None = None, backoff_ms: int | None = None):
        self.unit_of_work = TransferUnitOfWork(
            session_factory,
            max_attempts=max_attempts if max_attempts is not None else settings.TRANSFER_CONFLICT_MAX_ATTEMPTS,
            backoff_ms=backoff_ms if backoff_ms is not None else settings.TRANSFER_CONFLICT_BACKOFF_MS,
        )

    def _log_event(self, event: str, item: StockTransferItemResponse, actor_id: int) -> None:
        log_json(
            logger,
            {
                "event": event,
                "transfer_id": item.stock_transfer_id,
                "item_id": item.id,
                "product_id": item.product_id,
                "quantity_requested": item.quantity_requested,
                "user_id": actor_id,
            },
        )

    def list_items(self, transfer_id: int) -> StockTransferItemListResponse:
        def work(db):
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id)
            return StockTransferItemListResponse(rows=[item_response(item) for item in repo.get_items(transfer.id)])

        return self.unit_of_work.read(work)

    def get_item(self, transfer_id: int, item_id: int) -> StockTransferItemResponse:
        def work(db):
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id)
            return item_response(_find_item(repo.get_items(transfer.id), transfer.id, item_id))

        return self.unit_of_work.read(work)

    def add_item(self, transfer_id: int, payload: StockTransferItemInput, actor_id: int) -> StockTransferItemResponse:
        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_updatable(transfer)
            validated = ItemValidator(db).validate_item(
                product_id=payload.product_id,
                product_variant_id=payload.product_variant_id,
                quantity_requested=payload.quantity_requested,
                notes=payload.notes,
                field_prefix="item",
            )
            existing = repo.get_items_for_update(transfer.id)
            if any((item.product_id, item.product_variant_id) == validated.key for item in existing):
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    details={
                        "message": "this product/variant is already part of the transfer",
                        "field": "item.product_id",
                        "product_id": validated.product.id,
                        "product_variant_id": validated.key[1],
                    },
                )
            item = StockTransferItem(
                stock_transfer_id=transfer.id,
                product_id=validated.product.id,
                product_variant_id=validated.key[1],
                quantity_requested=validated.quantity_requested,
                quantity_shipped=ZERO,
                quantity_received=ZERO,
                notes=validated.notes,
            )
            db.add(item)
            transfer.updated_by_user_id = actor_id
            transfer.updated_at = utcnow()
            db.flush()
            return item_response(item)

        response = self.unit_of_work.run("item_add", work)
        self._log_event("transfer.item.added", response, actor_id)
        return response

    def update_item(
        self,
        transfer_id: int,
        item_id: int,
        payload: StockTransferItemUpdateRequest,
        actor_id: int,
    ) -> StockTransferItemResponse:
        fields = payload.model_fields_set

        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_updatable(transfer)
            item = _find_item(repo.get_items_for_update(transfer.id), transfer.id, item_id)
            if "quantity_requested" in fields:
                item.quantity_requested = to_quantity(payload.quantity_requested, field="quantity_requested")
            if "notes" in fields:
                item.notes = payload.notes
            now = utcnow()
            item.updated_at = now
            transfer.updated_by_user_id = actor_id
            transfer.updated_at = now
            db.flush()
            return item_response(item)

        response = self.unit_of_work.run("item_update", work)
        self._log_event("transfer.item.updated", response, actor_id)
        return response

    def remove_item(self, transfer_id: int, item_id: int, actor_id: int) -> None:
        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_updatable(transfer)
            items = repo.get_items_for_update(transfer.id)
            item = _find_item(items, transfer.id, item_id)
            if len(items) == 1:
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    details={"message": "cannot remove the last item of a stock transfer", "id": item_id},
                )
            now = utcnow()
            item.deleted_at = now
            item.updated_at = now
            transfer.updated_by_user_id = actor_id
            transfer.updated_at = now
            db.flush()
            return item_response(item)

        response = self.unit_of_work.run("item_remove", work)
        self._log_event("transfer.item.removed", response, actor_id)
