from __future__ import annotations

import logging
import uuid

from app.stockflow.core.config import settings
from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.core.logging import log_json
from app.stockflow.core.metrics import metrics
from app.stockflow.db.models import StockTransfer, StockTransferItem, StockTransferStatus, utcnow
from app.stockflow.repos.transfers import TransferQueryFilters, TransferRepository
from app.stockflow.schemas.transfers import (
    StockTransferCreateRequest,
    StockTransferListResponse,
    StockTransferReceiveRequest,
    StockTransferResponse,
    StockTransferShipRequest,
    StockTransferUpdateRequest,
)
from app.stockflow.services import transfer_state
from app.stockflow.services.fulfillment import QuantityLine
from app.stockflow.services.item_validator import ItemValidator, ValidatedItem
from app.stockflow.services.location_validator import LocationValidator
from app.stockflow.services.quantities import ZERO
from app.stockflow.services.receipt import ReceiptProcessor
from app.stockflow.services.representation import transfer_response
from app.stockflow.services.shipment import ShipmentProcessor
from app.stockflow.services.stock_ledger import StockLedgerService
from app.stockflow.services.unit_of_work import TransferUnitOfWork, require_actor

logger = logging.getLogger(__name__)

_LOCATION_FIELDS = (
    "source_warehouse_id",
    "source_shop_id",
    "destination_warehouse_id",
    "destination_shop_id",
)


def generate_transfer_number(prefix: str | None = None) -> str:
    stamp = utcnow().strftime("%Y%m%d")
    return f"{prefix or settings.TRANSFER_NUMBER_PREFIX}-{stamp}-{uuid.uuid4().hex[:8]}"


def load_transfer(repo: TransferRepository, transfer_id: int, *, for_update: bool = False) -> StockTransfer:
    transfer = repo.get_transfer_for_update(transfer_id) if for_update else repo.get_transfer(transfer_id)
    if transfer is None:
        raise AppError(
            ErrorCatalog.NOT_FOUND,
            details={"message": f"stock transfer {transfer_id} not found", "id": transfer_id},
        )
    return transfer


def build_items(transfer_id: int, validated: list[ValidatedItem]) -> list[StockTransferItem]:
    return [
        StockTransferItem(
            stock_transfer_id=transfer_id,
            product_id=item.product.id,
            product_variant_id=item.variant.id if item.variant is not None else None,
            quantity_requested=item.quantity_requested,
            quantity_shipped=ZERO,
            quantity_received=ZERO,
            notes=item.notes,
        )
        for item in validated
    ]


class TransferOrchestrator:
    """Coordinates validators, state machine and processors for stock transfers.

    One instance is shared per process. It holds no per-request state; every
    operation opens its own session from ``session_factory``.
    """

    def __init__(
        self,
        session_factory,
        *,
        ledger: StockLedgerService | None = None,
        max_attempts: int | None = None,
        backoff_ms: int | None = None,
        number_prefix: str | None = None,
    ):
        ledger = ledger or StockLedgerService()
        self.unit_of_work = TransferUnitOfWork(
            session_factory,
            max_attempts=max_attempts if max_attempts is not None else settings.TRANSFER_CONFLICT_MAX_ATTEMPTS,
            backoff_ms=backoff_ms if backoff_ms is not None else settings.TRANSFER_CONFLICT_BACKOFF_MS,
        )
        self.shipment = ShipmentProcessor(ledger)
        self.receipt = ReceiptProcessor(ledger)
        self.number_prefix = number_prefix

    def _next_transfer_number(self, db) -> str:
        # uuid collisions are unlikely but the number must never be reused,
        # soft-deleted transfers included.
        while True:
            number = generate_transfer_number(self.number_prefix)
            if not TransferRepository(db).transfer_number_exists(number):
                return number

    def _log_event(self, event: str, response: StockTransferResponse, actor_id: int, **extra) -> None:
        payload = {
            "event": event,
            "transfer_id": response.id,
            "transfer_number": response.transfer_number,
            "status": response.status,
            "user_id": actor_id,
        }
        payload.update(extra)
        log_json(logger, payload)

    def create(self, payload: StockTransferCreateRequest, actor_id: int) -> StockTransferResponse:
        def work(db):
            require_actor(db, actor_id)
            if not payload.items:
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    details={"message": "a stock transfer requires at least one item", "field": "items"},
                )
            route = LocationValidator(db).validate(
                source_warehouse_id=payload.source_warehouse_id,
                source_shop_id=payload.source_shop_id,
                destination_warehouse_id=payload.destination_warehouse_id,
                destination_shop_id=payload.destination_shop_id,
            )
            validated = ItemValidator(db).validate_items(payload.items)

            transfer = StockTransfer(
                transfer_number=self._next_transfer_number(db),
                source_warehouse_id=route.source.warehouse_id,
                source_shop_id=route.source.shop_id,
                destination_warehouse_id=route.destination.warehouse_id,
                destination_shop_id=route.destination.shop_id,
                status=StockTransferStatus.PENDING.value,
                request_date=payload.request_date or utcnow().date(),
                requested_by_user_id=actor_id,
                notes=payload.notes,
            )
            db.add(transfer)
            db.flush()
            items = build_items(transfer.id, validated)
            db.add_all(items)
            db.flush()
            return transfer_response(transfer, TransferRepository(db).get_items(transfer.id))

        response = self.unit_of_work.run("create", work)
        self._log_event("transfer.created", response, actor_id, items=len(response.items or []))
        return response

    def update(self, transfer_id: int, payload: StockTransferUpdateRequest, actor_id: int) -> StockTransferResponse:
        fields = payload.model_fields_set

        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_updatable(transfer)

            if any(field in fields for field in _LOCATION_FIELDS):
                merged = {
                    field: getattr(payload, field) if field in fields else getattr(transfer, field)
                    for field in _LOCATION_FIELDS
                }
                route = LocationValidator(db).validate(**merged)
                transfer.source_warehouse_id = route.source.warehouse_id
                transfer.source_shop_id = route.source.shop_id
                transfer.destination_warehouse_id = route.destination.warehouse_id
                transfer.destination_shop_id = route.destination.shop_id

            if "request_date" in fields:
                if payload.request_date is None:
                    raise AppError(
                        ErrorCatalog.INVALID_REQUEST,
                        details={"message": "request_date cannot be cleared", "field": "request_date"},
                    )
                transfer.request_date = payload.request_date
            if "notes" in fields:
                transfer.notes = payload.notes

            now = utcnow()
            if "items" in fields:
                if not payload.items:
                    raise AppError(
                        ErrorCatalog.INVALID_REQUEST,
                        details={"message": "a stock transfer requires at least one item", "field": "items"},
                    )
                validated = ItemValidator(db).validate_items(payload.items)
                for existing in repo.get_items_for_update(transfer.id):
                    existing.deleted_at = now
                    existing.updated_at = now
                db.add_all(build_items(transfer.id, validated))

            transfer.updated_by_user_id = actor_id
            transfer.updated_at = now
            db.flush()
            return transfer_response(transfer, repo.get_items(transfer.id))

        response = self.unit_of_work.run("update", work)
        self._log_event(
            "transfer.updated",
            response,
            actor_id,
            fields=sorted(fields),
            items_replaced="items" in fields,
        )
        return response

    def ship(self, transfer_id: int, payload: StockTransferShipRequest, actor_id: int) -> StockTransferResponse:
        lines = [QuantityLine(line.stock_transfer_item_id, line.quantity_shipped) for line in payload.items]

        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_shippable(transfer)
            items = repo.get_items_for_update(transfer.id)
            movements = self.shipment.apply(
                db,
                transfer,
                items,
                lines,
                actor_id=actor_id,
                ship_date=payload.ship_date,
                notes=payload.notes,
            )
            db.flush()
            return transfer_response(transfer, items), len(movements)

        response, posted = self.unit_of_work.run("ship", work)
        metrics.increment_stock_movement("stock_transfer_out", posted)
        self._log_event("transfer.shipped", response, actor_id, movements=posted)
        return response

    def receive(self, transfer_id: int, payload: StockTransferReceiveRequest, actor_id: int) -> StockTransferResponse:
        lines = [QuantityLine(line.stock_transfer_item_id, line.quantity_received) for line in payload.items]

        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_receivable(transfer)
            items = repo.get_items_for_update(transfer.id)
            movements = self.receipt.apply(
                db,
                transfer,
                items,
                lines,
                actor_id=actor_id,
                receive_date=payload.receive_date,
                notes=payload.notes,
            )
            db.flush()
            return transfer_response(transfer, items), len(movements)

        response, posted = self.unit_of_work.run("receive", work)
        metrics.increment_stock_movement("stock_transfer_in", posted)
        self._log_event("transfer.received", response, actor_id, movements=posted)
        return response

    def cancel(self, transfer_id: int, actor_id: int) -> StockTransferResponse:
        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_cancellable(transfer)
            transfer_state.transition(transfer, StockTransferStatus.CANCELLED)
            transfer.updated_by_user_id = actor_id
            transfer.updated_at = utcnow()
            db.flush()
            return transfer_response(transfer, repo.get_items(transfer.id))

        response = self.unit_of_work.run("cancel", work)
        self._log_event("transfer.cancelled", response, actor_id)
        return response

    def delete(self, transfer_id: int, actor_id: int) -> None:
        def work(db):
            require_actor(db, actor_id)
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id, for_update=True)
            transfer_state.ensure_deletable(transfer)
            now = utcnow()
            # Items stay in place for audit; they are reachable only through the deleted header.
            transfer.deleted_at = now
            transfer.updated_by_user_id = actor_id
            transfer.updated_at = now
            db.flush()
            return transfer_response(transfer)

        response = self.unit_of_work.run("delete", work)
        self._log_event("transfer.deleted", response, actor_id)

    def find_by_id(self, transfer_id: int, *, include_items: bool = True) -> StockTransferResponse:
        def work(db):
            repo = TransferRepository(db)
            transfer = load_transfer(repo, transfer_id)
            items = repo.get_items(transfer.id) if include_items else None
            return transfer_response(transfer, items)

        return self.unit_of_work.read(work)

    def find_all(self, filters: TransferQueryFilters, *, include_items: bool = False) -> StockTransferListResponse:
        def work(db):
            repo = TransferRepository(db)
            rows, total = repo.list_transfers(filters)
            grouped = repo.get_items_for_transfers([row.id for row in rows]) if include_items else {}
            return StockTransferListResponse(
                rows=[transfer_response(row, grouped.get(row.id) if include_items else None) for row in rows],
                total=total,
                limit=filters.limit or 0,
                offset=filters.offset or 0,
            )

        return self.unit_of_work.read(work)
