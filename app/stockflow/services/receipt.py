from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from app.stockflow.db.models import (
    StockMovement,
    StockMovementType,
    StockTransfer,
    StockTransferItem,
    StockTransferStatus,
    utcnow,
)
from app.stockflow.services.fulfillment import (
    QuantityLine,
    movement_timestamp,
    plan_increments,
    require_lines,
    resolve_action_date,
    unit_cost_snapshot,
)
from app.stockflow.services.location_validator import location_ref
from app.stockflow.services.quantities import ZERO
from app.stockflow.services.stock_ledger import StockLedgerService, StockMovementPosting
from app.stockflow.services.transfer_state import transition


def derive_receipt_status(items: Iterable[StockTransferItem]) -> StockTransferStatus:
    items = list(items)
    total_shipped = sum((Decimal(item.quantity_shipped) for item in items), ZERO)
    fully_received = all(item.quantity_received == item.quantity_shipped for item in items)
    if total_shipped > ZERO and fully_received:
        return StockTransferStatus.RECEIVED
    return StockTransferStatus.PARTIALLY_RECEIVED


class ReceiptProcessor:
    def __init__(self, ledger: StockLedgerService):
        self.ledger = ledger

    def apply(
        self,
        db,
        transfer: StockTransfer,
        items: Sequence[StockTransferItem],
        lines: Sequence[QuantityLine],
        *,
        actor_id: int,
        receive_date: date | None = None,
        notes: str | None = None,
    ) -> list[StockMovement]:
        require_lines(lines, "receive")
        effective_date = resolve_action_date(
            receive_date,
            not_before=transfer.ship_date,
            field="receive_date",
            reference="ship_date",
        )
        plan = plan_increments(
            transfer,
            items,
            lines,
            field="quantity_received",
            counter=lambda item: item.quantity_received,
            bound=lambda item: item.quantity_shipped,
            bound_label="shipped",
        )

        destination = location_ref(transfer.destination_warehouse_id, transfer.destination_shop_id)
        moved_at = movement_timestamp(receive_date)
        now = utcnow()
        movements: list[StockMovement] = []
        for item, delta in plan:
            if not delta:
                continue
            item.quantity_received = item.quantity_received + delta
            item.updated_at = now
            movements.append(
                self.ledger.post_movement(
                    db,
                    StockMovementPosting(
                        product_id=item.product_id,
                        product_variant_id=item.product_variant_id,
                        location=destination,
                        movement_type=StockMovementType.STOCK_TRANSFER_IN,
                        quantity=delta,
                        movement_date=moved_at,
                        unit_cost=unit_cost_snapshot(item),
                        user_id=actor_id,
                        reference_document_id=str(transfer.id),
                        reference_item_id=item.id,
                        notes=f"Received for transfer {transfer.transfer_number}, item {item.id}",
                    ),
                )
            )

        # Status is derived from the whole item set, not only the lines in this call.
        new_status = derive_receipt_status(items)
        if new_status.value != transfer.status:
            transition(transfer, new_status)
        transfer.received_by_user_id = actor_id
        transfer.receive_date = effective_date
        if notes is not None:
            transfer.notes = notes
        transfer.updated_by_user_id = actor_id
        transfer.updated_at = now
        return movements
