from __future__ import annotations

from datetime import date
from typing import Sequence

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
from app.stockflow.services.stock_ledger import StockLedgerService, StockMovementPosting
from app.stockflow.services.transfer_state import transition


class ShipmentProcessor:
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
        ship_date: date | None = None,
        notes: str | None = None,
    ) -> list[StockMovement]:
        require_lines(lines, "ship")
        effective_date = resolve_action_date(
            ship_date,
            not_before=transfer.request_date,
            field="ship_date",
            reference="request_date",
        )
        plan = plan_increments(
            transfer,
            items,
            lines,
            field="quantity_shipped",
            counter=lambda item: item.quantity_shipped,
            bound=lambda item: item.quantity_requested,
            bound_label="requested",
        )

        source = location_ref(transfer.source_warehouse_id, transfer.source_shop_id)
        moved_at = movement_timestamp(ship_date)
        now = utcnow()
        movements: list[StockMovement] = []
        for item, delta in plan:
            if not delta:
                continue
            item.quantity_shipped = item.quantity_shipped + delta
            item.updated_at = now
            movements.append(
                self.ledger.post_movement(
                    db,
                    StockMovementPosting(
                        product_id=item.product_id,
                        product_variant_id=item.product_variant_id,
                        location=source,
                        movement_type=StockMovementType.STOCK_TRANSFER_OUT,
                        quantity=delta,
                        movement_date=moved_at,
                        unit_cost=unit_cost_snapshot(item),
                        user_id=actor_id,
                        reference_document_id=str(transfer.id),
                        reference_item_id=item.id,
                        notes=f"Shipped for transfer {transfer.transfer_number}, item {item.id}",
                    ),
                )
            )

        transition(transfer, StockTransferStatus.IN_TRANSIT)
        transfer.shipped_by_user_id = actor_id
        transfer.ship_date = effective_date
        if notes is not None:
            transfer.notes = notes
        transfer.updated_by_user_id = actor_id
        transfer.updated_at = now
        return movements
