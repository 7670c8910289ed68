from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.stockflow.core.logging import log_json
from app.stockflow.db.models import StockMovement, StockMovementType
from app.stockflow.repos.stock_movements import StockMovementRepository
from app.stockflow.services.location_validator import LocationRef

logger = logging.getLogger(__name__)

TRANSFER_REFERENCE_TYPE = "stock_transfer"

_OUTBOUND_TYPES = {StockMovementType.STOCK_TRANSFER_OUT}


@dataclass(frozen=True)
class StockMovementPosting:
    product_id: int
    product_variant_id: int | None
    location: LocationRef
    movement_type: StockMovementType
    quantity: Decimal
    movement_date: datetime
    unit_cost: Decimal | None
    user_id: int
    reference_document_id: str
    reference_item_id: int | None = None
    notes: str | None = None
    reference_document_type: str = TRANSFER_REFERENCE_TYPE


def signed_quantity(movement_type: StockMovementType, quantity: Decimal) -> Decimal:
    if movement_type in _OUTBOUND_TYPES:
        return -abs(quantity)
    return abs(quantity)


class StockLedgerService:
    """Appends stock movements inside the caller's transaction.

    Nothing here commits; the movement becomes visible only if the enclosing
    unit of work does.
    """

    def post_movement(self, db, posting: StockMovementPosting) -> StockMovement:
        movement = StockMovement(
            product_id=posting.product_id,
            product_variant_id=posting.product_variant_id,
            warehouse_id=posting.location.warehouse_id,
            shop_id=posting.location.shop_id,
            movement_type=posting.movement_type.value,
            quantity=signed_quantity(posting.movement_type, posting.quantity),
            movement_date=posting.movement_date,
            unit_cost_at_movement=posting.unit_cost,
            user_id=posting.user_id,
            reference_document_type=posting.reference_document_type,
            reference_document_id=posting.reference_document_id,
            reference_item_id=posting.reference_item_id,
            notes=posting.notes,
        )
        StockMovementRepository(db).add(movement)
        log_json(
            logger,
            {
                "event": "stock_movement.posted",
                "movement_type": movement.movement_type,
                "product_id": movement.product_id,
                "product_variant_id": movement.product_variant_id,
                "location_kind": posting.location.kind.value,
                "location_id": posting.location.id,
                "quantity": movement.quantity,
                "reference_document_id": movement.reference_document_id,
                "reference_item_id": movement.reference_item_id,
            },
        )
        return movement
