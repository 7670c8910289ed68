from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.models import StockTransfer, StockTransferItem, utcnow
from app.stockflow.services.quantities import ZERO, to_quantity


@dataclass(frozen=True)
class QuantityLine:
    item_id: int
    quantity: Decimal


def require_lines(lines: Sequence[QuantityLine], action: str) -> None:
    if not lines:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"at least one item is required to {action}", "field": "items"},
        )


def plan_increments(
    transfer: StockTransfer,
    items: Iterable[StockTransferItem],
    lines: Sequence[QuantityLine],
    *,
    field: str,
    counter: Callable[[StockTransferItem], Decimal],
    bound: Callable[[StockTransferItem], Decimal],
    bound_label: str,
) -> list[tuple[StockTransferItem, Decimal]]:
    """Validate every line before anything is mutated.

    Lines hitting the same item accumulate, so the bound applies to their sum.
    """
    items_by_id = {item.id: item for item in items}
    pending: dict[int, Decimal] = {}
    plan: list[tuple[StockTransferItem, Decimal]] = []
    for index, line in enumerate(lines):
        item = items_by_id.get(line.item_id)
        if item is None:
            raise AppError(
                ErrorCatalog.INVALID_REQUEST,
                details={
                    "message": f"item {line.item_id} not found in transfer {transfer.id}",
                    "field": f"items[{index}].stock_transfer_item_id",
                    "item_id": line.item_id,
                },
            )
        delta = to_quantity(line.quantity, field=f"items[{index}].{field}", allow_zero=True)
        already_planned = pending.get(item.id, ZERO)
        remaining = bound(item) - counter(item) - already_planned
        if delta > remaining:
            raise AppError(
                ErrorCatalog.QUANTITY_EXCEEDED,
                details={
                    "message": f"{field} {delta} for item {item.id} exceeds remaining {bound_label} quantity ({remaining})",
                    "field": f"items[{index}].{field}",
                    "item_id": item.id,
                    "quantity": delta,
                    "remaining": remaining,
                },
            )
        pending[item.id] = already_planned + delta
        plan.append((item, delta))

    if sum(pending.values(), ZERO) == ZERO:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"at least one item must have a positive {field}", "field": "items"},
        )
    return plan


def resolve_action_date(requested: date | None, *, not_before: date | None, field: str, reference: str) -> date:
    if requested is None:
        today = utcnow().date()
        return max(today, not_before) if not_before is not None else today
    if not_before is not None and requested < not_before:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={
                "message": f"{field} cannot be before {reference} ({not_before.isoformat()})",
                "field": field,
                "value": requested.isoformat(),
            },
        )
    return requested


def movement_timestamp(requested: date | None) -> datetime:
    if requested is None:
        return utcnow()
    return datetime.combine(requested, time.min)


def unit_cost_snapshot(item: StockTransferItem) -> Decimal:
    product = item.product
    if product is None or product.default_purchase_price is None:
        return Decimal("0")
    return Decimal(product.default_purchase_price)
