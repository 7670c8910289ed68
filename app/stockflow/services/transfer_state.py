from __future__ import annotations

from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.stockflow.db.models import StockTransfer, StockTransferStatus

PENDING = StockTransferStatus.PENDING
IN_TRANSIT = StockTransferStatus.IN_TRANSIT
PARTIALLY_RECEIVED = StockTransferStatus.PARTIALLY_RECEIVED
RECEIVED = StockTransferStatus.RECEIVED
CANCELLED = StockTransferStatus.CANCELLED

ALLOWED_TRANSITIONS: dict[StockTransferStatus, frozenset[StockTransferStatus]] = {
    PENDING: frozenset({IN_TRANSIT, CANCELLED}),
    IN_TRANSIT: frozenset({PARTIALLY_RECEIVED, RECEIVED}),
    PARTIALLY_RECEIVED: frozenset({RECEIVED}),
    RECEIVED: frozenset(),
    CANCELLED: frozenset(),
}

ACTIVE_STATUSES = frozenset({PENDING, IN_TRANSIT, PARTIALLY_RECEIVED})
RECEIVABLE_STATUSES = frozenset({IN_TRANSIT, PARTIALLY_RECEIVED})
DELETABLE_STATUSES = frozenset({PENDING, CANCELLED})


def can_transition(current: StockTransferStatus | str, target: StockTransferStatus | str) -> bool:
    return StockTransferStatus(target) in ALLOWED_TRANSITIONS[StockTransferStatus(current)]


def transition(transfer: StockTransfer, target: StockTransferStatus) -> None:
    current = StockTransferStatus(transfer.status)
    if not can_transition(current, target):
        raise AppError(
            ErrorCatalog.ILLEGAL_STATE_TRANSITION,
            details={
                "message": f"cannot move transfer {transfer.id} from {current.value} to {target.value}",
                "current_status": current.value,
                "requested_status": target.value,
            },
        )
    transfer.status = target.value


def _guard(
    transfer: StockTransfer,
    allowed: frozenset[StockTransferStatus],
    error: ErrorDefinition,
    action: str,
) -> None:
    current = StockTransferStatus(transfer.status)
    if current not in allowed:
        raise AppError(
            error,
            details={
                "message": f"cannot {action} transfer {transfer.id} in status {current.value}",
                "status": current.value,
                "allowed_statuses": sorted(status.value for status in allowed),
            },
        )


def ensure_updatable(transfer: StockTransfer) -> None:
    _guard(transfer, frozenset({PENDING}), ErrorCatalog.FORBIDDEN, "update")


def ensure_shippable(transfer: StockTransfer) -> None:
    _guard(transfer, frozenset({PENDING}), ErrorCatalog.INVALID_STATE, "ship")


def ensure_receivable(transfer: StockTransfer) -> None:
    _guard(transfer, RECEIVABLE_STATUSES, ErrorCatalog.INVALID_STATE, "receive")


def ensure_cancellable(transfer: StockTransfer) -> None:
    _guard(transfer, frozenset({PENDING}), ErrorCatalog.FORBIDDEN, "cancel")


def ensure_deletable(transfer: StockTransfer) -> None:
    _guard(transfer, DELETABLE_STATUSES, ErrorCatalog.INVALID_REQUEST, "delete")


def is_active(status: StockTransferStatus | str) -> bool:
    return StockTransferStatus(status) in ACTIVE_STATUSES
