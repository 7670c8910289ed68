from decimal import Decimal
from itertools import product
from types import SimpleNamespace

import pytest

from app.stockflow.core.error_catalog import AppError
from app.stockflow.db.models import StockTransferStatus
from app.stockflow.services import transfer_state
from app.stockflow.services.receipt import derive_receipt_status

LEGAL = {
    (StockTransferStatus.PENDING, StockTransferStatus.IN_TRANSIT),
    (StockTransferStatus.PENDING, StockTransferStatus.CANCELLED),
    (StockTransferStatus.IN_TRANSIT, StockTransferStatus.PARTIALLY_RECEIVED),
    (StockTransferStatus.IN_TRANSIT, StockTransferStatus.RECEIVED),
    (StockTransferStatus.PARTIALLY_RECEIVED, StockTransferStatus.RECEIVED),
}


def _transfer(status: StockTransferStatus):
    return SimpleNamespace(id=7, status=status.value)


@pytest.mark.parametrize("current,target", list(product(StockTransferStatus, repeat=2)))
def test_every_status_pair(current, target):
    transfer = _transfer(current)
    if (current, target) in LEGAL:
        transfer_state.transition(transfer, target)
        assert transfer.status == target.value
        return

    with pytest.raises(AppError) as exc_info:
        transfer_state.transition(transfer, target)
    assert exc_info.value.code == "ILLEGAL_STATE_TRANSITION"
    assert exc_info.value.details["current_status"] == current.value
    assert exc_info.value.details["requested_status"] == target.value
    assert transfer.status == current.value


@pytest.mark.parametrize(
    "guard,allowed,code",
    [
        (transfer_state.ensure_updatable, {StockTransferStatus.PENDING}, "FORBIDDEN"),
        (transfer_state.ensure_shippable, {StockTransferStatus.PENDING}, "INVALID_STATE"),
        (
            transfer_state.ensure_receivable,
            {StockTransferStatus.IN_TRANSIT, StockTransferStatus.PARTIALLY_RECEIVED},
            "INVALID_STATE",
        ),
        (transfer_state.ensure_cancellable, {StockTransferStatus.PENDING}, "FORBIDDEN"),
        (
            transfer_state.ensure_deletable,
            {StockTransferStatus.PENDING, StockTransferStatus.CANCELLED},
            "INVALID_REQUEST",
        ),
    ],
)
def test_guards(guard, allowed, code):
    for status in StockTransferStatus:
        if status in allowed:
            guard(_transfer(status))
            continue
        with pytest.raises(AppError) as exc_info:
            guard(_transfer(status))
        assert exc_info.value.code == code
        assert exc_info.value.details["status"] == status.value


def test_active_statuses():
    assert {status for status in StockTransferStatus if transfer_state.is_active(status)} == {
        StockTransferStatus.PENDING,
        StockTransferStatus.IN_TRANSIT,
        StockTransferStatus.PARTIALLY_RECEIVED,
    }


def _item(shipped: str, received: str):
    return SimpleNamespace(quantity_shipped=Decimal(shipped), quantity_received=Decimal(received))


def test_receipt_status_derivation():
    assert derive_receipt_status([_item("5", "5")]) == StockTransferStatus.RECEIVED
    assert derive_receipt_status([_item("5", "3")]) == StockTransferStatus.PARTIALLY_RECEIVED
    assert derive_receipt_status([_item("5", "5"), _item("0", "0")]) == StockTransferStatus.RECEIVED
    assert derive_receipt_status([_item("5", "5"), _item("2", "1")]) == StockTransferStatus.PARTIALLY_RECEIVED
    assert derive_receipt_status([_item("0", "0")]) == StockTransferStatus.PARTIALLY_RECEIVED
