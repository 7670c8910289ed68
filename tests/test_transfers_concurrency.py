import threading
from decimal import Decimal

from sqlalchemy import select

from app.stockflow.core.error_catalog import AppError
from app.stockflow.db.models import StockMovement, StockTransfer, StockTransferItem
from app.stockflow.schemas.transfers import (
    ReceiveLineInput,
    ShipLineInput,
    StockTransferReceiveRequest,
    StockTransferShipRequest,
)
from app.stockflow.services.transfers import TransferOrchestrator
from tests.transfer_helpers import create_transfer, seed_world, ship

WORKERS = 4


def _run_concurrently(calls):
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            call()
            outcomes[index] = "ok"
        except AppError as exc:
            outcomes[index] = exc.code

    threads = [threading.Thread(target=worker, args=(index, call)) for index, call in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes


def _orchestrator(session_factory):
    return TransferOrchestrator(session_factory, max_attempts=40, backoff_ms=10)


def test_concurrent_receipts_never_overshoot(client, db_session, session_factory):
    world = seed_world(db_session)
    created = create_transfer(client, world, quantity="10")
    item_id = created["items"][0]["id"]
    assert ship(client, world, created["id"], [(item_id, "10")]).status_code == 200
    orchestrator = _orchestrator(session_factory)
    payload = StockTransferReceiveRequest(
        items=[ReceiveLineInput(stock_transfer_item_id=item_id, quantity_received="3")]
    )

    outcomes = _run_concurrently(
        [lambda: orchestrator.receive(created["id"], payload, world.user.id) for _ in range(WORKERS)]
    )

    assert outcomes.count("ok") == 3
    assert outcomes.count("QUANTITY_EXCEEDED") >= 1
    assert set(outcomes) <= {"ok", "QUANTITY_EXCEEDED"}
    db_session.expire_all()
    item = db_session.get(StockTransferItem, item_id)
    assert item.quantity_received == Decimal("9")
    assert item.quantity_received <= item.quantity_shipped
    inbound = (
        db_session.execute(select(StockMovement).where(StockMovement.movement_type == "stock_transfer_in"))
        .scalars()
        .all()
    )
    assert sum(movement.quantity for movement in inbound) == Decimal("9")


def test_concurrent_shipments_apply_exactly_once(client, db_session, session_factory):
    world = seed_world(db_session)
    created = create_transfer(client, world, quantity="10")
    item_id = created["items"][0]["id"]
    orchestrator = _orchestrator(session_factory)
    payload = StockTransferShipRequest(items=[ShipLineInput(stock_transfer_item_id=item_id, quantity_shipped="6")])

    outcomes = _run_concurrently(
        [lambda: orchestrator.ship(created["id"], payload, world.user.id) for _ in range(WORKERS)]
    )

    assert outcomes.count("ok") == 1
    # Losers re-validate against the committed shipment; ship is only legal from PENDING.
    assert set(outcomes) <= {"ok", "INVALID_STATE", "QUANTITY_EXCEEDED"}
    db_session.expire_all()
    item = db_session.get(StockTransferItem, item_id)
    assert item.quantity_shipped == Decimal("6")
    assert item.quantity_shipped <= item.quantity_requested
    assert db_session.get(StockTransfer, created["id"]).status == "IN_TRANSIT"
    outbound = db_session.execute(select(StockMovement)).scalars().all()
    assert len(outbound) == 1
