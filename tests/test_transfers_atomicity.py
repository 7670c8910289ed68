import pytest
from sqlalchemy import func, select

from app.stockflow.core.error_catalog import AppError
from app.stockflow.db.models import StockMovement, StockTransfer, StockTransferItem
from app.stockflow.schemas.transfers import ShipLineInput, StockTransferShipRequest
from app.stockflow.services.stock_ledger import StockLedgerService
from app.stockflow.services.transfers import TransferOrchestrator
from tests.transfer_helpers import create_product, create_transfer, seed_world


class FailingOnSecondPostingLedger(StockLedgerService):
    def __init__(self):
        self.calls = 0

    def post_movement(self, db, posting):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("ledger unavailable")
        movement = super().post_movement(db, posting)
        db.flush()
        return movement


def test_failed_ledger_posting_rolls_back_the_whole_shipment(client, db_session, session_factory):
    world = seed_world(db_session)
    second_product = create_product(db_session, sku="SKU-0002")
    created = create_transfer(
        client,
        world,
        items=[
            {"product_id": world.product.id, "quantity_requested": "5"},
            {"product_id": second_product.id, "quantity_requested": "3"},
        ],
    )
    first_id, second_id = [item["id"] for item in created["items"]]
    ledger = FailingOnSecondPostingLedger()
    orchestrator = TransferOrchestrator(session_factory, ledger=ledger)

    with pytest.raises(AppError) as exc_info:
        orchestrator.ship(
            created["id"],
            StockTransferShipRequest(
                items=[
                    ShipLineInput(stock_transfer_item_id=first_id, quantity_shipped="5"),
                    ShipLineInput(stock_transfer_item_id=second_id, quantity_shipped="3"),
                ]
            ),
            world.user.id,
        )

    assert exc_info.value.code == "INTERNAL_ERROR"
    assert ledger.calls == 2
    db_session.expire_all()
    assert db_session.get(StockTransfer, created["id"]).status == "PENDING"
    shipped = db_session.execute(select(StockTransferItem.quantity_shipped)).scalars().all()
    assert all(value == 0 for value in shipped)
    assert db_session.execute(select(func.count()).select_from(StockMovement)).scalar_one() == 0


def test_internal_errors_surface_without_stack_traces(client, db_session, monkeypatch):
    world = seed_world(db_session)
    created = create_transfer(client, world)

    def explode(self, *args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(StockLedgerService, "post_movement", explode)
    response = client.patch(
        f"/stockflow/stock-transfers/{created['id']}/ship",
        json={"items": [{"stock_transfer_item_id": created["items"][0]["id"], "quantity_shipped": "1"}]},
        headers=world.headers,
    )

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert "disk on fire" not in response.text
    assert body["details"]["type"] == "RuntimeError"
