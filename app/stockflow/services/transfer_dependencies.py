from __future__ import annotations

from dataclasses import dataclass

from app.stockflow.db.models import LocationKind
from app.stockflow.repos.transfers import TransferRepository
from app.stockflow.services import transfer_state


@dataclass(frozen=True)
class TransferIdentity:
    id: int
    status: str
    is_active: bool


class TransferDependencyChecker:
    """Answers "is this still referenced by an open transfer" for other modules.

    Only ids and statuses leave this class; callers never see ORM rows.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def describe_transfer(self, transfer_id: int) -> TransferIdentity | None:
        db = self.session_factory()
        try:
            status = TransferRepository(db).get_status(transfer_id)
        finally:
            db.close()
        if status is None:
            return None
        return TransferIdentity(id=transfer_id, status=status, is_active=transfer_state.is_active(status))

    def is_transfer_active(self, transfer_id: int) -> bool:
        identity = self.describe_transfer(transfer_id)
        return identity is not None and identity.is_active

    def location_has_active_transfers(self, kind: LocationKind | str, location_id: int) -> bool:
        kind = LocationKind(kind)
        db = self.session_factory()
        try:
            repo = TransferRepository(db)
            if kind == LocationKind.WAREHOUSE:
                count = repo.count_active_for_location(warehouse_id=location_id)
            else:
                count = repo.count_active_for_location(shop_id=location_id)
        finally:
            db.close()
        return count > 0

    def product_has_active_transfers(self, product_id: int) -> bool:
        db = self.session_factory()
        try:
            count = TransferRepository(db).count_active_for_product(product_id)
        finally:
            db.close()
        return count > 0
