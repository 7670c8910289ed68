from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, or_, select

from app.stockflow.db.models import StockTransfer, StockTransferItem, StockTransferStatus

ACTIVE_STATUSES = (
    StockTransferStatus.PENDING.value,
    StockTransferStatus.IN_TRANSIT.value,
    StockTransferStatus.PARTIALLY_RECEIVED.value,
)


@dataclass(frozen=True)
class TransferQueryFilters:
    status: str | None = None
    source_warehouse_id: int | None = None
    source_shop_id: int | None = None
    destination_warehouse_id: int | None = None
    destination_shop_id: int | None = None
    requested_by_user_id: int | None = None
    shipped_by_user_id: int | None = None
    received_by_user_id: int | None = None
    request_date_from: date | None = None
    request_date_to: date | None = None
    q: str | None = None
    limit: int | None = None
    offset: int | None = None
    sort_by: str = "created_at"
    sort_order: str = "desc"


_EQUALITY_FILTERS = (
    "status",
    "source_warehouse_id",
    "source_shop_id",
    "destination_warehouse_id",
    "destination_shop_id",
    "requested_by_user_id",
    "shipped_by_user_id",
    "received_by_user_id",
)

def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


SORT_FIELDS = {
    "id": StockTransfer.id,
    "transfer_number": StockTransfer.transfer_number,
    "status": StockTransfer.status,
    "request_date": StockTransfer.request_date,
    "ship_date": StockTransfer.ship_date,
    "receive_date": StockTransfer.receive_date,
    "created_at": StockTransfer.created_at,
    "updated_at": StockTransfer.updated_at,
}


class TransferRepository:
    def __init__(self, db):
        self.db = db

    def get_transfer(self, transfer_id: int) -> StockTransfer | None:
        stmt = select(StockTransfer).where(StockTransfer.id == transfer_id, StockTransfer.deleted_at.is_(None))
        return self.db.execute(stmt).scalars().first()

    def get_transfer_for_update(self, transfer_id: int) -> StockTransfer | None:
        stmt = (
            select(StockTransfer)
            .where(StockTransfer.id == transfer_id, StockTransfer.deleted_at.is_(None))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    def get_items(self, transfer_id: int) -> list[StockTransferItem]:
        stmt = (
            select(StockTransferItem)
            .where(StockTransferItem.stock_transfer_id == transfer_id, StockTransferItem.deleted_at.is_(None))
            .order_by(StockTransferItem.id.asc())
        )
        return self.db.execute(stmt).scalars().all()

    def get_items_for_update(self, transfer_id: int) -> list[StockTransferItem]:
        stmt = (
            select(StockTransferItem)
            .where(StockTransferItem.stock_transfer_id == transfer_id, StockTransferItem.deleted_at.is_(None))
            .order_by(StockTransferItem.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().all()

    def get_items_for_transfers(self, transfer_ids: list[int]) -> dict[int, list[StockTransferItem]]:
        grouped: dict[int, list[StockTransferItem]] = {transfer_id: [] for transfer_id in transfer_ids}
        if not transfer_ids:
            return grouped
        stmt = (
            select(StockTransferItem)
            .where(StockTransferItem.stock_transfer_id.in_(transfer_ids), StockTransferItem.deleted_at.is_(None))
            .order_by(StockTransferItem.id.asc())
        )
        for item in self.db.execute(stmt).scalars().all():
            grouped[item.stock_transfer_id].append(item)
        return grouped

    def list_transfers(self, filters: TransferQueryFilters) -> tuple[list[StockTransfer], int]:
        stmt = select(StockTransfer).where(StockTransfer.deleted_at.is_(None))
        count_stmt = select(func.count()).select_from(StockTransfer).where(StockTransfer.deleted_at.is_(None))

        for field in _EQUALITY_FILTERS:
            value = getattr(filters, field)
            if value is None:
                continue
            column = getattr(StockTransfer, field)
            stmt = stmt.where(column == value)
            count_stmt = count_stmt.where(column == value)

        if filters.request_date_from is not None:
            stmt = stmt.where(StockTransfer.request_date >= filters.request_date_from)
            count_stmt = count_stmt.where(StockTransfer.request_date >= filters.request_date_from)
        if filters.request_date_to is not None:
            stmt = stmt.where(StockTransfer.request_date <= filters.request_date_to)
            count_stmt = count_stmt.where(StockTransfer.request_date <= filters.request_date_to)

        if filters.q:
            pattern = f"%{_escape_like(filters.q.strip())}%"
            search_filter = or_(
                StockTransfer.transfer_number.ilike(pattern, escape="\\"),
                StockTransfer.notes.ilike(pattern, escape="\\"),
            )
            stmt = stmt.where(search_filter)
            count_stmt = count_stmt.where(search_filter)

        sort_column = SORT_FIELDS.get(filters.sort_by, StockTransfer.created_at)
        if filters.sort_order == "asc":
            stmt = stmt.order_by(sort_column.asc(), StockTransfer.id.asc())
        else:
            stmt = stmt.order_by(sort_column.desc(), StockTransfer.id.desc())

        if filters.offset:
            stmt = stmt.offset(filters.offset)
        if filters.limit:
            stmt = stmt.limit(filters.limit)

        rows = self.db.execute(stmt).scalars().all()
        total = self.db.execute(count_stmt).scalar_one()
        return rows, total

    def count_active_for_location(self, *, warehouse_id: int | None = None, shop_id: int | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(StockTransfer)
            .where(StockTransfer.deleted_at.is_(None), StockTransfer.status.in_(ACTIVE_STATUSES))
        )
        if warehouse_id is not None:
            stmt = stmt.where(
                or_(
                    StockTransfer.source_warehouse_id == warehouse_id,
                    StockTransfer.destination_warehouse_id == warehouse_id,
                )
            )
        if shop_id is not None:
            stmt = stmt.where(
                or_(StockTransfer.source_shop_id == shop_id, StockTransfer.destination_shop_id == shop_id)
            )
        return int(self.db.execute(stmt).scalar_one() or 0)

    def count_active_for_product(self, product_id: int) -> int:
        stmt = (
            select(func.count(func.distinct(StockTransfer.id)))
            .select_from(StockTransfer)
            .join(StockTransferItem, StockTransferItem.stock_transfer_id == StockTransfer.id)
            .where(
                StockTransfer.deleted_at.is_(None),
                StockTransfer.status.in_(ACTIVE_STATUSES),
                StockTransferItem.deleted_at.is_(None),
                StockTransferItem.product_id == product_id,
            )
        )
        return int(self.db.execute(stmt).scalar_one() or 0)

    def get_status(self, transfer_id: int) -> str | None:
        stmt = select(StockTransfer.status).where(StockTransfer.id == transfer_id, StockTransfer.deleted_at.is_(None))
        return self.db.execute(stmt).scalar_one_or_none()

    def transfer_number_exists(self, transfer_number: str) -> bool:
        stmt = select(StockTransfer.id).where(StockTransfer.transfer_number == transfer_number)
        return self.db.execute(stmt).first() is not None
