from __future__ import annotations

from dataclasses import dataclass

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.models import LocationKind
from app.stockflow.repos.locations import LocationRepository


@dataclass(frozen=True)
class LocationRef:
    kind: LocationKind
    id: int

    @property
    def warehouse_id(self) -> int | None:
        return self.id if self.kind == LocationKind.WAREHOUSE else None

    @property
    def shop_id(self) -> int | None:
        return self.id if self.kind == LocationKind.SHOP else None


@dataclass(frozen=True)
class TransferRoute:
    source: LocationRef
    destination: LocationRef


def location_ref(warehouse_id: int | None, shop_id: int | None) -> LocationRef | None:
    if warehouse_id is not None and shop_id is None:
        return LocationRef(LocationKind.WAREHOUSE, warehouse_id)
    if shop_id is not None and warehouse_id is None:
        return LocationRef(LocationKind.SHOP, shop_id)
    return None


class LocationValidator:
    def __init__(self, db):
        self.repo = LocationRepository(db)

    def _resolve_side(self, side: str, warehouse_id: int | None, shop_id: int | None) -> LocationRef:
        ref = location_ref(warehouse_id, shop_id)
        if ref is None:
            raise AppError(
                ErrorCatalog.INVALID_REQUEST,
                details={
                    "message": f"exactly one of {side}_warehouse_id or {side}_shop_id must be provided",
                    "field": side,
                },
            )
        return ref

    def _ensure_exists(self, side: str, ref: LocationRef) -> None:
        if self.repo.find_active_location(ref.kind, ref.id) is None:
            raise AppError(
                ErrorCatalog.REFERENCE_NOT_FOUND,
                details={
                    "message": f"{side} {ref.kind.value} {ref.id} not found or inactive",
                    "field": f"{side}_{ref.kind.value}_id",
                    "id": ref.id,
                },
            )

    def validate(
        self,
        *,
        source_warehouse_id: int | None,
        source_shop_id: int | None,
        destination_warehouse_id: int | None,
        destination_shop_id: int | None,
    ) -> TransferRoute:
        source = self._resolve_side("source", source_warehouse_id, source_shop_id)
        destination = self._resolve_side("destination", destination_warehouse_id, destination_shop_id)
        self._ensure_exists("source", source)
        self._ensure_exists("destination", destination)
        if source == destination:
            raise AppError(
                ErrorCatalog.INVALID_REQUEST,
                details={
                    "message": "source and destination locations must be different",
                    "field": "destination",
                    "kind": source.kind.value,
                    "id": source.id,
                },
            )
        return TransferRoute(source=source, destination=destination)
