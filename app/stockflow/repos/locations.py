from sqlalchemy import select

from app.stockflow.db.models import LocationKind, Shop, Warehouse

_MODELS = {
    LocationKind.WAREHOUSE: Warehouse,
    LocationKind.SHOP: Shop,
}


class LocationRepository:
    def __init__(self, db):
        self.db = db

    def find_active_location(self, kind: LocationKind, location_id: int):
        model = _MODELS[LocationKind(kind)]
        stmt = select(model).where(
            model.id == location_id,
            model.is_active.is_(True),
            model.deleted_at.is_(None),
        )
        return self.db.execute(stmt).scalars().first()

    def get_location(self, kind: LocationKind, location_id: int):
        return self.db.get(_MODELS[LocationKind(kind)], location_id)

    def get_warehouse_by_code(self, code: str):
        return self.db.execute(select(Warehouse).where(Warehouse.code == code)).scalars().first()

    def get_shop_by_code(self, code: str):
        return self.db.execute(select(Shop).where(Shop.code == code)).scalars().first()
