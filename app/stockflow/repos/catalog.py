from sqlalchemy import select

from app.stockflow.db.models import Product, ProductVariant


class CatalogRepository:
    def __init__(self, db):
        self.db = db

    def find_product(self, product_id: int) -> Product | None:
        stmt = select(Product).where(Product.id == product_id, Product.deleted_at.is_(None))
        return self.db.execute(stmt).scalars().first()

    def find_variant(self, variant_id: int) -> ProductVariant | None:
        stmt = select(ProductVariant).where(ProductVariant.id == variant_id, ProductVariant.deleted_at.is_(None))
        return self.db.execute(stmt).scalars().first()

    def get_product_by_sku(self, sku: str) -> Product | None:
        return self.db.execute(select(Product).where(Product.sku == sku)).scalars().first()
