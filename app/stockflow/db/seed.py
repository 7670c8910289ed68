from decimal import Decimal

from sqlalchemy import select

from app.stockflow.core.config import settings
from app.stockflow.db.models import Product, Shop, User, Warehouse


def _get_or_create_warehouse(db):
    warehouse = (
        db.execute(select(Warehouse).where(Warehouse.code == settings.DEFAULT_WAREHOUSE_CODE)).scalars().first()
    )
    if warehouse:
        return warehouse
    warehouse = Warehouse(code=settings.DEFAULT_WAREHOUSE_CODE, name=settings.DEFAULT_WAREHOUSE_NAME, is_active=True)
    db.add(warehouse)
    db.flush()
    return warehouse


def _get_or_create_shop(db):
    shop = db.execute(select(Shop).where(Shop.code == settings.DEFAULT_SHOP_CODE)).scalars().first()
    if shop:
        return shop
    shop = Shop(code=settings.DEFAULT_SHOP_CODE, name=settings.DEFAULT_SHOP_NAME, is_active=True)
    db.add(shop)
    db.flush()
    return shop


def _get_or_create_product(db):
    product = db.execute(select(Product).where(Product.sku == settings.DEFAULT_PRODUCT_SKU)).scalars().first()
    if product:
        return product
    product = Product(
        sku=settings.DEFAULT_PRODUCT_SKU,
        name=settings.DEFAULT_PRODUCT_NAME,
        default_purchase_price=Decimal(settings.DEFAULT_PRODUCT_PURCHASE_PRICE),
    )
    db.add(product)
    db.flush()
    return product


def _get_or_create_user(db):
    user = db.execute(select(User).where(User.username == settings.SEED_USERNAME)).scalars().first()
    if user:
        return user
    user = User(username=settings.SEED_USERNAME, email=settings.SEED_EMAIL, full_name="Stock Keeper", is_active=True)
    db.add(user)
    db.flush()
    return user


def run_seed(db):
    warehouse = _get_or_create_warehouse(db)
    shop = _get_or_create_shop(db)
    product = _get_or_create_product(db)
    user = _get_or_create_user(db)
    db.commit()
    return {"warehouse_id": warehouse.id, "shop_id": shop.id, "product_id": product.id, "user_id": user.id}
