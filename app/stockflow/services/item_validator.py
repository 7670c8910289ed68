from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from app.stockflow.core.error_catalog import AppError, ErrorCatalog
from app.stockflow.db.models import Product, ProductVariant
from app.stockflow.repos.catalog import CatalogRepository
from app.stockflow.services.quantities import to_quantity


@dataclass(frozen=True)
class ValidatedItem:
    product: Product
    variant: ProductVariant | None
    quantity_requested: Decimal
    notes: str | None

    @property
    def key(self) -> tuple[int, int | None]:
        return self.product.id, self.variant.id if self.variant is not None else None


class ItemValidator:
    def __init__(self, db):
        self.catalog = CatalogRepository(db)

    def validate_item(
        self,
        *,
        product_id: int | None,
        product_variant_id: int | None,
        quantity_requested,
        notes: str | None = None,
        field_prefix: str = "items",
    ) -> ValidatedItem:
        if product_id is None:
            raise AppError(
                ErrorCatalog.INVALID_REQUEST,
                details={"message": "product_id is required for every item", "field": f"{field_prefix}.product_id"},
            )
        quantity = to_quantity(quantity_requested, field=f"{field_prefix}.quantity_requested")

        product = self.catalog.find_product(product_id)
        if product is None:
            raise AppError(
                ErrorCatalog.REFERENCE_NOT_FOUND,
                details={
                    "message": f"product {product_id} not found",
                    "field": f"{field_prefix}.product_id",
                    "id": product_id,
                },
            )

        variant = None
        if product_variant_id is not None:
            variant = self.catalog.find_variant(product_variant_id)
            if variant is None:
                raise AppError(
                    ErrorCatalog.REFERENCE_NOT_FOUND,
                    details={
                        "message": f"product variant {product_variant_id} not found",
                        "field": f"{field_prefix}.product_variant_id",
                        "id": product_variant_id,
                    },
                )
            if variant.product_id != product.id:
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    details={
                        "message": f"product variant {variant.id} does not belong to product {product.id}",
                        "field": f"{field_prefix}.product_variant_id",
                        "id": variant.id,
                    },
                )

        return ValidatedItem(product=product, variant=variant, quantity_requested=quantity, notes=notes)

    def validate_items(self, items: Iterable) -> list[ValidatedItem]:
        validated: list[ValidatedItem] = []
        seen: set[tuple[int, int | None]] = set()
        for index, item in enumerate(items):
            result = self.validate_item(
                product_id=item.product_id,
                product_variant_id=item.product_variant_id,
                quantity_requested=item.quantity_requested,
                notes=item.notes,
                field_prefix=f"items[{index}]",
            )
            if result.key in seen:
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    details={
                        "message": "each product/variant may appear only once per transfer",
                        "field": f"items[{index}]",
                        "product_id": result.product.id,
                        "product_variant_id": result.key[1],
                    },
                )
            seen.add(result.key)
            validated.append(result)
        return validated
