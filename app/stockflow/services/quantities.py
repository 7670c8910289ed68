from decimal import Decimal, InvalidOperation

from app.stockflow.core.error_catalog import AppError, ErrorCatalog

QUANTITY_STEP = Decimal("0.001")
# Numeric(15, 3) leaves twelve integer digits.
MAX_INTEGER_DIGITS = 12
ZERO = Decimal("0.000")


def to_quantity(value, *, field: str, allow_zero: bool = False) -> Decimal:
    """Coerce ``value`` to a stored quantity (three decimal places).

    Rejects missing, non-finite, negative, over-precise and out-of-range
    values, and zero unless ``allow_zero`` is set.
    """
    if value is None:
        raise AppError(ErrorCatalog.INVALID_REQUEST, details={"message": f"{field} is required", "field": field})
    try:
        quantity = Decimal(str(value))
    except InvalidOperation as exc:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"{field} must be a number", "field": field, "value": str(value)},
        ) from exc
    if not quantity.is_finite():
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"{field} must be a finite number", "field": field, "value": str(value)},
        )
    if quantity < ZERO or (quantity == ZERO and not allow_zero):
        expectation = "cannot be negative" if allow_zero else "must be positive"
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"{field} {expectation}", "field": field, "value": str(quantity)},
        )
    if quantity != ZERO and quantity.adjusted() >= MAX_INTEGER_DIGITS:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={
                "message": f"{field} supports at most {MAX_INTEGER_DIGITS} integer digits",
                "field": field,
                "value": str(quantity),
            },
        )
    try:
        normalised = quantity.quantize(QUANTITY_STEP)
    except InvalidOperation as exc:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"{field} is out of range", "field": field, "value": str(quantity)},
        ) from exc
    if quantity != normalised:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            details={"message": f"{field} supports at most 3 decimal places", "field": field, "value": str(quantity)},
        )
    return normalised
