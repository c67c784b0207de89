"""
Catalog product translation.

Product payloads from the marketplace API are inconsistent about stock:
some carry stockQuantity, others availableQuantity, sometimes as strings.
This module resolves them into a LineInput with an explicit StockBound
before anything reaches the cart.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agricoventas import config
from agricoventas.cart.models import DEFAULT_UNIT_MEASURE, LineInput, StockBound, coerce_stock
from agricoventas.errors import ERROR_PRODUCT_ID_REQUIRED, InvalidLineInput
from agricoventas.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

DEFAULT_SELLER_NAME = "Agricultor verificado"


class ProductImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    image_url: str = Field(alias="imageUrl")
    is_primary: bool = Field(default=False, alias="isPrimary")


class ProductSeller(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    username: Optional[str] = None


class CatalogProduct(BaseModel):
    """Product as returned by the /products endpoints."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str = Field(min_length=1)
    name: str = ""
    price: Any = 0
    unit_measure: Optional[str] = Field(default=None, alias="unitMeasure")
    stock_quantity: Any = Field(default=None, alias="stockQuantity")
    available_quantity: Any = Field(default=None, alias="availableQuantity")
    images: List[ProductImage] = Field(default_factory=list)
    seller: Optional[ProductSeller] = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_int(value: Any) -> Optional[int]:
    """parseInt-style parse of a numeric string ("12", "12.5 kg" -> 12)."""
    if not isinstance(value, str):
        return None
    digits = ""
    for index, char in enumerate(value.strip()):
        if char.isdigit() or (index == 0 and char in "+-"):
            digits += char
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return None


def resolve_stock_amount(product: CatalogProduct) -> int:
    """
    Pick the product's stock.

    Numeric stockQuantity wins, then numeric availableQuantity, then either
    one given as a numeric string. Anything else means no stock.
    """
    for candidate in (product.stock_quantity, product.available_quantity):
        if _is_number(candidate):
            return coerce_stock(candidate)
    for candidate in (product.stock_quantity, product.available_quantity):
        parsed = _parse_int(candidate)
        if parsed is not None:
            return coerce_stock(parsed)
    return 0


def resolve_stock_bound(amount: int, unlimited_sentinel: Optional[int] = None) -> StockBound:
    """Translate the catalog's "no limit" marker, if one is configured."""
    if unlimited_sentinel is not None and amount == unlimited_sentinel:
        return StockBound.unbounded()
    return StockBound.finite(amount)


def primary_image_url(product: CatalogProduct) -> Optional[str]:
    primary = next((img for img in product.images if img.is_primary), None)
    if primary is not None:
        return primary.image_url
    return product.images[0].image_url if product.images else None


def seller_display_name(product: CatalogProduct) -> str:
    seller = product.seller
    if seller is None:
        return DEFAULT_SELLER_NAME
    full_name = f"{seller.first_name or ''} {seller.last_name or ''}".strip()
    return full_name or seller.username or DEFAULT_SELLER_NAME


def line_input_from_product(
    product: dict,
    unlimited_sentinel: Optional[int] = config.UNLIMITED_STOCK_SENTINEL,
) -> LineInput:
    """
    Build the cart candidate for a catalog product payload.

    Args:
        product: Product dict from the API (camelCase keys)
        unlimited_sentinel: Stock value the catalog uses for "no limit";
            None treats every stock value as finite

    Raises:
        InvalidLineInput: If the payload has no id or an invalid price
    """
    try:
        parsed = CatalogProduct.model_validate(product)
    except ValidationError as e:
        raise InvalidLineInput(f"{ERROR_PRODUCT_ID_REQUIRED}: {e.error_count()} validation error(s)") from e

    amount = resolve_stock_amount(parsed)
    stock = resolve_stock_bound(amount, unlimited_sentinel)
    if not stock.is_available:
        logger.debug(f"Product {sanitize_id_for_logging(parsed.id)} has no stock")

    return LineInput(
        product_id=parsed.id,
        name=parsed.name,
        price=parsed.price,
        unit_measure=parsed.unit_measure or DEFAULT_UNIT_MEASURE,
        stock_quantity=stock,
        image_url=primary_image_url(parsed),
        seller_name=seller_display_name(parsed),
    )
