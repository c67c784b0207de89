"""
Cart persistence codec.

Current format (version 1):

    {"version": 1, "lines": [{"productId": "...", "price": "1000", "quantity": 2,
                              "stockQuantity": 5, ...}]}

stockQuantity is an integer, or null for an unbounded line. The web client
stored a bare JSON array of lines with numeric stockQuantity; such legacy
payloads are still accepted and get rewritten in the current format on the
next save.

decode() raises CartPayloadError on anything it cannot trust. load_lines()
is the boundary used at hydration and turns every failure into an empty
cart: stale or corrupted data from an earlier session must never stop the
client from starting, so the error is logged and dropped on purpose.
"""
import json
from decimal import Decimal
from typing import Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, TypeAdapter, ValidationError

from agricoventas.errors import (
    ERROR_CART_PAYLOAD_INVALID,
    ERROR_CART_VERSION_UNSUPPORTED,
    CartPayloadError,
)
from agricoventas.logging import get_logger

from .models import DEFAULT_UNIT_MEASURE, CartLine, StockBound

logger = get_logger(__name__)

CURRENT_VERSION = 1


class _LineRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_id: str = Field(alias="productId", min_length=1)
    name: str = ""
    price: Decimal = Field(ge=0)
    quantity: StrictInt = Field(ge=1)
    unit_measure: Optional[str] = Field(default=None, alias="unitMeasure")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    seller_name: Optional[str] = Field(default=None, alias="sellerName")
    added_at: Optional[str] = Field(default=None, alias="addedAt")


class LineRecordV1(_LineRecord):
    # Required key; null means unbounded
    stock_quantity: Optional[StrictInt] = Field(alias="stockQuantity")


class LegacyLineRecord(_LineRecord):
    # Required and numeric, as the web client checked before trusting a saved cart
    stock_quantity: Union[StrictInt, StrictFloat] = Field(alias="stockQuantity")


class CartPayloadV1(BaseModel):
    version: Literal[1]
    lines: List[LineRecordV1]


_legacy_adapter = TypeAdapter(List[LegacyLineRecord])


def encode(lines: Iterable[CartLine]) -> str:
    """Serialize lines in the current format."""
    payload = {
        "version": CURRENT_VERSION,
        "lines": [line.to_dict() for line in lines],
    }
    return json.dumps(payload, ensure_ascii=False)


def _to_line(record: _LineRecord, stock: StockBound) -> CartLine:
    kwargs = {}
    if record.added_at:
        kwargs["added_at"] = record.added_at
    return CartLine(
        product_id=record.product_id,
        name=record.name,
        price=record.price,
        quantity=record.quantity,
        stock=stock,
        unit_measure=record.unit_measure or DEFAULT_UNIT_MEASURE,
        image_url=record.image_url,
        seller_name=record.seller_name,
        **kwargs,
    )


def _check_invariants(lines: List[CartLine]) -> List[CartLine]:
    seen = set()
    for line in lines:
        if line.product_id in seen:
            raise CartPayloadError(f"{ERROR_CART_PAYLOAD_INVALID}: duplicate product {line.product_id!r}")
        seen.add(line.product_id)
        if not line.stock.allows(line.quantity):
            raise CartPayloadError(
                f"{ERROR_CART_PAYLOAD_INVALID}: quantity {line.quantity} exceeds stock {line.stock}"
            )
    return lines


def decode(raw: Optional[str]) -> List[CartLine]:
    """
    Parse and validate a persisted payload.

    Returns:
        Lines in stored order; empty list when nothing is stored

    Raises:
        CartPayloadError: If the payload is malformed, fails validation,
            breaks a cart invariant or has an unknown version
    """
    if raw is None or raw == "":
        return []

    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise CartPayloadError(f"{ERROR_CART_PAYLOAD_INVALID}: {e}") from e

    try:
        if isinstance(data, list):
            records = _legacy_adapter.validate_python(data)
            lines = [_to_line(r, StockBound.finite(r.stock_quantity)) for r in records]
        elif isinstance(data, dict):
            version = data.get("version")
            if version != CURRENT_VERSION:
                raise CartPayloadError(f"{ERROR_CART_VERSION_UNSUPPORTED}: {version!r}")
            payload = CartPayloadV1.model_validate(data)
            lines = [
                _to_line(
                    r,
                    StockBound.unbounded() if r.stock_quantity is None else StockBound.finite(r.stock_quantity),
                )
                for r in payload.lines
            ]
        else:
            raise CartPayloadError(f"{ERROR_CART_PAYLOAD_INVALID}: expected an array or object")
    except ValidationError as e:
        raise CartPayloadError(f"{ERROR_CART_PAYLOAD_INVALID}: {e.error_count()} validation error(s)") from e

    return _check_invariants(lines)


def load_lines(raw: Optional[str]) -> List[CartLine]:
    """Decode a payload, falling back to an empty cart on any error."""
    try:
        return decode(raw)
    except CartPayloadError as e:
        logger.warning(f"Discarding persisted cart: {e}")
        return []
