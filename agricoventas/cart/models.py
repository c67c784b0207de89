"""Cart models with Decimal-based pricing and explicit stock bounds."""
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

from agricoventas.errors import (
    ERROR_PRICE_INVALID,
    ERROR_PRODUCT_ID_REQUIRED,
    ERROR_QUANTITY_INVALID,
    InvalidLineInput,
)
from agricoventas.services.money import try_decimal

DEFAULT_UNIT_MEASURE = "unidad"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def coerce_stock(value: Any) -> int:
    """
    Coerce a raw stock value to a non-negative integer.

    Non-numeric values (including booleans and NaN) and negative numbers
    resolve to 0. Fractional stock is truncated.
    """
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    if not isinstance(value, (int, float, Decimal)):
        return 0
    if isinstance(value, Decimal) and not value.is_finite():
        return 0
    return max(0, int(value))


@dataclass(frozen=True)
class StockBound:
    """
    Maximum quantity of a product that may sit in the cart.

    Either finite (limit is a non-negative int) or unbounded (limit is None).
    Catalogs that have no stock limit for a product must say so explicitly
    with StockBound.unbounded(); the cart never guesses from magic numbers.
    """
    limit: Optional[int]

    @classmethod
    def finite(cls, value: Any) -> "StockBound":
        return cls(limit=coerce_stock(value))

    @classmethod
    def unbounded(cls) -> "StockBound":
        return cls(limit=None)

    @classmethod
    def of(cls, value: Union["StockBound", Any]) -> "StockBound":
        """
        Normalize a stock value.

        StockBound passes through and positive infinity means unbounded;
        anything else is treated as a finite stock value.
        """
        if isinstance(value, StockBound):
            return value
        if isinstance(value, float) and math.isinf(value) and value > 0:
            return cls.unbounded()
        return cls.finite(value)

    @property
    def is_unbounded(self) -> bool:
        return self.limit is None

    @property
    def is_available(self) -> bool:
        """True if at least one unit may be added."""
        return self.limit is None or self.limit > 0

    def allows(self, quantity: int) -> bool:
        return self.limit is None or quantity <= self.limit

    def clamp(self, quantity: int) -> int:
        """Clamp quantity to [1, limit] (or [1, inf) when unbounded)."""
        quantity = max(1, quantity)
        if self.limit is None:
            return quantity
        return min(quantity, self.limit)

    def __str__(self) -> str:
        return "unbounded" if self.limit is None else str(self.limit)


@dataclass
class LineInput:
    """
    Candidate line passed to CartStore.add_item.

    stock_quantity accepts a StockBound or a raw catalog value; raw values
    are coerced with StockBound.finite.
    """
    product_id: str
    name: str
    price: Any
    unit_measure: str = DEFAULT_UNIT_MEASURE
    stock_quantity: Any = 0
    image_url: Optional[str] = None
    seller_name: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.product_id, str) or not self.product_id.strip():
            raise InvalidLineInput(ERROR_PRODUCT_ID_REQUIRED)
        self.product_id = self.product_id.strip()

        price = try_decimal(self.price)
        if price is None or price < 0:
            raise InvalidLineInput(f"{ERROR_PRICE_INVALID}: {self.price!r}")
        self.price = price

        self.name = str(self.name or "")
        self.unit_measure = self.unit_measure or DEFAULT_UNIT_MEASURE
        self.stock_quantity = StockBound.of(self.stock_quantity)

    @property
    def stock(self) -> StockBound:
        return self.stock_quantity


@dataclass(frozen=True)
class CartLine:
    """One product's presence in the cart."""
    product_id: str
    name: str
    price: Decimal
    quantity: int
    stock: StockBound
    unit_measure: str = DEFAULT_UNIT_MEASURE
    image_url: Optional[str] = None
    seller_name: Optional[str] = None
    added_at: str = field(default_factory=_utc_now_iso)

    def __post_init__(self):
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise InvalidLineInput(f"{ERROR_QUANTITY_INVALID}: {self.quantity!r}")

    @classmethod
    def from_input(cls, candidate: LineInput, quantity: int = 1) -> "CartLine":
        return cls(
            product_id=candidate.product_id,
            name=candidate.name,
            price=candidate.price,
            quantity=quantity,
            stock=candidate.stock,
            unit_measure=candidate.unit_measure,
            image_url=candidate.image_url,
            seller_name=candidate.seller_name,
        )

    @property
    def line_total(self) -> Decimal:
        """Exact price for all units."""
        return self.price * self.quantity

    @property
    def at_stock_limit(self) -> bool:
        return not self.stock.allows(self.quantity + 1)

    def with_quantity(self, quantity: int, stock: Optional[StockBound] = None) -> "CartLine":
        return replace(self, quantity=quantity, stock=self.stock if stock is None else stock)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted record shape."""
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": str(self.price),
            "quantity": self.quantity,
            "unitMeasure": self.unit_measure,
            "imageUrl": self.image_url,
            "sellerName": self.seller_name,
            "stockQuantity": self.stock.limit,
            "addedAt": self.added_at,
        }


@dataclass(frozen=True)
class Cart:
    """Snapshot of the cart: ordered lines, unique by product_id."""
    lines: Tuple[CartLine, ...] = ()

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(line.quantity for line in self.lines)

    @property
    def total_price(self) -> Decimal:
        """Exact total; rounding is left to presentation."""
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get(self, product_id: str) -> Optional[CartLine]:
        return next((line for line in self.lines if line.product_id == product_id), None)