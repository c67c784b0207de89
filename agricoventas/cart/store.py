"""
Cart store: the authoritative in-memory cart, mirrored to Storage.

Create one CartStore when the client starts and hand it to whatever needs
the cart. Every mutation rewrites the whole cart under the storage key; the
store assumes it is the only writer of that key within its process.
"""
import math
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Tuple

from agricoventas import config
from agricoventas.auth.session import AuthSession, TokenSession
from agricoventas.errors import (
    ERROR_PRODUCT_OUT_OF_STOCK,
    ERROR_STOCK_LIMIT_REACHED,
    StorageError,
)
from agricoventas.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging
from agricoventas.services.money import format_money, to_float
from agricoventas.storage import JsonFileStorage, MemoryStorage, RedisStorage, Storage

from . import codec
from .models import Cart, CartLine, LineInput

logger = get_logger(__name__)


class CartStore:
    """
    Shopping cart with stock-bounded quantities.

    Invariants after every operation:
    - at most one line per product_id
    - every quantity is an int >= 1 and within the line's stock bound

    Usage:
        store = CartStore(storage, session)
        if not store.add_item(LineInput(...)):
            ...  # out of stock or stock ceiling reached
        store.set_quantity("P1", 3)
        store.total_price
    """

    def __init__(
        self,
        storage: Storage,
        session: AuthSession,
        storage_key: str = config.CART_STORAGE_KEY,
    ):
        self.storage = storage
        self.session = session
        self.storage_key = storage_key
        self._lines: List[CartLine] = []
        self._persistence_enabled = True

        self._hydrate()
        self._unsubscribe: Optional[Callable[[], None]] = session.subscribe(self._on_session_change)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _hydrate(self) -> None:
        """Load the persisted cart if a session is active."""
        try:
            if not self.session.is_active():
                self._lines = []
                return
            raw = self.storage.get(self.storage_key)
        except StorageError as e:
            logger.error(f"Failed to read persisted cart, starting empty: {e}")
            self._lines = []
            return

        self._lines = codec.load_lines(raw)
        if self._lines:
            logger.debug(f"Hydrated cart with {len(self._lines)} line(s)")

    def _on_session_change(self, active: bool) -> None:
        if active:
            self._hydrate()
            return
        # Logout: drop this user's cart so the next session on the same
        # storage starts clean
        logger.info("Session ended, clearing cart")
        self._lines = []
        self._persist()

    def close(self) -> None:
        """Stop listening to the auth session."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def __enter__(self) -> "CartStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _persist(self) -> None:
        if not self._persistence_enabled:
            return
        try:
            self.storage.set(self.storage_key, codec.encode(self._lines))
        except StorageError as e:
            # Keep working from memory; the cart is lost on restart
            logger.error(f"Failed to persist cart, continuing in memory only: {e}")
            self._persistence_enabled = False

    @property
    def persistence_enabled(self) -> bool:
        return self._persistence_enabled

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _index_of(self, product_id: str) -> int:
        for index, line in enumerate(self._lines):
            if line.product_id == product_id:
                return index
        return -1

    def add_item(self, candidate: LineInput) -> bool:
        """
        Add one unit of a product.

        Out-of-stock candidates are rejected. For a product already in the
        cart the quantity grows by one if the candidate's stock allows it,
        and the line's stock is refreshed from the candidate.

        Returns:
            True if the cart changed, False if the add was rejected
        """
        stock = candidate.stock
        product_ref = sanitize_id_for_logging(candidate.product_id)

        if not stock.is_available:
            logger.warning(
                f"{ERROR_PRODUCT_OUT_OF_STOCK}: {sanitize_string_for_logging(candidate.name)} ({product_ref})"
            )
            return False

        index = self._index_of(candidate.product_id)
        if index >= 0:
            existing = self._lines[index]
            new_quantity = existing.quantity + 1
            if not stock.allows(new_quantity):
                logger.info(f"{ERROR_STOCK_LIMIT_REACHED} for {product_ref}: available stock {stock}")
                return False
            self._lines[index] = existing.with_quantity(new_quantity, stock=stock)
        else:
            self._lines.append(CartLine.from_input(candidate))

        self._persist()
        return True

    def remove_item(self, product_id: str) -> None:
        """Remove a product's line; unknown ids are ignored."""
        self._lines = [line for line in self._lines if line.product_id != product_id]
        self._persist()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """
        Set a line's quantity, clamped to [1, stock].

        Requests above the stock are lowered to the stock rather than
        rejected, so the quantity is always settable to some valid value.
        Unknown ids are ignored.
        """
        index = self._index_of(product_id)
        if index < 0:
            return

        if isinstance(quantity, float) and not math.isfinite(quantity):
            logger.warning(f"Ignoring quantity {quantity} for {sanitize_id_for_logging(product_id)}")
            return

        line = self._lines[index]
        requested = int(quantity)
        clamped = line.stock.clamp(requested)
        if clamped != requested:
            logger.info(
                f"Quantity {requested} for {sanitize_id_for_logging(product_id)} "
                f"adjusted to {clamped} (stock {line.stock})"
            )
        self._lines[index] = line.with_quantity(clamped)
        self._persist()

    def clear(self) -> None:
        """Empty the cart."""
        self._lines = []
        self._persist()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        """Immutable snapshot of the current cart."""
        return Cart(lines=tuple(self._lines))

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def total_items(self) -> int:
        return self.cart.total_items

    @property
    def total_price(self) -> Decimal:
        return self.cart.total_price

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> Optional[CartLine]:
        return self.cart.get(product_id)

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(tuple(self._lines))

    def __contains__(self, product_id: object) -> bool:
        return any(line.product_id == product_id for line in self._lines)

    def summary(self, currency: str = config.CURRENCY) -> dict:
        """Cart summary for UI consumers, with display-formatted amounts."""
        cart = self.cart

        if cart.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "total_price": 0.0,
                "total_price_display": format_money(0, currency),
                "items": [],
            }

        return {
            "is_empty": False,
            "total_items": cart.total_items,
            "total_price": to_float(cart.total_price),
            "total_price_display": format_money(cart.total_price, currency),
            "items": [
                {
                    "product_id": line.product_id,
                    "name": line.name,
                    "unit_measure": line.unit_measure,
                    "quantity": line.quantity,
                    "stock_quantity": line.stock.limit,
                    "at_stock_limit": line.at_stock_limit,
                    "unit_price": to_float(line.price),
                    "unit_price_display": format_money(line.price, currency),
                    "total": to_float(line.line_total),
                    "total_display": format_money(line.line_total, currency),
                    "image_url": line.image_url,
                    "seller_name": line.seller_name,
                }
                for line in cart.lines
            ],
        }


def create_storage(backend: str = config.STORAGE_BACKEND) -> Storage:
    """Build the storage backend named in configuration."""
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return JsonFileStorage(config.STORAGE_PATH)
    if backend == "redis":
        return RedisStorage(namespace=config.REDIS_NAMESPACE)
    raise ValueError(f"Unknown storage backend: {backend!r}")


def create_cart_store(
    storage: Optional[Storage] = None,
    session: Optional[AuthSession] = None,
) -> CartStore:
    """
    Build a CartStore wired to configured storage and a token session.

    Call once at application start and pass the result to consumers.
    """
    storage = storage if storage is not None else create_storage()
    session = session if session is not None else TokenSession(storage, config.AUTH_TOKEN_KEY)
    return CartStore(storage, session, config.CART_STORAGE_KEY)
