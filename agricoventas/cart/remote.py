"""
Backend cart API client.

Thin async wrapper around the marketplace's /cart endpoints. Calls never
raise for HTTP or transport problems: reads fall back to an empty cart and
writes return False, so UI code can keep working from the local CartStore.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from urllib.parse import quote

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt, ValidationError

from agricoventas import config
from agricoventas.auth.session import TokenSession
from agricoventas.errors import ERROR_BACKEND_UNAVAILABLE, ERROR_PRODUCT_ID_REQUIRED, InvalidLineInput
from agricoventas.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)


# ==================== REQUEST MODELS ====================

class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId", min_length=1)
    quantity: StrictInt = Field(gt=0)


class UpdateCartItemRequest(BaseModel):
    quantity: StrictInt = Field(gt=0)


# ==================== RESPONSE MODELS ====================

class RemoteProductImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    image_url: str = Field(alias="imageUrl")
    is_primary: bool = Field(default=False, alias="isPrimary")


class RemoteProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    base_price: Decimal = Field(default=Decimal("0"), alias="basePrice")
    stock_quantity: int = Field(default=0, alias="stockQuantity")
    unit_measure: Optional[str] = Field(default=None, alias="unitMeasure")
    images: List[RemoteProductImage] = Field(default_factory=list)


class RemoteCartItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    product_id: str = Field(alias="productId")
    quantity: int
    added_at: Optional[datetime] = Field(default=None, alias="addedAt")
    product: Optional[RemoteProduct] = None


class CartSnapshot(BaseModel):
    """Server-side cart as returned by GET /cart."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    items: List[RemoteCartItem] = Field(default_factory=list)
    total_items: int = Field(default=0, validation_alias=AliasChoices("totalItems", "total_items"))
    total_price: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("totalPrice", "totalAmount", "total_price"),
    )

    @classmethod
    def empty(cls) -> "CartSnapshot":
        return cls()


# ==================== CLIENT ====================

class CartApiClient:
    """
    Client for the backend cart endpoints.

    Usage:
        async with CartApiClient(session) as api:
            snapshot = await api.get_cart()
            ok = await api.add_to_cart("P1", 2)
    """

    def __init__(
        self,
        session: Optional[TokenSession] = None,
        base_url: str = config.BACKEND_URL,
        timeout: float = config.API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> "CartApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _auth_headers(self) -> dict:
        token = self.session.token if self.session is not None else None
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> Optional[Any]:
        """
        Send a request and return the response's "data" member.

        Returns:
            The data payload on success, None on failure (already logged)
        """
        ok, data = await self._send(method, path, json)
        return data if ok else None

    async def _send(self, method: str, path: str, json: Optional[dict] = None) -> tuple[bool, Any]:
        try:
            response = await self._client.request(method, path, json=json, headers=self._auth_headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = sanitize_string_for_logging(e.response.text, max_length=200)
            logger.error(f"{ERROR_BACKEND_UNAVAILABLE}: {method} {path} -> {e.response.status_code} {body}")
            return False, None
        except httpx.HTTPError as e:
            logger.error(f"{ERROR_BACKEND_UNAVAILABLE}: {method} {path} failed: {e}")
            return False, None

        if not response.content:
            return True, None

        try:
            body = response.json()
        except ValueError:
            logger.error(f"{ERROR_BACKEND_UNAVAILABLE}: {method} {path} returned invalid JSON")
            return False, None

        if isinstance(body, dict):
            if body.get("success") is False:
                message = sanitize_string_for_logging(body.get("message"))
                logger.error(f"{ERROR_BACKEND_UNAVAILABLE}: {method} {path} rejected: {message}")
                return False, None
            return True, body.get("data")
        return True, body

    @staticmethod
    def _item_path(product_id: str) -> str:
        return f"/cart/items/{quote(product_id, safe='')}"

    async def get_cart(self) -> CartSnapshot:
        """Get the current user's cart; empty on any failure."""
        data = await self._request("GET", "/cart")
        if not isinstance(data, dict):
            return CartSnapshot.empty()
        try:
            return CartSnapshot.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unexpected cart payload from backend: {e.error_count()} validation error(s)")
            return CartSnapshot.empty()

    async def add_to_cart(self, product_id: str, quantity: int) -> bool:
        """
        Add quantity units of a product to the server-side cart.

        Raises:
            InvalidLineInput: If product_id is empty or quantity is not a positive int
        """
        try:
            request = AddToCartRequest(product_id=product_id, quantity=quantity)
        except ValidationError as e:
            raise InvalidLineInput(str(e)) from e

        ok, _ = await self._send("POST", "/cart/items", json=request.model_dump(by_alias=True))
        if ok:
            logger.info(f"Added {quantity} x {sanitize_id_for_logging(product_id)} to remote cart")
        return ok

    async def update_cart_item(self, product_id: str, quantity: int) -> bool:
        """Set the quantity of a server-side cart item."""
        if not product_id:
            raise InvalidLineInput(ERROR_PRODUCT_ID_REQUIRED)
        try:
            request = UpdateCartItemRequest(quantity=quantity)
        except ValidationError as e:
            raise InvalidLineInput(str(e)) from e

        ok, _ = await self._send("PUT", self._item_path(product_id), json=request.model_dump())
        return ok

    async def remove_from_cart(self, product_id: str) -> bool:
        """Remove a product from the server-side cart."""
        if not product_id:
            raise InvalidLineInput(ERROR_PRODUCT_ID_REQUIRED)
        ok, _ = await self._send("DELETE", self._item_path(product_id))
        return ok

    async def clear_cart(self) -> bool:
        """Remove every item from the server-side cart."""
        ok, _ = await self._send("DELETE", "/cart/items")
        return ok
