"""Cart queries and mutations."""
import logging
from decimal import Decimal

from pydantic import TypeAdapter

from bazaar.core.errors import ValidationFailedError
from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache, QueryResult
from bazaar.core.session import SessionManager
from bazaar.schemas.cart import CartItem, CartItemCreate
from bazaar.services import keys
from bazaar.services.forms import body, build

logger = logging.getLogger(__name__)

_CART_ITEMS = TypeAdapter(list[CartItem])


def cart_total(items: list[CartItem]) -> Decimal:
    """Sum of price * quantity over the cart."""
    return sum((item.subtotal for item in items), Decimal("0"))


class CartService:
    """The signed-in user's cart. Every mutation invalidates the cart key."""

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    def snapshot(self) -> QueryResult:
        """Non-blocking read of the cart for rendering."""
        return self._cache.get(keys.CART, self._api.getter(keys.CART))

    async def items(self) -> list[CartItem]:
        """Cart lines; anonymous users have an empty cart."""
        if self._session.user is None:
            return []
        data = await self._cache.fetch(keys.CART, self._api.getter(keys.CART))
        return _CART_ITEMS.validate_python(data or [])

    async def total(self) -> Decimal:
        """Cart total."""
        return cart_total(await self.items())

    async def add(self, product_id: int, quantity: int = 1) -> CartItem:
        """
        Add a product to the cart.

        Raises AuthRequiredError without a network call when nobody is signed
        in, and ValidationFailedError for non-positive ids or quantities.
        """
        user = self._session.require_user()
        item = build(CartItemCreate, product_id=product_id, quantity=quantity)
        payload = await self._cache.mutate(
            keys.CART,
            lambda: self._api.post(keys.CART, json=body(item, userId=user.id)),
        )
        logger.info("cart_item_added", extra={"product_id": product_id, "quantity": quantity})
        return CartItem.model_validate(payload)

    async def update_quantity(self, item_id: int, quantity: int) -> CartItem:
        """Change the quantity of a cart line."""
        self._session.require_user()
        if quantity < 1:
            raise ValidationFailedError("quantity", "Quantity must be at least 1")
        payload = await self._cache.mutate(
            keys.CART,
            lambda: self._api.put(f"{keys.CART}/{item_id}", json={"quantity": quantity}),
        )
        return CartItem.model_validate(payload)

    async def remove(self, item_id: int) -> None:
        """Remove one cart line."""
        self._session.require_user()
        await self._cache.mutate(keys.CART, lambda: self._api.delete(f"{keys.CART}/{item_id}"))

    async def clear(self) -> None:
        """Empty the cart."""
        self._session.require_user()
        await self._cache.mutate(keys.CART, lambda: self._api.delete(keys.CART))
