"""Order queries and mutations."""
import logging

from pydantic import TypeAdapter

from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.core.session import SessionManager
from bazaar.schemas.order import Order, OrderCreate, OrderItemCreate, OrderStatus
from bazaar.services import keys
from bazaar.services.forms import body
from bazaar.services.views import ALL_STATUSES, OrderListView, order_list_view

logger = logging.getLogger(__name__)

_ORDERS = TypeAdapter(list[Order])


class OrderService:
    """
    Orders visible to the signed-in user.

    The backend scopes /api/orders by role: buyers see their own orders,
    sellers see orders containing their products, admins see everything.
    """

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    async def orders(self) -> list[Order]:
        """All orders visible to the user."""
        self._session.require_user()
        data = await self._cache.fetch(keys.ORDERS, self._api.getter(keys.ORDERS))
        return _ORDERS.validate_python(data or [])

    async def order_list(self, status: str = ALL_STATUSES, search: str = "") -> OrderListView:
        """Order table filtered by status tab and id search."""
        return order_list_view(await self.orders(), status, search)

    async def get(self, order_id: int) -> Order:
        """One order with its items."""
        self._session.require_user()
        key = keys.order_key(order_id)
        data = await self._cache.fetch(key, self._api.getter(key))
        return Order.model_validate(data)

    async def place(self, order: OrderCreate, items: list[OrderItemCreate]) -> Order:
        """Place an order; the backend empties the cart, so the cart key is invalidated too."""
        user = self._session.require_user()
        payload = {
            "order": body(order, buyerId=user.id),
            "items": [body(item) for item in items],
        }
        created = await self._cache.mutate(
            keys.ORDERS,
            lambda: self._api.post(keys.ORDERS, json=payload),
            invalidates=(keys.CART,),
        )
        placed = Order.model_validate(created)
        logger.info("order_placed", extra={"order_id": placed.id, "items": len(items)})
        return placed

    async def update_status(self, order_id: int, status: OrderStatus) -> Order:
        """Seller/admin status change."""
        self._session.require_user()
        key = keys.order_key(order_id)
        updated = await self._cache.mutate(
            keys.ORDERS,
            lambda: self._api.patch(f"{key}/status", json={"status": status.value}),
            invalidates=(key,),
        )
        return Order.model_validate(updated)
