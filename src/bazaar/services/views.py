"""
View models: pure functions of (local UI state, server data) -> what a page shows.

Nothing here touches the network. Services fetch; views shape.
"""
import logging
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from bazaar.core.query_cache import Fetcher, QueryCache, QueryResult
from bazaar.schemas.modification_request import ModificationRequest
from bazaar.schemas.order import Order
from bazaar.schemas.product import Product
from bazaar.services.status import (
    StatusTreatment,
    order_progress,
    order_status_treatment,
    request_status_treatment,
)

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"


def format_price(price: Decimal | str | float) -> str:
    """Format an amount as US dollars, e.g. '$1,234.50'."""
    return f"${Decimal(str(price)):,.2f}"


def truncate(text: str, length: int) -> str:
    """Cut `text` to `length` characters with an ellipsis."""
    if len(text) <= length:
        return text
    return text[:length] + "..."


class ViewScope:
    """
    Cache subscriptions and loads owned by one view.

    Once closed (the view is gone), late fetch results and cache updates are
    dropped instead of reaching the view's callbacks.
    """

    def __init__(self, cache: QueryCache) -> None:
        self._cache = cache
        self._unsubscribers: list[Callable[[], None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        """True after close()."""
        return self._closed

    def watch(self, key: str, listener: Callable[[QueryResult], None]) -> None:
        """Follow updates to `key` while the view is open."""
        def deliver(result: QueryResult) -> None:
            if not self._closed:
                listener(result)

        self._unsubscribers.append(self._cache.subscribe(key, deliver))

    async def load(
        self,
        key: str,
        fetcher: Fetcher,
        on_data: Callable[[Any], None],
        on_error: Callable[[Exception], None] | None = None,
        stale_time: float | None = None,
    ) -> bool:
        """
        Fetch `key` and hand the outcome to the view if it is still open.

        Returns True if a callback ran. Errors are re-raised when no
        `on_error` is given and the view is still open.
        """
        try:
            data = await self._cache.fetch(key, fetcher, stale_time)
        except Exception as e:
            if self._closed:
                logger.debug("late_error_dropped", extra={"key": key})
                return False
            if on_error is None:
                raise
            on_error(e)
            return True
        if self._closed:
            logger.debug("late_result_dropped", extra={"key": key})
            return False
        on_data(data)
        return True

    def close(self) -> None:
        """Unsubscribe everything and drop late results."""
        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def __enter__(self) -> "ViewScope":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class FavoriteToggles:
    """
    Local-only "liked" state for product cards.

    Not persisted anywhere: it lives as long as this object and resets on
    reload. There is no server endpoint behind it.
    """

    def __init__(self) -> None:
        self._liked: set[int] = set()

    def toggle(self, product_id: int) -> bool:
        """Flip the like state; returns the new state."""
        if product_id in self._liked:
            self._liked.discard(product_id)
            return False
        self._liked.add(product_id)
        return True

    def is_liked(self, product_id: int) -> bool:
        """Whether the product is currently liked."""
        return product_id in self._liked


def is_featured(product: Product) -> bool:
    """Placeholder badge heuristic; not backed by any server flag."""
    return product.id % 3 == 0


@dataclass(frozen=True)
class ProductCard:
    """What a product card shows."""

    id: int
    title: str
    price_label: str
    category: str
    image: str | None
    in_stock: bool
    featured: bool
    liked: bool


def product_card(product: Product, favorites: FavoriteToggles | None = None) -> ProductCard:
    """Card for a product."""
    return ProductCard(
        id=product.id,
        title=product.title,
        price_label=format_price(product.price),
        category=product.category,
        image=product.images[0] if product.images else None,
        in_stock=product.in_stock,
        featured=is_featured(product),
        liked=favorites.is_liked(product.id) if favorites else False,
    )


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def filter_orders(orders: Iterable[Order], status: str = ALL_STATUSES, search: str = "") -> list[Order]:
    """Orders matching the status tab ('all' for every status) and whose id contains `search`."""
    search = search.strip()
    return [
        order for order in orders
        if (status == ALL_STATUSES or order.order_status == status)
        and (not search or search in str(order.id))
    ]


def count_by_status(orders: Iterable[Order]) -> dict[str, int]:
    """Number of orders per status value."""
    return dict(Counter(order.order_status for order in orders))


@dataclass(frozen=True)
class OrderRow:
    """One line of the order table."""

    id: int
    status: StatusTreatment
    total_label: str
    item_count: int
    progress: int
    created_at: datetime | None


@dataclass(frozen=True)
class OrderListView:
    """
    Order table state.

    `is_empty` is an explicit empty state (nothing to show), distinct from
    an error; `has_orders` tells "no orders yet" apart from "no match".
    """

    rows: list[OrderRow]
    counts: dict[str, int]
    status: str = ALL_STATUSES
    search: str = ""
    has_orders: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no row is shown."""
        return not self.rows

    @property
    def empty_message(self) -> str:
        """Text for the empty state."""
        if self.has_orders:
            return "No orders match your search criteria. Try adjusting your filters."
        return "You haven't placed any orders yet."


def order_row(order: Order) -> OrderRow:
    """Table row for an order."""
    return OrderRow(
        id=order.id,
        status=order_status_treatment(order.order_status),
        total_label=format_price(order.total_amount),
        item_count=sum(item.quantity for item in order.items),
        progress=order_progress(order.order_status),
        created_at=order.created_at,
    )


def order_list_view(orders: list[Order], status: str = ALL_STATUSES, search: str = "") -> OrderListView:
    """Build the order table for the given filters."""
    counts = count_by_status(orders)
    counts[ALL_STATUSES] = len(orders)
    return OrderListView(
        rows=[order_row(order) for order in filter_orders(orders, status, search)],
        counts=counts,
        status=status,
        search=search,
        has_orders=bool(orders),
    )


# ---------------------------------------------------------------------------
# Modification requests
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModificationRequestRow:
    """One modification request as listed."""

    id: int
    product_id: int
    product_title: str | None
    details: str
    status: StatusTreatment
    seller_response: str | None
    awaiting_response: bool


@dataclass(frozen=True)
class ModificationRequestListView:
    """List of modification requests with an explicit empty state."""

    rows: list[ModificationRequestRow] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when there are no requests."""
        return not self.rows


def modification_request_list_view(requests: Iterable[ModificationRequest]) -> ModificationRequestListView:
    """Newest requests first."""
    ordered = sorted(
        requests,
        key=lambda r: (r.created_at is not None, r.created_at or datetime.min, r.id),
        reverse=True,
    )
    return ModificationRequestListView(rows=[
        ModificationRequestRow(
            id=request.id,
            product_id=request.product_id,
            product_title=request.product_title,
            details=request.request_details,
            status=request_status_treatment(request.status),
            seller_response=request.seller_response,
            awaiting_response=request.status == "pending",
        )
        for request in ordered
    ])
