"""Composition root: builds the client core from settings and wires its parts together."""
import logging
from collections.abc import Callable

import httpx

from bazaar.core.config import Settings, get_settings
from bazaar.core.guard import RouteGuard
from bazaar.core.http import ApiClient
from bazaar.core.navigation import NavEntry, navigation_for
from bazaar.core.query_cache import QueryCache
from bazaar.core.redis import RedisClient
from bazaar.core.session import SessionManager
from bazaar.core.toasts import ToastQueue
from bazaar.services.admin_service import AdminService
from bazaar.services.cart_service import CartService
from bazaar.services.keys import RESOURCE_DEPENDENCIES, SHARED_RESOURCES
from bazaar.services.modification_request_service import ModificationRequestService
from bazaar.services.notification_service import NotificationService
from bazaar.services.order_service import OrderService
from bazaar.services.product_service import ProductService

logger = logging.getLogger(__name__)


class Marketplace:
    """
    One client instance: API client, cache, session, route guard and services.

    Nothing here is global; create one per user agent and pass it around.

        async with Marketplace(on_redirect=router.go) as market:
            market.router.navigate("/dashboard/buyer/orders")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        on_redirect: Callable[[str], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.redis = RedisClient(self.settings.redis_url, enabled=self.settings.redis_enabled)
        self.api = ApiClient(
            self.settings.api_base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self.cache = QueryCache(
            default_stale_time=self.settings.default_stale_time,
            store=self.redis,
            key_prefix=self.settings.redis_key_prefix,
            dependencies=RESOURCE_DEPENDENCIES,
            shared_prefixes=SHARED_RESOURCES,
        )
        self.session = SessionManager(self.api, self.cache)
        self.redirects: list[str] = []
        self.router = RouteGuard(
            self.session,
            on_redirect or self.redirects.append,
            protected_prefixes=self.settings.protected_prefixes,
            login_path=self.settings.login_path,
            landing_path=self.settings.landing_path,
        )
        self.toasts = ToastQueue()
        self.products = ProductService(self.api, self.cache, self.session)
        self.cart = CartService(self.api, self.cache, self.session)
        self.orders = OrderService(self.api, self.cache, self.session)
        self.modification_requests = ModificationRequestService(self.api, self.cache, self.session)
        self.notifications = NotificationService(self.api, self.cache, self.session)
        self.admin = AdminService(self.api, self.cache, self.session)

    @property
    def navigation(self) -> tuple[NavEntry, ...]:
        """Sidebar entries for the current user."""
        return navigation_for(self.session.user)

    async def start(self) -> None:
        """Connect the shared cache tier and resolve the session."""
        await self.redis.connect()
        await self.session.start()
        logger.info(
            "marketplace_started",
            extra={"authenticated": self.session.state.is_authenticated},
        )

    async def close(self) -> None:
        """Tear down tasks and connections."""
        self.router.close()
        await self.cache.close()
        await self.api.close()
        await self.redis.close()

    async def __aenter__(self) -> "Marketplace":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
