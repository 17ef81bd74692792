"""In-app notifications for the signed-in user."""
from pydantic import TypeAdapter

from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.core.session import SessionManager
from bazaar.schemas.notification import Notification
from bazaar.services import keys

_NOTIFICATIONS = TypeAdapter(list[Notification])

NOTIFICATIONS_STALE_TIME = 30.0


class NotificationService:
    """Notification list, unread count and read markers."""

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    async def notifications(self) -> list[Notification]:
        """Notifications, newest first as returned by the backend; empty when signed out."""
        if self._session.user is None:
            return []
        data = await self._cache.fetch(
            keys.NOTIFICATIONS,
            self._api.getter(keys.NOTIFICATIONS),
            stale_time=NOTIFICATIONS_STALE_TIME,
        )
        return _NOTIFICATIONS.validate_python(data or [])

    async def unread_count(self) -> int:
        """Number of unread notifications."""
        return sum(1 for n in await self.notifications() if not n.is_read)

    async def mark_as_read(self, notification_id: int) -> None:
        """Mark one notification read."""
        self._session.require_user()
        await self._cache.mutate(
            keys.NOTIFICATIONS,
            lambda: self._api.put(f"{keys.NOTIFICATIONS}/{notification_id}/read"),
        )

    async def mark_all_as_read(self) -> None:
        """Mark every notification read."""
        self._session.require_user()
        await self._cache.mutate(
            keys.NOTIFICATIONS,
            lambda: self._api.put(f"{keys.NOTIFICATIONS}/read-all"),
        )
