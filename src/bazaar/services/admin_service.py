"""Admin moderation of user accounts."""
import logging

from pydantic import TypeAdapter

from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.core.session import SessionManager
from bazaar.schemas.user import Role, User
from bazaar.services import keys

logger = logging.getLogger(__name__)

_USERS = TypeAdapter(list[User])


class AdminService:
    """User listing and role changes; the backend rejects non-admins with 403."""

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    async def users(self) -> list[User]:
        """Every account."""
        self._session.require_user()
        data = await self._cache.fetch(keys.ADMIN_USERS, self._api.getter(keys.ADMIN_USERS))
        return _USERS.validate_python(data or [])

    async def change_role(self, user_id: int, role: Role) -> User:
        """Assign a new role to an account."""
        self._session.require_user()
        payload = await self._cache.mutate(
            keys.ADMIN_USERS,
            lambda: self._api.patch(f"{keys.ADMIN_USERS}/{user_id}", json={"role": role.value}),
        )
        logger.info("user_role_changed", extra={"user_id": user_id, "role": role.value})
        return User.model_validate(payload)
