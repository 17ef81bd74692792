"""Session manager: the client's current belief about who is signed in."""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from bazaar.core.errors import AuthRequiredError, BazaarError
from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.schemas.user import ProfileUpdate, RegisterRequest, User

logger = logging.getLogger(__name__)

ME_PATH = "/api/auth/me"
LOGIN_PATH = "/api/auth/login"
LOGOUT_PATH = "/api/auth/logout"
REGISTER_PATH = "/api/auth/register"
PROFILE_PATH = "/api/users/profile"

SessionListener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of the session."""

    user: User | None = None
    loading: bool = True

    @property
    def is_authenticated(self) -> bool:
        """True when an identity is held."""
        return self.user is not None


class SessionManager:
    """
    Holds the current identity and its loading state.

    Lifecycle:
    - `start()` resolves identity with exactly one GET /api/auth/me. Any
      failure, 401 included, leaves the session anonymous without raising.
    - `login()` / `sign_in()` / `register()` set identity. Credential
      failures raise (fail-closed). Switching to a different user drops
      every cached resource of the previous one.
    - `logout()` always clears local identity and purges the query cache,
      even when the backend call fails (fail-open).
    - A 401 from any API call clears identity and the query cache.
    - The identity request never overrides an identity set, or cleared,
      while it was in flight.
    """

    def __init__(self, api: ApiClient, cache: QueryCache) -> None:
        self._api = api
        self._cache = cache
        self._state = SessionState()
        self._listeners: list[SessionListener] = []
        self._resolving: asyncio.Task | None = None
        # bumped on every local identity change
        self._version = 0
        self._resolved = asyncio.Event()
        api.on_unauthorized(self._handle_unauthorized)

    @property
    def state(self) -> SessionState:
        """Current session snapshot."""
        return self._state

    @property
    def user(self) -> User | None:
        """Current identity, or None."""
        return self._state.user

    @property
    def loading(self) -> bool:
        """True until the initial identity request has settled."""
        return self._state.loading

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Call `listener` with the new state on every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> SessionState:
        """Resolve the current identity. Concurrent callers share one request."""
        if self._resolving is None:
            self._resolving = asyncio.get_running_loop().create_task(self._resolve())
        await asyncio.shield(self._resolving)
        return self._state

    async def wait_resolved(self) -> SessionState:
        """Wait until the initial identity request has settled."""
        await self._resolved.wait()
        return self._state

    def login(self, user: User) -> None:
        """Set identity from a prior successful credential exchange, without refetching."""
        previous = self._state.user
        if previous is not None and previous.id != user.id:
            logger.info("session_switched", extra={"from_user_id": previous.id, "user_id": user.id})
            self._cache.clear()
        logger.info("session_login", extra={"user_id": user.id, "role": user.role})
        self._version += 1
        self._set(SessionState(user=user, loading=False))

    async def sign_in(self, email: str, password: str) -> User:
        """Exchange credentials for a session, then log in with the returned identity."""
        payload = await self._api.post(LOGIN_PATH, json={"email": email, "password": password})
        user = User.model_validate(payload)
        self.login(user)
        return user

    async def register(self, data: RegisterRequest) -> User:
        """Create an account; the backend signs the new user in."""
        payload = await self._api.post(
            REGISTER_PATH, json=data.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        user = User.model_validate(payload)
        self.login(user)
        return user

    async def logout(self) -> None:
        """Sign out on the backend, then clear identity and every cached resource."""
        try:
            await self._api.post(LOGOUT_PATH)
        except BazaarError as e:
            logger.warning("logout_failed", extra={"error": str(e)})
        finally:
            user = self._state.user
            self._version += 1
            self._cache.clear()
            self._set(SessionState(user=None, loading=False))
            logger.info("session_logout", extra={"user_id": user.id if user else None})

    async def update_profile(self, changes: ProfileUpdate) -> User:
        """PATCH the profile and replace the identity with the server's answer."""
        payload = await self._api.patch(
            PROFILE_PATH, json=changes.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        user = User.model_validate(payload)
        self._version += 1
        self._set(SessionState(user=user, loading=False))
        return user

    def require_user(self) -> User:
        """Return the identity or raise AuthRequiredError."""
        if self._state.user is None:
            raise AuthRequiredError("Please log in to continue")
        return self._state.user

    async def _resolve(self) -> None:
        version = self._version
        if self._state.user is None:
            self._set(SessionState(user=None, loading=True))
        user: User | None = None
        try:
            payload: Any = await self._api.get(ME_PATH, notify_unauthorized=False)
            user = User.model_validate(payload) if payload else None
        except AuthRequiredError:
            logger.info("session_anonymous")
        except BazaarError as e:
            logger.warning("session_resolve_failed", extra={"error": str(e)})
        except ValueError as e:
            # pydantic ValidationError is a ValueError
            logger.warning("session_payload_invalid", extra={"error": str(e)})
        finally:
            if version != self._version or self._state.user is not None:
                # identity was set or cleared locally meanwhile; keep it
                logger.debug("session_resolve_ignored")
                user = self._state.user
            self._set(SessionState(user=user, loading=False))
            self._resolved.set()

    def _handle_unauthorized(self) -> None:
        if self._state.user is not None:
            logger.info("session_expired", extra={"user_id": self._state.user.id})
            self._version += 1
            self._cache.clear()
            self._set(SessionState(user=None, loading=self._state.loading))

    def _set(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
