"""
Route guard: decides whether the current session may view a path.

`guard()` is a pure function of (path, session state). Navigation is a side
effect performed by `RouteGuard`, which re-evaluates on every path change and
every session change so authorization never relies on stale session data.
"""
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

from bazaar.core.config import DEFAULT_PROTECTED_PREFIXES
from bazaar.core.session import SessionManager, SessionState
from bazaar.schemas.user import Role

logger = logging.getLogger(__name__)


ROLE_PREFIXES: dict[str, Role] = {
    "/dashboard/buyer": Role.BUYER,
    "/dashboard/seller": Role.SELLER,
    "/dashboard/admin": Role.ADMIN,
}


@dataclass(frozen=True)
class Allow:
    """The path may be rendered."""


@dataclass(frozen=True)
class Pending:
    """Session is still resolving; render a loading state and decide later."""


@dataclass(frozen=True)
class Redirect:
    """Navigate to `target` instead."""

    target: str


GuardDecision = Allow | Pending | Redirect


def matches_prefix(path: str, prefix: str) -> bool:
    """Segment-aware prefix match: '/dashboard' matches '/dashboard/x' but not '/dashboardx'."""
    prefix = prefix.rstrip("/") or "/"
    if prefix == "/":
        return True
    return path == prefix or path.startswith(prefix + "/")


def login_redirect(path: str, login_path: str = "/auth") -> str:
    """Login URL preserving the requested path as the return target."""
    return f"{login_path}?redirect={quote(path, safe='/')}"


def guard(
    path: str,
    state: SessionState,
    protected_prefixes: Sequence[str] = DEFAULT_PROTECTED_PREFIXES,
    login_path: str = "/auth",
    landing_path: str = "/",
) -> GuardDecision:
    """
    Decide {allow, pending, redirect} for `path` under `state`.

    - unprotected paths are always allowed
    - protected paths are pending while the session is loading
    - protected paths without a user redirect to login with a return target
    - role dashboards with the wrong role redirect to the landing page
    """
    route = urlsplit(path).path or "/"
    if not any(matches_prefix(route, prefix) for prefix in protected_prefixes):
        return Allow()
    if state.loading:
        return Pending()
    if state.user is None:
        return Redirect(login_redirect(path, login_path))
    for prefix, role in ROLE_PREFIXES.items():
        if matches_prefix(route, prefix) and state.user.role != role:
            return Redirect(landing_path)
    return Allow()


class RouteGuard:
    """
    Applies `guard()` to the current location and performs redirects.

    `on_redirect` is the navigation effect; it receives the redirect target.
    The guard follows its own redirects, so `location` always reflects the
    path actually shown.
    """

    def __init__(
        self,
        session: SessionManager,
        on_redirect: Callable[[str], None],
        protected_prefixes: Sequence[str] = DEFAULT_PROTECTED_PREFIXES,
        login_path: str = "/auth",
        landing_path: str = "/",
    ) -> None:
        self._session = session
        self._on_redirect = on_redirect
        self._protected_prefixes = tuple(protected_prefixes)
        self._login_path = login_path
        self._landing_path = landing_path
        self._location: str | None = None
        self._decision: GuardDecision = Pending()
        self._unsubscribe = session.subscribe(self._on_session_change)

    @property
    def location(self) -> str | None:
        """Path currently shown."""
        return self._location

    @property
    def decision(self) -> GuardDecision:
        """Decision for the current location."""
        return self._decision

    def navigate(self, path: str) -> GuardDecision:
        """Move to `path` and evaluate it."""
        self._location = path
        return self._evaluate()

    def close(self) -> None:
        """Stop following session changes."""
        self._unsubscribe()

    def _on_session_change(self, state: SessionState) -> None:  # noqa: ARG002
        if self._location is not None:
            self._evaluate()

    def _evaluate(self) -> GuardDecision:
        """Evaluate the location, following redirects. Returns the decision for the requested path."""
        first: GuardDecision | None = None
        seen: set[str] = set()
        while True:
            path = self._location
            decision = guard(
                path,
                self._session.state,
                self._protected_prefixes,
                self._login_path,
                self._landing_path,
            )
            if first is None:
                first = decision
            self._decision = decision
            if not isinstance(decision, Redirect) or decision.target in seen | {path}:
                return first
            seen.add(path)
            logger.info("route_redirect", extra={"from": path, "to": decision.target})
            self._location = decision.target
            self._on_redirect(decision.target)
