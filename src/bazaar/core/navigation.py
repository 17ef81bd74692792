"""Dashboard navigation entries per role."""
from dataclasses import dataclass

from bazaar.core.guard import matches_prefix
from bazaar.schemas.user import Role, User


@dataclass(frozen=True)
class NavEntry:
    """One sidebar link."""

    href: str
    label: str


NOTIFICATIONS_ENTRY = NavEntry("/dashboard/notifications", "Notifications")

NAV_LINKS: dict[Role, tuple[NavEntry, ...]] = {
    Role.BUYER: (
        NavEntry("/dashboard/buyer", "Dashboard"),
        NavEntry("/dashboard/buyer/orders", "My Orders"),
        NavEntry("/dashboard/buyer/modification-requests", "Modification Requests"),
    ),
    Role.SELLER: (
        NavEntry("/dashboard/seller", "Dashboard"),
        NavEntry("/dashboard/seller/products", "My Products"),
        NavEntry("/dashboard/seller/orders", "Orders"),
        NavEntry("/dashboard/seller/modification-requests", "Modification Requests"),
    ),
    Role.ADMIN: (
        NavEntry("/dashboard/admin", "Dashboard"),
        NavEntry("/dashboard/admin/users", "Users"),
        NavEntry("/dashboard/admin/products", "Products"),
    ),
}


def navigation_for(user: User | None) -> tuple[NavEntry, ...]:
    """Ordered sidebar entries for a user; anonymous users get none."""
    if user is None:
        return ()
    return (*NAV_LINKS[user.role], NOTIFICATIONS_ENTRY)


def active_entry(entries: tuple[NavEntry, ...], path: str) -> NavEntry | None:
    """The entry whose href is the longest segment-prefix of `path`."""
    matches = [entry for entry in entries if matches_prefix(path, entry.href)]
    if not matches:
        return None
    return max(matches, key=lambda entry: len(entry.href))
