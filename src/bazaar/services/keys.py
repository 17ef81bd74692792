"""
Cache keys for server resources and the dependencies between them.

Keys are the API paths the resources are fetched from. RESOURCE_DEPENDENCIES
lists, for a mutated resource, the other keys whose data changes with it.
"""
from urllib.parse import urlencode

AUTH_ME = "/api/auth/me"
PRODUCTS = "/api/products"
FEATURED_PRODUCTS = "/api/products/featured"
CART = "/api/cart"
ORDERS = "/api/orders"
MODIFICATION_REQUESTS = "/api/product-modification-requests"
BUYER_MODIFICATION_REQUESTS = "/api/product-modification-requests/buyer"
SELLER_MODIFICATION_REQUESTS = "/api/product-modification-requests/seller"
NOTIFICATIONS = "/api/notifications"
ADMIN_USERS = "/api/admin/users"


def product_key(product_id: int) -> str:
    """Key of a single product."""
    return f"{PRODUCTS}/{product_id}"


def product_reviews_key(product_id: int) -> str:
    """Key of a product's reviews."""
    return f"{PRODUCTS}/{product_id}/reviews"


def order_key(order_id: int) -> str:
    """Key of a single order."""
    return f"{ORDERS}/{order_id}"


def with_query(path: str, **params: object) -> str:
    """Append non-empty params as a stable, sorted query string."""
    filtered = {k: v for k, v in sorted(params.items()) if v not in (None, "")}
    if not filtered:
        return path
    return f"{path}?{urlencode(filtered)}"


# Public resources that may be shared between clients through redis. Nothing
# identity-scoped belongs here.
SHARED_RESOURCES: tuple[str, ...] = (PRODUCTS,)


RESOURCE_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    MODIFICATION_REQUESTS: (BUYER_MODIFICATION_REQUESTS, SELLER_MODIFICATION_REQUESTS),
    SELLER_MODIFICATION_REQUESTS: (BUYER_MODIFICATION_REQUESTS, NOTIFICATIONS),
    PRODUCTS: (FEATURED_PRODUCTS,),
    ORDERS: (NOTIFICATIONS,),
}
