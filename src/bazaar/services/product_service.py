"""Product catalogue queries and seller listing mutations."""
import logging

from pydantic import TypeAdapter

from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.core.session import SessionManager
from bazaar.schemas.product import Product, ProductCreate, Review, ReviewCreate
from bazaar.services import keys
from bazaar.services.forms import body

logger = logging.getLogger(__name__)

_PRODUCTS = TypeAdapter(list[Product])
_REVIEWS = TypeAdapter(list[Review])

# Catalogue data changes rarely; reuse it for a minute before refetching
CATALOGUE_STALE_TIME = 60.0


class ProductService:
    """Public catalogue reads plus seller create/update/delete."""

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    async def featured(self) -> list[Product]:
        """Products promoted on the home page."""
        data = await self._cache.fetch(
            keys.FEATURED_PRODUCTS,
            self._api.getter(keys.FEATURED_PRODUCTS),
            stale_time=CATALOGUE_STALE_TIME,
        )
        return _PRODUCTS.validate_python(data or [])

    async def search(
        self,
        category: str | None = None,
        search: str | None = None,
        seller_id: int | None = None,
    ) -> list[Product]:
        """Catalogue listing, optionally filtered."""
        params = {"category": category, "search": search, "sellerId": seller_id}
        key = keys.with_query(keys.PRODUCTS, **params)
        query = {k: v for k, v in params.items() if v not in (None, "")}
        data = await self._cache.fetch(
            key, self._api.getter(keys.PRODUCTS, params=query or None),
            stale_time=CATALOGUE_STALE_TIME,
        )
        return _PRODUCTS.validate_python(data or [])

    async def get(self, product_id: int) -> Product:
        """One product."""
        key = keys.product_key(product_id)
        data = await self._cache.fetch(key, self._api.getter(key), stale_time=CATALOGUE_STALE_TIME)
        return Product.model_validate(data)

    async def reviews(self, product_id: int) -> list[Review]:
        """Reviews of a product."""
        key = keys.product_reviews_key(product_id)
        data = await self._cache.fetch(key, self._api.getter(key))
        return _REVIEWS.validate_python(data or [])

    async def add_review(self, product_id: int, review: ReviewCreate) -> Review:
        """Post a review as the signed-in buyer."""
        self._session.require_user()
        key = keys.product_reviews_key(product_id)
        payload = await self._cache.mutate(
            key,
            lambda: self._api.post(key, json=body(review)),
            invalidates=(keys.product_key(product_id),),
        )
        return Review.model_validate(payload)

    async def create(self, product: ProductCreate) -> Product:
        """List a new product for the signed-in seller."""
        user = self._session.require_user()
        seller_id = product.seller_id or user.id
        payload = await self._cache.mutate(
            keys.PRODUCTS,
            lambda: self._api.post(keys.PRODUCTS, json=body(product, sellerId=seller_id)),
            prefixes=(keys.PRODUCTS,),
        )
        created = Product.model_validate(payload)
        logger.info("product_created", extra={"product_id": created.id, "seller_id": seller_id})
        return created

    async def update(self, product_id: int, product: ProductCreate) -> Product:
        """Replace a listing."""
        user = self._session.require_user()
        key = keys.product_key(product_id)
        seller_id = product.seller_id or user.id
        payload = await self._cache.mutate(
            keys.PRODUCTS,
            lambda: self._api.put(key, json=body(product, sellerId=seller_id)),
            prefixes=(keys.PRODUCTS,),
        )
        return Product.model_validate(payload)

    async def delete(self, product_id: int) -> None:
        """Remove a listing."""
        self._session.require_user()
        key = keys.product_key(product_id)
        await self._cache.mutate(
            keys.PRODUCTS, lambda: self._api.delete(key), prefixes=(keys.PRODUCTS,),
        )
        logger.info("product_deleted", extra={"product_id": product_id})
