"""Product modification requests: buyers submit, sellers respond."""
import logging

from pydantic import TypeAdapter

from bazaar.core.http import ApiClient
from bazaar.core.query_cache import QueryCache
from bazaar.core.session import SessionManager
from bazaar.schemas.modification_request import (
    ModificationRequest,
    ModificationRequestCreate,
    ModificationRequestStatus,
    SellerResponse,
)
from bazaar.services import keys
from bazaar.services.forms import body, build
from bazaar.services.views import ModificationRequestListView, modification_request_list_view

logger = logging.getLogger(__name__)

_REQUESTS = TypeAdapter(list[ModificationRequest])

REQUEST_LIST_STALE_TIME = 5 * 60.0


class ModificationRequestService:
    """Submission and review of modification requests."""

    def __init__(self, api: ApiClient, cache: QueryCache, session: SessionManager) -> None:
        self._api = api
        self._cache = cache
        self._session = session

    async def submit(self, product_id: int, seller_id: int, request_details: str) -> ModificationRequest:
        """
        Send a request to the seller.

        Input is validated locally first: details shorter than the minimum
        raise ValidationFailedError and nothing is sent.
        """
        request = build(
            ModificationRequestCreate,
            product_id=product_id,
            seller_id=seller_id,
            request_details=request_details,
        )
        self._session.require_user()
        payload = await self._cache.mutate(
            keys.MODIFICATION_REQUESTS,
            lambda: self._api.post(keys.MODIFICATION_REQUESTS, json=body(request)),
        )
        logger.info("modification_request_submitted", extra={"product_id": product_id})
        return ModificationRequest.model_validate(payload)

    async def buyer_requests(self) -> ModificationRequestListView:
        """Requests the signed-in buyer has made."""
        return modification_request_list_view(await self._list(keys.BUYER_MODIFICATION_REQUESTS))

    async def seller_requests(self) -> ModificationRequestListView:
        """Requests addressed to the signed-in seller."""
        return modification_request_list_view(await self._list(keys.SELLER_MODIFICATION_REQUESTS))

    async def respond(
        self,
        request_id: int,
        status: ModificationRequestStatus,
        seller_response: str,
    ) -> ModificationRequest:
        """Approve or deny a request with a message to the buyer."""
        self._session.require_user()
        response = SellerResponse(status=status, seller_response=seller_response)
        payload = await self._cache.mutate(
            keys.SELLER_MODIFICATION_REQUESTS,
            lambda: self._api.patch(
                f"{keys.MODIFICATION_REQUESTS}/{request_id}", json=body(response),
            ),
        )
        logger.info(
            "modification_request_answered",
            extra={"request_id": request_id, "status": status.value},
        )
        return ModificationRequest.model_validate(payload)

    async def _list(self, key: str) -> list[ModificationRequest]:
        self._session.require_user()
        data = await self._cache.fetch(key, self._api.getter(key), stale_time=REQUEST_LIST_STALE_TIME)
        return _REQUESTS.validate_python(data or [])
