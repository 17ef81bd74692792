"""Async REST client for the marketplace backend with cookie credentials and error normalization."""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from bazaar.core.errors import AuthRequiredError, OperationFailedError

logger = logging.getLogger(__name__)

UnauthorizedHandler = Callable[[], Awaitable[None] | None]


def _error_message(response: httpx.Response) -> str:
    """Pull the backend's `message` field out of an error body, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = response.text.strip()
    return text or response.reason_phrase or f"Request failed with status {response.status_code}"


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient.

    The session is cookie-based, so the cookie jar of the underlying client
    carries credentials on every request. Status handling:

    - 401: AuthRequiredError, after notifying the unauthorized handlers
    - other non-2xx: OperationFailedError with the backend's message
    - transport errors: OperationFailedError with no status code
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        self._unauthorized_handlers: list[UnauthorizedHandler] = []

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie jar shared by every request."""
        return self._client.cookies

    def on_unauthorized(self, handler: UnauthorizedHandler) -> None:
        """Register a callback invoked whenever the backend answers 401."""
        self._unauthorized_handlers.append(handler)

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        notify_unauthorized: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded JSON body (None for empty bodies).

        With `notify_unauthorized=False` a 401 still raises but the unauthorized
        handlers are not called; the caller handles it itself.
        """
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning(
                "api_transport_error",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise OperationFailedError(f"Could not reach the server: {e}") from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            if notify_unauthorized:
                await self._notify_unauthorized()
            raise AuthRequiredError(_error_message(response))

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "api_request_failed",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise OperationFailedError(message, status_code=response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise OperationFailedError(
                "Server returned a malformed response", status_code=response.status_code,
            ) from e

    async def get(
        self, path: str, params: dict[str, Any] | None = None, notify_unauthorized: bool = True,
    ) -> Any:
        """GET a resource."""
        return await self.request("GET", path, params=params, notify_unauthorized=notify_unauthorized)

    async def post(self, path: str, json: Any = None) -> Any:
        """POST a JSON body."""
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        """PUT a JSON body."""
        return await self.request("PUT", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Any:
        """PATCH a JSON body."""
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str) -> Any:
        """DELETE a resource."""
        return await self.request("DELETE", path)

    def getter(self, path: str, params: dict[str, Any] | None = None) -> Callable[[], Awaitable[Any]]:
        """Build a zero-argument fetcher for the query cache."""
        async def fetch() -> Any:
            return await self.get(path, params=params)
        return fetch

    async def _notify_unauthorized(self) -> None:
        for handler in list(self._unauthorized_handlers):
            result = handler()
            if result is not None:
                await result
