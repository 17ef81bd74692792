"""Shared fixtures: an in-process fake marketplace backend and clients wired to it."""
import itertools
import secrets
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from bazaar.app import Marketplace
from bazaar.core.config import Settings


BUYER = {"id": 1, "name": "Asha Buyer", "email": "buyer@example.com", "username": "asha", "role": "buyer"}
SELLER = {"id": 2, "name": "Ravi Seller", "email": "seller@example.com", "username": "ravi", "role": "seller"}
ADMIN = {"id": 3, "name": "Meera Admin", "email": "admin@example.com", "username": "meera", "role": "admin"}
PASSWORD = "secret123"


class FakeBackend:
    """
    Minimal stand-in for the marketplace REST API.

    Records every call in `calls` and can be told to fail a route with
    `fail(method, path, status)`.
    """

    def __init__(self) -> None:
        self.users: dict[int, dict[str, Any]] = {u["id"]: dict(u) for u in (BUYER, SELLER, ADMIN)}
        self.sessions: dict[str, int] = {}
        self.products: dict[int, dict[str, Any]] = {
            i: {
                "id": i,
                "title": f"Handwoven item {i}",
                "description": "Made by hand",
                "price": f"{10 * i}.50",
                "images": [f"/img/{i}.jpg"],
                "category": "textiles" if i % 2 else "pottery",
                "quantityAvailable": 5,
                "sellerId": SELLER["id"],
            }
            for i in range(1, 7)
        }
        self.reviews: list[dict[str, Any]] = []
        self.cart: dict[int, dict[str, Any]] = {}
        self.orders: dict[int, dict[str, Any]] = {
            i: {
                "id": i,
                "buyerId": BUYER["id"],
                "orderStatus": status,
                "totalAmount": "25.00",
                "items": [],
            }
            for i, status in ((101, "pending"), (102, "shipped"), (103, "delivered"), (104, "shipped"))
        }
        self.requests: dict[int, dict[str, Any]] = {}
        self.notifications: dict[int, dict[str, Any]] = {
            1: {"id": 1, "userId": BUYER["id"], "title": "Shipped", "message": "Order 102 shipped",
                "type": "order_update", "isRead": False},
            2: {"id": 2, "userId": BUYER["id"], "title": "Welcome", "message": "Hello",
                "type": "system", "isRead": True},
        }
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], int] = {}
        self._ids = itertools.count(1000)
        self.app = self._build_app()

    def fail(self, method: str, path: str, status: int = 500) -> None:
        """Make (method, path) answer `status` with an error message."""
        self.failures[(method, path)] = status

    def count(self, method: str, path: str) -> int:
        """How many times (method, path) was called."""
        return self.calls.count((method, path))

    def _user(self, request: Request) -> dict[str, Any]:
        user_id = self.sessions.get(request.cookies.get("sid", ""))
        if user_id is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return self.users[user_id]

    def _start_session(self, response: Response, user: dict[str, Any]) -> None:
        sid = secrets.token_hex(8)
        self.sessions[sid] = user["id"]
        response.set_cookie("sid", sid)

    def _build_app(self) -> FastAPI:  # noqa: PLR0915
        app = FastAPI()

        @app.exception_handler(HTTPException)
        async def message_body(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: ARG001
            return JSONResponse({"message": exc.detail}, status_code=exc.status_code)

        @app.middleware("http")
        async def record(request: Request, call_next: Any) -> Response:
            self.calls.append((request.method, request.url.path))
            status = self.failures.get((request.method, request.url.path))
            if status is not None:
                return JSONResponse({"message": "Injected failure"}, status_code=status)
            return await call_next(request)

        # Auth
        @app.post("/api/auth/login")
        async def login(request: Request, response: Response) -> dict:
            data = await request.json()
            user = next((u for u in self.users.values() if u["email"] == data.get("email")), None)
            if user is None or data.get("password") != PASSWORD:
                raise HTTPException(status_code=401, detail="Invalid credentials")
            self._start_session(response, user)
            return user

        @app.post("/api/auth/register", status_code=201)
        async def register(request: Request, response: Response) -> dict:
            data = await request.json()
            if any(u["email"] == data["email"] for u in self.users.values()):
                raise HTTPException(status_code=400, detail="Email already registered")
            user = {
                "id": next(self._ids),
                "name": data["name"],
                "email": data["email"],
                "username": data["username"],
                "role": data.get("role", "buyer"),
            }
            self.users[user["id"]] = user
            self._start_session(response, user)
            return user

        @app.get("/api/auth/me")
        async def me(request: Request) -> dict:
            return self._user(request)

        @app.post("/api/auth/logout")
        async def logout(request: Request, response: Response) -> dict:
            self.sessions.pop(request.cookies.get("sid", ""), None)
            response.delete_cookie("sid")
            return {"message": "Logged out successfully"}

        @app.patch("/api/users/profile")
        async def update_profile(request: Request) -> dict:
            user = self._user(request)
            user.update(await request.json())
            return user

        # Products
        @app.get("/api/products/featured")
        async def featured() -> list:
            return [p for p in self.products.values() if p["id"] % 3 == 0]

        @app.get("/api/products")
        async def list_products(
            category: str | None = None, search: str | None = None, sellerId: int | None = None,  # noqa: N803
        ) -> list:
            products = list(self.products.values())
            if category:
                products = [p for p in products if p["category"] == category]
            if search:
                products = [p for p in products if search.lower() in p["title"].lower()]
            if sellerId:
                products = [p for p in products if p["sellerId"] == sellerId]
            return products

        @app.post("/api/products", status_code=201)
        async def create_product(request: Request) -> dict:
            self._user(request)
            product = {"id": next(self._ids), **(await request.json())}
            self.products[product["id"]] = product
            return product

        @app.get("/api/products/{product_id}")
        async def get_product(product_id: int) -> dict:
            if product_id not in self.products:
                raise HTTPException(status_code=404, detail="Product not found")
            return self.products[product_id]

        @app.put("/api/products/{product_id}")
        async def update_product(product_id: int, request: Request) -> dict:
            self._user(request)
            self.products[product_id] = {"id": product_id, **(await request.json())}
            return self.products[product_id]

        @app.delete("/api/products/{product_id}")
        async def delete_product(product_id: int, request: Request) -> dict:
            self._user(request)
            self.products.pop(product_id, None)
            return {"message": "Product deleted successfully"}

        @app.get("/api/products/{product_id}/reviews")
        async def list_reviews(product_id: int) -> list:
            return [r for r in self.reviews if r["productId"] == product_id]

        @app.post("/api/products/{product_id}/reviews", status_code=201)
        async def add_review(product_id: int, request: Request) -> dict:
            user = self._user(request)
            review = {"id": next(self._ids), "productId": product_id, "buyerId": user["id"], **(await request.json())}
            self.reviews.append(review)
            return review

        # Cart
        def cart_line(item: dict[str, Any]) -> dict[str, Any]:
            return {**item, "product": self.products.get(item["productId"])}

        @app.get("/api/cart")
        async def get_cart(request: Request) -> list:
            user = self._user(request)
            return [cart_line(i) for i in self.cart.values() if i["userId"] == user["id"]]

        @app.post("/api/cart", status_code=201)
        async def add_to_cart(request: Request) -> dict:
            user = self._user(request)
            data = await request.json()
            if data.get("userId") != user["id"]:
                raise HTTPException(status_code=403, detail="You can only add items to your own cart")
            product = self.products.get(data["productId"])
            if product is None:
                raise HTTPException(status_code=404, detail="Product not found")
            if product["quantityAvailable"] < data["quantity"]:
                raise HTTPException(status_code=400, detail="Not enough product in stock")
            item = {"id": next(self._ids), "userId": user["id"],
                    "productId": data["productId"], "quantity": data["quantity"]}
            self.cart[item["id"]] = item
            return cart_line(item)

        @app.put("/api/cart/{item_id}")
        async def update_cart(item_id: int, request: Request) -> dict:
            self._user(request)
            if item_id not in self.cart:
                raise HTTPException(status_code=404, detail="Cart item not found")
            self.cart[item_id]["quantity"] = (await request.json())["quantity"]
            return cart_line(self.cart[item_id])

        @app.delete("/api/cart/{item_id}")
        async def remove_from_cart(item_id: int, request: Request) -> dict:
            self._user(request)
            if self.cart.pop(item_id, None) is None:
                raise HTTPException(status_code=404, detail="Cart item not found")
            return {"message": "Cart item removed successfully"}

        @app.delete("/api/cart")
        async def clear_cart(request: Request) -> dict:
            user = self._user(request)
            self.cart = {k: v for k, v in self.cart.items() if v["userId"] != user["id"]}
            return {"message": "Cart cleared successfully"}

        # Orders
        @app.get("/api/orders")
        async def list_orders(request: Request) -> list:
            user = self._user(request)
            if user["role"] == "buyer":
                return [o for o in self.orders.values() if o["buyerId"] == user["id"]]
            return list(self.orders.values())

        @app.get("/api/orders/{order_id}")
        async def get_order(order_id: int, request: Request) -> dict:
            self._user(request)
            if order_id not in self.orders:
                raise HTTPException(status_code=404, detail="Order not found")
            return self.orders[order_id]

        @app.post("/api/orders", status_code=201)
        async def place_order(request: Request) -> dict:
            user = self._user(request)
            data = await request.json()
            if not data.get("items"):
                raise HTTPException(status_code=400, detail="Order must include items")
            order = {
                "id": next(self._ids),
                **data["order"],
                "orderStatus": "pending",
                "items": [
                    {"id": next(self._ids), "orderId": 0, **item} for item in data["items"]
                ],
            }
            self.orders[order["id"]] = order
            self.cart = {k: v for k, v in self.cart.items() if v["userId"] != user["id"]}
            return order

        @app.patch("/api/orders/{order_id}/status")
        async def update_order_status(order_id: int, request: Request) -> dict:
            user = self._user(request)
            if user["role"] not in ("seller", "admin"):
                raise HTTPException(status_code=403, detail="Insufficient permissions")
            self.orders[order_id]["orderStatus"] = (await request.json())["status"]
            return self.orders[order_id]

        # Modification requests
        @app.post("/api/product-modification-requests", status_code=201)
        async def submit_request(request: Request) -> dict:
            user = self._user(request)
            data = await request.json()
            item = {"id": next(self._ids), "buyerId": user["id"], "status": "pending",
                    "sellerResponse": None, **data}
            self.requests[item["id"]] = item
            return item

        @app.get("/api/product-modification-requests/buyer")
        async def buyer_requests(request: Request) -> list:
            user = self._user(request)
            return [r for r in self.requests.values() if r["buyerId"] == user["id"]]

        @app.get("/api/product-modification-requests/seller")
        async def seller_requests(request: Request) -> list:
            user = self._user(request)
            return [r for r in self.requests.values() if r["sellerId"] == user["id"]]

        @app.patch("/api/product-modification-requests/{request_id}")
        async def respond_request(request_id: int, request: Request) -> dict:
            self._user(request)
            self.requests[request_id].update(await request.json())
            return self.requests[request_id]

        # Notifications
        @app.get("/api/notifications")
        async def list_notifications(request: Request) -> list:
            user = self._user(request)
            return [n for n in self.notifications.values() if n["userId"] == user["id"]]

        @app.put("/api/notifications/read-all")
        async def read_all(request: Request) -> dict:
            user = self._user(request)
            for n in self.notifications.values():
                if n["userId"] == user["id"]:
                    n["isRead"] = True
            return {"message": "ok"}

        @app.put("/api/notifications/{notification_id}/read")
        async def read_one(notification_id: int, request: Request) -> dict:
            self._user(request)
            self.notifications[notification_id]["isRead"] = True
            return self.notifications[notification_id]

        # Admin
        @app.get("/api/admin/users")
        async def admin_users(request: Request) -> list:
            if self._user(request)["role"] != "admin":
                raise HTTPException(status_code=403, detail="Insufficient permissions")
            return list(self.users.values())

        @app.patch("/api/admin/users/{user_id}")
        async def admin_update_user(user_id: int, request: Request) -> dict:
            if self._user(request)["role"] != "admin":
                raise HTTPException(status_code=403, detail="Insufficient permissions")
            self.users[user_id]["role"] = (await request.json())["role"]
            return self.users[user_id]

        return app


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh fake backend per test."""
    return FakeBackend()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at the in-process backend, ignoring any .env file."""
    return Settings(_env_file=None, api_base_url="http://testserver")


@pytest.fixture
async def market(backend: FakeBackend, settings: Settings) -> AsyncGenerator[Marketplace]:
    """Started, anonymous marketplace client."""
    client = Marketplace(settings=settings, transport=httpx.ASGITransport(app=backend.app))
    await client.start()
    yield client
    await client.close()


@pytest.fixture
async def buyer(market: Marketplace) -> Marketplace:
    """Marketplace client signed in as the buyer."""
    await market.session.sign_in(BUYER["email"], PASSWORD)
    return market


@pytest.fixture
async def seller(market: Marketplace) -> Marketplace:
    """Marketplace client signed in as the seller."""
    await market.session.sign_in(SELLER["email"], PASSWORD)
    return market


@pytest.fixture
async def admin(market: Marketplace) -> Marketplace:
    """Marketplace client signed in as the admin."""
    await market.session.sign_in(ADMIN["email"], PASSWORD)
    return market
