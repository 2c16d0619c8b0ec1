"""
Shared fixtures: an in-memory storefront backend served by FastAPI.

The backend is mounted into httpx through ASGITransport, so every test
drives the real ApiClient over real HTTP semantics without a network.

Knobs on Backend:
    failures[route]  — answer that route with (status, message)
    gates[route]     — hold the response until the event is set
    card_result      — body returned by POST /payments/card
    confirm_status   — status returned by POST /payments/yape/confirm
    next_codes       — payment codes handed out by generate-qr, in order
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Annotated, Any

import httpx
import pytest
from fastapi import APIRouter, Body, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from kungfu import Ok, Error

from storefront.cart import CartLineControls, CartStore
from storefront.checkout import CheckoutOrchestrator
from storefront.config import ClientConfig
from storefront.orders import OrderInitiator, OrdersApi
from storefront.payments import PaymentsApi
from storefront.session import MemorySessionStore, Session, SessionContext
from storefront.transport import ApiClient

BASE_URL = "http://storefront.test/api"
TOKEN = "token-123"

GAMES = {
    1: {"id": 1, "title": "Hollow Knight", "price": Decimal("10.00")},
    2: {"id": 2, "title": "Celeste", "price": Decimal("20.00")},
    3: {"id": 3, "title": "Hades", "price": Decimal("25.00")},
}


# ═══════════════════════════════════════════════════════════════════════════════
# Backend State
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class Backend:
    token: str = TOKEN
    lines: dict[int, dict[str, Any]] = field(default_factory=dict)
    orders: dict[int, dict[str, Any]] = field(default_factory=dict)
    payments: dict[str, dict[str, Any]] = field(default_factory=dict)

    failures: dict[str, tuple[int, str | None]] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    card_result: dict[str, Any] = field(
        default_factory=lambda: {"status": "COMPLETED", "message": "Payment approved"}
    )
    confirm_status: str = "COMPLETED"
    next_codes: list[str] = field(default_factory=list)
    clear_returns_empty: bool = False

    calls: list[tuple[str, Any]] = field(default_factory=list)

    _ids: int = 100

    def next_id(self) -> int:
        self._ids += 1
        return self._ids

    # ─── seeding ──────────────────────────────────────────────────────────────

    def put_line(self, game_id: int, quantity: int = 1) -> int:
        item_id = self.next_id()
        self.lines[item_id] = {"game_id": game_id, "quantity": quantity}
        return item_id

    def put_order(self, status: str = "PENDING", lines: dict[int, int] | None = None) -> int:
        order_id = self.next_id()
        items = [
            {
                "gameId": game_id,
                "gameTitle": GAMES[game_id]["title"],
                "quantity": quantity,
                "priceAtPurchase": float(GAMES[game_id]["price"]),
                "subtotal": float(GAMES[game_id]["price"] * quantity),
            }
            for game_id, quantity in (lines or {1: 1}).items()
        ]
        self.orders[order_id] = {
            "id": order_id,
            "orderNumber": f"ORD-{order_id:06d}",
            "status": status,
            "items": items,
            "totalAmount": sum(item["subtotal"] for item in items),
            "itemCount": sum(item["quantity"] for item in items),
            "createdAt": "2026-10-19T12:00:00",
        }
        return order_id

    # ─── views ────────────────────────────────────────────────────────────────

    def cart_json(self) -> dict[str, Any]:
        items = []
        for item_id, line in self.lines.items():
            game = GAMES[line["game_id"]]
            items.append(
                {
                    "id": item_id,
                    "game": {"id": game["id"], "title": game["title"], "price": float(game["price"])},
                    "quantity": line["quantity"],
                    "price": float(game["price"]),
                    "subtotal": float(game["price"] * line["quantity"]),
                }
            )
        return {
            "id": 1,
            "items": items,
            "total": sum(item["subtotal"] for item in items),
            "itemCount": sum(item["quantity"] for item in items),
        }

    def routes_called(self, prefix: str) -> list[Any]:
        return [payload for route, payload in self.calls if route.startswith(prefix)]


class ApiFailure(Exception):
    def __init__(self, status: int, message: str | None) -> None:
        self.status = status
        self.message = message


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


def build_app(backend: Backend) -> FastAPI:
    app = FastAPI()
    router = APIRouter(prefix="/api")

    @app.exception_handler(ApiFailure)
    async def api_failure(request: Request, exc: ApiFailure) -> JSONResponse:
        body = {"message": exc.message} if exc.message else {}
        return JSONResponse(body, status_code=exc.status)

    def authorized(authorization: Annotated[str | None, Header()] = None) -> None:
        if authorization != f"Bearer {backend.token}":
            raise ApiFailure(401, "Unauthorized")

    async def step(route: str, payload: Any = None) -> None:
        """Record the call, fail it if asked."""
        backend.calls.append((route, payload))
        if route in backend.failures:
            status, message = backend.failures[route]
            raise ApiFailure(status, message)

    async def hold(route: str) -> None:
        if gate := backend.gates.get(route):
            await gate.wait()

    def find_order(order_id: int) -> dict[str, Any]:
        if order_id not in backend.orders:
            raise ApiFailure(404, "Order not found")
        return backend.orders[order_id]

    # ─── cart ─────────────────────────────────────────────────────────────────

    @router.get("/cart", dependencies=[Depends(authorized)])
    async def get_cart() -> dict[str, Any]:
        await step("cart.get")
        snapshot = backend.cart_json()
        await hold("cart.get")
        return snapshot

    @router.post("/cart/items", dependencies=[Depends(authorized)])
    async def add_item(body: Annotated[dict[str, Any], Body()]) -> dict[str, Any]:
        await step("cart.add", body)
        game_id, quantity = body["gameId"], body.get("quantity", 1)
        if game_id not in GAMES:
            raise ApiFailure(404, "Game not found")
        for line in backend.lines.values():
            if line["game_id"] == game_id:
                line["quantity"] += quantity
                break
        else:
            backend.put_line(game_id, quantity)
        return backend.cart_json()

    @router.put("/cart/items/{item_id}", dependencies=[Depends(authorized)])
    async def update_item(item_id: int, body: Annotated[dict[str, Any], Body()]) -> dict[str, Any]:
        await step(f"cart.update:{item_id}", body)
        if item_id not in backend.lines:
            raise ApiFailure(404, "Item not found")
        backend.lines[item_id]["quantity"] = body["quantity"]
        snapshot = backend.cart_json()
        await hold(f"cart.update:{item_id}")
        return snapshot

    @router.delete("/cart/items/{item_id}", dependencies=[Depends(authorized)])
    async def remove_item(item_id: int) -> dict[str, Any]:
        await step(f"cart.remove:{item_id}")
        if backend.lines.pop(item_id, None) is None:
            raise ApiFailure(404, "Item not found")
        return backend.cart_json()

    @router.delete("/cart/clear", dependencies=[Depends(authorized)], response_model=None)
    async def clear_cart() -> dict[str, Any] | Response:
        await step("cart.clear")
        backend.lines.clear()
        if backend.clear_returns_empty:
            return Response(status_code=204)
        return {"message": "Cart cleared"}

    # ─── orders ───────────────────────────────────────────────────────────────

    @router.post("/orders/checkout", dependencies=[Depends(authorized)])
    async def checkout(body: Annotated[dict[str, Any], Body()]) -> dict[str, Any]:
        await step("order.checkout", body)
        if not backend.lines:
            raise ApiFailure(400, "Cart is empty")
        lines = {line["game_id"]: line["quantity"] for line in backend.lines.values()}
        order_id = backend.put_order("PENDING", lines)
        backend.orders[order_id]["paymentMethod"] = body["paymentMethod"]
        backend.lines.clear()
        return backend.orders[order_id]

    @router.get("/orders/my-orders/all", dependencies=[Depends(authorized)])
    async def my_orders() -> list[dict[str, Any]]:
        await step("order.list")
        return list(backend.orders.values())

    @router.get("/orders/number/{order_number}", dependencies=[Depends(authorized)])
    async def order_by_number(order_number: str) -> dict[str, Any]:
        await step("order.by_number", order_number)
        for order in backend.orders.values():
            if order["orderNumber"] == order_number:
                return order
        raise ApiFailure(404, "Order not found")

    @router.get("/orders/{order_id}", dependencies=[Depends(authorized)])
    async def get_order(order_id: int) -> dict[str, Any]:
        await step(f"order.get:{order_id}")
        order = find_order(order_id)
        await hold(f"order.get:{order_id}")
        return order

    @router.post("/orders/{order_id}/cancel", dependencies=[Depends(authorized)])
    async def cancel_order(order_id: int) -> dict[str, Any]:
        await step(f"order.cancel:{order_id}")
        await hold(f"order.cancel:{order_id}")
        order = find_order(order_id)
        if order["status"] != "PENDING":
            raise ApiFailure(400, "Only pending orders can be cancelled")
        order["status"] = "CANCELLED"
        return order

    # ─── payments ─────────────────────────────────────────────────────────────

    @router.post("/payments/card", dependencies=[Depends(authorized)])
    async def pay_card(body: Annotated[dict[str, Any], Body()]) -> dict[str, Any]:
        await step("pay.card", body)
        order = find_order(body["orderId"])
        result = {
            "orderId": order["id"],
            "orderNumber": order["orderNumber"],
            "paymentMethod": body["paymentMethod"],
            "amount": order["totalAmount"],
            "cardLastFour": str(body.get("cardNumber", ""))[-4:],
            **backend.card_result,
        }
        if result["status"] == "COMPLETED":
            order["status"] = "COMPLETED"
        await hold("pay.card")
        return result

    @router.post("/payments/yape/generate-qr", dependencies=[Depends(authorized)])
    async def generate_qr(orderId: int) -> dict[str, Any]:  # noqa: N803
        await step("yape.generate", orderId)
        order = find_order(orderId)
        code = backend.next_codes.pop(0) if backend.next_codes else f"YAPE{backend.next_id()}"
        backend.payments[code] = {"orderId": orderId, "status": "PENDING"}
        qr = {
            "paymentCode": code,
            "amount": order["totalAmount"],
            "qrCodeData": f"yape://pay?code={code}",
            "expiresInSeconds": 600,
            "instructions": "Scan the code with Yape",
        }
        await hold("yape.generate")
        return qr

    @router.post("/payments/yape/confirm", dependencies=[Depends(authorized)])
    async def confirm_qr(paymentCode: str) -> dict[str, Any]:  # noqa: N803
        await step("yape.confirm", paymentCode)
        if paymentCode not in backend.payments:
            raise ApiFailure(404, "Payment not found")
        payment = backend.payments[paymentCode]
        payment["status"] = backend.confirm_status
        order = find_order(payment["orderId"])
        if backend.confirm_status == "COMPLETED":
            order["status"] = "COMPLETED"
        return {
            "status": backend.confirm_status,
            "paymentCode": paymentCode,
            "orderId": order["id"],
            "orderNumber": order["orderNumber"],
            "paymentMethod": "YAPE",
        }

    @router.get("/payments/status/{payment_code}", dependencies=[Depends(authorized)])
    async def payment_status(payment_code: str) -> dict[str, Any]:
        await step("pay.status", payment_code)
        if payment_code not in backend.payments:
            raise ApiFailure(404, "Payment not found")
        return {"paymentCode": payment_code, **backend.payments[payment_code]}

    @router.get("/payments/order/{order_id}", dependencies=[Depends(authorized)])
    async def payment_for_order(order_id: int) -> dict[str, Any]:
        await step("pay.for_order", order_id)
        for code, payment in backend.payments.items():
            if payment["orderId"] == order_id:
                return {"paymentCode": code, **payment}
        raise ApiFailure(404, "No payment for this order")

    @router.get("/payments/methods")
    async def payment_methods() -> dict[str, Any]:
        await step("pay.methods")
        return {
            "methods": [
                {"id": "CREDIT_CARD", "name": "Credit card", "icon": "credit-card"},
                {"id": "YAPE", "name": "Yape", "description": "Pay with a QR code"},
            ],
            "defaultMethod": "CREDIT_CARD",
        }

    app.include_router(router)
    return app


# ═══════════════════════════════════════════════════════════════════════════════
# Result helpers
# ═══════════════════════════════════════════════════════════════════════════════


def ok_value(result: Any) -> Any:
    match result:
        case Ok(value):
            return value
        case Error(error):
            pytest.fail(f"expected Ok, got Error({error!r})")


def error_value(result: Any) -> Any:
    match result:
        case Error(error):
            return error
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")


async def until(predicate: Callable[[], bool], *, rounds: int = 1000) -> None:
    """Yield to the loop until predicate holds."""
    for _ in range(rounds):
        if predicate():
            return
        await asyncio.sleep(0)
    pytest.fail("condition never became true")


# ═══════════════════════════════════════════════════════════════════════════════
# Notifier
# ═══════════════════════════════════════════════════════════════════════════════


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        self.events.append(("success", message))

    def error(self, message: str) -> None:
        self.events.append(("error", message))

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    @property
    def errors(self) -> list[str]:
        return [message for kind, message in self.events if kind == "error"]

    @property
    def successes(self) -> list[str]:
        return [message for kind, message in self.events if kind == "success"]


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def kicked_out() -> list[str]:
    """Records every on_unauthorized call."""
    return []


@pytest.fixture
async def session(kicked_out: list[str]) -> SessionContext:
    context = SessionContext(
        MemorySessionStore(Session(token=TOKEN, username="ana")),
        on_unauthorized=lambda: kicked_out.append("root"),
    )
    await context.restore()
    return context


@pytest.fixture
async def api(backend: Backend, session: SessionContext) -> AsyncIterator[ApiClient]:
    transport = httpx.ASGITransport(app=build_app(backend))
    config = ClientConfig().with_base_url(BASE_URL)
    async with ApiClient(config, session, transport=transport) as client:
        yield client


@pytest.fixture
def store(api: ApiClient, notifier: RecordingNotifier) -> CartStore:
    return CartStore(api, notifier)


@pytest.fixture
def controls(store: CartStore) -> CartLineControls:
    return CartLineControls(store)


@pytest.fixture
def orders(api: ApiClient) -> OrdersApi:
    return OrdersApi(api)


@pytest.fixture
def payments(api: ApiClient) -> PaymentsApi:
    return PaymentsApi(api)


@pytest.fixture
def initiator(orders: OrdersApi, store: CartStore, notifier: RecordingNotifier) -> OrderInitiator:
    return OrderInitiator(orders, store, notifier)


@pytest.fixture
def phases() -> list[Any]:
    """Every phase the orchestrator moved to, in order."""
    return []


@pytest.fixture
def checkout(
    orders: OrdersApi,
    payments: PaymentsApi,
    session: SessionContext,
    notifier: RecordingNotifier,
    phases: list[Any],
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(orders, payments, session, notifier, on_change=phases.append)
