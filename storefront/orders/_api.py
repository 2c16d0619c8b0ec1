"""
Orders API — order snapshots, cancellation, creation from the cart.
"""

from __future__ import annotations

from kungfu import Result

from storefront._types import OrderId
from storefront.domain import Order, PaymentMethod
from storefront.transport import ApiClient, ApiError


class OrdersApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def fetch(self, order_id: OrderId) -> Result[Order, ApiError]:
        return await self._api.call(Order, "GET", f"/orders/{order_id}")

    async def by_number(self, order_number: str) -> Result[Order, ApiError]:
        return await self._api.call(Order, "GET", f"/orders/number/{order_number}")

    async def list_mine(self) -> Result[tuple[Order, ...], ApiError]:
        return await self._api.call(tuple[Order, ...], "GET", "/orders/my-orders/all")

    async def checkout(self, payment_method: PaymentMethod) -> Result[Order, ApiError]:
        """Create a PENDING order from the server-side cart."""
        return await self._api.call(
            Order,
            "POST",
            "/orders/checkout",
            json={"paymentMethod": payment_method.value},
        )

    async def cancel(self, order_id: OrderId) -> Result[Order | None, ApiError]:
        return await self._api.call(
            Order, "POST", f"/orders/{order_id}/cancel", allow_empty=True
        )


__all__ = ("OrdersApi",)
