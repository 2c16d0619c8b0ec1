"""
Payments API — card payments, Yape QR issue/confirm, status lookups.

Note: A declined card or an unpaid QR is still a 2xx PaymentResult.
Only transport-level failures come back as Error(ApiError).
"""

from __future__ import annotations

from kungfu import Result

from storefront._types import OrderId, PaymentCode
from storefront.domain import (
    CardDetails,
    PaymentMethod,
    PaymentMethods,
    PaymentResult,
    YapeQR,
)
from storefront.transport import ApiClient, ApiError


class PaymentsApi:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    # ═══════════════════════════════════════════════════════════════════════════
    # Card
    # ═══════════════════════════════════════════════════════════════════════════

    async def pay_card(
        self,
        order_id: OrderId,
        card: CardDetails,
        method: PaymentMethod = PaymentMethod.CREDIT_CARD,
    ) -> Result[PaymentResult, ApiError]:
        body = {
            "orderId": order_id,
            "paymentMethod": method.value,
            **card.model_dump(by_alias=True),
        }
        return await self._api.call(PaymentResult, "POST", "/payments/card", json=body)

    # ═══════════════════════════════════════════════════════════════════════════
    # Yape QR
    # ═══════════════════════════════════════════════════════════════════════════

    async def generate_yape_qr(self, order_id: OrderId) -> Result[YapeQR, ApiError]:
        return await self._api.call(
            YapeQR, "POST", "/payments/yape/generate-qr", params={"orderId": order_id}
        )

    async def confirm_yape(self, payment_code: PaymentCode) -> Result[PaymentResult, ApiError]:
        return await self._api.call(
            PaymentResult,
            "POST",
            "/payments/yape/confirm",
            params={"paymentCode": payment_code},
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Lookups
    # ═══════════════════════════════════════════════════════════════════════════

    async def status(self, payment_code: PaymentCode) -> Result[PaymentResult, ApiError]:
        return await self._api.call(PaymentResult, "GET", f"/payments/status/{payment_code}")

    async def for_order(self, order_id: OrderId) -> Result[PaymentResult, ApiError]:
        return await self._api.call(PaymentResult, "GET", f"/payments/order/{order_id}")

    async def methods(self) -> Result[PaymentMethods, ApiError]:
        return await self._api.call(PaymentMethods, "GET", "/payments/methods")


__all__ = ("PaymentsApi",)
